"""Test conversation flow through DialogueSession."""

import pytest

from twilight.core.actions import GameEvent, RecordingActionSink
from twilight.core.state import ContextSnapshot
from twilight.dialogue import DialogueSession, parse_script
from twilight.quest import ChainTracker, QuestDefinition, StageDefinition

SCRIPT = [
    {
        "id": "greeting",
        "text": "How does the garden grow?",
        "required_quest": "witch_garden",
        "responses": [{"text": "Slowly."}],
    },
    {
        "id": "greeting",
        "text": "Welcome, traveller.",
        "responses": [
            {"text": "Teach me.", "next_id": "apprentice", "hidden_if_quest_started": "witch_garden"},
            {"text": "Broken path.", "next_id": "nowhere"},
            {"text": "Bye."},
        ],
    },
    {
        "id": "apprentice",
        "text": "Grow me three crops.",
        "hidden_if_quest_started": "witch_garden",
        "responses": [
            {"text": "I'll do it!", "next_id": "accepted", "starts_quest": "witch_garden",
             "friendship_points": 25},
        ],
    },
    {
        "id": "accepted",
        "text": "Good.",
        "required_quest": "witch_garden",
    },
]


@pytest.fixture
def tracker():
    quest = QuestDefinition(id="witch_garden", title="Witch Garden",
                            stages=[StageDefinition(name="active", number=1)])
    return ChainTracker([quest], sink=RecordingActionSink())


@pytest.fixture
def session(tracker):
    script = parse_script(SCRIPT)
    return DialogueSession("witch", script, tracker, lambda: ContextSnapshot(quests=tracker.view()))


def test_open_greeting_emits_talked(session, tracker):
    node = session.open()
    assert node.text == "Welcome, traveller."
    assert session.is_open
    assert (GameEvent.NPC_TALKED, {"npc_id": "witch"}) in tracker.sink.events


def test_choice_starts_quest_before_next_resolution(session, tracker):
    session.open()
    node = session.choose(0)
    assert node.id == "apprentice"

    node = session.choose(0)
    assert node.id == "accepted"
    assert node.text == "Good."
    assert tracker.is_chain_active("witch_garden")
    assert tracker.sink.friendship == {"witch": 25}


def test_unmatched_next_id_closes_conversation(session):
    session.open()
    assert session.choose(1) is None
    assert not session.is_open


def test_response_without_next_closes(session):
    session.open()
    assert session.choose(2) is None
    assert not session.is_open


def test_bad_index_keeps_node(session):
    current = session.open()
    assert session.choose(7) is current
    assert session.is_open


def test_choose_on_closed_session(session):
    assert session.choose(0) is None


def test_greeting_changes_once_quest_started(session, tracker):
    tracker.start_chain("witch_garden")
    node = session.open()
    assert node.text == "How does the garden grow?"
    assert [r.text for r in node.responses] == ["Slowly."]


def test_transcript(session):
    session.open()
    session.choose(0)
    assert session.transcript == [
        ("witch", "Welcome, traveller."),
        ("player", "Teach me."),
        ("witch", "Grow me three crops."),
    ]


def test_no_matching_greeting():
    tracker = ChainTracker()
    session = DialogueSession("nobody", [], tracker, ContextSnapshot)
    assert session.open() is None
    assert not session.is_open
