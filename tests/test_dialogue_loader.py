"""Test dialogue script loading and content lint."""

import json

import pytest

from twilight.core.dsl import (
    AnyDomainInProgress, FriendshipRange, HasItem, Mastery, QuestCompleted,
    QuestNotCompleted, QuestNotStarted, QuestStage, SeasonIn, StatusEffect, TimeOfDayIs,
)
from twilight.core.state import FriendshipTier, MasteryFlag, Season, TimeOfDay, Weather
from twilight.dialogue import (
    AdjustFriendship, AdvanceQuest, CompleteQuest, DialogueNode, EmitEvent, GrantItem,
    Response, SetQuestStage, StartQuest, lint_script, load_dialogue_file, parse_action,
    parse_gate, parse_script,
)
from twilight.quest import QuestDefinition, StageDefinition


class TestFlatKeys:

    def test_node_gates(self):
        script = parse_script([{
            "id": "greeting",
            "text": "hi",
            "required_quest": "witch_garden",
            "required_quest_stage": 2,
            "max_quest_stage": 3,
            "hidden_if_quest_completed": "witch_garden",
            "required_friendship_tier": "acquaintance",
            "hidden_with_potion_effect": "beast_tongue",
            "required_recipe_mastered": "tea",
            "hidden_if_any_domain_started": True,
            "required_item": "moonwater",
        }])
        gates = script[0].gates
        assert QuestStage("witch_garden", 2, 3) in gates
        assert QuestNotCompleted("witch_garden") in gates
        assert FriendshipRange(min_tier=FriendshipTier.ACQUAINTANCE) in gates
        assert StatusEffect("beast_tongue", active=False) in gates
        assert Mastery(MasteryFlag.RECIPE_MASTERED, "tea") in gates
        assert AnyDomainInProgress(present=False) in gates
        assert HasItem("moonwater") in gates

    def test_text_overrides(self):
        node = parse_script([{
            "id": "greeting",
            "text": "hi",
            "seasonal_text": {"winter": "brr"},
            "weather_text": {"cherry_blossoms": "petals"},
            "time_of_day_text": {"night": "late"},
        }])[0]
        assert node.seasonal_text == {Season.WINTER: "brr"}
        assert node.weather_text == {Weather.CHERRY_BLOSSOMS: "petals"}
        assert node.time_of_day_text == {TimeOfDay.NIGHT: "late"}

    def test_response_actions_in_order(self):
        node = parse_script([{
            "id": "greeting",
            "text": "hi",
            "responses": [{
                "text": "yes",
                "starts_quest": "witch_garden",
                "quest_metadata": {"crops": []},
                "actions": [{"op": "advance_quest", "args": {"quest": "witch_garden", "stage": "active"}}],
                "completes_quest": "witch_garden",
                "grants_item": "charm",
                "friendship_points": 10,
            }],
        }])[0]
        assert node.responses[0].actions == [
            StartQuest("witch_garden", {"crops": []}),
            AdvanceQuest("witch_garden", "active"),
            CompleteQuest("witch_garden"),
            GrantItem("charm"),
            AdjustFriendship(10),
        ]

    def test_response_stage_range_inherits_node_quest(self):
        node = parse_script([{
            "id": "progress",
            "text": "hi",
            "required_quest": "witch_garden",
            "responses": [{"text": "ok", "max_quest_stage": 1}],
        }])[0]
        assert node.responses[0].gates == [QuestStage("witch_garden", None, 1)]

    def test_stage_range_without_quest_rejected(self):
        with pytest.raises(ValueError, match="without a quest"):
            parse_script([{"id": "x", "text": "hi", "responses": [{"text": "ok", "max_quest_stage": 1}]}])


class TestOpEntries:

    def test_parse_gate(self):
        assert parse_gate({"op": "quest_completed", "args": {"quest": "q"}}) == QuestCompleted("q")
        assert parse_gate({"op": "quest_not_started", "args": {"quest": "q"}}) == QuestNotStarted("q")
        assert parse_gate({"op": "season_in", "args": {"any": ["spring", "summer"]}}) == \
            SeasonIn(frozenset({Season.SPRING, Season.SUMMER}))
        assert parse_gate({"op": "time_of_day", "args": {"is": "night"}}) == TimeOfDayIs(TimeOfDay.NIGHT)
        assert parse_gate({"op": "friendship_range", "args": {"max": "stranger"}}) == \
            FriendshipRange(max_tier=FriendshipTier.STRANGER)

    def test_parse_action(self):
        assert parse_action({"op": "set_quest_stage", "args": {"quest": "q", "stage": 2}}) == SetQuestStage("q", 2)
        assert parse_action({"op": "emit_event", "args": {"name": "ping"}}) == EmitEvent("ping")

    def test_unknown_op(self):
        with pytest.raises(ValueError, match="Unknown gate op"):
            parse_gate({"op": "moon_phase"})
        with pytest.raises(ValueError, match="Unknown action op"):
            parse_action({"op": "teleport"})

    def test_missing_argument(self):
        with pytest.raises(ValueError, match="'quest' is a required property"):
            parse_gate({"op": "quest_stage", "args": {}})
        with pytest.raises(ValueError, match="'has_item' arguments"):
            parse_gate({"op": "has_item"})

    @pytest.mark.parametrize("entry", [
        {"op": "quest_stage", "args": {"quest": "q", "min": "1"}},
        {"op": "has_item", "args": {"id": "onion", "qty": 0}},
        {"op": "status_effect", "args": {"effect": "beast_tongue", "active": "yes"}},
        {"op": "friendship_range", "args": {"min": "best_friend"}},
        {"op": "season_in", "args": {"any": []}},
        {"op": "quest_completed", "args": {"quest": "q", "stage": 2}},
    ])
    def test_mistyped_gate_arguments(self, entry):
        with pytest.raises(ValueError, match="arguments"):
            parse_gate(entry)

    def test_mistyped_action_arguments(self):
        with pytest.raises(ValueError, match="'set_quest_stage' arguments"):
            parse_action({"op": "set_quest_stage", "args": {"quest": "q", "stage": "2"}})
        with pytest.raises(ValueError, match="'adjust_friendship' arguments"):
            parse_action({"op": "adjust_friendship", "args": {"points": 2.5}})

    def test_invalid_enum_value(self):
        with pytest.raises(ValueError):
            parse_gate({"op": "season_in", "args": {"any": "monsoon"}})

    def test_schema_rejects_unknown_op_in_script(self):
        with pytest.raises(ValueError, match="Invalid dialogue script"):
            parse_script([{"id": "x", "text": "hi", "gates": [{"op": "moon_phase"}]}])

    def test_script_with_mistyped_arguments_fails_to_load(self):
        with pytest.raises(ValueError, match="Invalid dialogue script"):
            parse_script([{
                "id": "greeting",
                "text": "hi",
                "gates": [{"op": "quest_stage", "args": {"quest": "q", "min": "1"}}],
            }])
        with pytest.raises(ValueError, match="Invalid dialogue script"):
            parse_script([{
                "id": "greeting",
                "text": "hi",
                "responses": [{"text": "ok", "actions": [{"op": "grant_item"}]}],
            }])


def test_load_dialogue_file(tmp_path):
    path = tmp_path / "cat.json"
    path.write_text(json.dumps({"dialogue": [{"id": "greeting", "text": "mrrp"}]}), encoding="utf-8")
    script = load_dialogue_file(path)
    assert len(script) == 1 and script[0].text == "mrrp"


def test_schema_rejects_unknown_keys():
    with pytest.raises(ValueError):
        parse_script([{"id": "x", "text": "hi", "required_questt": "typo"}])


class TestLint:

    def test_clean_script(self):
        script = [
            DialogueNode(id="greeting", text="a", gates=[QuestStage("q")],
                         responses=[Response(text="go", next_id="other")]),
            DialogueNode(id="greeting", text="b"),
            DialogueNode(id="other", text="c"),
        ]
        assert lint_script(script, npc_id="witch") == []

    def test_shadowed_and_duplicate_variants(self):
        script = [
            DialogueNode(id="greeting", text="fallback"),
            DialogueNode(id="greeting", text="quest", gates=[QuestStage("q")]),
            DialogueNode(id="greeting", text="quest again", gates=[QuestStage("q")]),
        ]
        issues = lint_script(script, npc_id="witch")
        assert any("shadows 2 later" in i for i in issues)
        assert any("unreachable" in i for i in issues)

    def test_dangling_next_id(self):
        script = [DialogueNode(id="greeting", text="a", responses=[Response(text="go", next_id="nowhere")])]
        assert any("unknown id 'nowhere'" in i for i in lint_script(script))

    def test_unknown_quest_references(self):
        quests = {"q": QuestDefinition(id="q", title="Q", stages=[StageDefinition(name="active", number=1)])}
        script = [DialogueNode(id="greeting", text="a", gates=[QuestStage("ghost")], responses=[
            Response(text="go", actions=[AdvanceQuest("q", "dancing"), SetQuestStage("q", 9)]),
        ])]
        issues = lint_script(script, quests)
        assert any("unknown quest 'ghost'" in i for i in issues)
        assert any("unknown stage 'dancing'" in i for i in issues)
        assert any("unknown stage 9" in i for i in issues)
