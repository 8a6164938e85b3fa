"""Tests for NPC loading and the runtime registry."""

import json

import pytest

from twilight.core.actions import GameEvent, RecordingActionSink
from twilight.core.state import ContextSnapshot, FriendshipTier
from twilight.npc import (
    Direction, NPCRegistry, load_npc_definitions, load_npcs_dir, parse_npcs, validate_behavior_table,
)
from twilight.quest import ChainTracker


@pytest.fixture
def sample_npc_data():
    """Sample NPC data for testing."""
    return {
        "id": "village_cat",
        "name": "Cat",
        "position": [4, 15],
        "initial_state": "sleeping",
        "states": {
            "sleeping": {"frames": ["zz_1", "zz_2"], "transitions_to": {"interact": "angry"}},
            "angry": {"frames": ["hiss"], "duration": 10000, "next_state": "sleeping",
                      "transitions_to": {"interact": "standing"}},
            "standing": {"frames": ["stand"], "duration": 10000, "next_state": "sleeping",
                         "transitions_to": {}},
        },
        "dialogue": [
            {"id": "greeting", "text": "*The cat ignores you.*"},
        ],
    }


@pytest.fixture
def possum_data():
    return {
        "id": "possum",
        "name": "Possum",
        "position": [10, 10],
        "initial_state": "roaming",
        "friendship": {"can_befriend": False},
        "states": {
            "roaming": {
                "frames": ["walk_1", "walk_2"],
                "frame_interval": 200,
                "duration": 4000,
                "next_state": "roaming",
                "proximity_trigger": {
                    "radius": 2, "trigger_state": "playing_dead",
                    "recovery_radius": 3.5, "recovery_state": "roaming",
                },
            },
            "playing_dead": {"frames": ["dead"]},
        },
    }


class TestNPCLoader:

    def test_load_npc_from_dict(self, sample_npc_data):
        npcs = parse_npcs(sample_npc_data)
        cat = npcs["village_cat"]

        assert cat.name == "Cat"
        assert cat.position == (4, 15)
        assert cat.direction == Direction.DOWN
        assert cat.initial_state == "sleeping"
        assert cat.states["sleeping"].transitions_to == {"interact": "angry"}
        assert cat.states["angry"].duration == 10000
        assert cat.dialogue[0].id == "greeting"

    def test_defaults_from_config(self, possum_data):
        possum = parse_npcs(possum_data)["possum"]
        trigger = possum.states["roaming"].proximity_trigger
        assert trigger.recovery_delay == 500
        assert possum.states["playing_dead"].frame_interval == 280
        assert possum.interaction_radius == 1.5
        assert possum.friendship.can_befriend == False

    def test_npc_list_and_file_forms(self, sample_npc_data, possum_data):
        assert set(parse_npcs([sample_npc_data, possum_data])) == {"village_cat", "possum"}
        assert set(parse_npcs({"npcs": [possum_data]})) == {"possum"}

    def test_load_from_file(self, tmp_path, sample_npc_data):
        path = tmp_path / "cat.json"
        path.write_text(json.dumps(sample_npc_data), encoding="utf-8")
        assert "village_cat" in load_npc_definitions(path)

    def test_load_dir(self, tmp_path, sample_npc_data, possum_data):
        (tmp_path / "cat.json").write_text(json.dumps(sample_npc_data), encoding="utf-8")
        (tmp_path / "possum.json").write_text(json.dumps(possum_data), encoding="utf-8")
        assert sorted(load_npcs_dir(tmp_path)) == ["possum", "village_cat"]
        assert load_npcs_dir(tmp_path / "missing") == {}

    def test_dangling_state_reference(self, sample_npc_data):
        sample_npc_data["states"]["angry"]["next_state"] = "purring"
        errors = validate_behavior_table(sample_npc_data)
        assert any("unknown state 'purring'" in e for e in errors)
        with pytest.raises(ValueError, match="purring"):
            parse_npcs(sample_npc_data)

    def test_unknown_initial_state(self, sample_npc_data):
        sample_npc_data["initial_state"] = "dancing"
        with pytest.raises(ValueError, match="initial_state"):
            parse_npcs(sample_npc_data)

    def test_recovery_radius_smaller_than_radius(self, possum_data):
        possum_data["states"]["roaming"]["proximity_trigger"]["recovery_radius"] = 1
        assert any("recovery_radius" in e for e in validate_behavior_table(possum_data))

    def test_schema_violation(self, sample_npc_data):
        sample_npc_data["states"]["sleeping"]["frames"] = "zz"
        with pytest.raises(ValueError, match="Invalid NPC"):
            parse_npcs(sample_npc_data)


class TestNPCRegistry:

    @pytest.fixture
    def registry(self, sample_npc_data, possum_data):
        registry = NPCRegistry(sink=RecordingActionSink())
        registry.register_npcs(parse_npcs([sample_npc_data, possum_data]))
        return registry

    def test_register_starts_behavior(self, registry):
        assert registry.get_state_name("village_cat") == "sleeping"
        assert registry.get_state_name("possum") == "roaming"
        assert registry.current_frame("village_cat") == "zz_1"

    def test_tick_all_uses_player_distance(self, registry):
        changed = registry.tick_all(100, player_position=(10, 11))
        assert changed == ["possum"]
        assert registry.get_state_name("possum") == "playing_dead"
        assert (GameEvent.NPC_STATE_CHANGED, {
            "npc_id": "possum", "previous_state": "roaming", "state": "playing_dead",
        }) in registry.sink.events

    def test_tick_all_with_moved_npcs(self, registry):
        registry.tick_all(100, player_position=(0, 0), positions={"possum": (1, 0)})
        assert registry.get_state_name("possum") == "playing_dead"

    def test_unknown_player_position(self, registry):
        assert registry.tick_all(100, player_position=None) == []

    def test_interact(self, registry):
        assert registry.interact("village_cat", 50) == True
        assert registry.get_state_name("village_cat") == "angry"
        assert registry.interact("nobody", 50) == False

    def test_can_interact(self, registry):
        assert registry.can_interact("village_cat", (4, 16))
        assert not registry.can_interact("village_cat", (4, 20))
        assert not registry.can_interact("village_cat", None)
        assert [n.id for n in registry.get_interactable_npcs((4, 14))] == ["village_cat"]

    def test_friendship(self, registry):
        assert registry.friendship_tier("village_cat") == FriendshipTier.STRANGER
        registry.adjust_friendship("village_cat", 350)
        assert registry.friendship_tier("village_cat") == FriendshipTier.ACQUAINTANCE
        assert registry.adjust_friendship("village_cat", 5000) == 900
        assert registry.adjust_friendship("village_cat", -5000) == 0
        # The possum cannot be befriended
        assert registry.adjust_friendship("possum", 100) == 0

    def test_open_dialogue(self, registry):
        tracker = ChainTracker()
        session = registry.open_dialogue("village_cat", tracker, ContextSnapshot)
        assert session.current.text == "*The cat ignores you.*"
        # The possum has no script
        assert registry.open_dialogue("possum", tracker, ContextSnapshot) is None
        assert registry.open_dialogue("nobody", tracker, ContextSnapshot) is None

    def test_save_and_load_state(self, registry, sample_npc_data, possum_data):
        registry.tick_all(100, player_position=(10, 11))
        registry.interact("village_cat", 150)
        registry.adjust_friendship("village_cat", 120)
        registry.move_npc("village_cat", (6, 6), Direction.LEFT)
        data = json.loads(json.dumps(registry.save_state()))

        restored = NPCRegistry()
        restored.register_npcs(parse_npcs([sample_npc_data, possum_data]))
        restored.load_state(data)

        assert restored.get_state_name("possum") == "playing_dead"
        assert restored.behavior["possum"].active_trigger is not None
        assert restored.get_state_name("village_cat") == "angry"
        assert restored.friendship["village_cat"] == 120
        assert restored.positions["village_cat"] == (6, 6)
        assert restored.directions["village_cat"] == Direction.LEFT

    def test_load_state_skips_unknown(self, registry):
        registry.load_state({"npcs": {
            "ghost": {"friendship": 10},
            "village_cat": {"behavior": {"current_state": "flying"}},
        }})
        assert "ghost" not in registry.friendship
        assert registry.get_state_name("village_cat") == "sleeping"
