"""Dialogue script loader.

Converts authored JSON (a list of nodes) into DialogueNode objects. Gates and
actions are accepted in two forms:

    {"op": "quest_stage", "args": {"quest": "witch_garden", "min": 1}}

or the flat keys used throughout NPC content:

    {"required_quest": "witch_garden", "required_quest_stage": 1}

Unknown ops are rejected at load time.
"""

from typing import Any, Dict, List, Optional

from ..core.dsl import (
    AnyDomainInProgress, FriendshipRange, Gate, HasItem, Mastery, QuestCompleted,
    QuestNotCompleted, QuestNotStarted, QuestStage, SeasonIn, SpecialFriend,
    StatusEffect, TimeOfDayIs, WeatherIn,
)
from ..core.state import FriendshipTier, MasteryFlag, Season, TimeOfDay, Weather, parse_enum
from ..core.validator import load_json, validate_schema
from .model import (
    Action, AdjustFriendship, AdvanceQuest, CompleteQuest, DialogueNode, EmitEvent,
    GrantItem, Response, SetQuestData, SetQuestStage, StartQuest,
)
from .schema import ACTION_ARGS, GATE_ARGS, SCRIPT_SCHEMA

# Flat key -> (mastery flag, expected presence)
_MASTERY_KEYS = {
    "required_recipe_unlocked": (MasteryFlag.RECIPE_UNLOCKED, True),
    "required_recipe_mastered": (MasteryFlag.RECIPE_MASTERED, True),
    "hidden_if_recipe_unlocked": (MasteryFlag.RECIPE_UNLOCKED, False),
    "hidden_if_recipe_mastered": (MasteryFlag.RECIPE_MASTERED, False),
    "required_domain_mastered": (MasteryFlag.DOMAIN_MASTERED, True),
    "required_domain_started": (MasteryFlag.DOMAIN_STARTED, True),
    "hidden_if_domain_started": (MasteryFlag.DOMAIN_STARTED, False),
    "hidden_if_domain_mastered": (MasteryFlag.DOMAIN_MASTERED, False),
}


def load_dialogue_file(path) -> List[DialogueNode]:
    """Load a dialogue script from a JSON file (list or {"dialogue": [...]})."""
    data = load_json(path)
    if isinstance(data, dict):
        data = data.get("dialogue", [])
    return parse_script(data)


def parse_script(data: List[Dict[str, Any]]) -> List[DialogueNode]:
    """Validate and convert a raw node list, keeping its order.

    Raises:
        ValueError: If the script is structurally invalid
    """
    validate_schema(data, SCRIPT_SCHEMA, "dialogue script")
    return [_parse_node(node_data) for node_data in data]


def _parse_node(node_data: Dict[str, Any]) -> DialogueNode:
    gates = _parse_flat_gates(node_data, default_quest=None, where=node_data["id"])
    gates.extend(parse_gate(g) for g in node_data.get("gates", []))

    required_quest = node_data.get("required_quest")
    responses = [
        _parse_response(r, required_quest, node_data["id"])
        for r in node_data.get("responses", [])
    ]

    return DialogueNode(
        id=node_data["id"],
        text=node_data["text"],
        seasonal_text={Season(k): v for k, v in node_data.get("seasonal_text", {}).items()},
        weather_text={Weather(k): v for k, v in node_data.get("weather_text", {}).items()},
        time_of_day_text={TimeOfDay(k): v for k, v in node_data.get("time_of_day_text", {}).items()},
        gates=gates,
        responses=responses,
        expression=node_data.get("expression"),
    )


def _parse_response(data: Dict[str, Any], node_quest: Optional[str], node_id: str) -> Response:
    where = f"{node_id} -> '{data['text']}'"
    gates = _parse_flat_gates(data, default_quest=node_quest, where=where)
    gates.extend(parse_gate(g) for g in data.get("gates", []))

    actions: List[Action] = []
    if "starts_quest" in data:
        actions.append(StartQuest(quest=data["starts_quest"], metadata=data.get("quest_metadata")))
    actions.extend(parse_action(a) for a in data.get("actions", []))
    if "completes_quest" in data:
        actions.append(CompleteQuest(quest=data["completes_quest"]))
    if "grants_item" in data:
        actions.append(GrantItem(item=data["grants_item"]))
    if "friendship_points" in data:
        actions.append(AdjustFriendship(points=data["friendship_points"]))

    return Response(
        text=data["text"],
        next_id=data.get("next_id"),
        gates=gates,
        actions=actions,
    )


def _parse_flat_gates(data: Dict[str, Any], default_quest: Optional[str], where: str) -> List[Gate]:
    gates: List[Gate] = []

    quest = data.get("required_quest")
    min_stage = data.get("required_quest_stage")
    max_stage = data.get("max_quest_stage")
    if quest is None and (min_stage is not None or max_stage is not None):
        quest = default_quest
        if quest is None:
            raise ValueError(f"Dialogue '{where}': quest stage range without a quest")
    if quest is not None:
        gates.append(QuestStage(quest=quest, min_stage=min_stage, max_stage=max_stage))

    if "hidden_if_quest_started" in data:
        gates.append(QuestNotStarted(quest=data["hidden_if_quest_started"]))
    if "hidden_if_quest_completed" in data:
        gates.append(QuestNotCompleted(quest=data["hidden_if_quest_completed"]))
    if "required_quest_completed" in data:
        gates.append(QuestCompleted(quest=data["required_quest_completed"]))

    min_tier = data.get("required_friendship_tier")
    max_tier = data.get("max_friendship_tier")
    if min_tier is not None or max_tier is not None:
        gates.append(FriendshipRange(
            min_tier=parse_enum(FriendshipTier, min_tier),
            max_tier=parse_enum(FriendshipTier, max_tier),
        ))
    if "required_special_friend" in data:
        gates.append(SpecialFriend(required=data["required_special_friend"]))

    if "required_potion_effect" in data:
        gates.append(StatusEffect(effect=data["required_potion_effect"], active=True))
    if "hidden_with_potion_effect" in data:
        gates.append(StatusEffect(effect=data["hidden_with_potion_effect"], active=False))

    for key, (flag, present) in _MASTERY_KEYS.items():
        if key in data:
            gates.append(Mastery(flag=flag, key=data[key], present=present))
    if data.get("hidden_if_any_domain_started"):
        gates.append(AnyDomainInProgress(present=False))

    if "required_item" in data:
        gates.append(HasItem(item=data["required_item"]))

    return gates


def _op_args(entry: Dict[str, Any], known: Dict[str, Any], kind: str) -> Dict[str, Any]:
    op = entry.get("op")
    if op not in known:
        raise ValueError(f"Unknown {kind} op: {op!r}")
    args = entry.get("args", {})
    validate_schema(args, known[op], f"'{op}' arguments")
    return args


def _as_list(value) -> list:
    return value if isinstance(value, list) else [value]


def parse_gate(entry: Dict[str, Any]) -> Gate:
    """Convert one {"op", "args"} gate entry.

    Raises:
        ValueError: On unknown op or missing or mistyped arguments
    """
    op = entry.get("op")
    args = _op_args(entry, GATE_ARGS, "gate")

    if op == "quest_stage":
        return QuestStage(quest=args["quest"], min_stage=args.get("min"), max_stage=args.get("max"))
    elif op == "quest_not_started":
        return QuestNotStarted(quest=args["quest"])
    elif op == "quest_not_completed":
        return QuestNotCompleted(quest=args["quest"])
    elif op == "quest_completed":
        return QuestCompleted(quest=args["quest"])
    elif op == "friendship_range":
        return FriendshipRange(
            min_tier=parse_enum(FriendshipTier, args.get("min")),
            max_tier=parse_enum(FriendshipTier, args.get("max")),
        )
    elif op == "special_friend":
        return SpecialFriend(required=args.get("required", True))
    elif op == "status_effect":
        return StatusEffect(effect=args["effect"], active=args.get("active", True))
    elif op == "mastery":
        return Mastery(
            flag=parse_enum(MasteryFlag, args["flag"]),
            key=args["key"],
            present=args.get("present", True),
        )
    elif op == "any_domain_in_progress":
        return AnyDomainInProgress(present=args.get("present", True))
    elif op == "has_item":
        return HasItem(item=args["id"], qty=args.get("qty", 1))
    elif op == "season_in":
        return SeasonIn(seasons=frozenset(parse_enum(Season, s) for s in _as_list(args["any"])))
    elif op == "weather_in":
        return WeatherIn(weathers=frozenset(parse_enum(Weather, w) for w in _as_list(args["any"])))
    elif op == "time_of_day":
        return TimeOfDayIs(time_of_day=parse_enum(TimeOfDay, args["is"]))

    raise ValueError(f"Unknown gate op: {op!r}")


def parse_action(entry: Dict[str, Any]) -> Action:
    """Convert one {"op", "args"} action entry.

    Raises:
        ValueError: On unknown op or missing or mistyped arguments
    """
    op = entry.get("op")
    args = _op_args(entry, ACTION_ARGS, "action")

    if op == "start_quest":
        return StartQuest(quest=args["quest"], metadata=args.get("metadata"))
    elif op == "set_quest_stage":
        return SetQuestStage(quest=args["quest"], stage=args["stage"])
    elif op == "advance_quest":
        return AdvanceQuest(quest=args["quest"], stage=args["stage"])
    elif op == "complete_quest":
        return CompleteQuest(quest=args["quest"])
    elif op == "set_quest_data":
        return SetQuestData(quest=args["quest"], key=args["key"], value=args.get("value"))
    elif op == "grant_item":
        return GrantItem(item=args["id"], qty=args.get("qty", 1))
    elif op == "adjust_friendship":
        return AdjustFriendship(points=args["points"])
    elif op == "emit_event":
        return EmitEvent(name=args["name"], payload=args.get("payload"))

    raise ValueError(f"Unknown action op: {op!r}")
