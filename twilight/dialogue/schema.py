"""JSON schema for dialogue script content.

Gates and actions may be written either as {"op": ..., "args": {...}} entries
or with the flat authoring keys below (required_quest, starts_quest, ...).
Each op's args are typed, so a malformed entry fails when the script loads.
"""

TIERS = ["stranger", "acquaintance", "good_friend"]
SEASONS = ["spring", "summer", "autumn", "winter"]
WEATHERS = ["clear", "rain", "snow", "fog", "mist", "storm", "cherry_blossoms"]
TIMES_OF_DAY = ["day", "night"]
MASTERY_FLAGS = ["recipe_unlocked", "recipe_mastered", "domain_started", "domain_mastered"]

_name = {"type": "string", "minLength": 1}
_bool = {"type": "boolean"}
_stage = {"type": "integer", "minimum": 0}
_qty = {"type": "integer", "minimum": 1}
_tier = {"type": "string", "enum": TIERS}


def _one_or_many(values):
    return {
        "anyOf": [
            {"type": "string", "enum": values},
            {"type": "array", "minItems": 1, "items": {"type": "string", "enum": values}},
        ]
    }


def _args(properties, required=()):
    schema = {"type": "object", "properties": properties, "additionalProperties": False}
    if required:
        schema["required"] = list(required)
    return schema


GATE_ARGS = {
    "quest_stage": _args({"quest": _name, "min": _stage, "max": _stage}, ["quest"]),
    "quest_not_started": _args({"quest": _name}, ["quest"]),
    "quest_not_completed": _args({"quest": _name}, ["quest"]),
    "quest_completed": _args({"quest": _name}, ["quest"]),
    "friendship_range": _args({"min": _tier, "max": _tier}),
    "special_friend": _args({"required": _bool}),
    "status_effect": _args({"effect": _name, "active": _bool}, ["effect"]),
    "mastery": _args({
        "flag": {"type": "string", "enum": MASTERY_FLAGS}, "key": _name, "present": _bool,
    }, ["flag", "key"]),
    "any_domain_in_progress": _args({"present": _bool}),
    "has_item": _args({"id": _name, "qty": _qty}, ["id"]),
    "season_in": _args({"any": _one_or_many(SEASONS)}, ["any"]),
    "weather_in": _args({"any": _one_or_many(WEATHERS)}, ["any"]),
    "time_of_day": _args({"is": {"type": "string", "enum": TIMES_OF_DAY}}, ["is"]),
}

ACTION_ARGS = {
    "start_quest": _args({"quest": _name, "metadata": {"type": "object"}}, ["quest"]),
    "set_quest_stage": _args({"quest": _name, "stage": _qty}, ["quest", "stage"]),
    "advance_quest": _args({"quest": _name, "stage": _name}, ["quest", "stage"]),
    "complete_quest": _args({"quest": _name}, ["quest"]),
    "set_quest_data": _args({"quest": _name, "key": _name, "value": {}}, ["quest", "key"]),
    "grant_item": _args({"id": _name, "qty": _qty}, ["id"]),
    "adjust_friendship": _args({"points": {"type": "integer"}}, ["points"]),
    "emit_event": _args({"name": _name, "payload": {"type": "object"}}, ["name"]),
}

GATE_OPS = list(GATE_ARGS)
ACTION_OPS = list(ACTION_ARGS)


def _op_entry(op_args):
    """Entry schema picking the args schema that matches the op."""
    rules = []
    for op, args_schema in op_args.items():
        then = {"properties": {"args": args_schema}}
        if args_schema.get("required"):
            then["required"] = ["args"]
        rules.append({"if": {"properties": {"op": {"const": op}}}, "then": then})
    return {
        "type": "object",
        "required": ["op"],
        "properties": {
            "op": {"type": "string", "enum": list(op_args)},
            "args": {"type": "object"},
        },
        "additionalProperties": False,
        "allOf": rules,
    }


GATE_ENTRY = _op_entry(GATE_ARGS)
ACTION_ENTRY = _op_entry(ACTION_ARGS)

FLAT_GATE_PROPERTIES = {
    "required_quest": _name,
    "required_quest_stage": _stage,
    "max_quest_stage": _stage,
    "hidden_if_quest_started": _name,
    "hidden_if_quest_completed": _name,
    "required_quest_completed": _name,
    "required_friendship_tier": _tier,
    "max_friendship_tier": _tier,
    "required_special_friend": _bool,
    "required_potion_effect": _name,
    "hidden_with_potion_effect": _name,
    "required_recipe_unlocked": _name,
    "required_recipe_mastered": _name,
    "hidden_if_recipe_unlocked": _name,
    "hidden_if_recipe_mastered": _name,
    "required_domain_mastered": _name,
    "required_domain_started": _name,
    "hidden_if_domain_started": _name,
    "hidden_if_domain_mastered": _name,
    "hidden_if_any_domain_started": _bool,
    "required_item": _name,
}


def _text_map(keys):
    return {
        "type": "object",
        "properties": {k: {"type": "string"} for k in keys},
        "additionalProperties": False,
    }


RESPONSE_SCHEMA = {
    "type": "object",
    "required": ["text"],
    "properties": dict(
        FLAT_GATE_PROPERTIES,
        text={"type": "string"},
        next_id={"type": "string", "minLength": 1},
        gates={"type": "array", "items": GATE_ENTRY},
        actions={"type": "array", "items": ACTION_ENTRY},
        starts_quest=_name,
        quest_metadata={"type": "object"},
        completes_quest=_name,
        grants_item=_name,
        friendship_points={"type": "integer"},
    ),
    "additionalProperties": False,
}

NODE_SCHEMA = {
    "type": "object",
    "required": ["id", "text"],
    "properties": dict(
        FLAT_GATE_PROPERTIES,
        id=_name,
        text={"type": "string"},
        seasonal_text=_text_map(SEASONS),
        weather_text=_text_map(WEATHERS),
        time_of_day_text=_text_map(TIMES_OF_DAY),
        expression={"type": "string"},
        gates={"type": "array", "items": GATE_ENTRY},
        responses={"type": "array", "items": RESPONSE_SCHEMA},
    ),
    "additionalProperties": False,
}

SCRIPT_SCHEMA = {
    "type": "array",
    "items": NODE_SCHEMA,
}
