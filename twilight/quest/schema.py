"""JSON schema for quest definition files."""

from ..core.state import FriendshipTier, Season

_name = {"type": "string", "minLength": 1}
_tile = {"type": "array", "items": {"type": "number"}, "minItems": 2, "maxItems": 2}
_radius = {"type": "number", "exclusiveMinimum": 0}
_tier = {"type": "string", "enum": [t.value for t in FriendshipTier]}

REWARD_SCHEMA = {
    "type": "object",
    "required": ["item"],
    "properties": {
        "item": {"type": "string", "minLength": 1},
        "qty": {"type": "integer", "minimum": 1, "default": 1},
    },
    "additionalProperties": False,
}

CHAIN_DIALOGUE_SCHEMA = {
    "type": "object",
    "required": ["text"],
    "properties": {
        "text": {"type": "string"},
        "expression": {"type": "string"},
    },
    "additionalProperties": False,
}

REQUIREMENT_SCHEMA = {
    "type": "object",
    "properties": {
        "quest": _name,
        "quest_completed": _name,
        "item": _name,
        "friendship_tier": {
            "type": "object",
            "required": ["npc_id", "tier"],
            "properties": {"npc_id": _name, "tier": _tier},
            "additionalProperties": False,
        },
    },
    "additionalProperties": False,
}

CHOICE_SCHEMA = {
    "type": "object",
    "required": ["text", "next"],
    "properties": {
        "text": {"type": "string", "minLength": 1},
        "next": _name,
        "requires": REQUIREMENT_SCHEMA,
    },
    "additionalProperties": False,
}

OBJECTIVE_SCHEMA = {
    "type": "object",
    "required": ["type", "position"],
    "properties": {
        "type": {"const": "go_to"},
        "position": _tile,
        "radius": _radius,
        "hint": {"type": "string"},
    },
    "additionalProperties": False,
}

TRIGGER_TYPES = ["manual", "quest_complete", "seasonal", "friendship", "tile"]

TRIGGER_SCHEMA = {
    "type": "object",
    "required": ["type"],
    "properties": {
        "type": {"type": "string", "enum": TRIGGER_TYPES},
        "quest_id": _name,
        "season": {"type": "string", "enum": [s.value for s in Season]},
        "npc_id": _name,
        "tier": _tier,
        "position": _tile,
        "radius": _radius,
    },
    "additionalProperties": False,
    "allOf": [
        {"if": {"properties": {"type": {"const": "quest_complete"}}}, "then": {"required": ["quest_id"]}},
        {"if": {"properties": {"type": {"const": "seasonal"}}}, "then": {"required": ["season"]}},
        {"if": {"properties": {"type": {"const": "friendship"}}}, "then": {"required": ["npc_id", "tier"]}},
        {"if": {"properties": {"type": {"const": "tile"}}}, "then": {"required": ["position"]}},
    ],
}

STAGE_SCHEMA = {
    "type": "object",
    "required": ["id"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "number": {"type": "integer", "minimum": 1},
        "text": {"type": "string"},
        "next": {"type": "string"},
        "wait_days": {"type": "integer", "minimum": 0},
        "rewards": {"type": "array", "items": REWARD_SCHEMA},
        "end": {"type": "boolean"},
        "dialogue": {"type": "object", "additionalProperties": CHAIN_DIALOGUE_SCHEMA},
        "choices": {"type": "array", "items": CHOICE_SCHEMA},
        "objective": OBJECTIVE_SCHEMA,
    },
    "additionalProperties": False,
}

QUEST_SCHEMA = {
    "type": "object",
    "required": ["id", "stages"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "title": {"type": "string"},
        "description": {"type": "string"},
        "trigger": TRIGGER_SCHEMA,
        "stages": {"type": "array", "minItems": 1, "items": STAGE_SCHEMA},
    },
    "additionalProperties": False,
}

QUEST_FILE_SCHEMA = {
    "type": "object",
    "required": ["quests"],
    "properties": {
        "quests": {"type": "array", "items": QUEST_SCHEMA},
    },
}
