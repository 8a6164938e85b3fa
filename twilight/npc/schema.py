"""JSON schema for NPC definition files."""

from ..dialogue.schema import SCRIPT_SCHEMA

DIRECTIONS = ["up", "down", "left", "right"]

_frames = {"type": "array", "items": {"type": "string"}}

PROXIMITY_TRIGGER_SCHEMA = {
    "type": "object",
    "required": ["radius", "trigger_state", "recovery_radius", "recovery_state"],
    "properties": {
        "radius": {"type": "number", "minimum": 0},
        "trigger_state": {"type": "string", "minLength": 1},
        "recovery_radius": {"type": "number", "minimum": 0},
        "recovery_state": {"type": "string", "minLength": 1},
        "recovery_delay": {"type": "number", "minimum": 0},
    },
    "additionalProperties": False,
}

STATE_SCHEMA = {
    "type": "object",
    "required": ["frames"],
    "properties": {
        "frames": _frames,
        "frame_interval": {"type": "number", "exclusiveMinimum": 0},
        "duration": {"type": "number", "minimum": 0},
        "next_state": {"type": "string", "minLength": 1},
        "proximity_trigger": PROXIMITY_TRIGGER_SCHEMA,
        "transitions_to": {
            "type": "object",
            "additionalProperties": {"type": "string", "minLength": 1},
        },
        "directional_frames": {
            "type": "object",
            "properties": {d: _frames for d in DIRECTIONS},
            "additionalProperties": False,
        },
    },
    "additionalProperties": False,
}

NPC_SCHEMA = {
    "type": "object",
    "required": ["id", "name"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "name": {"type": "string", "minLength": 1},
        "position": {"type": "array", "items": {"type": "number"}, "minItems": 2, "maxItems": 2},
        "direction": {"type": "string", "enum": DIRECTIONS},
        "interaction_radius": {"type": "number", "exclusiveMinimum": 0},
        "initial_state": {"type": "string", "minLength": 1},
        "states": {"type": "object", "additionalProperties": STATE_SCHEMA},
        "friendship": {
            "type": "object",
            "properties": {
                "can_befriend": {"type": "boolean"},
                "starting_points": {"type": "integer", "minimum": 0},
            },
            "additionalProperties": False,
        },
        "dialogue": SCRIPT_SCHEMA,
    },
    "additionalProperties": False,
}

NPC_FILE_SCHEMA = {
    "type": "object",
    "required": ["npcs"],
    "properties": {"npcs": {"type": "array", "items": NPC_SCHEMA}},
}
