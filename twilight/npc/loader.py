"""NPC loader - reads NPC definitions (dialogue + behavior table) from JSON.

Follows the same pattern as the quest loader. A file holds a single NPC
object, a list of NPCs, or {"npcs": [...]}; every entry is schema-checked and
its behavior graph verified before conversion.
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import config
from ..core.validator import load_json, validate_schema
from ..dialogue.loader import parse_script
from .models import Direction, FriendshipConfig, NPCDefinition, ProximityTrigger, StateDefinition
from .schema import NPC_FILE_SCHEMA, NPC_SCHEMA

logger = logging.getLogger(__name__)


def load_npc_definitions(path: Union[str, Path]) -> Dict[str, NPCDefinition]:
    """Load NPC definitions from a JSON file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the JSON or its structure is invalid
    """
    return parse_npcs(load_json(path))


def load_npcs_dir(directory: Union[str, Path]) -> Dict[str, NPCDefinition]:
    """Load every *.json NPC file of a directory (sorted by name)."""
    npcs: Dict[str, NPCDefinition] = {}
    dir_path = Path(directory)
    if not dir_path.is_dir():
        return npcs
    for file_path in sorted(dir_path.glob("*.json")):
        for npc_id, npc in load_npc_definitions(file_path).items():
            if npc_id in npcs:
                logger.warning(f"NPC '{npc_id}' redefined in {file_path.name}")
            npcs[npc_id] = npc
    return npcs


def parse_npcs(data: Any) -> Dict[str, NPCDefinition]:
    if isinstance(data, list):
        data = {"npcs": data}
    if isinstance(data, dict) and "npcs" not in data:
        validate_schema(data, NPC_SCHEMA, "NPC")
        raw_npcs = [data]
    else:
        validate_schema(data, NPC_FILE_SCHEMA, "NPC file")
        raw_npcs = data["npcs"]

    npcs = {}
    for npc_data in raw_npcs:
        errors = validate_behavior_table(npc_data)
        if errors:
            raise ValueError(f"NPC '{npc_data.get('id')}': " + "; ".join(errors))
        npc = _load_npc_from_dict(npc_data)
        npcs[npc.id] = npc
    return npcs


def _load_npc_from_dict(data: Dict[str, Any]) -> NPCDefinition:
    states = {name: _parse_state(s) for name, s in data.get("states", {}).items()}
    friendship = data.get("friendship", {})
    position = data.get("position")
    return NPCDefinition(
        id=data["id"],
        name=data["name"],
        position=tuple(position) if position else None,
        direction=Direction(data.get("direction", "down")),
        dialogue=parse_script(data.get("dialogue", [])),
        states=states,
        initial_state=data.get("initial_state"),
        interaction_radius=data.get("interaction_radius", config.DEFAULT_INTERACTION_RADIUS),
        friendship=FriendshipConfig(
            can_befriend=friendship.get("can_befriend", True),
            starting_points=friendship.get("starting_points", 0),
        ),
    )


def _parse_state(data: Dict[str, Any]) -> StateDefinition:
    trigger = data.get("proximity_trigger")
    return StateDefinition(
        frames=list(data["frames"]),
        frame_interval=data.get("frame_interval", config.NPC_FRAME_MS),
        duration=data.get("duration"),
        next_state=data.get("next_state"),
        proximity_trigger=ProximityTrigger(
            radius=trigger["radius"],
            trigger_state=trigger["trigger_state"],
            recovery_radius=trigger["recovery_radius"],
            recovery_state=trigger["recovery_state"],
            recovery_delay=trigger.get("recovery_delay", config.DEFAULT_RECOVERY_DELAY_MS),
        ) if trigger else None,
        transitions_to=dict(data.get("transitions_to", {})),
        directional_frames={
            Direction(d): list(frames) for d, frames in data.get("directional_frames", {}).items()
        },
    )


def validate_behavior_table(npc_data: Dict[str, Any]) -> List[str]:
    """Check that every state reference in a behavior table resolves.

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []
    states = npc_data.get("states", {})
    initial = npc_data.get("initial_state")

    if states and initial is None:
        errors.append("behavior states declared without initial_state")
    if initial is not None and initial not in states:
        errors.append(f"unknown initial_state '{initial}'")

    for name, state in states.items():
        targets = []
        if state.get("next_state"):
            targets.append(("next_state", state["next_state"]))
        if "duration" in state and not state.get("next_state"):
            logger.warning(f"NPC '{npc_data.get('id')}': state '{name}' has a duration but no next_state")
        trigger = state.get("proximity_trigger")
        if trigger:
            targets.append(("trigger_state", trigger["trigger_state"]))
            targets.append(("recovery_state", trigger["recovery_state"]))
            if trigger["recovery_radius"] < trigger["radius"]:
                errors.append(f"state '{name}' has recovery_radius smaller than radius")
        for event, target in state.get("transitions_to", {}).items():
            targets.append((f"transitions_to.{event}", target))

        for field_name, target in targets:
            if target not in states:
                errors.append(f"state '{name}' {field_name} points to unknown state '{target}'")

    return errors
