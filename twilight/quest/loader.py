"""Quest definition loader from structured JSON files.

A file holds either a single quest object or {"quests": [...]}. Each quest is
schema-checked and converted into a QuestDefinition for the tracker.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..core.dsl import Gate, HasItem, NpcFriendship, QuestCompleted, QuestStage
from ..core.state import FriendshipTier, Season
from ..core.validator import load_json, validate_schema
from .model import (
    DEFAULT_REACH_RADIUS, ChainChoice, ChainDialogue, ChainObjective, ChainTrigger,
    QuestDefinition, Reward, StageDefinition,
)
from .schema import QUEST_FILE_SCHEMA, QUEST_SCHEMA

logger = logging.getLogger(__name__)


def load_quest_definitions(path: Union[str, Path]) -> List[QuestDefinition]:
    """Load quest definitions from a JSON file.

    Args:
        path: Path to the quest JSON file

    Returns:
        List of QuestDefinition objects

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the JSON or its structure is invalid
    """
    data = load_json(path)
    return parse_quests(data)


def load_quests_dir(directory: Union[str, Path]) -> List[QuestDefinition]:
    """Load every *.json quest file of a directory (sorted by name)."""
    quests: List[QuestDefinition] = []
    dir_path = Path(directory)
    if not dir_path.is_dir():
        return quests
    for file_path in sorted(dir_path.glob("*.json")):
        quests.extend(load_quest_definitions(file_path))
    return quests


def parse_quests(data: Any) -> List[QuestDefinition]:
    """Convert parsed JSON (single quest or {"quests": [...]}) to definitions."""
    if isinstance(data, dict) and "quests" not in data:
        validate_schema(data, QUEST_SCHEMA, "quest")
        raw_quests = [data]
    else:
        validate_schema(data, QUEST_FILE_SCHEMA, "quest file")
        raw_quests = data["quests"]

    quests = []
    for quest_data in raw_quests:
        errors = validate_quest_structure(quest_data)
        if errors:
            raise ValueError(f"Quest '{quest_data.get('id')}': " + "; ".join(errors))
        quests.append(_parse_quest(quest_data))
    return quests


def _parse_quest(quest_data: Dict[str, Any]) -> QuestDefinition:
    stages = [
        _parse_stage(stage_data, position)
        for position, stage_data in enumerate(quest_data["stages"], start=1)
    ]
    return QuestDefinition(
        id=quest_data["id"],
        title=quest_data.get("title", quest_data["id"]),
        description=quest_data.get("description", ""),
        stages=stages,
        trigger=_parse_trigger(quest_data.get("trigger", {})),
    )


def _parse_stage(stage_data: Dict[str, Any], position: int) -> StageDefinition:
    rewards = [
        Reward(item=r["item"], qty=r.get("qty", 1))
        for r in stage_data.get("rewards", [])
    ]
    return StageDefinition(
        name=stage_data["id"],
        number=stage_data.get("number", position),
        text=stage_data.get("text", ""),
        next=stage_data.get("next"),
        wait_days=stage_data.get("wait_days", 0),
        rewards=rewards,
        end=stage_data.get("end", False),
        dialogue={
            npc_id: ChainDialogue(text=line["text"], expression=line.get("expression"))
            for npc_id, line in stage_data.get("dialogue", {}).items()
        },
        choices=[
            ChainChoice(text=c["text"], next=c["next"], requires=_parse_requirements(c.get("requires", {})))
            for c in stage_data.get("choices", [])
        ],
        objective=_parse_objective(stage_data.get("objective")),
    )


def _parse_requirements(requires: Dict[str, Any]) -> List[Gate]:
    gates: List[Gate] = []
    if "quest" in requires:
        gates.append(QuestStage(quest=requires["quest"]))
    if "quest_completed" in requires:
        gates.append(QuestCompleted(quest=requires["quest_completed"]))
    if "friendship_tier" in requires:
        tier = requires["friendship_tier"]
        gates.append(NpcFriendship(npc_id=tier["npc_id"], min_tier=FriendshipTier(tier["tier"])))
    if "item" in requires:
        gates.append(HasItem(item=requires["item"]))
    return gates


def _parse_objective(data: Optional[Dict[str, Any]]) -> Optional[ChainObjective]:
    if data is None:
        return None
    return ChainObjective(
        position=tuple(data["position"]),
        radius=data.get("radius", DEFAULT_REACH_RADIUS),
        hint=data.get("hint", ""),
    )


def _parse_trigger(data: Dict[str, Any]) -> ChainTrigger:
    return ChainTrigger(
        type=data.get("type", "manual"),
        quest_id=data.get("quest_id"),
        season=Season(data["season"]) if "season" in data else None,
        npc_id=data.get("npc_id"),
        tier=FriendshipTier(data["tier"]) if "tier" in data else None,
        position=tuple(data["position"]) if "position" in data else None,
        radius=data.get("radius", DEFAULT_REACH_RADIUS),
    )


def validate_quest_structure(quest_data: Dict[str, Any]) -> List[str]:
    """Check stage-table consistency beyond the JSON schema.

    Args:
        quest_data: Parsed quest JSON object

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []
    stages = quest_data.get("stages", [])
    names = [s.get("id") for s in stages]

    seen = set()
    for name in names:
        if name in seen:
            errors.append(f"duplicate stage id '{name}'")
        seen.add(name)

    numbers = [s.get("number", i) for i, s in enumerate(stages, start=1)]
    if len(set(numbers)) != len(numbers):
        errors.append("duplicate stage numbers")

    for stage in stages:
        target = stage.get("next")
        if target and target not in seen:
            errors.append(f"stage '{stage.get('id')}' has unknown next '{target}'")
        for choice in stage.get("choices", []):
            if choice.get("next") not in seen:
                errors.append(f"stage '{stage.get('id')}' has a choice to unknown stage '{choice.get('next')}'")

    trigger = quest_data.get("trigger", {})
    if trigger.get("type") == "quest_complete" and trigger.get("quest_id") == quest_data.get("id"):
        errors.append("trigger waits on its own completion")

    if numbers and numbers != sorted(numbers):
        logger.warning(f"Quest '{quest_data.get('id')}' declares stage numbers out of order; chains start at stage {min(numbers)}")

    return errors
