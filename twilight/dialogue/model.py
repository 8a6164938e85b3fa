"""Dialogue script data models.

A script is an ordered list of DialogueNode. Several nodes may share the same
logical id: they are mutually exclusive variants of one conversational beat,
tried in script order.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from ..core.dsl import Gate
from ..core.state import Season, TimeOfDay, Weather


# ---------------- Actions ----------------

@dataclass(frozen=True)
class StartQuest:
    quest: str
    metadata: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class SetQuestStage:
    quest: str
    stage: int


@dataclass(frozen=True)
class AdvanceQuest:
    quest: str
    stage: str


@dataclass(frozen=True)
class CompleteQuest:
    quest: str


@dataclass(frozen=True)
class SetQuestData:
    quest: str
    key: str
    value: Any = None


@dataclass(frozen=True)
class GrantItem:
    item: str
    qty: int = 1


@dataclass(frozen=True)
class AdjustFriendship:
    points: int


@dataclass(frozen=True)
class EmitEvent:
    name: str
    payload: Optional[Dict[str, Any]] = None


QuestAction = Union[StartQuest, SetQuestStage, AdvanceQuest, CompleteQuest, SetQuestData]
Action = Union[QuestAction, GrantItem, AdjustFriendship, EmitEvent]


# ---------------- Script ----------------

@dataclass
class Response:
    """A player reply option; no next_id closes the conversation."""
    text: str
    next_id: Optional[str] = None
    gates: List[Gate] = field(default_factory=list)
    actions: List[Action] = field(default_factory=list)


@dataclass
class DialogueNode:
    id: str
    text: str
    seasonal_text: Dict[Season, str] = field(default_factory=dict)
    weather_text: Dict[Weather, str] = field(default_factory=dict)
    time_of_day_text: Dict[TimeOfDay, str] = field(default_factory=dict)
    gates: List[Gate] = field(default_factory=list)
    responses: List[Response] = field(default_factory=list)
    expression: Optional[str] = None


@dataclass
class ResolvedNode:
    """The node chosen for a context, with its text and visible responses."""
    node: DialogueNode
    text: str
    responses: List[Response]

    @property
    def id(self) -> str:
        return self.node.id

    @property
    def is_dead_end(self) -> bool:
        return not self.responses


DialogueScript = List[DialogueNode]
