"""Quest engine data models.

Static quest definitions (ordered, named stages) and the mutable per-chain
progress record kept by the tracker.
"""

import copy
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Tuple

from ..core.dsl import Gate
from ..core.state import FriendshipTier, Season

# Tile distance within which tile triggers and go_to objectives fire
DEFAULT_REACH_RADIUS = 1.5


@dataclass
class Reward:
    """Item granted when a stage is entered."""
    item: str
    qty: int = 1


@dataclass
class ChainDialogue:
    """Line an NPC says while a chain sits on a stage."""
    text: str
    expression: Optional[str] = None


@dataclass
class ChainChoice:
    """Player choice at a branching stage; hidden unless all requires pass."""
    text: str
    next: str
    requires: List[Gate] = field(default_factory=list)


@dataclass
class ChainObjective:
    """go_to objective: reach a tile to move the chain on."""
    position: Tuple[float, float]
    radius: float = DEFAULT_REACH_RADIUS
    hint: str = ""


@dataclass
class ChainTrigger:
    """How a chain starts on its own (manual chains never do)."""
    type: str = "manual"
    quest_id: Optional[str] = None
    season: Optional[Season] = None
    npc_id: Optional[str] = None
    tier: Optional[FriendshipTier] = None
    position: Optional[Tuple[float, float]] = None
    radius: float = DEFAULT_REACH_RADIUS


@dataclass
class StageDefinition:
    """A named stage of a quest; number defaults to its 1-based position."""
    name: str
    number: int
    text: str = ""
    next: Optional[str] = None  # auto-advance target
    wait_days: int = 0  # game days to wait before auto-advancing
    rewards: List[Reward] = field(default_factory=list)
    end: bool = False  # entering this stage completes the chain
    dialogue: Dict[str, ChainDialogue] = field(default_factory=dict)  # keyed by NPC id
    choices: List[ChainChoice] = field(default_factory=list)
    objective: Optional[ChainObjective] = None

    @property
    def waits_for_player(self) -> bool:
        """Branching and objective stages never auto-advance on tick."""
        return bool(self.choices) or self.objective is not None


@dataclass
class QuestDefinition:
    """Static stage table of one quest."""
    id: str
    title: str
    stages: List[StageDefinition] = field(default_factory=list)
    description: str = ""
    trigger: ChainTrigger = field(default_factory=ChainTrigger)

    def get_stage(self, name: str) -> Optional[StageDefinition]:
        for stage in self.stages:
            if stage.name == name:
                return stage
        return None

    def stage_by_number(self, number: int) -> Optional[StageDefinition]:
        for stage in self.stages:
            if stage.number == number:
                return stage
        return None

    def first_stage(self) -> Optional[StageDefinition]:
        """Lowest-numbered stage, whatever order the table lists them in."""
        return min(self.stages, key=lambda s: s.number) if self.stages else None


@dataclass
class ChainProgress:
    """Runtime state of one started quest chain."""
    chain_id: str
    current_stage_name: Optional[str]
    current_stage_number: int = 1
    started: bool = True
    completed: bool = False
    metadata: Dict[str, Any] = field(default_factory=dict)
    started_day: int = 0
    stage_entered_day: int = 0
    choices_made: Dict[str, str] = field(default_factory=dict)  # stage name -> choice text

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chain_id": self.chain_id,
            "current_stage_name": self.current_stage_name,
            "current_stage_number": self.current_stage_number,
            "started": self.started,
            "completed": self.completed,
            "metadata": copy.deepcopy(self.metadata),
            "started_day": self.started_day,
            "stage_entered_day": self.stage_entered_day,
            "choices_made": dict(self.choices_made),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChainProgress":
        return cls(
            chain_id=data["chain_id"],
            current_stage_name=data.get("current_stage_name"),
            current_stage_number=int(data.get("current_stage_number", 1)),
            started=bool(data.get("started", True)),
            completed=bool(data.get("completed", False)),
            metadata=copy.deepcopy(dict(data.get("metadata") or {})),
            started_day=int(data.get("started_day", 0)),
            stage_entered_day=int(data.get("stage_entered_day", 0)),
            choices_made={str(k): str(v) for k, v in (data.get("choices_made") or {}).items()},
        )
