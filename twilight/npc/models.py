"""NPC data models: behavior state tables and per-instance runtime state."""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import config
from ..core.state import Position
from ..dialogue.model import DialogueScript


class Direction(Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class ProximityTrigger:
    """Distance override with hysteresis.

    Entering `radius` forces `trigger_state`; staying at or beyond
    `recovery_radius` for `recovery_delay` ms returns to `recovery_state`.
    """
    radius: float
    trigger_state: str
    recovery_radius: float
    recovery_state: str
    recovery_delay: float = config.DEFAULT_RECOVERY_DELAY_MS


@dataclass
class StateDefinition:
    """Static definition of one behavior state."""
    frames: List[str]
    frame_interval: float = config.NPC_FRAME_MS  # ms per frame
    duration: Optional[float] = None  # ms before auto-transition
    next_state: Optional[str] = None
    proximity_trigger: Optional[ProximityTrigger] = None
    transitions_to: Dict[str, str] = field(default_factory=dict)  # event -> state
    directional_frames: Dict[Direction, List[str]] = field(default_factory=dict)


@dataclass
class BehaviorState:
    """Mutable runtime state of one NPC's behavior machine."""
    current_state: str
    entered_at: float = 0.0
    last_frame_at: float = 0.0
    frame_index: int = 0
    # Set while in a state forced by a proximity trigger
    active_trigger: Optional[ProximityTrigger] = None
    out_of_range_since: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        trigger = None
        if self.active_trigger is not None:
            trigger = {
                "radius": self.active_trigger.radius,
                "trigger_state": self.active_trigger.trigger_state,
                "recovery_radius": self.active_trigger.recovery_radius,
                "recovery_state": self.active_trigger.recovery_state,
                "recovery_delay": self.active_trigger.recovery_delay,
            }
        return {
            "current_state": self.current_state,
            "entered_at": self.entered_at,
            "last_frame_at": self.last_frame_at,
            "frame_index": self.frame_index,
            "active_trigger": trigger,
            "out_of_range_since": self.out_of_range_since,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BehaviorState":
        trigger = data.get("active_trigger")
        return cls(
            current_state=data["current_state"],
            entered_at=float(data.get("entered_at", 0.0)),
            last_frame_at=float(data.get("last_frame_at", 0.0)),
            frame_index=int(data.get("frame_index", 0)),
            active_trigger=ProximityTrigger(**trigger) if trigger else None,
            out_of_range_since=data.get("out_of_range_since"),
        )


@dataclass
class FriendshipConfig:
    can_befriend: bool = True
    starting_points: int = 0


@dataclass
class NPCDefinition:
    """Static NPC content: dialogue script plus behavior table."""
    id: str
    name: str
    position: Optional[Position] = None
    direction: Direction = Direction.DOWN
    dialogue: DialogueScript = field(default_factory=list)
    states: Dict[str, StateDefinition] = field(default_factory=dict)
    initial_state: Optional[str] = None
    interaction_radius: float = config.DEFAULT_INTERACTION_RADIUS
    friendship: FriendshipConfig = field(default_factory=FriendshipConfig)

    @property
    def is_animated(self) -> bool:
        return bool(self.states) and self.initial_state is not None
