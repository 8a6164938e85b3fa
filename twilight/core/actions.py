"""Narrow action interface towards external game systems.

Response actions and quest stage rewards reach inventory, friendship and the
game event bus only through an ActionSink. The core never holds references to
those systems' internals.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class GameEvent:
    """Event names broadcast by the core."""
    QUEST_STARTED = "quest_started"
    QUEST_STAGE_CHANGED = "quest_stage_changed"
    QUEST_DATA_CHANGED = "quest_data_changed"
    QUEST_COMPLETED = "quest_completed"
    QUEST_RESET = "quest_reset"
    CHAIN_CHOICE_MADE = "chain_choice_made"
    CHAIN_OBJECTIVE_REACHED = "chain_objective_reached"
    NPC_TALKED = "npc_talked"
    NPC_STATE_CHANGED = "npc_state_changed"


class ActionSink:
    """Default sink: logs and drops every action.

    Subclass and override the three methods to connect real systems.
    """

    def grant_item(self, item_id: str, qty: int = 1) -> None:
        logger.debug(f"grant_item({item_id!r}, {qty}) dropped: no inventory attached")

    def adjust_friendship(self, npc_id: Optional[str], points: int) -> None:
        logger.debug(f"adjust_friendship({npc_id!r}, {points}) dropped: no friendship system attached")

    def emit_event(self, name: str, payload: Optional[Dict[str, Any]] = None) -> None:
        logger.debug(f"emit_event({name!r}) dropped: no event bus attached")


class RecordingActionSink(ActionSink):
    """Sink that keeps every call in memory (dev tools and tests)."""

    def __init__(self):
        self.items: Dict[str, int] = {}
        self.friendship: Dict[Optional[str], int] = {}
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def grant_item(self, item_id: str, qty: int = 1) -> None:
        self.items[item_id] = self.items.get(item_id, 0) + qty

    def adjust_friendship(self, npc_id: Optional[str], points: int) -> None:
        self.friendship[npc_id] = self.friendship.get(npc_id, 0) + points

    def emit_event(self, name: str, payload: Optional[Dict[str, Any]] = None) -> None:
        self.events.append((name, dict(payload or {})))

    def event_names(self) -> List[str]:
        return [name for name, _ in self.events]
