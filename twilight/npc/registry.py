"""NPC registry for runtime NPC management."""

from __future__ import annotations
import logging
from typing import Any, Callable, Dict, List, Optional

import config
from ..core.actions import ActionSink, GameEvent
from ..core.state import ContextSnapshot, FriendshipTier, Position, distance, tier_for_points
from ..dialogue.session import DialogueSession
from .behavior import BehaviorMachine
from .models import BehaviorState, Direction, NPCDefinition

logger = logging.getLogger(__name__)

INTERACT_EVENT = "interact"


class NPCRegistry:
    """Registry owning NPC definitions and their runtime behavior state."""

    def __init__(self, sink: Optional[ActionSink] = None):
        self.npcs: Dict[str, NPCDefinition] = {}
        self.machines: Dict[str, BehaviorMachine] = {}
        self.behavior: Dict[str, BehaviorState] = {}
        self.positions: Dict[str, Position] = {}
        self.directions: Dict[str, Direction] = {}
        self.friendship: Dict[str, int] = {}
        self.sink = sink if sink is not None else ActionSink()

    def register_npc(self, npc: NPCDefinition, now: float = 0.0):
        """Register an NPC and start its behavior machine if it has one."""
        if npc.id in self.npcs:
            logger.warning(f"NPC '{npc.id}' registered twice, replacing")
        self.npcs[npc.id] = npc
        if npc.position is not None:
            self.positions[npc.id] = npc.position
        self.directions[npc.id] = npc.direction
        self.friendship.setdefault(npc.id, npc.friendship.starting_points)
        if npc.is_animated:
            machine = BehaviorMachine(npc.states, npc.initial_state, npc.id)
            self.machines[npc.id] = machine
            self.behavior[npc.id] = machine.start(now)

    def register_npcs(self, npcs: Dict[str, NPCDefinition], now: float = 0.0):
        for npc in npcs.values():
            self.register_npc(npc, now)

    def get_npc(self, npc_id: str) -> Optional[NPCDefinition]:
        return self.npcs.get(npc_id)

    def get_state_name(self, npc_id: str) -> Optional[str]:
        state = self.behavior.get(npc_id)
        return state.current_state if state else None

    def move_npc(self, npc_id: str, position: Position, direction: Optional[Direction] = None):
        if npc_id not in self.npcs:
            logger.warning(f"move_npc: unknown NPC '{npc_id}'")
            return
        self.positions[npc_id] = position
        if direction is not None:
            self.directions[npc_id] = direction

    # ------------------------------------------------------------------
    # Behavior
    # ------------------------------------------------------------------

    def tick_all(
        self,
        now: float,
        player_position: Optional[Position],
        positions: Optional[Dict[str, Position]] = None,
    ) -> List[str]:
        """Tick every animated NPC once.

        Args:
            now: Current time in ms
            player_position: Player tile position, None if unknown
            positions: Fresh NPC positions from the world (updates the registry)

        Returns:
            Ids of NPCs whose behavior state changed
        """
        if positions:
            self.positions.update(positions)

        changed = []
        for npc_id, machine in self.machines.items():
            state = self.behavior[npc_id]
            previous = state.current_state
            dist = distance(player_position, self.positions.get(npc_id))
            if machine.tick(state, now, dist):
                changed.append(npc_id)
                self._state_changed(npc_id, previous, state.current_state)
        return changed

    def interact(self, npc_id: str, now: float, event: str = INTERACT_EVENT) -> bool:
        """Deliver an interaction event to an NPC's behavior machine."""
        machine = self.machines.get(npc_id)
        if machine is None:
            return False
        state = self.behavior[npc_id]
        previous = state.current_state
        if machine.trigger_event(state, event, now):
            self._state_changed(npc_id, previous, state.current_state)
            return True
        return False

    def _state_changed(self, npc_id: str, previous: str, current: str):
        self.sink.emit_event(GameEvent.NPC_STATE_CHANGED, {
            "npc_id": npc_id,
            "previous_state": previous,
            "state": current,
        })

    def current_frame(self, npc_id: str) -> Optional[str]:
        machine = self.machines.get(npc_id)
        if machine is None:
            return None
        return machine.current_frame(self.behavior[npc_id], self.directions.get(npc_id))

    def can_interact(self, npc_id: str, player_position: Optional[Position]) -> bool:
        npc = self.npcs.get(npc_id)
        if npc is None:
            return False
        dist = distance(player_position, self.positions.get(npc_id))
        return dist is not None and dist <= npc.interaction_radius

    def get_interactable_npcs(self, player_position: Optional[Position]) -> List[NPCDefinition]:
        return [npc for npc_id, npc in self.npcs.items() if self.can_interact(npc_id, player_position)]

    # ------------------------------------------------------------------
    # Friendship
    # ------------------------------------------------------------------

    def adjust_friendship(self, npc_id: str, points: int) -> int:
        """Add (or remove) friendship points, clamped to the valid range."""
        npc = self.npcs.get(npc_id)
        if npc is None:
            logger.warning(f"adjust_friendship: unknown NPC '{npc_id}'")
            return 0
        if not npc.friendship.can_befriend:
            return self.friendship.get(npc_id, 0)
        total = self.friendship.get(npc_id, 0) + points
        self.friendship[npc_id] = max(0, min(config.MAX_FRIENDSHIP_POINTS, total))
        return self.friendship[npc_id]

    def friendship_tier(self, npc_id: str) -> FriendshipTier:
        return tier_for_points(self.friendship.get(npc_id, 0))

    # ------------------------------------------------------------------
    # Dialogue
    # ------------------------------------------------------------------

    def open_dialogue(
        self,
        npc_id: str,
        tracker,
        context_provider: Callable[[], ContextSnapshot],
        sink: Optional[ActionSink] = None,
    ) -> Optional[DialogueSession]:
        """Start a conversation with an NPC at its greeting.

        Returns:
            The open session, or None if the NPC is unknown or has nothing to say
        """
        npc = self.npcs.get(npc_id)
        if npc is None:
            logger.warning(f"open_dialogue: unknown NPC '{npc_id}'")
            return None
        session = DialogueSession(npc_id, npc.dialogue, tracker, context_provider, sink)
        if session.open() is None:
            return None
        return session

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save_state(self) -> Dict[str, Any]:
        """Save NPC registry state for persistence."""
        return {
            "npcs": {
                npc_id: {
                    "position": list(self.positions[npc_id]) if npc_id in self.positions else None,
                    "direction": self.directions[npc_id].value,
                    "friendship": self.friendship.get(npc_id, 0),
                    "behavior": self.behavior[npc_id].to_dict() if npc_id in self.behavior else None,
                }
                for npc_id in sorted(self.npcs)
            }
        }

    def parse_state(self, state_data: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
        """Convert saved registry state without touching live NPCs.

        Entries for unknown NPCs and behavior states missing from the current
        table are skipped with a warning.

        Raises:
            KeyError, TypeError, ValueError: If an entry is malformed
        """
        parsed = {}
        for npc_id, npc_state in state_data.get("npcs", {}).items():
            npc = self.npcs.get(npc_id)
            if npc is None:
                logger.warning(f"Saved state for unknown NPC '{npc_id}' dropped")
                continue

            entry: Dict[str, Any] = {}
            if npc_state.get("position") is not None:
                entry["position"] = tuple(npc_state["position"])
            if "direction" in npc_state:
                entry["direction"] = Direction(npc_state["direction"])
            if "friendship" in npc_state:
                entry["friendship"] = int(npc_state["friendship"])

            behavior = npc_state.get("behavior")
            if behavior and npc_id in self.machines:
                restored = BehaviorState.from_dict(behavior)
                if restored.current_state in npc.states:
                    entry["behavior"] = restored
                else:
                    logger.warning(
                        f"NPC '{npc_id}': saved behavior state '{restored.current_state}' "
                        f"no longer exists, keeping '{self.behavior[npc_id].current_state}'"
                    )
            parsed[npc_id] = entry
        return parsed

    def apply_state(self, parsed: Dict[str, Dict[str, Any]]):
        """Apply entries produced by parse_state()."""
        for npc_id, entry in parsed.items():
            if "position" in entry:
                self.positions[npc_id] = entry["position"]
            if "direction" in entry:
                self.directions[npc_id] = entry["direction"]
            if "friendship" in entry:
                self.friendship[npc_id] = entry["friendship"]
            if "behavior" in entry:
                self.behavior[npc_id] = entry["behavior"]

    def load_state(self, state_data: Dict[str, Any]):
        """Load NPC registry state from persistence; all or nothing."""
        self.apply_state(self.parse_state(state_data))
