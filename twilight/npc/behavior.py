"""Declarative timed state machine driving NPC behavior.

One machine per NPC definition; runtime progress lives in a BehaviorState so
the same table can drive many instances. Each tick evaluates, in order:

1. an active proximity override (recovery after sustained distance),
2. the current state's proximity trigger,
3. the timed `duration` -> `next_state` edge,
4. frame advance.

Explicit interaction events follow the state's `transitions_to` map.
"""

import logging
from typing import Dict, List, Optional

from .models import BehaviorState, Direction, StateDefinition

logger = logging.getLogger(__name__)


class BehaviorMachine:
    """Evaluates a behavior state table against elapsed time and distance."""

    def __init__(self, states: Dict[str, StateDefinition], initial_state: str, npc_id: str = "?"):
        if initial_state not in states:
            raise ValueError(f"NPC '{npc_id}': initial state '{initial_state}' is not defined")
        self.states = states
        self.initial_state = initial_state
        self.npc_id = npc_id

    def start(self, now: float) -> BehaviorState:
        """Create runtime state positioned on the initial state."""
        return BehaviorState(current_state=self.initial_state, entered_at=now, last_frame_at=now)

    def tick(self, state: BehaviorState, now: float, distance: Optional[float] = None) -> bool:
        """Advance one NPC by one update.

        Args:
            state: Runtime state, mutated in place
            now: Current time in ms
            distance: Player distance in tiles, None when unknown (treated as far)

        Returns:
            True if the behavior state changed
        """
        definition = self.states.get(state.current_state)
        if definition is None:
            logger.warning(f"NPC '{self.npc_id}': unknown behavior state '{state.current_state}'")
            return False

        if state.active_trigger is not None:
            if self._check_recovery(state, now, distance):
                return True
        else:
            trigger = definition.proximity_trigger
            if trigger is not None and distance is not None and distance <= trigger.radius:
                if self._enter(state, trigger.trigger_state, now, reason="proximity"):
                    state.active_trigger = trigger
                    return True

        if definition.duration is not None and definition.next_state:
            if now - state.entered_at >= definition.duration:
                return self._enter(state, definition.next_state, now, reason="duration")

        self._advance_frame(state, definition, now)
        return False

    def _check_recovery(self, state: BehaviorState, now: float, distance: Optional[float]) -> bool:
        trigger = state.active_trigger
        if distance is not None and distance < trigger.recovery_radius:
            state.out_of_range_since = None
            return False

        if state.out_of_range_since is None:
            state.out_of_range_since = now
            return False

        if now - state.out_of_range_since >= trigger.recovery_delay:
            return self._enter(state, trigger.recovery_state, now, reason="recovery")
        return False

    def _advance_frame(self, state: BehaviorState, definition: StateDefinition, now: float):
        if len(definition.frames) < 2 or definition.frame_interval <= 0:
            return
        elapsed = now - state.last_frame_at
        if elapsed < definition.frame_interval:
            return
        steps = int(elapsed // definition.frame_interval)
        state.frame_index = (state.frame_index + steps) % len(definition.frames)
        state.last_frame_at += steps * definition.frame_interval

    def trigger_event(self, state: BehaviorState, event: str, now: float) -> bool:
        """Apply an interaction event through the current state's transitions_to map.

        States without a mapping for the event ignore it.
        """
        definition = self.states.get(state.current_state)
        if definition is None:
            logger.warning(f"NPC '{self.npc_id}': unknown behavior state '{state.current_state}'")
            return False
        target = definition.transitions_to.get(event)
        if target is None:
            logger.debug(f"NPC '{self.npc_id}': state '{state.current_state}' ignores '{event}'")
            return False
        return self._enter(state, target, now, reason=event)

    def _enter(self, state: BehaviorState, target: str, now: float, reason: str) -> bool:
        if target not in self.states:
            logger.warning(
                f"NPC '{self.npc_id}': transition '{reason}' to unknown state '{target}' ignored"
            )
            return False
        logger.debug(f"NPC '{self.npc_id}': {state.current_state} -> {target} ({reason})")
        state.current_state = target
        state.entered_at = now
        state.last_frame_at = now
        state.frame_index = 0
        state.active_trigger = None
        state.out_of_range_since = None
        return True

    def frames_for(self, state_name: str, direction: Optional[Direction] = None) -> List[str]:
        """Frame list to render, preferring a direction-specific list."""
        definition = self.states.get(state_name)
        if definition is None:
            return []
        if direction is not None and direction in definition.directional_frames:
            return definition.directional_frames[direction]
        return definition.frames

    def current_frame(self, state: BehaviorState, direction: Optional[Direction] = None) -> Optional[str]:
        frames = self.frames_for(state.current_state, direction)
        if not frames:
            return None
        return frames[state.frame_index % len(frames)]
