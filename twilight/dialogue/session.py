"""Synchronous dialogue session driven by UI events.

open() resolves the entry beat; choose() applies the picked response's
actions and then resolves its next_id against a freshly built context, so a
quest started by the response is visible to the very next resolution.
"""
from __future__ import annotations
import logging
from typing import Callable, List, Optional, Tuple

from ..core.actions import ActionSink, GameEvent
from ..core.state import ContextSnapshot
from .model import DialogueScript, ResolvedNode
from .resolver import apply_actions, resolve

logger = logging.getLogger(__name__)

GREETING_ID = "greeting"


class DialogueSession:
    """One conversation between the player and an NPC."""

    def __init__(
        self,
        npc_id: str,
        script: DialogueScript,
        tracker,
        context_provider: Callable[[], ContextSnapshot],
        sink: Optional[ActionSink] = None,
    ):
        self.npc_id = npc_id
        self.script = script
        self.tracker = tracker
        self.context_provider = context_provider
        self.sink = sink if sink is not None else tracker.sink
        self.current: Optional[ResolvedNode] = None
        self.transcript: List[Tuple[str, str]] = []

    @property
    def is_open(self) -> bool:
        return self.current is not None

    def open(self, logical_id: str = GREETING_ID) -> Optional[ResolvedNode]:
        """Start the conversation at a logical id.

        Returns:
            The resolved node, or None if no variant matches (the caller
            shows a fallback line or suppresses the interaction)
        """
        self.current = self._resolve(logical_id)
        if self.current is None:
            logger.info(f"No dialogue for '{logical_id}' on NPC {self.npc_id}")
            return None
        if logical_id == GREETING_ID:
            self.sink.emit_event(GameEvent.NPC_TALKED, {"npc_id": self.npc_id})
        return self.current

    def choose(self, index: int) -> Optional[ResolvedNode]:
        """Select one of the current node's visible responses.

        Returns:
            The next resolved node, or None once the conversation closed
        """
        if self.current is None:
            logger.error(f"choose({index}) on closed conversation with {self.npc_id}")
            return None
        if not 0 <= index < len(self.current.responses):
            logger.error(f"Response index {index} out of range on node '{self.current.id}'")
            return self.current

        response = self.current.responses[index]
        self.transcript.append(("player", response.text))
        apply_actions(response, self.tracker, self.sink, self.npc_id)

        if response.next_id is None:
            self.close()
            return None

        resolved = self._resolve(response.next_id)
        if resolved is None:
            logger.warning(
                f"NPC {self.npc_id}: next_id '{response.next_id}' from node "
                f"'{self.current.id}' matched no variant, closing conversation"
            )
            self.close()
            return None

        self.current = resolved
        return resolved

    def close(self) -> None:
        self.current = None

    def _resolve(self, logical_id: str) -> Optional[ResolvedNode]:
        resolved = resolve(self.script, logical_id, self.context_provider())
        if resolved is not None:
            self.transcript.append((self.npc_id, resolved.text))
        return resolved
