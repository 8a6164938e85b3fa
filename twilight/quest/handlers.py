"""Per-stage handler functions.

Quest modules register a callable for (chain_id, stage_name); the tracker
runs it synchronously whenever that stage is entered. Handlers own the shape
of their chain's metadata and manipulate it through the tracker.
"""

import logging
from typing import Callable, Dict, Tuple

logger = logging.getLogger(__name__)

StageHandler = Callable[..., None]


class HandlerRegistry:
    """Maps (chain_id, stage_name) to a handler."""

    def __init__(self):
        self._handlers: Dict[Tuple[str, str], StageHandler] = {}

    def register(self, chain_id: str, stage_name: str, handler: StageHandler) -> None:
        """Register a handler, replacing any existing one for the stage."""
        key = (chain_id, stage_name)
        if key in self._handlers:
            logger.warning(f"Replacing handler for {chain_id}/{stage_name}")
        self._handlers[key] = handler

    def on_stage(self, chain_id: str, stage_name: str):
        """Decorator form of register()."""
        def decorator(fn: StageHandler) -> StageHandler:
            self.register(chain_id, stage_name, fn)
            return fn
        return decorator

    def has(self, chain_id: str, stage_name: str) -> bool:
        return (chain_id, stage_name) in self._handlers

    def execute(self, chain_id: str, stage_name: str, tracker) -> bool:
        """Run the handler for a stage if one is registered.

        A failing handler is logged and reported as not run; the stage change
        that triggered it stands. Strict trackers re-raise.

        Args:
            chain_id: Chain whose stage was entered
            stage_name: Name of the entered stage
            tracker: ChainTracker passed to the handler

        Returns:
            True if a handler ran to completion
        """
        handler = self._handlers.get((chain_id, stage_name))
        if handler is None:
            return False
        try:
            handler(tracker, chain_id)
        except Exception:
            logger.exception(f"Handler failed for {chain_id}/{stage_name}")
            if getattr(tracker, "strict", False):
                raise
            return False
        return True
