"""Quest/event-chain tracker.

One ChainTracker owns every chain of a save: it is created by the game,
passed by reference to the dialogue layer, and serialized through
export_state()/load_state(). It performs no I/O.

Error policy:
- content authoring errors (unknown chain id, unknown stage, backward stage
  move) are logged as warnings and the operation is a no-op;
- invariant violations (stage, metadata or completion before the chain was
  started) are logged as errors and rejected with the prior state preserved.
  With strict mode on they raise ChainStateError instead.
"""

import copy
import logging
from typing import Any, Dict, Iterable, List, Optional

import config
from ..core.actions import ActionSink, GameEvent
from ..core.dsl import check_all
from ..core.state import ContextSnapshot, distance, tier_rank
from .handlers import HandlerRegistry
from .model import ChainChoice, ChainDialogue, ChainProgress, QuestDefinition, StageDefinition

logger = logging.getLogger(__name__)


class ChainStateError(Exception):
    """Raised in strict mode when a chain operation breaks an invariant."""
    pass


class ChainTracker:
    """Keyed store of quest chain progress."""

    def __init__(
        self,
        definitions: Optional[Iterable[QuestDefinition]] = None,
        sink: Optional[ActionSink] = None,
        handlers: Optional[HandlerRegistry] = None,
        strict: Optional[bool] = None,
    ):
        self.definitions: Dict[str, QuestDefinition] = {}
        self.chains: Dict[str, ChainProgress] = {}
        self.sink = sink if sink is not None else ActionSink()
        self.handlers = handlers if handlers is not None else HandlerRegistry()
        self.strict = config.get_strict_mode() if strict is None else strict
        self.current_day = 0
        for definition in definitions or []:
            self.register(definition)

    # ------------------------------------------------------------------
    # Definitions
    # ------------------------------------------------------------------

    def register(self, definition: QuestDefinition) -> None:
        """Register a quest's static stage table."""
        self.definitions[definition.id] = definition

    def has_definition(self, chain_id: str) -> bool:
        return chain_id in self.definitions

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_progress(self, chain_id: str) -> Optional[ChainProgress]:
        return self.chains.get(chain_id)

    def is_chain_started(self, chain_id: str) -> bool:
        progress = self.chains.get(chain_id)
        return progress is not None and progress.started

    def is_chain_completed(self, chain_id: str) -> bool:
        progress = self.chains.get(chain_id)
        return progress is not None and progress.completed

    def is_chain_active(self, chain_id: str) -> bool:
        return self.is_chain_started(chain_id) and not self.is_chain_completed(chain_id)

    def get_stage_number(self, chain_id: str) -> int:
        """Numeric stage of a chain (0 if not started)."""
        if not self.is_chain_started(chain_id):
            return 0
        return self.chains[chain_id].current_stage_number

    def get_stage_name(self, chain_id: str) -> Optional[str]:
        if not self.is_chain_started(chain_id):
            return None
        return self.chains[chain_id].current_stage_name

    def get_metadata(self, chain_id: str, key: str, default: Any = None) -> Any:
        """Copy of a metadata value; change it through set_metadata()."""
        progress = self.chains.get(chain_id)
        if progress is None:
            return default
        return copy.deepcopy(progress.metadata.get(key, default))

    def get_choices_made(self, chain_id: str) -> Dict[str, str]:
        progress = self.chains.get(chain_id)
        return dict(progress.choices_made) if progress is not None else {}

    def active_chains(self) -> List[ChainProgress]:
        return [p for p in self.chains.values() if p.started and not p.completed]

    def completed_chains(self) -> List[ChainProgress]:
        return [p for p in self.chains.values() if p.completed]

    def view(self) -> "QuestView":
        """Read-only handle for context snapshots."""
        return QuestView(self)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start_chain(self, chain_id: str, initial_metadata: Optional[Dict[str, Any]] = None) -> bool:
        """Start a chain at its first stage.

        Idempotent: starting an already started chain leaves it untouched.

        Args:
            chain_id: Quest id to start
            initial_metadata: Metadata snapshot copied into the new chain

        Returns:
            True if the chain was created by this call
        """
        if self.is_chain_started(chain_id):
            logger.debug(f"Chain already started: {chain_id}")
            return False

        definition = self.definitions.get(chain_id)
        if definition is None:
            logger.warning(f"Cannot start unknown chain: {chain_id}")
            return False

        first = definition.first_stage()
        if first is None:
            logger.warning(f"Chain has no stages: {chain_id}")
            return False

        progress = ChainProgress(
            chain_id=chain_id,
            current_stage_name=first.name,
            current_stage_number=first.number,
            metadata=copy.deepcopy(initial_metadata) if initial_metadata else {},
            started_day=self.current_day,
            stage_entered_day=self.current_day,
        )
        self.chains[chain_id] = progress
        logger.info(f"Chain started: {chain_id} ({definition.title})")

        self.sink.emit_event(GameEvent.QUEST_STARTED, {"quest_id": chain_id})
        self.sink.emit_event(GameEvent.QUEST_STAGE_CHANGED, {
            "quest_id": chain_id,
            "stage": progress.current_stage_number,
            "previous_stage": 0,
        })
        self._enter_stage(progress, first)
        return True

    def advance_to_stage(self, chain_id: str, stage_name: str) -> bool:
        """Move a started chain to a named stage of its stage table.

        Moving to a lower stage number is accepted but logged as a content
        bug. On a completed chain the move is recorded without rewards or
        handlers.

        Returns:
            True if the stage was applied
        """
        progress = self._require_started(chain_id, "advance_to_stage")
        if progress is None:
            return False

        definition = self.definitions.get(chain_id)
        stage = definition.get_stage(stage_name) if definition else None
        if stage is None:
            logger.warning(f"Unknown stage '{stage_name}' in chain '{chain_id}'")
            return False

        return self._apply_stage(progress, stage)

    def set_stage(self, chain_id: str, stage_number: int) -> bool:
        """Move a started chain to the stage with an explicit number."""
        progress = self._require_started(chain_id, "set_stage")
        if progress is None:
            return False

        definition = self.definitions.get(chain_id)
        stage = definition.stage_by_number(stage_number) if definition else None
        if stage is None:
            logger.warning(f"Stage number {stage_number} out of range for chain '{chain_id}'")
            return False

        return self._apply_stage(progress, stage)

    def complete_chain(self, chain_id: str) -> bool:
        """Mark a chain completed. One-way; completing twice is a no-op."""
        progress = self._require_started(chain_id, "complete_chain")
        if progress is None:
            return False
        if progress.completed:
            return False
        self._mark_completed(progress)
        return True

    def set_metadata(self, chain_id: str, key: str, value: Any) -> bool:
        """Set a metadata key on a started chain (any time after start)."""
        progress = self._require_started(chain_id, "set_metadata")
        if progress is None:
            return False
        progress.metadata[key] = copy.deepcopy(value)
        self.sink.emit_event(GameEvent.QUEST_DATA_CHANGED, {
            "quest_id": chain_id,
            "key": key,
            "value": value,
        })
        return True

    def reset_chain(self, chain_id: str) -> bool:
        """Forget a chain entirely (dev tooling)."""
        if self.chains.pop(chain_id, None) is None:
            return False
        logger.info(f"Chain reset: {chain_id}")
        self.sink.emit_event(GameEvent.QUEST_RESET, {"quest_id": chain_id})
        return True

    def tick(self, day: int) -> List[str]:
        """Record the current game day and auto-advance waiting stages.

        A stage with a `next` target advances once `wait_days` game days have
        passed since it was entered. At most one step per chain per tick.

        Returns:
            Ids of chains that advanced
        """
        self.current_day = day
        advanced = []
        for chain_id, progress in list(self.chains.items()):
            if progress.completed:
                continue
            definition = self.definitions.get(chain_id)
            if definition is None:
                continue
            stage = definition.get_stage(progress.current_stage_name)
            if stage is None or not stage.next or stage.waits_for_player:
                continue
            if day - progress.stage_entered_day >= stage.wait_days:
                if self.advance_to_stage(chain_id, stage.next):
                    advanced.append(chain_id)
        return advanced

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def export_state(self) -> Dict[str, Any]:
        """Plain-data snapshot of all chain progress."""
        return {
            "current_day": self.current_day,
            "chains": {chain_id: p.to_dict() for chain_id, p in sorted(self.chains.items())},
        }

    def parse_state(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Convert an export_state() snapshot without touching live progress.

        Chains without a registered definition are dropped.

        Raises:
            KeyError, TypeError, ValueError: If the snapshot is malformed
        """
        chains: Dict[str, ChainProgress] = {}
        for chain_id, raw in (data.get("chains") or {}).items():
            if chain_id not in self.definitions:
                logger.warning(f"Dropping saved progress for unknown chain: {chain_id}")
                continue
            chains[chain_id] = ChainProgress.from_dict(raw)
        return {"current_day": int(data.get("current_day", 0)), "chains": chains}

    def apply_state(self, parsed: Dict[str, Any]) -> None:
        """Swap in progress produced by parse_state()."""
        self.current_day = parsed["current_day"]
        self.chains = parsed["chains"]

    def load_state(self, data: Dict[str, Any]) -> None:
        """Replace chain progress with a snapshot from export_state().

        Nothing changes if the snapshot fails to parse.
        """
        self.apply_state(self.parse_state(data))

    # ------------------------------------------------------------------
    # Choices, stage dialogue, triggers and objectives
    # ------------------------------------------------------------------

    def available_choices(self, chain_id: str, ctx: Optional[ContextSnapshot] = None) -> List[ChainChoice]:
        """Choices of an active chain's current stage whose requirements pass."""
        stage = self._current_stage(chain_id)
        if stage is None or not self.is_chain_active(chain_id):
            return []
        ctx = ctx if ctx is not None else self._context()
        return [choice for choice in stage.choices if check_all(choice.requires, ctx)]

    def make_choice(self, chain_id: str, index: int, ctx: Optional[ContextSnapshot] = None) -> bool:
        """Pick one of the available choices and advance to its target stage.

        Args:
            chain_id: Chain sitting on a branching stage
            index: Position in available_choices(), not in the authored list
            ctx: Context the requirements are checked against

        Returns:
            True if the choice was recorded and the chain advanced
        """
        progress = self._require_started(chain_id, "make_choice")
        if progress is None:
            return False
        if progress.completed:
            logger.warning(f"make_choice on completed chain '{chain_id}'")
            return False

        stage = self._current_stage(chain_id)
        if stage is None or not stage.choices:
            logger.warning(f"Stage '{progress.current_stage_name}' of '{chain_id}' has no choices")
            return False

        choices = self.available_choices(chain_id, ctx)
        if not 0 <= index < len(choices):
            logger.warning(f"Invalid choice index {index} for '{chain_id}' ({len(choices)} available)")
            return False

        choice = choices[index]
        progress.choices_made[stage.name] = choice.text
        self.sink.emit_event(GameEvent.CHAIN_CHOICE_MADE, {
            "quest_id": chain_id,
            "stage": stage.name,
            "choice": choice.text,
        })
        return self.advance_to_stage(chain_id, choice.next)

    def get_chain_dialogue(self, npc_id: str) -> List[ChainDialogue]:
        """Lines active chains inject into an NPC at their current stage."""
        lines = []
        for chain_id in sorted(self.chains):
            if not self.is_chain_active(chain_id):
                continue
            stage = self._current_stage(chain_id)
            if stage is not None and npc_id in stage.dialogue:
                lines.append(stage.dialogue[npc_id])
        return lines

    def check_triggers(self, ctx: ContextSnapshot) -> List[str]:
        """Start every unstarted chain whose trigger holds in the context.

        Returns:
            Ids of chains started by this call
        """
        started = []
        for chain_id, definition in sorted(self.definitions.items()):
            if chain_id in self.chains:
                continue
            if self._trigger_fires(definition, ctx) and self.start_chain(chain_id):
                started.append(chain_id)
        return started

    def check_objectives(self, ctx: ContextSnapshot) -> List[str]:
        """Resolve go_to objectives the player has reached.

        Returns:
            Ids of chains whose current objective was reached
        """
        reached = []
        for chain_id in sorted(self.chains):
            stage = self._current_stage(chain_id)
            if stage is None or stage.objective is None or not self.is_chain_active(chain_id):
                continue
            gap = distance(ctx.player_position, stage.objective.position)
            if gap is None or gap > stage.objective.radius:
                continue
            reached.append(chain_id)
            self.sink.emit_event(GameEvent.CHAIN_OBJECTIVE_REACHED, {
                "quest_id": chain_id,
                "stage": stage.name,
            })
            if stage.next:
                self.advance_to_stage(chain_id, stage.next)
        return reached

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_started(self, chain_id: str, operation: str) -> Optional[ChainProgress]:
        progress = self.chains.get(chain_id)
        if progress is not None and progress.started:
            return progress
        message = f"{operation}({chain_id!r}) called before start_chain"
        logger.error(message)
        if self.strict:
            raise ChainStateError(message)
        return None

    def _current_stage(self, chain_id: str) -> Optional[StageDefinition]:
        progress = self.chains.get(chain_id)
        definition = self.definitions.get(chain_id)
        if progress is None or definition is None:
            return None
        return definition.get_stage(progress.current_stage_name)

    def _context(self) -> ContextSnapshot:
        return ContextSnapshot(quests=self.view())

    def _trigger_fires(self, definition: QuestDefinition, ctx: ContextSnapshot) -> bool:
        trigger = definition.trigger
        if trigger.type == "quest_complete":
            return bool(trigger.quest_id) and self.is_chain_completed(trigger.quest_id)
        elif trigger.type == "seasonal":
            return trigger.season is not None and ctx.season == trigger.season
        elif trigger.type == "friendship":
            if not trigger.npc_id or trigger.tier is None:
                return False
            return tier_rank(ctx.tier_with(trigger.npc_id)) >= tier_rank(trigger.tier)
        elif trigger.type == "tile":
            gap = distance(ctx.player_position, trigger.position)
            return gap is not None and gap <= trigger.radius
        return False

    def _apply_stage(self, progress: ChainProgress, stage: StageDefinition) -> bool:
        previous = progress.current_stage_number
        if stage.number < previous:
            logger.warning(
                f"Chain '{progress.chain_id}' moved backwards from stage {previous} "
                f"to {stage.number} ('{stage.name}')"
            )

        progress.current_stage_name = stage.name
        progress.current_stage_number = stage.number
        progress.stage_entered_day = self.current_day

        if progress.completed:
            logger.info(f"Stage '{stage.name}' set on completed chain '{progress.chain_id}'")
            return True

        self.sink.emit_event(GameEvent.QUEST_STAGE_CHANGED, {
            "quest_id": progress.chain_id,
            "stage": stage.number,
            "previous_stage": previous,
        })
        self._enter_stage(progress, stage)
        return True

    def _enter_stage(self, progress: ChainProgress, stage: StageDefinition) -> None:
        for reward in stage.rewards:
            self.sink.grant_item(reward.item, reward.qty)
        self.handlers.execute(progress.chain_id, stage.name, self)
        if stage.end and not progress.completed:
            self._mark_completed(progress)

    def _mark_completed(self, progress: ChainProgress) -> None:
        progress.completed = True
        logger.info(f"Chain completed: {progress.chain_id}")
        self.sink.emit_event(GameEvent.QUEST_COMPLETED, {"quest_id": progress.chain_id})


class QuestView:
    """Read-only facade over a ChainTracker."""

    def __init__(self, tracker: ChainTracker):
        self._tracker = tracker

    def is_chain_started(self, chain_id: str) -> bool:
        return self._tracker.is_chain_started(chain_id)

    def is_chain_active(self, chain_id: str) -> bool:
        return self._tracker.is_chain_active(chain_id)

    def is_chain_completed(self, chain_id: str) -> bool:
        return self._tracker.is_chain_completed(chain_id)

    def get_stage_number(self, chain_id: str) -> int:
        return self._tracker.get_stage_number(chain_id)

    def get_stage_name(self, chain_id: str) -> Optional[str]:
        return self._tracker.get_stage_name(chain_id)

    def get_metadata(self, chain_id: str, key: str, default: Any = None) -> Any:
        return self._tracker.get_metadata(chain_id, key, default)
