"""Bootstrap utilities: load quest and NPC content and wire a ready engine."""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import config
from twilight.core.actions import RecordingActionSink
from twilight.core.dsl import referenced_quests
from twilight.core.state import ContextSnapshot, FriendshipTier, Position
from twilight.dialogue import DialogueSession, lint_script
from twilight.npc import NPCRegistry, load_npcs_dir
from twilight.quest import ChainTracker, HandlerRegistry, load_quests_dir

from game import witch_garden

logger = logging.getLogger(__name__)

# Modules registering per-stage quest handlers
QUEST_MODULES = [witch_garden]


class EngineSink(RecordingActionSink):
    """Sink keeping inventory and events, routing friendship to the registry."""

    def __init__(self, registry: Optional[NPCRegistry] = None):
        super().__init__()
        self.registry = registry

    def adjust_friendship(self, npc_id: Optional[str], points: int) -> None:
        super().adjust_friendship(npc_id, points)
        if self.registry is not None and npc_id is not None:
            self.registry.adjust_friendship(npc_id, points)


@dataclass
class Engine:
    """Everything the game loop needs to run the interaction core."""
    tracker: ChainTracker
    registry: NPCRegistry
    handlers: HandlerRegistry
    sink: EngineSink
    status_effects: set = field(default_factory=set)

    def snapshot(self, npc_id: Optional[str] = None, player_position: Optional[Position] = None,
                 **world: Any) -> ContextSnapshot:
        """Build a context snapshot from the engine's current state.

        world may carry season, weather, time_of_day, mastery and special_friend.
        """
        return ContextSnapshot(
            quests=self.tracker.view(),
            npc_id=npc_id,
            player_position=player_position,
            status_effects=frozenset(self.status_effects),
            friendship_tier=self.registry.friendship_tier(npc_id) if npc_id else FriendshipTier.STRANGER,
            friendship_tiers={other: self.registry.friendship_tier(other) for other in self.registry.npcs},
            inventory=dict(self.sink.items),
            **world,
        )

    def update(self, now: float, day: int, player_position: Optional[Position] = None,
               **world: Any) -> Dict[str, List[str]]:
        """One game-loop step: NPC behavior, day ticks, chain triggers and objectives.

        Returns:
            Ids changed by each subsystem, keyed by "npcs", "advanced",
            "started" and "reached"
        """
        changed = self.registry.tick_all(now, player_position)
        advanced = self.tracker.tick(day)
        ctx = self.snapshot(player_position=player_position, **world)
        started = self.tracker.check_triggers(ctx)
        reached = self.tracker.check_objectives(ctx)
        return {"npcs": changed, "advanced": advanced, "started": started, "reached": reached}

    def chain_dialogue(self, npc_id: str) -> List[str]:
        """Lines active chains give an NPC at their current stage."""
        return [line.text for line in self.tracker.get_chain_dialogue(npc_id)]

    def choices(self, chain_id: str, **world: Any) -> List[str]:
        return [c.text for c in self.tracker.available_choices(chain_id, self.snapshot(**world))]

    def make_choice(self, chain_id: str, index: int, **world: Any) -> bool:
        return self.tracker.make_choice(chain_id, index, self.snapshot(**world))

    def talk_to(self, npc_id: str, now: float = 0.0, player_position: Optional[Position] = None,
                **world: Any) -> Optional[DialogueSession]:
        """Deliver the interaction event, then open the NPC's greeting."""
        self.registry.interact(npc_id, now)

        def provider() -> ContextSnapshot:
            return self.snapshot(npc_id, player_position, **world)

        return self.registry.open_dialogue(npc_id, self.tracker, provider, self.sink)


def load_engine(assets_dir: Optional[Union[str, Path]] = None,
                quest_modules: Optional[Iterable] = None) -> Engine:
    """Load content from the assets directory and return a wired Engine.

    Raises:
        ValueError: If any content file is malformed
    """
    root = Path(assets_dir) if assets_dir is not None else config.get_assets_dir()

    handlers = HandlerRegistry()
    for module in (QUEST_MODULES if quest_modules is None else quest_modules):
        module.register(handlers)

    registry = NPCRegistry()
    sink = EngineSink(registry)
    registry.sink = sink

    quests = load_quests_dir(root / "quests")
    tracker = ChainTracker(quests, sink=sink, handlers=handlers)
    logger.info(f"Loaded {len(quests)} quests")

    npcs = load_npcs_dir(root / "npcs")
    registry.register_npcs(npcs)
    logger.info(f"Loaded {len(npcs)} NPCs")

    for issue in lint_content(npcs, tracker.definitions):
        logger.warning(f"[CONTENT] {issue}")

    return Engine(tracker=tracker, registry=registry, handlers=handlers, sink=sink)


def lint_content(npcs: Dict[str, Any], quests: Dict[str, Any]) -> list:
    """Cross-check NPC scripts and quest stage content against each other."""
    issues = []
    for npc_id, npc in sorted(npcs.items()):
        issues.extend(lint_script(npc.dialogue, quests, npc_id))

    for quest_id, quest in sorted(quests.items()):
        trigger_quest = quest.trigger.quest_id
        if trigger_quest and trigger_quest not in quests:
            issues.append(f"Quest '{quest_id}': trigger waits on unknown quest '{trigger_quest}'")
        for stage in quest.stages:
            for npc_id in sorted(set(stage.dialogue) - set(npcs)):
                issues.append(f"Quest '{quest_id}' stage '{stage.name}': dialogue for unknown NPC '{npc_id}'")
            for choice in stage.choices:
                for ref in sorted(referenced_quests(choice.requires) - set(quests)):
                    issues.append(
                        f"Quest '{quest_id}' stage '{stage.name}': choice '{choice.text}' "
                        f"requires unknown quest '{ref}'"
                    )
    return issues
