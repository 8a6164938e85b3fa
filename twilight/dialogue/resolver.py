"""Dialogue node resolution.

resolve() scans a script in order and returns the first node whose id matches
and whose gates all pass. Order is the tie-break: authors put the most
restrictive variant of a beat first and the unconditional fallback last.
"""
import logging
from typing import Iterable, List, Optional

from ..core.actions import ActionSink
from ..core.dsl import check_all
from ..core.state import ContextSnapshot
from .model import (
    Action, AdjustFriendship, AdvanceQuest, CompleteQuest, DialogueNode, EmitEvent,
    GrantItem, ResolvedNode, Response, SetQuestData, SetQuestStage, StartQuest,
)

logger = logging.getLogger(__name__)


def resolve(script: Iterable[DialogueNode], logical_id: str, ctx: ContextSnapshot) -> Optional[ResolvedNode]:
    """Pick the node to display for a logical id.

    Args:
        script: The NPC's ordered dialogue nodes
        logical_id: Id shared by the variants of one conversational beat
        ctx: Context snapshot for this interaction

    Returns:
        ResolvedNode for the first matching variant, or None if nothing matches
    """
    for node in script:
        if node.id != logical_id:
            continue
        if check_all(node.gates, ctx):
            return ResolvedNode(
                node=node,
                text=select_text(node, ctx),
                responses=available_responses(node, ctx),
            )
    return None


def select_text(node: DialogueNode, ctx: ContextSnapshot) -> str:
    """Surface text: weather > time of day > season > base text."""
    if ctx.weather in node.weather_text:
        return node.weather_text[ctx.weather]
    if ctx.time_of_day in node.time_of_day_text:
        return node.time_of_day_text[ctx.time_of_day]
    if ctx.season in node.seasonal_text:
        return node.seasonal_text[ctx.season]
    return node.text


def available_responses(node: DialogueNode, ctx: ContextSnapshot) -> List[Response]:
    """Responses of a node whose own gates pass, in declared order."""
    return [r for r in node.responses if check_all(r.gates, ctx)]


def apply_actions(
    response: Response,
    tracker,
    sink: Optional[ActionSink] = None,
    npc_id: Optional[str] = None,
) -> List[Action]:
    """Apply a response's actions synchronously, in declared order.

    Quest actions go through the tracker; item, friendship and event actions
    go through the sink. Failed quest actions are logged by the tracker and
    skipped.

    Returns:
        The actions that took effect
    """
    sink = sink if sink is not None else tracker.sink
    applied: List[Action] = []
    for action in response.actions:
        if _apply_action(action, tracker, sink, npc_id):
            applied.append(action)
    return applied


def _apply_action(action: Action, tracker, sink: ActionSink, npc_id: Optional[str]) -> bool:
    if isinstance(action, StartQuest):
        return tracker.start_chain(action.quest, action.metadata)

    elif isinstance(action, SetQuestStage):
        return tracker.set_stage(action.quest, action.stage)

    elif isinstance(action, AdvanceQuest):
        return tracker.advance_to_stage(action.quest, action.stage)

    elif isinstance(action, CompleteQuest):
        return tracker.complete_chain(action.quest)

    elif isinstance(action, SetQuestData):
        return tracker.set_metadata(action.quest, action.key, action.value)

    elif isinstance(action, GrantItem):
        sink.grant_item(action.item, action.qty)
        return True

    elif isinstance(action, AdjustFriendship):
        sink.adjust_friendship(npc_id, action.points)
        return True

    elif isinstance(action, EmitEvent):
        payload = dict(action.payload or {})
        if npc_id is not None:
            payload.setdefault("npc_id", npc_id)
        sink.emit_event(action.name, payload)
        return True

    raise TypeError(f"Unknown dialogue action: {type(action).__name__}")
