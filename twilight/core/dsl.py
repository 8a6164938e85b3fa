"""Declarative gate evaluation for dialogue nodes and responses.

Each gate kind is its own frozen dataclass, so a node's conditions form a
tagged list rather than a bag of optional keys. Supported kinds:
- QuestStage: chain started and stage within [min_stage, max_stage]
- QuestNotStarted / QuestNotCompleted: retire content once a quest moves on
- QuestCompleted: chain has been completed
- FriendshipRange: friendship tier within [min_tier, max_tier]
- NpcFriendship: at least a tier with a named NPC (not only the addressed one)
- SpecialFriend: special friend status with the addressed NPC
- StatusEffect: transient player effect (e.g. beast tongue) active or not
- Mastery: recipe/domain achievement flag set or not
- AnyDomainInProgress: some cooking domain started but not yet mastered
- HasItem: inventory count
- SeasonIn / WeatherIn / TimeOfDayIs: world conditions

A node's full gate is the AND of all its gates.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional, Union

from .state import (
    ContextSnapshot, FriendshipTier, MasteryFlag, Season, TimeOfDay, Weather, tier_rank,
)


@dataclass(frozen=True)
class QuestStage:
    quest: str
    min_stage: Optional[int] = None
    max_stage: Optional[int] = None


@dataclass(frozen=True)
class QuestNotStarted:
    quest: str


@dataclass(frozen=True)
class QuestNotCompleted:
    quest: str


@dataclass(frozen=True)
class QuestCompleted:
    quest: str


@dataclass(frozen=True)
class FriendshipRange:
    min_tier: Optional[FriendshipTier] = None
    max_tier: Optional[FriendshipTier] = None


@dataclass(frozen=True)
class NpcFriendship:
    npc_id: str
    min_tier: FriendshipTier


@dataclass(frozen=True)
class SpecialFriend:
    required: bool = True


@dataclass(frozen=True)
class StatusEffect:
    effect: str
    active: bool = True


@dataclass(frozen=True)
class Mastery:
    flag: MasteryFlag
    key: str
    present: bool = True


@dataclass(frozen=True)
class AnyDomainInProgress:
    present: bool = False


@dataclass(frozen=True)
class HasItem:
    item: str
    qty: int = 1


@dataclass(frozen=True)
class SeasonIn:
    seasons: FrozenSet[Season]


@dataclass(frozen=True)
class WeatherIn:
    weathers: FrozenSet[Weather]


@dataclass(frozen=True)
class TimeOfDayIs:
    time_of_day: TimeOfDay


Gate = Union[
    QuestStage, QuestNotStarted, QuestNotCompleted, QuestCompleted,
    FriendshipRange, NpcFriendship, SpecialFriend, StatusEffect, Mastery,
    AnyDomainInProgress, HasItem, SeasonIn, WeatherIn, TimeOfDayIs,
]


def _stage_of(ctx: ContextSnapshot, quest: str) -> int:
    if ctx.quests is None or not ctx.quests.is_chain_started(quest):
        return 0
    return ctx.quests.get_stage_number(quest)


def _started(ctx: ContextSnapshot, quest: str) -> bool:
    return ctx.quests is not None and ctx.quests.is_chain_started(quest)


def _completed(ctx: ContextSnapshot, quest: str) -> bool:
    return ctx.quests is not None and ctx.quests.is_chain_completed(quest)


def check(gate: Gate, ctx: ContextSnapshot) -> bool:
    """Check whether a single gate passes against the context.

    Args:
        gate: The gate to evaluate
        ctx: Context snapshot for the current interaction

    Returns:
        True if the gate passes, False otherwise

    Raises:
        TypeError: If the gate is not one of the known kinds
    """
    if isinstance(gate, QuestStage):
        if not _started(ctx, gate.quest):
            return False
        stage = _stage_of(ctx, gate.quest)
        min_stage = 1 if gate.min_stage is None else gate.min_stage
        if stage < min_stage:
            return False
        return gate.max_stage is None or stage <= gate.max_stage

    elif isinstance(gate, QuestNotStarted):
        return not _started(ctx, gate.quest)

    elif isinstance(gate, QuestNotCompleted):
        return not _completed(ctx, gate.quest)

    elif isinstance(gate, QuestCompleted):
        return _completed(ctx, gate.quest)

    elif isinstance(gate, FriendshipRange):
        rank = tier_rank(ctx.friendship_tier)
        if gate.min_tier is not None and rank < tier_rank(gate.min_tier):
            return False
        if gate.max_tier is not None and rank > tier_rank(gate.max_tier):
            return False
        return True

    elif isinstance(gate, NpcFriendship):
        return tier_rank(ctx.tier_with(gate.npc_id)) >= tier_rank(gate.min_tier)

    elif isinstance(gate, SpecialFriend):
        return ctx.special_friend == gate.required

    elif isinstance(gate, StatusEffect):
        return (gate.effect in ctx.status_effects) == gate.active

    elif isinstance(gate, Mastery):
        return ctx.mastery.has(gate.flag, gate.key) == gate.present

    elif isinstance(gate, AnyDomainInProgress):
        return ctx.mastery.any_domain_in_progress() == gate.present

    elif isinstance(gate, HasItem):
        return ctx.item_count(gate.item) >= gate.qty

    elif isinstance(gate, SeasonIn):
        return ctx.season in gate.seasons

    elif isinstance(gate, WeatherIn):
        return ctx.weather in gate.weathers

    elif isinstance(gate, TimeOfDayIs):
        return ctx.time_of_day == gate.time_of_day

    raise TypeError(f"Unknown gate kind: {type(gate).__name__}")


def check_all(gates: Iterable[Gate], ctx: ContextSnapshot) -> bool:
    """Check that every gate in the list passes (empty list passes)."""
    return all(check(gate, ctx) for gate in gates)


def referenced_quests(gates: Iterable[Gate]) -> set:
    """Quest ids mentioned by a list of gates (used by content lint)."""
    quests = set()
    for gate in gates:
        quest = getattr(gate, "quest", None)
        if quest:
            quests.add(quest)
    return quests
