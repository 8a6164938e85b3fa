"""Context snapshot and world enums for the interaction core.

The snapshot is ephemeral: the game loop rebuilds it once per tick or per
interaction from the world/player providers. Nothing in here mutates state.
"""
from __future__ import annotations
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Mapping, Optional, Tuple, TYPE_CHECKING

import config

if TYPE_CHECKING:
    from ..quest.tracker import QuestView

Position = Tuple[float, float]


class Season(Enum):
    SPRING = "spring"
    SUMMER = "summer"
    AUTUMN = "autumn"
    WINTER = "winter"


class Weather(Enum):
    CLEAR = "clear"
    RAIN = "rain"
    SNOW = "snow"
    FOG = "fog"
    MIST = "mist"
    STORM = "storm"
    CHERRY_BLOSSOMS = "cherry_blossoms"


class TimeOfDay(Enum):
    DAY = "day"
    NIGHT = "night"


class FriendshipTier(Enum):
    """Ordered relationship tiers; declaration order is the comparison order."""
    STRANGER = "stranger"
    ACQUAINTANCE = "acquaintance"
    GOOD_FRIEND = "good_friend"


class MasteryFlag(Enum):
    RECIPE_UNLOCKED = "recipe_unlocked"
    RECIPE_MASTERED = "recipe_mastered"
    DOMAIN_STARTED = "domain_started"
    DOMAIN_MASTERED = "domain_mastered"


_TIER_ORDER = list(FriendshipTier)


def tier_rank(tier: FriendshipTier) -> int:
    """Position of a tier in the friendship enumeration (stranger = 0)."""
    return _TIER_ORDER.index(tier)


def tier_for_points(points: int) -> FriendshipTier:
    """Map accumulated friendship points to a tier."""
    points = max(0, min(config.MAX_FRIENDSHIP_POINTS, points))
    if points >= config.GOOD_FRIEND_THRESHOLD:
        return FriendshipTier.GOOD_FRIEND
    if points >= config.ACQUAINTANCE_THRESHOLD:
        return FriendshipTier.ACQUAINTANCE
    return FriendshipTier.STRANGER


def distance(a: Optional[Position], b: Optional[Position]) -> Optional[float]:
    """Euclidean tile distance, or None when either position is unknown."""
    if a is None or b is None:
        return None
    return math.hypot(a[0] - b[0], a[1] - b[1])


@dataclass(frozen=True)
class MasteryFlags:
    """Recipe and cooking-domain achievements of the player."""
    recipes_unlocked: FrozenSet[str] = frozenset()
    recipes_mastered: FrozenSet[str] = frozenset()
    domains_started: FrozenSet[str] = frozenset()
    domains_mastered: FrozenSet[str] = frozenset()

    def has(self, flag: MasteryFlag, key: str) -> bool:
        if flag is MasteryFlag.RECIPE_UNLOCKED:
            return key in self.recipes_unlocked
        if flag is MasteryFlag.RECIPE_MASTERED:
            return key in self.recipes_mastered
        if flag is MasteryFlag.DOMAIN_STARTED:
            return key in self.domains_started
        if flag is MasteryFlag.DOMAIN_MASTERED:
            return key in self.domains_mastered
        raise TypeError(f"Unknown mastery flag: {flag!r}")

    def any_domain_in_progress(self) -> bool:
        return bool(self.domains_started - self.domains_mastered)


@dataclass(frozen=True)
class ContextSnapshot:
    """Read-only facts the gates are evaluated against."""
    season: Season = Season.SPRING
    weather: Weather = Weather.CLEAR
    time_of_day: TimeOfDay = TimeOfDay.DAY
    quests: Optional["QuestView"] = None
    npc_id: Optional[str] = None
    player_position: Optional[Position] = None
    status_effects: FrozenSet[str] = frozenset()
    friendship_tier: FriendshipTier = FriendshipTier.STRANGER
    friendship_tiers: Mapping[str, FriendshipTier] = field(default_factory=dict)  # every known NPC
    special_friend: bool = False
    mastery: MasteryFlags = field(default_factory=MasteryFlags)
    inventory: Mapping[str, int] = field(default_factory=dict)

    def item_count(self, item_id: str) -> int:
        return int(self.inventory.get(item_id, 0))

    def tier_with(self, npc_id: str) -> FriendshipTier:
        if npc_id == self.npc_id:
            return self.friendship_tier
        return self.friendship_tiers.get(npc_id, FriendshipTier.STRANGER)


def parse_enum(enum_cls, value, default=None):
    """Convert a raw content string to an enum member, tolerating members."""
    if value is None:
        return default
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise ValueError(f"Invalid {enum_cls.__name__} value: {value!r}") from None


__all__ = [
    "Position", "Season", "Weather", "TimeOfDay", "FriendshipTier", "MasteryFlag",
    "MasteryFlags", "ContextSnapshot", "tier_rank", "tier_for_points", "distance",
    "parse_enum",
]
