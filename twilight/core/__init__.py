"""Shared building blocks: context snapshot, gates, actions, validation, persistence."""

from .state import (
    Position, Season, Weather, TimeOfDay, FriendshipTier, MasteryFlag,
    MasteryFlags, ContextSnapshot, tier_rank, tier_for_points, distance, parse_enum,
)
from .dsl import check, check_all
from .actions import ActionSink, RecordingActionSink, GameEvent
from .persistence import SaveError, SAVE_VERSION, save_document, load_document

__all__ = [
    'Position', 'Season', 'Weather', 'TimeOfDay', 'FriendshipTier', 'MasteryFlag',
    'MasteryFlags', 'ContextSnapshot', 'tier_rank', 'tier_for_points', 'distance', 'parse_enum',
    'check', 'check_all',
    'ActionSink', 'RecordingActionSink', 'GameEvent',
    'SaveError', 'SAVE_VERSION', 'save_document', 'load_document',
]
