"""NPC behavior state machines and registry."""

from .models import (
    Direction, ProximityTrigger, StateDefinition, BehaviorState,
    FriendshipConfig, NPCDefinition,
)
from .behavior import BehaviorMachine
from .loader import load_npc_definitions, load_npcs_dir, parse_npcs, validate_behavior_table
from .registry import NPCRegistry, INTERACT_EVENT

__all__ = [
    'Direction', 'ProximityTrigger', 'StateDefinition', 'BehaviorState',
    'FriendshipConfig', 'NPCDefinition',
    'BehaviorMachine',
    'load_npc_definitions', 'load_npcs_dir', 'parse_npcs', 'validate_behavior_table',
    'NPCRegistry', 'INTERACT_EVENT',
]
