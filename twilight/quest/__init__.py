"""Quest/event-chain package."""

from .model import (
    QuestDefinition, StageDefinition, Reward, ChainProgress,
    ChainChoice, ChainDialogue, ChainObjective, ChainTrigger,
)
from .tracker import ChainTracker, ChainStateError, QuestView
from .handlers import HandlerRegistry
from .loader import load_quest_definitions, load_quests_dir, parse_quests, validate_quest_structure

__all__ = [
    'QuestDefinition', 'StageDefinition', 'Reward', 'ChainProgress',
    'ChainChoice', 'ChainDialogue', 'ChainObjective', 'ChainTrigger',
    'ChainTracker', 'ChainStateError', 'QuestView',
    'HandlerRegistry',
    'load_quest_definitions', 'load_quests_dir', 'parse_quests', 'validate_quest_structure',
]
