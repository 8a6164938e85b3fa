"""Dialogue resolution package."""

from .model import (
    DialogueNode, Response, ResolvedNode, DialogueScript,
    StartQuest, SetQuestStage, AdvanceQuest, CompleteQuest, SetQuestData,
    GrantItem, AdjustFriendship, EmitEvent,
)
from .resolver import resolve, select_text, available_responses, apply_actions
from .session import DialogueSession
from .loader import load_dialogue_file, parse_script, parse_gate, parse_action
from .lint import lint_script

__all__ = [
    'DialogueNode', 'Response', 'ResolvedNode', 'DialogueScript',
    'StartQuest', 'SetQuestStage', 'AdvanceQuest', 'CompleteQuest', 'SetQuestData',
    'GrantItem', 'AdjustFriendship', 'EmitEvent',
    'resolve', 'select_text', 'available_responses', 'apply_actions',
    'DialogueSession',
    'load_dialogue_file', 'parse_script', 'parse_gate', 'parse_action',
    'lint_script',
]
