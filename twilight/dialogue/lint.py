"""Content lint for dialogue scripts.

The resolver only guarantees "first match wins"; it never checks that the
variants of a logical id are mutually exclusive. This lint reports the common
authoring mistakes without changing runtime behavior.
"""

from collections import OrderedDict
from typing import Dict, List, Optional

from ..core.dsl import referenced_quests
from ..quest.model import QuestDefinition
from .model import AdvanceQuest, DialogueNode, SetQuestStage


def lint_script(
    script: List[DialogueNode],
    quests: Optional[Dict[str, QuestDefinition]] = None,
    npc_id: str = "?",
) -> List[str]:
    """Report shadowed variants, dangling next_ids and unknown quest refs.

    Args:
        script: Ordered dialogue nodes of one NPC
        quests: Known quest definitions by id (skip quest checks if None)
        npc_id: Name used in messages

    Returns:
        List of issue messages (empty if clean)
    """
    issues = []
    variants: Dict[str, List[DialogueNode]] = OrderedDict()
    for node in script:
        variants.setdefault(node.id, []).append(node)

    for logical_id, nodes in variants.items():
        seen_gates = []
        for position, node in enumerate(nodes):
            later = len(nodes) - position - 1
            if not node.gates and later:
                issues.append(
                    f"{npc_id}: variant {position + 1} of '{logical_id}' is unconditional "
                    f"and shadows {later} later variant(s)"
                )
            gate_set = frozenset(node.gates)
            if node.gates and gate_set in seen_gates:
                issues.append(
                    f"{npc_id}: variant {position + 1} of '{logical_id}' repeats the gates "
                    f"of an earlier variant and is unreachable"
                )
            seen_gates.append(gate_set)

    for node in script:
        for response in node.responses:
            if response.next_id and response.next_id not in variants:
                issues.append(
                    f"{npc_id}: response '{response.text}' on '{node.id}' points to "
                    f"unknown id '{response.next_id}'"
                )

    if quests is not None:
        issues.extend(_lint_quest_refs(script, quests, npc_id))

    return issues


def _lint_quest_refs(script, quests, npc_id) -> List[str]:
    issues = []
    for node in script:
        refs = referenced_quests(node.gates)
        for response in node.responses:
            refs |= referenced_quests(response.gates)
            refs |= {a.quest for a in response.actions if hasattr(a, "quest")}
            for action in response.actions:
                definition = quests.get(getattr(action, "quest", None))
                if definition is None:
                    continue
                if isinstance(action, AdvanceQuest) and definition.get_stage(action.stage) is None:
                    issues.append(f"{npc_id}: '{node.id}' advances '{action.quest}' to unknown stage '{action.stage}'")
                if isinstance(action, SetQuestStage) and definition.stage_by_number(action.stage) is None:
                    issues.append(f"{npc_id}: '{node.id}' sets '{action.quest}' to unknown stage {action.stage}")
        for quest in sorted(refs - set(quests)):
            issues.append(f"{npc_id}: '{node.id}' references unknown quest '{quest}'")
    return issues
