"""
Merge candidate discovery after an invitation is accepted.

Input:  the sender's tree, the receiver's tree, and the bridge member (the
        placeholder in the sender's tree now linked to the receiver).
Output: ``MergeResult`` with parent/grandparent merges and per-couple child
        suggestions. An empty result means there is nothing to review.
"""

from __future__ import annotations

from typing import Optional

from family_graph.logging import get_logger
from family_graph.registry.entities import FamilyGraph
from family_graph.resolution.matching import ProposalBuilder
from family_graph.resolution.models import MergeResult
from family_graph.scoring.similarity import ScoringConfig

log = get_logger("resolution.candidates")


def find_merge_candidates(
    sender: FamilyGraph,
    receiver: FamilyGraph,
    bridge_id: str,
    receiver_user_id: Optional[str] = None,
    config: Optional[ScoringConfig] = None,
) -> MergeResult:
    """
    Propose merges between two trees anchored at the bridge member.

    The sender's side is the ``source`` side of every child suggestion.
    Parent and grandparent candidates keep the earlier-created record as the
    survivor when creation times are known.
    """
    receiver_user_id = receiver_user_id or receiver.owner_id

    bridge = sender.resolve(bridge_id)
    if bridge is None:
        log.warning("Bridge member %s not found in sender tree %s", bridge_id, sender.owner_id)
        return MergeResult()

    receiver_self = receiver.find_linked(receiver_user_id)
    if receiver_self is None:
        log.warning(
            "Receiver %s has no self member in tree %s; nothing to merge",
            receiver_user_id, receiver.owner_id,
        )
        return MergeResult()

    log.info(
        "find_merge_candidates: sender=%s (%d members) receiver=%s (%d members) bridge=%s self=%s",
        sender.owner_id, len(sender), receiver.owner_id, len(receiver), bridge.id, receiver_self.id,
    )

    builder = ProposalBuilder(sender, receiver, config, prefer_earliest=True)
    # Bridge and self are the same person and are already handled by the link.
    builder.consume(bridge.id, receiver_self.id)
    builder.expand_ancestors(bridge, receiver_self)

    result = builder.result
    log.info(
        "Merge candidates: parent_merges=%d couple_groups=%d child_suggestions=%d",
        len(result.parent_merges), len(result.couple_groups), len(result.child_suggestions),
    )
    return result
