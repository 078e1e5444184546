from __future__ import annotations

from typing import Any, Iterable, List, Optional

from family_graph.core.context import MergeContext
from family_graph.core.exceptions import FamilyGraphError, InvitationError, MergeExecutionError
from family_graph.identity.uuid_factory import invitation_id as make_invitation_id
from family_graph.registry.entities import FamilyGraph, Invitation, InvitationStatus
from family_graph.resolution.candidates import find_merge_candidates
from family_graph.resolution.executor import MergeReport, as_pair, execute_merges
from family_graph.resolution.models import MergeDialogData, MergePair
from family_graph.resolution.review import default_parent_pairs


class InvitationMergePipeline:
    """
    Orchestrates invitation acceptance -> candidate discovery -> confirmed merge.
    No matching or merge logic lives here.
    """

    def __init__(self, context: MergeContext):
        self.ctx = context
        self.log = context.logger
        self.store = context.store

    # -- helpers ----------------------------------------------------------

    def _invitation(self, invitation_id: str) -> Invitation:
        invitation = self.store.get_invitation(invitation_id)
        if invitation is None:
            raise InvitationError(f"Invitation not found: {invitation_id!r}")
        return invitation

    def _load_tree(self, owner_id: str) -> FamilyGraph:
        return FamilyGraph.from_members(self.store.list_members([owner_id]), owner_id=owner_id)

    @staticmethod
    def _display_name(graph: FamilyGraph, user_id: str) -> str:
        me = graph.find_linked(user_id)
        return me.name if me is not None and me.name else user_id

    # -- operations -------------------------------------------------------

    def invite(self, sender_id: str, receiver_id: str, member_id: str) -> Invitation:
        """Create (or return the existing) invitation binding ``member_id`` to the receiver."""
        inv_id = make_invitation_id(sender_id, receiver_id, member_id)
        existing = self.store.get_invitation(inv_id)
        if existing is not None:
            return existing

        bridge = self.store.get_member(member_id)
        if bridge is None or bridge.owner_id != sender_id:
            raise InvitationError(f"Member {member_id!r} is not in the tree of {sender_id!r}")
        if bridge.is_tombstone:
            raise InvitationError(f"Member {member_id!r} was merged into {bridge.merged_into!r}")

        invitation = Invitation(inv_id, sender_id, receiver_id, member_id)
        self.store.save_invitation(invitation)
        self.log.info("Invitation %s: %s -> %s (bridge=%s)", inv_id, sender_id, receiver_id, member_id)
        return invitation

    def accept(self, invitation_id: str, receiver_name: Optional[str] = None) -> Optional[MergeDialogData]:
        """
        Accept an invitation and propose merges between the two trees.
        Returns None when there is nothing to review.
        """
        invitation = self._invitation(invitation_id)
        if invitation.status is InvitationStatus.REJECTED:
            raise InvitationError(f"Invitation {invitation_id!r} was rejected")

        self.log.info("Accepting invitation %s (bridge=%s)", invitation.id, invitation.member_id)
        self.store.update_invitation_status(invitation.id, InvitationStatus.ACCEPTED)

        bridge = self.store.get_member(invitation.member_id)
        if bridge is None:
            raise InvitationError(f"Bridge member {invitation.member_id!r} no longer exists")
        if bridge.linked_user_id != invitation.receiver_id:
            self.store.update_member(bridge.id, {"linked_user_id": invitation.receiver_id})

        self.ctx.sender_id = invitation.sender_id
        self.ctx.receiver_id = invitation.receiver_id

        sender = self._load_tree(invitation.sender_id)
        receiver = self._load_tree(invitation.receiver_id)
        result = find_merge_candidates(sender, receiver, bridge.id, receiver_user_id=invitation.receiver_id)

        self.ctx.stats["parent_merges"] = len(result.parent_merges)
        self.ctx.stats["child_suggestions"] = len(result.child_suggestions)
        if result.is_empty:
            self.log.info("Invitation %s: nothing to merge", invitation.id)
            return None

        return MergeDialogData.from_result(
            result,
            sender_name=self._display_name(sender, invitation.sender_id),
            receiver_name=receiver_name or self._display_name(receiver, invitation.receiver_id),
        )

    def reject(self, invitation_id: str) -> None:
        invitation = self._invitation(invitation_id)
        self.store.update_invitation_status(invitation.id, InvitationStatus.REJECTED)
        self.log.info("Rejected invitation %s", invitation.id)

    def confirm(
        self,
        dialog: MergeDialogData,
        child_pairs: Iterable[Any],
        parent_pairs: Optional[Iterable[Any]] = None,
    ) -> MergeReport:
        """Apply the reviewed merges to the combined sender + receiver arena."""
        if not self.ctx.sender_id or not self.ctx.receiver_id:
            raise MergeExecutionError("confirm() called before accept()")

        pairs: List[MergePair] = (
            default_parent_pairs(dialog) if parent_pairs is None else [as_pair(p) for p in parent_pairs]
        )
        pairs.extend(as_pair(p) for p in child_pairs)

        self.log.info("Pipeline confirm: %d pairs", len(pairs))
        try:
            graph = FamilyGraph.combine(
                self._load_tree(self.ctx.sender_id),
                self._load_tree(self.ctx.receiver_id),
                owner_id=self.ctx.sender_id,
            )
            report = execute_merges(graph, pairs, store=self.store)
        except FamilyGraphError:
            raise
        except Exception as exc:
            self.log.exception("Merge execution failed")
            raise MergeExecutionError(str(exc)) from exc

        self.ctx.stats["applied"] = len(report.applied)
        self.ctx.stats["skipped"] = len(report.skipped)
        self.ctx.stats["failed"] = len(report.failed)
        self.ctx.errors.extend(f"{o.pair.source_id}<-{o.pair.target_id}: {o.detail}" for o in report.failed)
        self.ctx.errors.extend(report.errors)

        if report.is_partial:
            self.log.warning("Merge partially applied: %d pair(s) failed", len(report.failed))
        else:
            self.log.info("Pipeline completed successfully")
        return report
