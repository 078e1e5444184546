"""
Merge execution.

Applies confirmed ``(source, target)`` pairs to a graph arena:

- the target's live account binding (and empty profile fields) move to the
  source
- every reference to the target is redirected to the source
- the target becomes a tombstone (``merged_into = source``); it is never
  deleted, so ids handed out earlier (pending invitations etc.) still resolve

Pairs are independent. Each one re-checks current state first, so running
the same list again after a partial failure converges instead of
duplicating work.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set

from family_graph.core.exceptions import MemberNotFoundError, PersistenceError
from family_graph.logging import get_logger
from family_graph.registry.entities import FamilyGraph, FamilyMember, Relation, RelationKind
from family_graph.resolution.models import ChildMergeSuggestion, MergeCandidate, MergePair
from family_graph.store.records import member_to_record

log = get_logger("resolution.executor")


class MergeStatus(str, Enum):
    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"
    NOT_FOUND = "not_found"
    SELF_MERGE = "self_merge"
    CONFLICT = "conflict"
    GENDER_MISMATCH = "gender_mismatch"
    FAILED = "failed"


SKIPPED_STATUSES = {
    MergeStatus.ALREADY_APPLIED,
    MergeStatus.NOT_FOUND,
    MergeStatus.SELF_MERGE,
    MergeStatus.CONFLICT,
    MergeStatus.GENDER_MISMATCH,
}


@dataclass(slots=True)
class MergeOutcome:
    pair: MergePair
    status: MergeStatus
    detail: str = ""
    changed_ids: List[str] = field(default_factory=list)


@dataclass(slots=True)
class MergeReport:
    outcomes: List[MergeOutcome] = field(default_factory=list)
    symmetry_fixes: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def applied(self) -> List[MergeOutcome]:
        return [o for o in self.outcomes if o.status is MergeStatus.APPLIED]

    @property
    def skipped(self) -> List[MergeOutcome]:
        return [o for o in self.outcomes if o.status in SKIPPED_STATUSES]

    @property
    def failed(self) -> List[MergeOutcome]:
        return [o for o in self.outcomes if o.status is MergeStatus.FAILED]

    @property
    def ok(self) -> bool:
        return not self.failed and not self.errors

    @property
    def is_partial(self) -> bool:
        """Some pairs failed to persist while others went through."""
        return bool(self.failed) and len(self.failed) < len(self.outcomes)


# ---------------------------------------------------------------------------
# Input coercion
# ---------------------------------------------------------------------------

def as_pair(item: Any) -> MergePair:
    if isinstance(item, MergePair):
        return item
    if isinstance(item, (MergeCandidate, ChildMergeSuggestion)):
        return item.as_pair()
    if isinstance(item, dict):
        return MergePair(str(item["source_id"]), str(item["target_id"]))
    source_id, target_id = item
    return MergePair(str(source_id), str(target_id))


# ---------------------------------------------------------------------------
# Single pair
# ---------------------------------------------------------------------------

def _references(member: FamilyMember, member_id: str) -> bool:
    return (
        member_id in member.parent_ids
        or member_id in member.children_ids
        or member.spouse_id == member_id
    )


def _check(graph: FamilyGraph, pair: MergePair) -> Optional[MergeOutcome]:
    """Return a no-write outcome, or None when the pair should be applied."""
    target = graph.get_member(pair.target_id)
    if target is None or graph.get_member(pair.source_id) is None:
        return MergeOutcome(pair, MergeStatus.NOT_FOUND, "member missing")

    source = graph.resolve(pair.source_id)
    if source is None:
        return MergeOutcome(pair, MergeStatus.NOT_FOUND, "source tombstone chain is dangling")

    if target.is_tombstone:
        absorbed_into = graph.resolve(target.id)
        if absorbed_into is not None and absorbed_into.id == source.id:
            return MergeOutcome(pair, MergeStatus.ALREADY_APPLIED)
        return MergeOutcome(pair, MergeStatus.CONFLICT, f"target already merged into {target.merged_into}")

    if source.id == target.id:
        return MergeOutcome(pair, MergeStatus.SELF_MERGE)

    if source.gender is not target.gender:
        return MergeOutcome(
            pair,
            MergeStatus.GENDER_MISMATCH,
            f"{source.gender.value} vs {target.gender.value}",
        )
    return None


def _carry_over(source: FamilyMember, target: FamilyMember) -> bool:
    changed = False
    if target.linked_user_id and not source.linked_user_id:
        source.linked_user_id = target.linked_user_id
        changed = True
    if not source.name and target.name:
        source.name = target.name
        changed = True
    if not source.photo_url and target.photo_url:
        source.photo_url = target.photo_url
        changed = True
    if source.birth_year is None and target.birth_year is not None:
        source.birth_year = target.birth_year
        changed = True
    if source.death_year is None and target.death_year is not None:
        source.death_year = target.death_year
        changed = True
    return changed


def _fold_relations(graph: FamilyGraph, source: FamilyMember, target: FamilyMember) -> bool:
    changed = False
    for relation in list(target.relations()):
        other = graph.resolve(relation.other_id)
        if other is None or other.id in (source.id, target.id):
            continue
        if relation.kind is RelationKind.SPOUSE and graph.resolve(source.spouse_id) is not None:
            # The survivor keeps its own partner
            continue
        if source.add_relation(Relation(relation.kind, other.id)):
            changed = True
    return changed


def apply_merge(graph: FamilyGraph, pair: MergePair) -> MergeOutcome:
    """Apply one pair in memory. Never raises for stale or invalid pairs."""
    skipped = _check(graph, pair)
    if skipped is not None:
        return skipped

    source = graph.resolve(pair.source_id)
    if source is None:
        raise MemberNotFoundError(pair.source_id)
    target = graph.require_member(pair.target_id)
    changed: List[str] = []

    if _carry_over(source, target) | _fold_relations(graph, source, target):
        changed.append(source.id)

    for member in graph.live_members():
        if member is target:
            continue
        if member.replace_reference(target.id, source.id) and member.id not in changed:
            changed.append(member.id)

    target.merged_into = source.id
    changed.append(target.id)

    log.info(
        "Merged %s (%s) <- %s (%s); %d members rewritten",
        source.id, source.name, target.id, target.name, len(changed) - 1,
    )
    return MergeOutcome(pair, MergeStatus.APPLIED, changed_ids=changed)


# ---------------------------------------------------------------------------
# Snapshot / restore (per pair rollback on persistence failure)
# ---------------------------------------------------------------------------

def _snapshot(graph: FamilyGraph, pair: MergePair) -> Dict[str, FamilyMember]:
    source = graph.resolve(pair.source_id)
    ids: Set[str] = {pair.target_id}
    if source is not None:
        ids.add(source.id)
    ids.update(m.id for m in graph.live_members() if _references(m, pair.target_id))
    return {mid: copy.deepcopy(graph.members[mid]) for mid in ids if mid in graph.members}


def _restore(graph: FamilyGraph, snapshot: Dict[str, FamilyMember]) -> None:
    # Restore in place so callers holding member objects see the rollback.
    for mid, saved in snapshot.items():
        current = graph.members.get(mid)
        if current is None:
            graph.members[mid] = saved
            continue
        for f in fields(saved):
            setattr(current, f.name, getattr(saved, f.name))


def _persist(store: Any, graph: FamilyGraph, outcome: MergeOutcome) -> None:
    target_id = outcome.pair.target_id
    for mid in outcome.changed_ids:
        if mid == target_id:
            continue
        store.update_member(mid, member_to_record(graph.members[mid]))
    store.tombstone_member(target_id, graph.members[target_id].merged_into)


def _write_back(store: Any, graph: FamilyGraph, member_ids: Iterable[str], report: MergeReport) -> None:
    """Push restored rows over whatever a failed pair managed to write."""
    for mid in member_ids:
        try:
            store.update_member(mid, member_to_record(graph.members[mid]))
        except PersistenceError as exc:
            log.error("Rolling back stored row %s failed: %s", mid, exc)
            report.errors.append(f"{mid}: {exc}")


# ---------------------------------------------------------------------------
# Spouse symmetry
# ---------------------------------------------------------------------------

def enforce_spouse_symmetry(graph: FamilyGraph, member_ids: Iterable[str]) -> List[str]:
    """
    Make spouse links of the given members symmetric. Returns ids whose
    ``spouse_id`` changed.
    """
    fixed: List[str] = []

    def mark(mid: str) -> None:
        if mid not in fixed:
            fixed.append(mid)

    for mid in member_ids:
        member = graph.get_member(mid)
        if member is None or member.is_tombstone or member.spouse_id is None:
            continue

        spouse = graph.resolve(member.spouse_id)
        if spouse is None or spouse.id == member.id:
            member.spouse_id = None
            mark(member.id)
            continue
        if spouse.id != member.spouse_id:
            member.spouse_id = spouse.id
            mark(member.id)

        partner_of_spouse = graph.resolve(spouse.spouse_id)
        if partner_of_spouse is None:
            spouse.spouse_id = member.id
            mark(spouse.id)
        elif partner_of_spouse.id != member.id:
            log.warning(
                "Dropping spouse link %s -> %s: partner is married to %s",
                member.id, spouse.id, partner_of_spouse.id,
            )
            member.spouse_id = None
            mark(member.id)
        elif spouse.spouse_id != member.id:
            spouse.spouse_id = member.id
            mark(spouse.id)
    return fixed


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def execute_merges(graph: FamilyGraph, pairs: Iterable[Any], *, store: Any = None) -> MergeReport:
    """
    Apply pairs in input order.

    With a ``store`` every applied pair is persisted immediately; when the
    store raises ``PersistenceError`` that pair is rolled back in memory, the
    rows it already wrote are overwritten with the restored state, and the
    pair is reported as failed while the remaining pairs still run.
    """
    report = MergeReport()
    touched: List[str] = []

    for item in pairs:
        pair = as_pair(item)
        snapshot = _snapshot(graph, pair) if store is not None else {}
        outcome = apply_merge(graph, pair)

        if outcome.status is MergeStatus.APPLIED and store is not None:
            try:
                _persist(store, graph, outcome)
            except PersistenceError as exc:
                log.error("Persisting merge %s <- %s failed: %s", pair.source_id, pair.target_id, exc)
                _restore(graph, snapshot)
                _write_back(store, graph, outcome.changed_ids, report)
                outcome = MergeOutcome(pair, MergeStatus.FAILED, str(exc))

        if outcome.status is MergeStatus.APPLIED:
            touched.extend(i for i in outcome.changed_ids if i not in touched)
        elif outcome.status is not MergeStatus.FAILED:
            log.info("Skipped merge %s <- %s: %s %s", pair.source_id, pair.target_id, outcome.status.value, outcome.detail)
        report.outcomes.append(outcome)

    report.symmetry_fixes = enforce_spouse_symmetry(graph, touched)
    if store is not None:
        for mid in report.symmetry_fixes:
            try:
                store.update_member(mid, {"spouse_id": graph.members[mid].spouse_id})
            except PersistenceError as exc:
                log.error("Persisting spouse fix for %s failed: %s", mid, exc)
                report.errors.append(f"{mid}: {exc}")

    log.info(
        "execute_merges: applied=%d skipped=%d failed=%d spouse_fixes=%d",
        len(report.applied), len(report.skipped), len(report.failed), len(report.symmetry_fixes),
    )
    return report
