"""
Interactive merge mode.

The selection is an explicit immutable value; every user gesture is a pure
function ``(state, graph, ...) -> Transition``. ``MergeModeController`` keeps
the current value for UI callbacks.

    inactive --long press--> selecting [id]
    selecting --tap primary--> inactive (cancel)
    selecting --tap selected--> selecting (removed)
    selecting --tap same gender--> selecting (added)
    selecting --tap other gender--> selecting (unchanged, rejected)
    selecting --confirm (>= 2 selected)--> inactive, merges applied
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from family_graph.logging import get_logger
from family_graph.registry.entities import FamilyGraph, FamilyMember
from family_graph.resolution.executor import MergeReport, as_pair, execute_merges
from family_graph.resolution.matching import ProposalBuilder, couple_label
from family_graph.resolution.models import UNNAMED, MergePair, MergeRelationship, MergeResult
from family_graph.scoring.similarity import ScoringConfig

log = get_logger("resolution.selector")


class SelectionStatus(str, Enum):
    INACTIVE = "inactive"
    SELECTING = "selecting"


class Notice(str, Enum):
    STARTED = "started"
    ADDED = "added"
    REMOVED = "removed"
    CANCELLED = "cancelled"
    REJECTED_GENDER = "rejected_gender"
    REJECTED_MISSING = "rejected_missing"
    IGNORED = "ignored"
    CONFIRMED = "confirmed"


@dataclass(frozen=True, slots=True)
class MergedProfile:
    primary_id: str
    merged_ids: Tuple[str, ...] = ()
    merged_names: Tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class MergeSelection:
    status: SelectionStatus = SelectionStatus.INACTIVE
    selected_ids: Tuple[str, ...] = ()
    merged_profiles: Dict[str, MergedProfile] = field(default_factory=dict)

    @property
    def is_active(self) -> bool:
        return self.status is SelectionStatus.SELECTING

    @property
    def primary_id(self) -> Optional[str]:
        return self.selected_ids[0] if self.selected_ids else None

    @property
    def can_merge(self) -> bool:
        return self.is_active and len(self.selected_ids) >= 2


@dataclass(frozen=True, slots=True)
class Transition:
    state: MergeSelection
    notice: Notice
    report: Optional[MergeReport] = None


def _live(graph: FamilyGraph, member_id: str) -> Optional[FamilyMember]:
    member = graph.get_member(member_id)
    if member is None or member.is_tombstone:
        return None
    return member


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------

def long_press(state: MergeSelection, graph: FamilyGraph, member_id: str) -> Transition:
    if _live(graph, member_id) is None:
        return Transition(state, Notice.REJECTED_MISSING)
    return Transition(
        replace(state, status=SelectionStatus.SELECTING, selected_ids=(member_id,)),
        Notice.STARTED,
    )


def cancel(state: MergeSelection) -> Transition:
    return Transition(
        replace(state, status=SelectionStatus.INACTIVE, selected_ids=()),
        Notice.CANCELLED,
    )


def tap(state: MergeSelection, graph: FamilyGraph, member_id: str) -> Transition:
    if not state.is_active:
        return Transition(state, Notice.IGNORED)

    if member_id == state.primary_id:
        return cancel(state)

    if member_id in state.selected_ids:
        remaining = tuple(i for i in state.selected_ids if i != member_id)
        return Transition(replace(state, selected_ids=remaining), Notice.REMOVED)

    member = _live(graph, member_id)
    if member is None:
        return Transition(state, Notice.REJECTED_MISSING)

    primary = _live(graph, state.primary_id)
    if primary is None:
        # Nothing left to compare genders against
        return Transition(cancel(state).state, Notice.REJECTED_MISSING)
    if primary.gender is not member.gender:
        return Transition(state, Notice.REJECTED_GENDER)

    return Transition(replace(state, selected_ids=state.selected_ids + (member_id,)), Notice.ADDED)


# ---------------------------------------------------------------------------
# Proposals for the current selection
# ---------------------------------------------------------------------------

def compute_merge_data(
    state: MergeSelection,
    graph: FamilyGraph,
    config: Optional[ScoringConfig] = None,
) -> MergeResult:
    """
    Proposals implied by the selection: one ``selected`` candidate per
    secondary member, their children, and their parents / grandparents.
    The primary is always the survivor.
    """
    builder = ProposalBuilder(graph, graph, config, prefer_earliest=False)
    if not state.can_merge:
        return builder.result

    primary = graph.resolve(state.primary_id)
    if primary is None:
        log.warning("Primary %s of merge selection is gone", state.primary_id)
        return builder.result

    for other_id in state.selected_ids[1:]:
        other = graph.resolve(other_id)
        if other is None or other.id == primary.id:
            continue

        builder.begin_scope()
        candidate = builder.add_pair(primary, other, MergeRelationship.SELECTED)
        if candidate is None:
            continue

        builder.add_couple_group(
            [candidate],
            [primary],
            [other],
            set(),
            set(),
            couple_label([[primary], [other]], primary.name or UNNAMED),
        )
        builder.expand_ancestors(primary, other)

    result = builder.result
    log.debug(
        "compute_merge_data: selected=%d merges=%d child_suggestions=%d",
        len(state.selected_ids), len(result.parent_merges), len(result.child_suggestions),
    )
    return result


def confirm(
    state: MergeSelection,
    graph: FamilyGraph,
    child_pairs: Iterable[Any] = (),
    store: Any = None,
    parent_pairs: Iterable[Any] = (),
) -> Transition:
    """
    Merge every secondary member into the primary, plus the reviewed parent
    and child pairs, then leave merge mode.
    """
    if not state.can_merge:
        return Transition(state, Notice.IGNORED)

    primary = graph.resolve(state.primary_id)
    if primary is None:
        return Transition(cancel(state).state, Notice.REJECTED_MISSING)

    selected_pairs = [MergePair(primary.id, sid) for sid in state.selected_ids[1:]]
    pairs: List[MergePair] = selected_pairs + [as_pair(p) for p in parent_pairs]
    pairs.extend(as_pair(p) for p in child_pairs)
    report = execute_merges(graph, pairs, store=store)

    merged_ids = tuple(
        o.pair.target_id for o in report.applied if o.pair in selected_pairs
    )
    merged_names = tuple(graph.members[i].name or UNNAMED for i in merged_ids)

    profiles = dict(state.merged_profiles)
    existing = profiles.get(primary.id)
    if existing is not None:
        merged_ids = existing.merged_ids + merged_ids
        merged_names = existing.merged_names + merged_names
    if merged_ids:
        profiles[primary.id] = MergedProfile(primary.id, merged_ids, merged_names)

    log.info(
        "Merge mode confirmed for %s: %d applied, %d failed",
        primary.id, len(report.applied), len(report.failed),
    )
    return Transition(
        MergeSelection(SelectionStatus.INACTIVE, (), profiles),
        Notice.CONFIRMED,
        report,
    )


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------

class MergeModeController:
    """Holds the selection for a canvas and maps UI callbacks to transitions."""

    def __init__(self, graph: FamilyGraph, store: Any = None, config: Optional[ScoringConfig] = None):
        self.graph = graph
        self.store = store
        self.config = config
        self.state = MergeSelection()
        self.last_notice: Optional[Notice] = None

    def _apply(self, transition: Transition) -> Notice:
        self.state = transition.state
        self.last_notice = transition.notice
        log.debug("merge mode: %s -> %s", transition.notice.value, list(self.state.selected_ids))
        return transition.notice

    @property
    def is_active(self) -> bool:
        return self.state.is_active

    @property
    def selected_ids(self) -> Tuple[str, ...]:
        return self.state.selected_ids

    @property
    def merged_profiles(self) -> Dict[str, MergedProfile]:
        return self.state.merged_profiles

    def on_long_press(self, member_id: str) -> Notice:
        return self._apply(long_press(self.state, self.graph, member_id))

    def on_toggle_merge_select(self, member_id: str) -> Notice:
        return self._apply(tap(self.state, self.graph, member_id))

    def on_cancel(self) -> Notice:
        return self._apply(cancel(self.state))

    def merge_data(self) -> MergeResult:
        return compute_merge_data(self.state, self.graph, self.config)

    def on_confirm_merge(
        self,
        child_pairs: Iterable[Any] = (),
        parent_pairs: Iterable[Any] = (),
    ) -> Optional[MergeReport]:
        transition = confirm(self.state, self.graph, child_pairs, self.store, parent_pairs)
        self._apply(transition)
        return transition.report
