"""
Review step between candidate discovery and execution.

The dialog shows parent/grandparent merges (informational, applied when
auto-accepted) and one row per source-side child. A row is pre-checked only
when the scorer marked the pair ``should_merge``; everything else starts
unchecked and the user decides.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Union

from family_graph.logging import get_logger
from family_graph.resolution.models import (
    ChildProfile,
    MergeDialogData,
    MergePair,
    MergeRelationship,
    MergeResult,
)

log = get_logger("resolution.review")

ReviewSource = Union[MergeDialogData, MergeResult]


@dataclass(slots=True)
class ChildReviewItem:
    source_child: ChildProfile
    target_child: Optional[ChildProfile] = None
    checked: bool = False
    similarity: Optional[float] = None

    @property
    def can_merge(self) -> bool:
        return self.target_child is not None and self.target_child.gender is self.source_child.gender

    def as_pair(self) -> Optional[MergePair]:
        if not self.checked or not self.can_merge:
            return None
        return MergePair(self.source_child.id, self.target_child.id)


def build_child_review(data: ReviewSource) -> List[ChildReviewItem]:
    """
    Rows in display order: scorer suggestions first, then the remaining
    source children, each offered the first free same-gender target child.
    """
    items: List[ChildReviewItem] = []
    seen_sources = set()
    used_targets = set()

    for suggestion in data.child_suggestions:
        items.append(
            ChildReviewItem(
                source_child=suggestion.source_child,
                target_child=suggestion.target_child,
                checked=suggestion.should_merge,
                similarity=suggestion.similarity,
            )
        )
        seen_sources.add(suggestion.source_child.id)
        used_targets.add(suggestion.target_child.id)

    for child in data.all_source_children:
        if child.id in seen_sources:
            continue
        seen_sources.add(child.id)
        target = next(
            (t for t in data.all_target_children
             if t.gender is child.gender and t.id not in used_targets and t.id != child.id),
            None,
        )
        if target is not None:
            used_targets.add(target.id)
        items.append(ChildReviewItem(source_child=child, target_child=target))
    return items


def toggle_child(items: List[ChildReviewItem], index: int) -> bool:
    """Flip one row; rows without a same-gender partner stay unchecked."""
    item = items[index]
    if not item.can_merge:
        return False
    item.checked = not item.checked
    return item.checked


def pair_children(items: List[ChildReviewItem], source_id: str, target: ChildProfile) -> bool:
    """
    Manually pair a source child with ``target``. The target is taken away
    from any other row. Returns False (nothing changes) on a gender mismatch
    or an unknown source child.
    """
    row = next((i for i in items if i.source_child.id == source_id), None)
    if row is None or row.source_child.gender is not target.gender:
        return False

    for other in items:
        if other is not row and other.target_child is not None and other.target_child.id == target.id:
            other.target_child = None
            other.checked = False
            other.similarity = None

    row.target_child = target
    row.checked = True
    row.similarity = None
    return True


def confirmed_child_pairs(items: List[ChildReviewItem]) -> List[MergePair]:
    return [p for p in (i.as_pair() for i in items) if p is not None]


def default_parent_pairs(data: ReviewSource) -> List[MergePair]:
    """Auto-accepted parent and grandparent merges."""
    return [
        c.as_pair()
        for c in data.parent_merges
        if c.auto_accept and c.relationship is not MergeRelationship.SELECTED
    ]


def review_summary(data: ReviewSource, items: List[ChildReviewItem]) -> Dict[str, int]:
    merge_count = sum(1 for i in items if i.checked and i.can_merge)
    return {
        "parents": len(data.parent_merges),
        "children_merge": merge_count,
        "children_separate": len(items) - merge_count,
    }
