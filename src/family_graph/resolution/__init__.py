"""
Merge resolution: candidate discovery, review, execution and interactive
merge mode.
"""

from __future__ import annotations

from .candidates import find_merge_candidates
from .executor import MergeOutcome, MergeReport, MergeStatus, apply_merge, execute_merges
from .models import (
    ChildMergeSuggestion,
    ChildProfile,
    CoupleGroup,
    MergeCandidate,
    MergeDialogData,
    MergePair,
    MergeRelationship,
    MergeResult,
)
from .selector import MergeModeController, MergeSelection, Notice, SelectionStatus

__all__ = [
    "ChildMergeSuggestion",
    "ChildProfile",
    "CoupleGroup",
    "MergeCandidate",
    "MergeDialogData",
    "MergeModeController",
    "MergeOutcome",
    "MergePair",
    "MergeRelationship",
    "MergeReport",
    "MergeResult",
    "MergeSelection",
    "MergeStatus",
    "Notice",
    "SelectionStatus",
    "apply_merge",
    "execute_merges",
    "find_merge_candidates",
]
