from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from family_graph.registry.entities import FamilyMember, Gender

UNNAMED = "Unnamed"


class MergeRelationship(str, Enum):
    PARENT = "parent"
    GRANDPARENT = "grandparent"
    # Picked by the user in merge mode rather than discovered
    SELECTED = "selected"


@dataclass(frozen=True, slots=True)
class MergePair:
    """Confirmed instruction: ``target_id`` is absorbed into ``source_id``."""
    source_id: str
    target_id: str


@dataclass(slots=True)
class MergeCandidate:
    source_id: str
    target_id: str
    source_name: str
    target_name: str
    relationship: MergeRelationship
    source_photo_url: Optional[str] = None
    target_photo_url: Optional[str] = None
    similarity: float = 0.0
    auto_accept: bool = False

    def as_pair(self) -> MergePair:
        return MergePair(self.source_id, self.target_id)


@dataclass(frozen=True, slots=True)
class ChildProfile:
    id: str
    name: str
    gender: Gender
    photo_url: Optional[str] = None
    birth_year: Optional[int] = None

    @classmethod
    def of(cls, member: FamilyMember) -> "ChildProfile":
        return cls(
            id=member.id,
            name=member.name or UNNAMED,
            gender=member.gender,
            photo_url=member.photo_url,
            birth_year=member.birth_year,
        )


@dataclass(slots=True)
class ChildMergeSuggestion:
    source_child: ChildProfile
    target_child: ChildProfile
    similarity: float
    should_merge: bool = False

    def as_pair(self) -> MergePair:
        return MergePair(self.source_child.id, self.target_child.id)


@dataclass(slots=True)
class CoupleGroup:
    label: str
    parent_merges: List[MergeCandidate] = field(default_factory=list)
    source_children: List[ChildProfile] = field(default_factory=list)
    target_children: List[ChildProfile] = field(default_factory=list)
    child_suggestions: List[ChildMergeSuggestion] = field(default_factory=list)


@dataclass(slots=True)
class MergeResult:
    """
    Everything the review step needs. ``child_suggestions`` and the
    ``all_*_children`` lists are flattened views over ``couple_groups``.
    """
    parent_merges: List[MergeCandidate] = field(default_factory=list)
    couple_groups: List[CoupleGroup] = field(default_factory=list)
    child_suggestions: List[ChildMergeSuggestion] = field(default_factory=list)
    all_source_children: List[ChildProfile] = field(default_factory=list)
    all_target_children: List[ChildProfile] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.parent_merges and not self.all_source_children and not self.all_target_children

    def add_group(self, group: CoupleGroup) -> None:
        self.couple_groups.append(group)
        self.child_suggestions.extend(group.child_suggestions)
        self.all_source_children.extend(group.source_children)
        self.all_target_children.extend(group.target_children)

    def auto_pairs(self) -> List[MergePair]:
        """Pairs pre-accepted without user input (auto-accepted parents, pre-checked children)."""
        pairs = [c.as_pair() for c in self.parent_merges if c.auto_accept]
        pairs.extend(s.as_pair() for s in self.child_suggestions if s.should_merge)
        return pairs


@dataclass(slots=True)
class MergeDialogData:
    sender_name: str
    receiver_name: str
    parent_merges: List[MergeCandidate] = field(default_factory=list)
    couple_groups: List[CoupleGroup] = field(default_factory=list)
    child_suggestions: List[ChildMergeSuggestion] = field(default_factory=list)
    all_source_children: List[ChildProfile] = field(default_factory=list)
    all_target_children: List[ChildProfile] = field(default_factory=list)

    @classmethod
    def from_result(cls, result: MergeResult, sender_name: str, receiver_name: str) -> "MergeDialogData":
        return cls(
            sender_name=sender_name,
            receiver_name=receiver_name,
            parent_merges=list(result.parent_merges),
            couple_groups=list(result.couple_groups),
            child_suggestions=list(result.child_suggestions),
            all_source_children=list(result.all_source_children),
            all_target_children=list(result.all_target_children),
        )


