from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional

from family_graph.core.exceptions import MemberNotFoundError


# -----------------------------
# Closed vocabularies
# -----------------------------

class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"

    @classmethod
    def parse(cls, value: object, default: Optional["Gender"] = None) -> "Gender":
        """
        Accept enum members, "male"/"female" and the common "M"/"F" shorthands.
        Unknown values fall back to ``default`` (male when not given), which
        mirrors how member rows without a gender are loaded.
        """
        if isinstance(value, Gender):
            return value
        text = str(value or "").strip().lower()
        if text in ("male", "m"):
            return cls.MALE
        if text in ("female", "f"):
            return cls.FEMALE
        return default or cls.MALE

    def opposite(self) -> "Gender":
        return Gender.FEMALE if self is Gender.MALE else Gender.MALE


class RelationKind(str, Enum):
    PARENT = "parent"
    SPOUSE = "spouse"
    CHILD = "child"


class InvitationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


# -----------------------------
# Small records
# -----------------------------

@dataclass(frozen=True, slots=True)
class Relation:
    """
    Tagged edge as seen from one member: ``kind`` describes what ``other_id``
    is to that member (PARENT = other is my parent).
    """
    kind: RelationKind
    other_id: str


@dataclass(slots=True)
class Position:
    x: float
    y: float

    def moved(self, dx: float, dy: float) -> "Position":
        return Position(self.x + dx, self.y + dy)


@dataclass(slots=True)
class Invitation:
    id: str
    sender_id: str
    receiver_id: str
    member_id: str
    status: InvitationStatus = InvitationStatus.PENDING


def _append_unique(ids: List[str], value: str) -> bool:
    if value in ids:
        return False
    ids.append(value)
    return True


# -----------------------------
# Members
# -----------------------------

@dataclass(slots=True)
class FamilyMember:
    id: str
    name: str = ""
    gender: Gender = Gender.MALE

    birth_year: Optional[int] = None
    death_year: Optional[int] = None
    photo_url: Optional[str] = None

    # Relationship fields (ids only; neighbours are looked up in the graph)
    parent_ids: List[str] = field(default_factory=list)
    spouse_id: Optional[str] = None
    children_ids: List[str] = field(default_factory=list)

    linked_user_id: Optional[str] = None
    merged_into: Optional[str] = None
    position: Optional[Position] = None

    owner_id: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def is_tombstone(self) -> bool:
        return self.merged_into is not None

    def relations(self) -> Iterator[Relation]:
        for pid in self.parent_ids:
            yield Relation(RelationKind.PARENT, pid)
        if self.spouse_id:
            yield Relation(RelationKind.SPOUSE, self.spouse_id)
        for cid in self.children_ids:
            yield Relation(RelationKind.CHILD, cid)

    def add_relation(self, relation: Relation) -> bool:
        """Add an edge; returns False when it was already present."""
        if relation.other_id == self.id:
            return False
        if relation.kind is RelationKind.PARENT:
            return _append_unique(self.parent_ids, relation.other_id)
        if relation.kind is RelationKind.CHILD:
            return _append_unique(self.children_ids, relation.other_id)
        if relation.kind is RelationKind.SPOUSE:
            if self.spouse_id == relation.other_id:
                return False
            self.spouse_id = relation.other_id
            return True
        raise ValueError(f"Unhandled relation kind: {relation.kind!r}")

    def replace_reference(self, old_id: str, new_id: str) -> bool:
        """
        Point every relationship field that references ``old_id`` at ``new_id``.
        Self-references and duplicates produced by the rewrite are dropped.
        Returns True when anything changed.
        """
        changed = False

        parents = _rewrite_ids(self.parent_ids, old_id, new_id, self.id)
        if parents != self.parent_ids:
            self.parent_ids = parents
            changed = True

        children = _rewrite_ids(self.children_ids, old_id, new_id, self.id)
        if children != self.children_ids:
            self.children_ids = children
            changed = True

        if self.spouse_id == old_id:
            self.spouse_id = None if new_id == self.id else new_id
            changed = True

        return changed


def _rewrite_ids(ids: List[str], old_id: str, new_id: str, own_id: str) -> List[str]:
    out: List[str] = []
    for value in ids:
        value = new_id if value == old_id else value
        if value == own_id or value in out:
            continue
        out.append(value)
    return out


# -----------------------------
# Graph store
# -----------------------------

@dataclass(slots=True)
class FamilyGraph:
    """
    In-memory arena of one owner's members (or several owners' members after
    ``combine``), keyed by member id. Neighbours are always referenced by id.
    """
    owner_id: Optional[str] = None
    members: Dict[str, FamilyMember] = field(default_factory=dict)

    @classmethod
    def from_members(cls, members: Iterable[FamilyMember], owner_id: Optional[str] = None) -> "FamilyGraph":
        graph = cls(owner_id=owner_id)
        for m in members:
            graph.register_member(m)
        return graph

    @classmethod
    def combine(cls, *graphs: "FamilyGraph", owner_id: Optional[str] = None) -> "FamilyGraph":
        """Share one arena between several trees; later graphs win on id clashes."""
        combined = cls(owner_id=owner_id)
        for g in graphs:
            combined.members.update(g.members)
        return combined

    def __contains__(self, member_id: object) -> bool:
        return member_id in self.members

    def __len__(self) -> int:
        return len(self.members)

    def register_member(self, member: FamilyMember) -> None:
        self.members[member.id] = member

    def get_member(self, member_id: Optional[str]) -> Optional[FamilyMember]:
        if not member_id:
            return None
        return self.members.get(member_id)

    def require_member(self, member_id: str) -> FamilyMember:
        member = self.get_member(member_id)
        if member is None:
            raise MemberNotFoundError(member_id)
        return member

    def resolve(self, member_id: Optional[str]) -> Optional[FamilyMember]:
        """Follow ``merged_into`` to the live member; None for cycles or dangling ids."""
        seen = set()
        member = self.get_member(member_id)
        while member is not None and member.is_tombstone:
            if member.id in seen:
                return None
            seen.add(member.id)
            member = self.get_member(member.merged_into)
        return member

    def live_members(self) -> Iterator[FamilyMember]:
        return (m for m in self.members.values() if not m.is_tombstone)

    def tombstones(self) -> Iterator[FamilyMember]:
        return (m for m in self.members.values() if m.is_tombstone)

    def _resolved_ids(self, ids: Iterable[str], exclude: str) -> List[str]:
        out: List[str] = []
        for value in ids:
            live = self.resolve(value)
            if live is None or live.id == exclude or live.id in out:
                continue
            out.append(live.id)
        return out

    def parents_of(self, member_id: str) -> List[FamilyMember]:
        """
        Parents from both encodings: the member's own ``parent_ids`` and any
        member listing it in ``children_ids``.
        """
        member = self.resolve(member_id)
        if member is None:
            return []
        ids = list(member.parent_ids)
        ids.extend(m.id for m in self.live_members() if member.id in m.children_ids)
        return [self.members[i] for i in self._resolved_ids(ids, member.id)]

    def children_of(self, member_id: str) -> List[FamilyMember]:
        member = self.resolve(member_id)
        if member is None:
            return []
        ids = list(member.children_ids)
        ids.extend(m.id for m in self.live_members() if member.id in m.parent_ids)
        return [self.members[i] for i in self._resolved_ids(ids, member.id)]

    def spouse_of(self, member_id: str) -> Optional[FamilyMember]:
        member = self.resolve(member_id)
        if member is None:
            return None
        spouse = self.resolve(member.spouse_id)
        if spouse is None or spouse.id == member.id:
            return None
        return spouse

    def find_linked(self, user_id: Optional[str]) -> Optional[FamilyMember]:
        if not user_id:
            return None
        for m in self.live_members():
            if m.linked_user_id == user_id:
                return m
        return None

    def positions(self) -> Dict[str, Position]:
        return {m.id: m.position for m in self.live_members() if m.position is not None}

    def owned_by(self, owner_id: str) -> "FamilyGraph":
        """Sub-arena of one owner's members (shares member objects)."""
        return FamilyGraph(
            owner_id=owner_id,
            members={mid: m for mid, m in self.members.items() if m.owner_id == owner_id},
        )
