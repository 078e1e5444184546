"""
Tree editing operations.

Every function updates the in-memory graph first, then (when a store is
given) persists the new and changed rows. New members are placed on the
canvas immediately from their relatives' positions.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from family_graph.core.exceptions import FamilyGraphError, GenderMismatchError
from family_graph.identity.uuid_factory import new_member_id
from family_graph.layout.placement import place_member
from family_graph.logging import get_logger
from family_graph.registry.entities import FamilyGraph, FamilyMember, Gender
from family_graph.store.records import member_to_record

log = get_logger("registry.editing")

PROFILE_FIELDS = ("name", "birth_year", "death_year", "photo_url")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_member(
    graph: FamilyGraph,
    data: Optional[Dict[str, Any]],
    gender: Gender,
    owner_id: Optional[str],
) -> FamilyMember:
    data = dict(data or {})
    requested = data.pop("gender", None)
    if requested is not None and Gender.parse(requested, default=gender) is not gender:
        raise GenderMismatchError(f"Expected a {gender.value} member, got {requested!r}")

    member = FamilyMember(
        id=new_member_id(),
        gender=gender,
        owner_id=owner_id or graph.owner_id,
        created_at=_now(),
        **{k: data[k] for k in PROFILE_FIELDS if data.get(k) is not None},
    )
    graph.register_member(member)
    return member


def _persist(graph: FamilyGraph, store: Any, created: Iterable[str], changed: Iterable[str]) -> None:
    if store is None:
        return
    for mid in created:
        store.upsert_member(graph.members[mid])
    for mid in changed:
        store.update_member(mid, member_to_record(graph.members[mid]))


def _live(graph: FamilyGraph, member_id: str) -> FamilyMember:
    member = graph.require_member(member_id)
    if member.is_tombstone:
        raise FamilyGraphError(f"Member {member_id!r} was merged into {member.merged_into!r}")
    return member


def _place(graph: FamilyGraph, member_ids: Iterable[str], store: Any) -> None:
    for mid in member_ids:
        place_member(graph, mid, store)


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

def add_initial_couple(
    graph: FamilyGraph,
    owner_id: Optional[str] = None,
    self_user_id: Optional[str] = None,
    store: Any = None,
) -> Tuple[str, str]:
    """Seed an empty tree with the owner's node and a spouse placeholder."""
    husband = _new_member(graph, None, Gender.MALE, owner_id)
    wife = _new_member(graph, None, Gender.FEMALE, owner_id)
    husband.spouse_id = wife.id
    wife.spouse_id = husband.id
    husband.linked_user_id = self_user_id

    _persist(graph, store, [husband.id, wife.id], [])
    _place(graph, [husband.id, wife.id], store)
    return husband.id, wife.id


def add_parents(
    graph: FamilyGraph,
    child_id: str,
    father: Optional[Dict[str, Any]] = None,
    mother: Optional[Dict[str, Any]] = None,
    store: Any = None,
) -> Tuple[str, str]:
    """Create a father and mother for ``child_id`` and marry them."""
    child = _live(graph, child_id)
    if len(graph.parents_of(child.id)) >= 2:
        raise FamilyGraphError(f"Member {child_id!r} already has two parents")

    dad = _new_member(graph, father, Gender.MALE, child.owner_id)
    mum = _new_member(graph, mother, Gender.FEMALE, child.owner_id)
    dad.spouse_id, mum.spouse_id = mum.id, dad.id
    for parent in (dad, mum):
        parent.children_ids.append(child.id)
        child.parent_ids.append(parent.id)

    log.info("Added parents %s / %s for %s", dad.id, mum.id, child.id)
    _persist(graph, store, [dad.id, mum.id], [child.id])
    _place(graph, [dad.id, mum.id], store)
    return dad.id, mum.id


def add_spouse(
    graph: FamilyGraph,
    member_id: str,
    data: Optional[Dict[str, Any]] = None,
    store: Any = None,
) -> str:
    """Create a partner of the opposite gender for ``member_id``."""
    member = _live(graph, member_id)
    if graph.spouse_of(member.id) is not None:
        raise FamilyGraphError(f"Member {member_id!r} already has a spouse")

    spouse = _new_member(graph, data, member.gender.opposite(), member.owner_id)
    spouse.spouse_id = member.id
    member.spouse_id = spouse.id

    log.info("Added spouse %s for %s", spouse.id, member.id)
    _persist(graph, store, [spouse.id], [member.id])
    _place(graph, [spouse.id], store)
    return spouse.id


def add_child(
    graph: FamilyGraph,
    parent_id: str,
    data: Optional[Dict[str, Any]] = None,
    store: Any = None,
) -> str:
    """Create a child of ``parent_id`` and of its spouse, if any."""
    parent = _live(graph, parent_id)
    parents = [parent]
    spouse = graph.spouse_of(parent.id)
    if spouse is not None:
        parents.append(spouse)

    data = dict(data or {})
    gender = Gender.parse(data.pop("gender", None))
    child = _new_member(graph, data, gender, parent.owner_id)
    for p in parents:
        child.parent_ids.append(p.id)
        p.children_ids.append(child.id)

    log.info("Added child %s for %s", child.id, ", ".join(p.id for p in parents))
    _persist(graph, store, [child.id], [p.id for p in parents])
    _place(graph, [child.id], store)
    return child.id


def link_spouses(graph: FamilyGraph, a_id: str, b_id: str, store: Any = None) -> None:
    """Marry two existing members; both must be single and of opposite gender."""
    a, b = _live(graph, a_id), _live(graph, b_id)
    if a.gender is b.gender:
        raise GenderMismatchError(f"Cannot marry {a.id!r} and {b.id!r}: both {a.gender.value}")
    for m in (a, b):
        current = graph.spouse_of(m.id)
        if current is not None and current.id not in (a.id, b.id):
            raise FamilyGraphError(f"Member {m.id!r} is already married to {current.id!r}")
    a.spouse_id, b.spouse_id = b.id, a.id
    _persist(graph, store, [], [a.id, b.id])


def remove_member(graph: FamilyGraph, member_id: str, store: Any = None) -> List[str]:
    """
    Physically delete a member and unlink it from its relatives.

    Tombstones and merge survivors are refused: other records point at them
    through ``merged_into``. Returns the ids of the relatives that changed.
    """
    member = _live(graph, member_id)
    absorbed = [t.id for t in graph.tombstones() if t.merged_into == member.id]
    if absorbed:
        raise FamilyGraphError(
            f"Member {member_id!r} absorbed {len(absorbed)} merged record(s) and cannot be removed"
        )

    changed: List[str] = []
    for other in graph.live_members():
        if other is member:
            continue
        before = (list(other.parent_ids), other.spouse_id, list(other.children_ids))
        other.parent_ids = [i for i in other.parent_ids if i != member.id]
        other.children_ids = [i for i in other.children_ids if i != member.id]
        if other.spouse_id == member.id:
            other.spouse_id = None
        if before != (other.parent_ids, other.spouse_id, other.children_ids):
            changed.append(other.id)

    del graph.members[member.id]
    log.info("Removed member %s (%s); %d relatives unlinked", member.id, member.name, len(changed))

    if store is not None:
        store.delete_member(member.id)
        for mid in changed:
            store.update_member(mid, member_to_record(graph.members[mid]))
    return changed
