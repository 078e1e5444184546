from __future__ import annotations

from typing import Dict

from family_graph.logging import get_logger
from family_graph.registry.entities import FamilyGraph, FamilyMember

log = get_logger("registry.link_entities")


def link_relationships(graph: FamilyGraph) -> Dict[str, int]:
    """
    Reconcile relationship encodings across the live members of a graph.

    Design:
      - rows coming from the store may carry only one side of an edge
        (``parent_ids`` on the child, or ``children_ids`` on the parent)
      - this pass writes the missing side so traversals see one graph
      - references to tombstones are redirected to their live target
      - dangling references (unknown ids) are dropped
      - spouse links are made symmetric; a one-sided link is completed when
        the other member is single, and dropped when they are married to
        someone else

    Idempotent: running it twice leaves the graph unchanged.
    Returns counters for logging/tests.
    """
    counts = {
        "redirected": 0,
        "dropped": 0,
        "parent_links_added": 0,
        "child_links_added": 0,
        "spouse_links_added": 0,
        "spouse_links_dropped": 0,
    }

    live = list(graph.live_members())

    # 1) Redirect/drop references so every id points at a live member
    for member in live:
        _canonicalize(graph, member, counts)

    # 2) Mirror parent <-> child edges
    for member in live:
        for pid in member.parent_ids:
            parent = graph.members[pid]
            if member.id not in parent.children_ids:
                parent.children_ids.append(member.id)
                counts["child_links_added"] += 1
        for cid in member.children_ids:
            child = graph.members[cid]
            if member.id not in child.parent_ids:
                child.parent_ids.append(member.id)
                counts["parent_links_added"] += 1

    # 3) Spouse symmetry
    for member in live:
        if member.spouse_id is None:
            continue
        spouse = graph.members[member.spouse_id]
        if spouse.spouse_id == member.id:
            continue
        if spouse.spouse_id is None:
            spouse.spouse_id = member.id
            counts["spouse_links_added"] += 1
        else:
            log.warning(
                "Dropping one-sided spouse link %s -> %s (partner is married to %s)",
                member.id, spouse.id, spouse.spouse_id,
            )
            member.spouse_id = None
            counts["spouse_links_dropped"] += 1

    log.debug("link_relationships: members=%d %s", len(live), counts)
    return counts


def _canonicalize(graph: FamilyGraph, member: FamilyMember, counts: Dict[str, int]) -> None:
    def fix(value: str):
        target = graph.resolve(value)
        if target is None:
            counts["dropped"] += 1
            return None
        if target.id != value:
            counts["redirected"] += 1
        return target.id

    parents = []
    for pid in member.parent_ids:
        new = fix(pid)
        if new and new != member.id and new not in parents:
            parents.append(new)
    member.parent_ids = parents

    children = []
    for cid in member.children_ids:
        new = fix(cid)
        if new and new != member.id and new not in children:
            children.append(new)
    member.children_ids = children

    if member.spouse_id is not None:
        new = fix(member.spouse_id)
        member.spouse_id = new if new != member.id else None
