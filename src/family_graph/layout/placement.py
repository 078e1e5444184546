"""
Incremental placement of newly created members.

A new member is placed from the positions of its direct relatives, tried in
this order (first match wins):

1. a positioned child    -> above the child, half a spouse gap to the side
2. a positioned spouse   -> beside the spouse on the same row
3. positioned parent(s)  -> below the parents, spread by sibling index with
                            a small vertical stagger on odd indices
4. otherwise             -> right of the right-most node, on the lowest row

Existing positions are never recomputed; manual drags stay authoritative.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, List, Mapping, Optional

from family_graph.config import get_config
from family_graph.logging import get_logger
from family_graph.registry.entities import FamilyGraph, FamilyMember, Gender, Position

log = get_logger("layout.placement")

HORIZONTAL_GAP = 250.0
VERTICAL_GAP = 200.0
SPOUSE_GAP = 180.0
SIBLING_STAGGER = 40.0


@dataclass(frozen=True)
class LayoutConfig:
    horizontal_gap: float = HORIZONTAL_GAP
    vertical_gap: float = VERTICAL_GAP
    spouse_gap: float = SPOUSE_GAP
    sibling_stagger: float = SIBLING_STAGGER

    @classmethod
    def from_mapping(cls, data: Optional[Dict[str, Any]]) -> "LayoutConfig":
        data = data or {}
        known = {f.name for f in fields(cls)}
        return cls(**{k: float(v) for k, v in data.items() if k in known and v is not None})


def layout_config() -> LayoutConfig:
    return LayoutConfig.from_mapping(get_config().layout)


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

def _side(member: FamilyMember) -> float:
    """Men to the left of their partner, women to the right."""
    return -1.0 if member.gender is Gender.MALE else 1.0


def _sibling_offset(member: FamilyMember, siblings: List[str], cfg: LayoutConfig) -> Position:
    idx = siblings.index(member.id) if member.id in siblings else 0
    count = max(1, len(siblings))
    dx = (idx - (count - 1) / 2) * cfg.horizontal_gap
    dy = 0.0 if idx % 2 == 0 else cfg.sibling_stagger
    return Position(dx, dy)


def _with_linked(own: List[str], linked: List[FamilyMember]) -> List[str]:
    ids = list(own)
    ids.extend(m.id for m in linked if m.id not in ids)
    return ids


def _child_ids(member: FamilyMember, graph: FamilyGraph) -> List[str]:
    # Children may list the member in parent_ids without a matching children_ids entry
    if member.id not in graph:
        return list(member.children_ids)
    return _with_linked(member.children_ids, graph.children_of(member.id))


def _parent_ids(member: FamilyMember, graph: FamilyGraph) -> List[str]:
    if member.id not in graph:
        return list(member.parent_ids)
    return _with_linked(member.parent_ids, graph.parents_of(member.id))


def _siblings_from(graph: FamilyGraph, parent_id: str) -> List[str]:
    parent = graph.get_member(parent_id)
    if parent is None:
        return []
    return _with_linked(parent.children_ids, graph.children_of(parent_id))


def _below_parents(
    member: FamilyMember,
    graph: FamilyGraph,
    positions: Mapping[str, Position],
    cfg: LayoutConfig,
) -> Optional[Position]:
    parent_ids = _parent_ids(member, graph)
    placed = [pid for pid in parent_ids[:2] if pid in positions]
    if not placed:
        return None

    if len(placed) == 2:
        p1, p2 = positions[placed[0]], positions[placed[1]]
        base_x = (p1.x + p2.x) / 2
        base_y = min(p1.y, p2.y) + cfg.vertical_gap
        father_id = placed[0]
        for pid in placed:
            parent = graph.get_member(pid)
            if parent is not None and parent.gender is Gender.MALE:
                father_id = pid
                break
        siblings = _siblings_from(graph, father_id)
    else:
        parent = positions[placed[0]]
        base_x = parent.x
        base_y = parent.y + cfg.vertical_gap
        siblings = _siblings_from(graph, placed[0])

    offset = _sibling_offset(member, siblings, cfg)
    return Position(base_x + offset.x, base_y + offset.y)


def fallback_position(positions: Mapping[str, Position], cfg: LayoutConfig) -> Position:
    max_x = 0.0
    max_y = 0.0
    for pos in positions.values():
        max_x = max(max_x, pos.x)
        max_y = max(max_y, pos.y)
    return Position(max_x + cfg.horizontal_gap, max_y)


def compute_new_member_position(
    member: FamilyMember,
    graph: FamilyGraph,
    positions: Optional[Mapping[str, Position]] = None,
    config: Optional[LayoutConfig] = None,
) -> Position:
    """Position for ``member`` derived from its already positioned relatives."""
    cfg = config or layout_config()
    if positions is None:
        positions = graph.positions()
    positions = {mid: pos for mid, pos in positions.items() if mid != member.id}

    child_id = next((cid for cid in _child_ids(member, graph) if cid in positions), None)
    if child_id is not None:
        child = positions[child_id]
        return Position(child.x + _side(member) * cfg.spouse_gap / 2, child.y - cfg.vertical_gap)

    if member.spouse_id and member.spouse_id in positions:
        spouse = positions[member.spouse_id]
        return Position(spouse.x + _side(member) * cfg.spouse_gap, spouse.y)

    below = _below_parents(member, graph, positions, cfg)
    if below is not None:
        return below

    return fallback_position(positions, cfg)


def place_member(
    graph: FamilyGraph,
    member_id: str,
    store: Any = None,
    config: Optional[LayoutConfig] = None,
) -> Position:
    """
    Give a member a position if it has none and persist it. A member that is
    already positioned keeps (and returns) its position.
    """
    member = graph.require_member(member_id)
    if member.position is not None:
        return member.position

    member.position = compute_new_member_position(member, graph, config=config)
    log.debug("Placed %s (%s) at (%.1f, %.1f)", member.id, member.name, member.position.x, member.position.y)
    if store is not None:
        store.write_position(member.id, member.position)
    return member.position
