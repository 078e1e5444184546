"""
Import of legacy member rows.

Older trees stored relationships as one string per row (``relation_type``)
instead of typed fields:

    self                     the tree owner's own node
    spouse_of_<id>           partner of <id> (also ``spouse_2_of_<id>``)
    father_of_<id>           father of <id> (also ``father_2_of_<id>``)
    mother_of_<id>           mother of <id> (also ``mother_2_of_<id>``)
    child_of_<id>[_<n>]      child of <id> and of <id>'s spouse
    merged_into_<id>         tombstone absorbed into <id>

The strings are decoded once, here, into ``parent_ids`` / ``spouse_id`` /
``children_ids`` / ``merged_into``. Nothing downstream ever sees them.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from family_graph.logging import get_logger
from family_graph.registry.entities import FamilyMember, Gender
from family_graph.store.records import optional_int, position_from_record

log = get_logger("store.legacy")

SELF = "self"

_PATTERNS = [
    ("spouse", re.compile(r"^spouse(?:_\d+)?_of_(?P<id>[^_]+)")),
    ("father", re.compile(r"^father(?:_\d+)?_of_(?P<id>[^_]+)")),
    ("mother", re.compile(r"^mother(?:_\d+)?_of_(?P<id>[^_]+)")),
    ("child", re.compile(r"^child_of_(?P<id>[^_]+)")),
    ("merged", re.compile(r"^merged_into_(?P<id>[^_]+)")),
]


def parse_relation_type(value: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """
    Decode one relation string into ``(kind, other_id)``.

    ``kind`` is one of self / spouse / father / mother / child / merged, or
    None for strings that carry no relationship (plain labels such as
    "family_member").
    """
    text = (value or "").strip()
    if text == SELF:
        return SELF, None
    for kind, pattern in _PATTERNS:
        match = pattern.match(text)
        if match:
            return kind, match.group("id")
    return None, None


def _member_from_legacy_row(row: Mapping[str, Any]) -> FamilyMember:
    return FamilyMember(
        id=str(row["id"]),
        name=str(row.get("member_name") or row.get("name") or ""),
        gender=Gender.parse(row.get("gender")),
        birth_year=optional_int(row.get("birth_year")),
        death_year=optional_int(row.get("death_year")),
        photo_url=row.get("avatar_url") or row.get("photo_url") or None,
        linked_user_id=row.get("linked_user_id") or None,
        position=position_from_record(row.get("position")),
        owner_id=row.get("owner_id") or None,
        created_at=row.get("created_at") or None,
    )


def _link_parent(members: Dict[str, FamilyMember], parent_id: str, child_id: str) -> None:
    parent, child = members[parent_id], members[child_id]
    if parent_id not in child.parent_ids:
        child.parent_ids.append(parent_id)
    if child_id not in parent.children_ids:
        parent.children_ids.append(child_id)


def members_from_legacy_rows(rows: Iterable[Mapping[str, Any]]) -> Tuple[List[FamilyMember], Optional[str]]:
    """
    Build typed members from legacy rows.

    Returns ``(members, self_id)`` where ``self_id`` is the row tagged
    ``self`` (or the first row when none is tagged). References to ids that
    are not part of the batch are dropped with a warning.
    """
    rows = list(rows)
    members: Dict[str, FamilyMember] = {}
    decoded: List[Tuple[str, Optional[str], Optional[str]]] = []

    for row in rows:
        member = _member_from_legacy_row(row)
        members[member.id] = member
        kind, other_id = parse_relation_type(row.get("relation_type"))
        decoded.append((member.id, kind, other_id))

    self_id = next((mid for mid, kind, _ in decoded if kind == SELF), None)
    if self_id is None and decoded:
        self_id = decoded[0][0]

    def known(mid: str, kind: str, other_id: Optional[str]) -> bool:
        if other_id in members and other_id != mid:
            return True
        log.warning("Legacy row %s: %s reference to unknown member %s dropped", mid, kind, other_id)
        return False

    # Spouses first so child rows can pick up the second parent.
    for mid, kind, other_id in decoded:
        if kind == "spouse" and known(mid, kind, other_id):
            members[mid].spouse_id = other_id
            partner = members[other_id]
            if partner.spouse_id is None:
                partner.spouse_id = mid
            elif partner.spouse_id != mid:
                # A later spouse keeps its own link; the partner stays with the first one
                log.debug("Legacy row %s: %s already married to %s", mid, other_id, partner.spouse_id)

    for mid, kind, other_id in decoded:
        if kind in ("father", "mother") and known(mid, kind, other_id):
            _link_parent(members, mid, other_id)
        elif kind == "child" and known(mid, kind, other_id):
            _link_parent(members, other_id, mid)
            spouse_id = members[other_id].spouse_id
            if spouse_id and spouse_id in members and spouse_id != mid:
                _link_parent(members, spouse_id, mid)
        elif kind == "merged" and known(mid, kind, other_id):
            members[mid].merged_into = other_id

    log.info("Imported %d legacy rows (self=%s)", len(members), self_id)
    return list(members.values()), self_id
