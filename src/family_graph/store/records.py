"""
Row <-> member mapping.

Rows are plain dicts with snake_case keys, which is what every store writes.
Reading also accepts the camelCase keys older exports used (``parentIds``,
``mergedInto`` ...), so snapshots from either era load the same way.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from family_graph.registry.entities import FamilyMember, Gender, Invitation, InvitationStatus, Position

CAMEL_KEYS = {
    "birth_year": "birthYear",
    "death_year": "deathYear",
    "photo_url": "photoUrl",
    "parent_ids": "parentIds",
    "spouse_id": "spouseId",
    "children_ids": "childrenIds",
    "linked_user_id": "linkedUserId",
    "merged_into": "mergedInto",
    "owner_id": "ownerId",
    "created_at": "createdAt",
    "sender_id": "senderId",
    "receiver_id": "receiverId",
    "member_id": "memberId",
}


def _get(row: Mapping[str, Any], key: str, default: Any = None) -> Any:
    if key in row:
        return row[key]
    camel = CAMEL_KEYS.get(key)
    if camel and camel in row:
        return row[camel]
    return default


def optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _id_list(value: Any) -> List[str]:
    out: List[str] = []
    for item in value or []:
        item = str(item)
        if item and item not in out:
            out.append(item)
    return out


def position_from_record(value: Any) -> Optional[Position]:
    if not value:
        return None
    if isinstance(value, Position):
        return value
    if isinstance(value, Mapping):
        return Position(float(value.get("x", 0.0)), float(value.get("y", 0.0)))
    x, y = value
    return Position(float(x), float(y))


def position_to_record(position: Optional[Position]) -> Optional[Dict[str, float]]:
    if position is None:
        return None
    return {"x": position.x, "y": position.y}


def member_from_record(row: Mapping[str, Any]) -> FamilyMember:
    member_id = _get(row, "id")
    if not member_id:
        raise ValueError(f"Member row without id: {dict(row)!r}")

    return FamilyMember(
        id=str(member_id),
        name=str(_get(row, "name") or ""),
        gender=Gender.parse(_get(row, "gender")),
        birth_year=optional_int(_get(row, "birth_year")),
        death_year=optional_int(_get(row, "death_year")),
        photo_url=_get(row, "photo_url") or None,
        parent_ids=_id_list(_get(row, "parent_ids")),
        spouse_id=_get(row, "spouse_id") or None,
        children_ids=_id_list(_get(row, "children_ids")),
        linked_user_id=_get(row, "linked_user_id") or None,
        merged_into=_get(row, "merged_into") or None,
        position=position_from_record(_get(row, "position")),
        owner_id=_get(row, "owner_id") or None,
        created_at=_get(row, "created_at") or None,
    )


def member_to_record(member: FamilyMember, include_position: bool = False) -> Dict[str, Any]:
    """
    Serialize a member. Positions live in their own table, so they are only
    inlined when asked (snapshot files).
    """
    row: Dict[str, Any] = {
        "id": member.id,
        "name": member.name,
        "gender": member.gender.value,
        "birth_year": member.birth_year,
        "death_year": member.death_year,
        "photo_url": member.photo_url,
        "parent_ids": list(member.parent_ids),
        "spouse_id": member.spouse_id,
        "children_ids": list(member.children_ids),
        "linked_user_id": member.linked_user_id,
        "merged_into": member.merged_into,
        "owner_id": member.owner_id,
        "created_at": member.created_at,
    }
    if include_position:
        row["position"] = position_to_record(member.position)
    return row


def invitation_from_record(row: Mapping[str, Any]) -> Invitation:
    return Invitation(
        id=str(_get(row, "id")),
        sender_id=str(_get(row, "sender_id")),
        receiver_id=str(_get(row, "receiver_id")),
        member_id=str(_get(row, "member_id")),
        status=InvitationStatus(_get(row, "status", InvitationStatus.PENDING.value)),
    )


def invitation_to_record(invitation: Invitation) -> Dict[str, Any]:
    return {
        "id": invitation.id,
        "sender_id": invitation.sender_id,
        "receiver_id": invitation.receiver_id,
        "member_id": invitation.member_id,
        "status": invitation.status.value,
    }
