from __future__ import annotations

from .entities import (
    FamilyGraph,
    FamilyMember,
    Gender,
    Invitation,
    InvitationStatus,
    Position,
    Relation,
    RelationKind,
)

__all__ = [
    "FamilyGraph",
    "FamilyMember",
    "Gender",
    "Invitation",
    "InvitationStatus",
    "Position",
    "Relation",
    "RelationKind",
]
