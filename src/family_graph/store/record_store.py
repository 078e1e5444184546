"""
Record store boundary.

The graph code talks to persistence only through ``RecordStore``. Two
implementations ship here:

- ``InMemoryRecordStore``: three tables (members, positions, invitations)
  of plain dict rows. Used by tests and as the base of the file store.
- ``JsonFileRecordStore``: the same tables, written to one JSON file after
  every write.

Writes that cannot be applied raise ``PersistenceError``. Callers keep their
in-memory graph as the source of truth until the next reload.
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol, Union

from family_graph.core.exceptions import InvitationError, PersistenceError
from family_graph.logging import get_logger
from family_graph.registry.entities import FamilyMember, Invitation, InvitationStatus, Position
from family_graph.store.records import (
    invitation_from_record,
    invitation_to_record,
    member_from_record,
    member_to_record,
    position_from_record,
    position_to_record,
)

log = get_logger("store.record_store")

MEMBER_FIELDS = set(member_to_record(FamilyMember(id="_")).keys()) - {"id"}


class RecordStore(Protocol):
    def list_members(self, owner_ids: Iterable[str]) -> List[FamilyMember]: ...

    def get_member(self, member_id: str) -> Optional[FamilyMember]: ...

    def upsert_member(self, member: FamilyMember) -> None: ...

    def update_member(self, member_id: str, fields: Dict[str, Any]) -> None: ...

    def tombstone_member(self, member_id: str, target_id: str) -> None: ...

    def delete_member(self, member_id: str) -> None: ...

    def read_position(self, member_id: str) -> Optional[Position]: ...

    def write_position(self, member_id: str, position: Position) -> None: ...

    def get_invitation(self, invitation_id: str) -> Optional[Invitation]: ...

    def save_invitation(self, invitation: Invitation) -> None: ...

    def update_invitation_status(self, invitation_id: str, status: InvitationStatus) -> None: ...


class InMemoryRecordStore:
    def __init__(self, tables: Optional[Dict[str, Dict[str, Dict[str, Any]]]] = None):
        tables = tables or {}
        self.members: Dict[str, Dict[str, Any]] = dict(tables.get("members", {}))
        self.positions: Dict[str, Dict[str, float]] = dict(tables.get("positions", {}))
        self.invitations: Dict[str, Dict[str, Any]] = dict(tables.get("invitations", {}))

    # -- hook for subclasses ---------------------------------------------

    def _commit(self) -> None:
        """Called after every successful write."""

    # -- members ----------------------------------------------------------

    def _hydrate(self, row: Dict[str, Any]) -> FamilyMember:
        member = member_from_record(row)
        member.position = position_from_record(self.positions.get(member.id))
        return member

    def list_members(self, owner_ids: Iterable[str]) -> List[FamilyMember]:
        owners = set(owner_ids)
        return [self._hydrate(row) for row in self.members.values() if row.get("owner_id") in owners]

    def get_member(self, member_id: str) -> Optional[FamilyMember]:
        row = self.members.get(member_id)
        return self._hydrate(row) if row is not None else None

    def upsert_member(self, member: FamilyMember) -> None:
        self.members[member.id] = member_to_record(member)
        if member.position is not None:
            self.positions[member.id] = position_to_record(member.position)
        self._commit()

    def update_member(self, member_id: str, fields: Dict[str, Any]) -> None:
        row = self.members.get(member_id)
        if row is None:
            raise PersistenceError(f"Cannot update missing member row {member_id!r}")
        unknown = set(fields) - MEMBER_FIELDS - {"id"}
        if unknown:
            raise PersistenceError(f"Unknown member fields for {member_id!r}: {sorted(unknown)}")
        row.update({k: copy.deepcopy(v) for k, v in fields.items() if k != "id"})
        self._commit()

    def tombstone_member(self, member_id: str, target_id: str) -> None:
        self.update_member(member_id, {"merged_into": target_id})

    def delete_member(self, member_id: str) -> None:
        if self.members.pop(member_id, None) is None:
            raise PersistenceError(f"Cannot delete missing member row {member_id!r}")
        self.positions.pop(member_id, None)
        self._commit()

    # -- positions --------------------------------------------------------

    def read_position(self, member_id: str) -> Optional[Position]:
        return position_from_record(self.positions.get(member_id))

    def write_position(self, member_id: str, position: Position) -> None:
        self.positions[member_id] = position_to_record(position)
        self._commit()

    # -- invitations ------------------------------------------------------

    def get_invitation(self, invitation_id: str) -> Optional[Invitation]:
        row = self.invitations.get(invitation_id)
        return invitation_from_record(row) if row is not None else None

    def save_invitation(self, invitation: Invitation) -> None:
        self.invitations[invitation.id] = invitation_to_record(invitation)
        self._commit()

    def update_invitation_status(self, invitation_id: str, status: InvitationStatus) -> None:
        row = self.invitations.get(invitation_id)
        if row is None:
            raise InvitationError(f"Invitation not found: {invitation_id!r}")
        row["status"] = InvitationStatus(status).value
        self._commit()

    # -- bulk -------------------------------------------------------------

    def tables(self) -> Dict[str, Dict[str, Any]]:
        return {
            "members": self.members,
            "positions": self.positions,
            "invitations": self.invitations,
        }


class JsonFileRecordStore(InMemoryRecordStore):
    """In-memory tables mirrored to ``path`` after every write."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        tables: Dict[str, Any] = {}
        if self.path.exists():
            try:
                tables = json.loads(self.path.read_text(encoding="utf-8")) or {}
            except (OSError, ValueError) as exc:
                raise PersistenceError(f"Cannot read store file {self.path}: {exc}") from exc
        super().__init__(tables)
        log.debug("Opened JSON record store at %s (%d members)", self.path, len(self.members))

    def _commit(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(json.dumps(self.tables(), indent=2, ensure_ascii=False), encoding="utf-8")
            tmp.replace(self.path)
        except OSError as exc:
            log.error("Writing store file %s failed: %s", self.path, exc)
            raise PersistenceError(f"Cannot write store file {self.path}: {exc}") from exc
