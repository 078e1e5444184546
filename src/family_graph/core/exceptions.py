class FamilyGraphError(Exception):
    """Base exception for family graph failures."""


class MemberNotFoundError(FamilyGraphError, KeyError):
    """Raised when a referenced member id is not in the graph or store."""

    def __init__(self, member_id: str):
        super().__init__(member_id)
        self.member_id = member_id

    def __str__(self) -> str:
        return f"Member not found: {self.member_id!r}"


class GenderMismatchError(FamilyGraphError):
    """Raised when an edit would pair members of incompatible gender."""


class InvitationError(FamilyGraphError):
    """Raised when an invitation is missing or not in a usable state."""


class PersistenceError(FamilyGraphError):
    """Raised when the record store rejects a write."""


class MergeExecutionError(FamilyGraphError):
    """Raised when a merge run cannot start at all."""
