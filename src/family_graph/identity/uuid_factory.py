# src/family_graph/identity/uuid_factory.py
from __future__ import annotations

import hashlib
import uuid
from typing import Tuple


# -----------------------------
# Core deterministic hashing
# -----------------------------

def _stable_hash(key: str) -> str:
    # SHA1 is fine for identity fingerprints (not security).
    return hashlib.sha1(key.encode("utf-8")).hexdigest()


def _uuid_from_key(key: str) -> str:
    """
    Convert an arbitrary key string into a canonical UUID-like value
    (8-4-4-4-12). Deterministic for the same key.
    """
    h32 = _stable_hash(key)[:32]
    return f"{h32[0:8]}-{h32[8:12]}-{h32[12:16]}-{h32[16:20]}-{h32[20:32]}"


# -----------------------------
# Member / invitation identities
# -----------------------------

def new_member_id() -> str:
    """Fresh id for a member created by a user action."""
    return str(uuid.uuid4())


def invitation_id(sender_id: str, receiver_id: str, member_id: str) -> str:
    """
    Same sender, receiver and bridge member always yield the same invitation
    id, so re-sending an invitation does not create a second row.
    """
    return _uuid_from_key(f"INV|{sender_id}|{receiver_id}|{member_id}")


def pair_key(a: str, b: str) -> Tuple[str, str]:
    """Order-independent key for a pair of member ids."""
    return (a, b) if a <= b else (b, a)
