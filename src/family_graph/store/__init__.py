from __future__ import annotations

from .legacy import members_from_legacy_rows, parse_relation_type
from .record_store import InMemoryRecordStore, JsonFileRecordStore, RecordStore
from .records import member_from_record, member_to_record

__all__ = [
    "InMemoryRecordStore",
    "JsonFileRecordStore",
    "RecordStore",
    "member_from_record",
    "member_to_record",
    "members_from_legacy_rows",
    "parse_relation_type",
]
