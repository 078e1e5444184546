"""
json_exporter.py
JSON snapshots of family graphs and merge proposals.

This exporter:
- Converts dataclasses, enums and positions to plain dicts / strings
- Writes graph snapshots in the same row shape the record stores use,
  with positions inlined, so a snapshot can be loaded back
- Is deterministic: members are written in arena order
"""

from __future__ import annotations

import json
from dataclasses import fields, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping

from family_graph.logging import get_logger
from family_graph.registry.entities import FamilyGraph
from family_graph.store.records import member_from_record, member_to_record

log = get_logger("json_exporter")


def to_json_compatible(obj: Any) -> Any:
    """
    Recursively convert objects into JSON-compatible structures.

    Rules:
    - Primitives pass through
    - Enums -> their value
    - dataclasses -> dict (recursively; slotted classes included)
    - dict -> dict (recursively)
    - list / tuple / set -> list (recursively)
    - Anything else -> str(obj)
    """
    if isinstance(obj, Enum):
        return obj.value

    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj

    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_json_compatible(getattr(obj, f.name)) for f in fields(obj)}

    if isinstance(obj, Mapping):
        return {str(k): to_json_compatible(v) for k, v in obj.items()}

    if isinstance(obj, (list, tuple, set, frozenset)):
        return [to_json_compatible(v) for v in obj]

    return str(obj)


def build_graph_dict(graph: FamilyGraph) -> Dict[str, Any]:
    """Snapshot dict: ``{"owner_id": ..., "members": [rows with position]}``."""
    return {
        "owner_id": graph.owner_id,
        "members": [member_to_record(m, include_position=True) for m in graph.members.values()],
    }


def graph_from_dict(data: Mapping[str, Any]) -> FamilyGraph:
    """Inverse of ``build_graph_dict``."""
    members = [member_from_record(row) for row in data.get("members", []) or []]
    return FamilyGraph.from_members(members, owner_id=data.get("owner_id"))


def serialize_graph_to_json_string(graph: FamilyGraph, indent: int = 2) -> str:
    return json.dumps(build_graph_dict(graph), indent=indent, ensure_ascii=False)


def export_graph_json(graph: FamilyGraph, output_path: str | Path, indent: int = 2) -> None:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    tombstones = sum(1 for _ in graph.tombstones())
    log.info(
        "Exporting graph JSON to: %s (owner=%s, members=%d, tombstones=%d)",
        output_path,
        graph.owner_id,
        len(graph),
        tombstones,
    )

    json_str = serialize_graph_to_json_string(graph, indent=indent)

    with output_path.open("w", encoding="utf-8") as f:
        f.write(json_str)

    size_bytes = output_path.stat().st_size
    log.info("JSON export complete. size=%d bytes", size_bytes)


def load_graph_json(path: str | Path) -> FamilyGraph:
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    graph = graph_from_dict(data)
    log.debug("Loaded graph snapshot %s (%d members)", path, len(graph))
    return graph
