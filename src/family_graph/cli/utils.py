from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, Dict

import typer
from rich.console import Console

from family_graph.exporter import load_graph_json, to_json_compatible
from family_graph.registry.entities import FamilyGraph
from family_graph.registry.link_entities import link_relationships
from family_graph.resolution.models import MergePair

console = Console()


def load_graph(path: Path, *, verbose: bool = False) -> FamilyGraph:
    """
    Load a graph snapshot (``{"owner_id": ..., "members": [...]}``).
    """
    if not path.exists():
        raise FileNotFoundError(path)

    t0 = time.perf_counter()
    graph = load_graph_json(path)
    link_relationships(graph)
    elapsed = time.perf_counter() - t0

    if verbose:
        console.log(f"Loaded {path.name}: {len(graph)} members in {elapsed:.2f}s")

    return graph


def parse_pair(value: str) -> MergePair:
    """``SOURCE:TARGET`` -> MergePair."""
    source_id, sep, target_id = value.partition(":")
    if not sep or not source_id or not target_id:
        raise typer.BadParameter(f"expected SOURCE:TARGET, got {value!r}")
    return MergePair(source_id.strip(), target_id.strip())


def write_json(
    data: Dict[str, Any],
    *,
    out: Path | None,
    pretty: bool,
):
    """
    Write JSON to stdout or file.
    """
    data = to_json_compatible(data)
    if pretty:
        payload = json.dumps(data, indent=2, ensure_ascii=False)
    else:
        payload = json.dumps(data, separators=(",", ":"), ensure_ascii=False)

    if out:
        out.write_text(payload, encoding="utf-8")
    else:
        print(payload)
