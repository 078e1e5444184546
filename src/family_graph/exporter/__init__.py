"""
Exporter package.

Re-exports the JSON snapshot helpers used by the CLI and the pipeline.
"""

from __future__ import annotations

from .json_exporter import (
    build_graph_dict,
    export_graph_json,
    graph_from_dict,
    load_graph_json,
    to_json_compatible,
)

__all__ = [
    "build_graph_dict",
    "export_graph_json",
    "graph_from_dict",
    "load_graph_json",
    "to_json_compatible",
]
