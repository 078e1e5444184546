from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from family_graph.cli.utils import load_graph
from family_graph.exporter import export_graph_json
from family_graph.layout.placement import place_member

console = Console()


def place_command(
    graph: Path = typer.Argument(..., exists=True, readable=True, help="Graph snapshot"),
    member_id: str = typer.Argument(..., help="Member to place"),
    out: Optional[Path] = typer.Option(
        None,
        "--out",
        "-o",
        help="Write the updated snapshot to this file",
    ),
):
    """
    Compute a canvas position for a member without one.
    """
    family = load_graph(graph)
    if member_id not in family:
        console.print(f"[red]Unknown member:[/red] {member_id}")
        raise typer.Exit(code=1)

    position = place_member(family, member_id)
    console.print(f"{member_id}: x={position.x:g} y={position.y:g}")

    if out:
        export_graph_json(family, out)
