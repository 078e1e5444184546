from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from family_graph.cli.utils import load_graph

console = Console()


def stats_command(
    graph: Path = typer.Argument(..., exists=True, readable=True),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable rich logging",
    ),
):
    """
    Show summary statistics for a graph snapshot.
    """
    family = load_graph(graph, verbose=verbose)
    live = list(family.live_members())

    table = Table(title="Family Graph Statistics")
    table.add_column("Entity", style="bold")
    table.add_column("Count", justify="right")

    table.add_row("Members", str(len(family)))
    table.add_row("Live", str(len(live)))
    table.add_row("Tombstones", str(len(family) - len(live)))
    table.add_row("Linked accounts", str(sum(1 for m in live if m.linked_user_id)))
    table.add_row("Positioned", str(len(family.positions())))

    console.print(table)
