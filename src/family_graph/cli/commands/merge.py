from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from family_graph.cli.utils import load_graph, parse_pair
from family_graph.exporter import export_graph_json
from family_graph.resolution.executor import MergeStatus, execute_merges

console = Console()

STATUS_STYLE = {
    MergeStatus.APPLIED: "green",
    MergeStatus.ALREADY_APPLIED: "cyan",
    MergeStatus.FAILED: "red",
}


def merge_command(
    graph: Path = typer.Argument(..., exists=True, readable=True, help="Graph snapshot"),
    pair: List[str] = typer.Option(
        ...,
        "--pair",
        "-p",
        help="SOURCE:TARGET (target is absorbed into source); repeatable",
    ),
    out: Optional[Path] = typer.Option(
        None,
        "--out",
        "-o",
        help="Write the merged snapshot to this file",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable rich logging",
    ),
):
    """
    Apply merge pairs to a graph snapshot.
    """
    family = load_graph(graph, verbose=verbose)
    pairs = [parse_pair(p) for p in pair]

    report = execute_merges(family, pairs)

    table = Table(title="Merge Outcomes")
    table.add_column("Source", style="bold")
    table.add_column("Target")
    table.add_column("Status")
    table.add_column("Detail")
    for outcome in report.outcomes:
        style = STATUS_STYLE.get(outcome.status, "yellow")
        table.add_row(
            outcome.pair.source_id,
            outcome.pair.target_id,
            f"[{style}]{outcome.status.value}[/{style}]",
            outcome.detail,
        )
    console.print(table)

    if report.symmetry_fixes and verbose:
        console.log(f"Spouse links repaired: {', '.join(report.symmetry_fixes)}")

    if out:
        export_graph_json(family, out)
        if verbose:
            console.log(f"Wrote {out}")
