from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from family_graph.cli.utils import load_graph, write_json
from family_graph.resolution.candidates import find_merge_candidates
from family_graph.resolution.models import MergeDialogData

console = Console()


def candidates_command(
    sender: Path = typer.Argument(..., exists=True, readable=True, help="Sender tree snapshot"),
    receiver: Path = typer.Argument(..., exists=True, readable=True, help="Receiver tree snapshot"),
    bridge: str = typer.Option(..., "--bridge", "-b", help="Bridge member id in the sender tree"),
    receiver_user: Optional[str] = typer.Option(
        None,
        "--receiver-user",
        help="Receiver account id (defaults to the receiver snapshot's owner_id)",
    ),
    sender_name: str = typer.Option("", "--sender-name"),
    receiver_name: str = typer.Option("", "--receiver-name"),
    out: Optional[Path] = typer.Option(
        None,
        "--out",
        "-o",
        help="Write output to file instead of stdout",
    ),
    pretty: bool = typer.Option(
        False,
        "--pretty",
        help="Pretty-print JSON",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable rich logging",
    ),
):
    """
    Propose merges between two trees joined at a bridge member.
    """
    sender_graph = load_graph(sender, verbose=verbose)
    receiver_graph = load_graph(receiver, verbose=verbose)

    result = find_merge_candidates(
        sender_graph,
        receiver_graph,
        bridge,
        receiver_user_id=receiver_user,
    )

    if verbose:
        console.log(
            f"{len(result.parent_merges)} parent merges, "
            f"{len(result.child_suggestions)} child suggestions"
        )

    dialog = MergeDialogData.from_result(
        result,
        sender_name=sender_name or (sender_graph.owner_id or ""),
        receiver_name=receiver_name or (receiver_graph.owner_id or ""),
    )
    write_json({"empty": result.is_empty, "dialog": dialog}, out=out, pretty=pretty)
