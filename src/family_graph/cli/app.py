from __future__ import annotations

import typer
from rich.console import Console

from family_graph.cli.commands.candidates import candidates_command
from family_graph.cli.commands.merge import merge_command
from family_graph.cli.commands.place import place_command
from family_graph.cli.commands.stats import stats_command

app = typer.Typer(
    name="family-graph",
    help="Family tree merge candidates, merge execution and placement",
    add_completion=False,
)

console = Console()

app.command("candidates")(candidates_command)
app.command("merge")(merge_command)
app.command("place")(place_command)
app.command("stats")(stats_command)


def main():
    app()


if __name__ == "__main__":
    main()
