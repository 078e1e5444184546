
"""
CLI command modules for family_graph.

Each command module defines a single Typer-compatible command function.
"""

from family_graph.cli.commands.candidates import candidates_command
from family_graph.cli.commands.merge import merge_command
from family_graph.cli.commands.place import place_command
from family_graph.cli.commands.stats import stats_command

__all__ = [
    "candidates_command",
    "merge_command",
    "place_command",
    "stats_command",
]
