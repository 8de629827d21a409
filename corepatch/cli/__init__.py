"""CLI commands for CorePatch.

This package provides the command-line interface for CorePatch,
including wound selection, daily writing, progress and chat commands.
"""

from corepatch.cli.main import cli, main

__all__ = ["cli", "main"]
