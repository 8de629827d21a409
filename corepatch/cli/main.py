"""Main CLI entry point for CorePatch.

This module provides the main click group and lazy loading
of command modules to keep startup fast.
"""

from pathlib import Path
from typing import Optional

import click

from corepatch.config import load_settings
from corepatch.logging_config import configure_logging


class LazyGroup(click.Group):
    """A click Group that lazily loads commands.

    Command modules are only imported when the command is invoked.
    """

    def __init__(self, *args, lazy_subcommands: dict[str, str] | None = None, **kwargs):
        """Initialize the lazy group.

        Args:
            lazy_subcommands: Mapping of command names to module paths.
        """
        super().__init__(*args, **kwargs)
        self._lazy_subcommands = lazy_subcommands or {}

    def list_commands(self, ctx: click.Context) -> list[str]:
        """List all available commands."""
        base = super().list_commands(ctx)
        lazy = list(self._lazy_subcommands.keys())
        return sorted(set(base + lazy))

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        """Get a command by name, lazily loading if needed."""
        if cmd_name in self.commands:
            return self.commands[cmd_name]

        if cmd_name in self._lazy_subcommands:
            return self._lazy_load(cmd_name)

        return None

    def _lazy_load(self, cmd_name: str) -> click.Command:
        """Lazily load a command from its module path."""
        import importlib

        module_path = self._lazy_subcommands[cmd_name]
        module = importlib.import_module(module_path)

        attr = getattr(module, cmd_name, None)
        if not isinstance(attr, click.Command):
            raise click.ClickException(f"Could not find command '{cmd_name}' in {module_path}")

        self.add_command(attr)
        return attr


LAZY_SUBCOMMANDS = {
    "wound": "corepatch.cli.wound",
    # Daily writing
    "write": "corepatch.cli.entry",
    "clear": "corepatch.cli.entry",
    "show": "corepatch.cli.entry",
    "feedback": "corepatch.cli.entry",
    # Progress
    "status": "corepatch.cli.progress",
    "history": "corepatch.cli.progress",
    "skip": "corepatch.cli.progress",
    # Chat
    "chat": "corepatch.cli.chat",
}


CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


@click.group(cls=LazyGroup, lazy_subcommands=LAZY_SUBCOMMANDS, context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="corepatch")
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to config.toml (default: ~/.config/corepatch/config.toml).",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool) -> None:
    """CorePatch - a 21-day journal for rewriting a core wound.

    Each day, write one piece of evidence against your core wound in each
    of seven life areas. When all seven are written the day is sent for
    AI feedback and locked.

    \b
    Quick Start:
      corepatch wound list                 # See the core wounds
      corepatch wound select IM_NOT_GOOD_ENOUGH
      corepatch write career "Led the planning meeting"
      corepatch status                     # Day N/21 and today's checklist
      corepatch history                    # Activity grid
    """
    settings = load_settings(config_path)
    configure_logging("DEBUG" if verbose else settings.logging.level)

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
