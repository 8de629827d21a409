"""Core wound selection commands for CorePatch CLI."""

import click
from rich.panel import Panel
from rich.table import Table

from corepatch.catalog import PROGRAM_LENGTH, WOUND_CATALOG
from corepatch.cli.common import console, get_data_store, require_active_wound
from corepatch.models import CoreWoundID
from corepatch.progress import day_number


@click.group()
def wound() -> None:
    """Choose the core wound you are working on.

    Only one wound is active at a time. Switching keeps the entries
    written for other wounds.

    \b
    Examples:
      corepatch wound list
      corepatch wound select PEOPLE_ALWAYS_LEAVE_ME
      corepatch wound show
    """
    pass


@wound.command("list")
def list_wounds() -> None:
    """List the available core wounds."""
    store = get_data_store()
    active = store.get_active_wound()

    table = Table(title="Core Wounds", show_header=True, header_style="bold cyan")
    table.add_column("", justify="center")
    table.add_column("ID", style="dim")
    table.add_column("Wound", style="bold")
    table.add_column("Counter-belief", style="green")

    for definition in WOUND_CATALOG.values():
        marker = "[green]●[/green]" if active and active.wound_id == definition.id else ""
        table.add_row(
            marker,
            definition.id.value,
            f"\"{definition.title}\"\n[dim]{definition.description}[/dim]",
            definition.counter_belief,
        )

    console.print(table)


@wound.command("select")
@click.argument(
    "wound_id",
    type=click.Choice([w.value for w in CoreWoundID], case_sensitive=False),
)
def select_wound(wound_id: str) -> None:
    """Make WOUND_ID the active program."""
    store = get_data_store()
    selected = store.set_active_wound(CoreWoundID(wound_id.upper()))

    console.print(Panel(
        f"[green]Now working on[/green] [bold]\"{selected.title}\"[/bold]\n\n"
        f"Counter-belief: [cyan]{selected.counter_belief}[/cyan]",
        title="[bold green]Wound Selected[/bold green]",
        border_style="green",
    ))


@wound.command("show")
def show_wound() -> None:
    """Show the active wound."""
    store = get_data_store()
    active = require_active_wound(store)
    definition = active.definition
    day = day_number(store, active.wound_id)
    started = active.started_at.strftime("%Y-%m-%d") if active.started_at else "-"

    console.print(Panel(
        f"[bold]\"{active.title}\"[/bold]\n"
        f"[dim]{definition.description if definition else ''}[/dim]\n\n"
        f"Counter-belief: [cyan]{active.counter_belief}[/cyan]\n"
        f"Selected:       {started}\n"
        f"Progress:       Day {day}/{PROGRAM_LENGTH}",
        title="[bold]Active Wound[/bold]",
        border_style="cyan",
    ))
