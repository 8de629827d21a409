"""Progress commands for CorePatch CLI.

Shows the current program day, the activity grid and timeline, and
lets the user jump ahead to a later program day.
"""

from datetime import date
from typing import Optional

import click
from rich.panel import Panel
from rich.table import Table

from corepatch.catalog import PROGRAM_LENGTH
from corepatch.cli.common import console, fail, get_data_store, get_settings, require_active_wound
from corepatch.cli.entry import render_checklist
from corepatch.models import Category, Entry
from corepatch.progress import (
    Activity,
    day_for_date,
    day_number,
    load_activity,
    program_start,
    recap_message,
    skip_to_day,
)

# Grid colors from "nothing written" to "all seven areas"
LEVEL_STYLES = ["grey30", "green4", "green3", "green1", "bright_green"]
WEEKDAY_LABELS = ["Mon", "", "", "Thu", "", "", "Sun"]


def render_grid(activity: Activity) -> Table:
    """Contribution-style grid, one column per week."""
    columns = activity.grid()
    table = Table(show_header=True, header_style="dim", box=None, padding=(0, 0))
    table.add_column("", style="dim", justify="right")
    for column in columns:
        first = column[0].day
        table.add_column(first.strftime("%b") if first.day <= 7 else "", justify="center")

    for weekday in range(7):
        cells = []
        for column in columns:
            cell = column[weekday]
            if cell.is_future:
                cells.append(" ")
            elif cell.is_today:
                cells.append(f"[bold {LEVEL_STYLES[cell.level]}]◆[/]")
            else:
                cells.append(f"[{LEVEL_STYLES[cell.level]}]■[/]")
        table.add_row(f"{WEEKDAY_LABELS[weekday]} ", *cells)
    return table


def render_legend() -> str:
    blocks = " ".join(f"[{style}]■[/]" for style in LEVEL_STYLES)
    return f"[dim]Less[/dim] {blocks} [dim]More[/dim]"


def render_timeline(entries: list[Entry], start: Optional[date], activity: Activity) -> Table:
    table = Table(title="Timeline", show_header=True, header_style="bold cyan")
    table.add_column("Date", style="dim")
    table.add_column("Day", justify="right")
    table.add_column("Areas", justify="right")
    table.add_column("Feedback", justify="center")

    for entry in entries:
        number = day_for_date(start, entry.day) if start else 1
        count = activity.count_for(entry.day)
        count_color = "green" if count == len(Category) else "yellow" if count else "dim"
        table.add_row(
            entry.day.strftime("%a %b %d"),
            str(number),
            f"[{count_color}]{count}/{len(Category)}[/{count_color}]",
            "[magenta]✓[/magenta]" if entry.is_locked else "",
        )
    return table


@click.command()
def status() -> None:
    """Show today's program day, checklist and yesterday's recap."""
    store = get_data_store()
    wound = require_active_wound(store)
    today = date.today()

    number = day_number(store, wound.wound_id, today)
    activity = load_activity(store, wound.wound_id, weeks=1, today=today)
    headline, subtext = recap_message(activity.yesterday_count)

    console.print(Panel(
        f"[bold]Day {number}/{PROGRAM_LENGTH}[/bold]  "
        f"[dim]\"{wound.title}\"[/dim]\n\n"
        f"Evidence that [cyan]{wound.counter_belief}[/cyan]",
        title="[bold cyan]CorePatch[/bold cyan]",
        border_style="cyan",
    ))

    entry = store.get_entry_for_day(wound.wound_id, today)
    if entry is None:
        entry = Entry(wound_id=wound.wound_id)
    console.print(render_checklist(entry, "Today"))

    remaining = len(Category) - len(entry.completed_categories)
    if entry.is_locked:
        console.print("[magenta]All done for today - run [cyan]corepatch show[/cyan] to read your feedback.[/magenta]")
    elif remaining:
        console.print(f"[yellow]{remaining} area{'s' if remaining != 1 else ''} left today.[/yellow]")

    console.print(Panel(
        f"[bold]{headline}[/bold]\n[dim]{subtext}[/dim]",
        title="[bold purple]Yesterday Recap[/bold purple]",
        border_style="purple",
    ))


@click.command()
@click.option(
    "--weeks", "-w",
    type=click.IntRange(1, 52),
    default=None,
    help="Number of weeks to show (default from config, usually 5).",
)
def history(weeks: Optional[int]) -> None:
    """Show the activity grid and a timeline of past days."""
    store = get_data_store()
    wound = require_active_wound(store)
    weeks = weeks or get_settings().history.weeks

    activity = load_activity(store, wound.wound_id, weeks=weeks)
    console.print(Panel(
        render_grid(activity),
        title="[bold]Your Activity[/bold]",
        subtitle=render_legend(),
        border_style="green",
    ))

    if not activity.timeline:
        console.print("[dim]No entries in this period.[/dim]")
        return
    console.print(render_timeline(activity.timeline, program_start(store, wound.wound_id), activity))


@click.command()
@click.argument("day", type=click.IntRange(1, PROGRAM_LENGTH))
@click.option("--confirm", is_flag=True, help="Skip confirmation prompt.")
def skip(day: int, confirm: bool) -> None:
    """Jump ahead so that today becomes program DAY.

    Empty entries are created for the skipped days.
    """
    store = get_data_store()
    wound = require_active_wound(store)

    if not confirm:
        if not click.confirm(f"Mark today as day {day} of {PROGRAM_LENGTH}?"):
            console.print("[dim]Skip cancelled.[/dim]")
            return

    try:
        created = skip_to_day(store, wound.wound_id, day)
    except ValueError as e:
        fail(f"[red]{e}[/red]")

    console.print(Panel(
        f"[green]Today is now day {day}/{PROGRAM_LENGTH}.[/green]\n"
        f"[dim]{len(created)} empty day{'s' if len(created) != 1 else ''} added.[/dim]",
        title="[bold green]Skipped Ahead[/bold green]",
        border_style="green",
    ))
