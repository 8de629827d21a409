"""Daily writing commands for CorePatch CLI.

Handles writing, clearing and viewing a day's reflections, and
requesting AI feedback for them.
"""

from datetime import date, datetime
from typing import Optional

import click
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from corepatch.catalog import PROGRAM_LENGTH
from corepatch.cli.common import (
    DATE_OPTION_FORMATS,
    console,
    fail,
    get_data_store,
    get_feedback_manager,
    get_settings,
    option_day,
    require_active_wound,
)
from corepatch.editor import EntryEditor
from corepatch.errors import CorePatchError, EntryLockedError, StorageError
from corepatch.models import Category, Entry
from corepatch.progress import day_for_date, program_start

FEEDBACK_FAILED_MESSAGE = (
    "[yellow]Your reflections are saved, but feedback could not be generated.[/yellow]\n\n"
    "Run [cyan]corepatch feedback[/cyan] to try again."
)

category_argument = click.argument(
    "category",
    type=click.Choice([c.value for c in Category], case_sensitive=False),
)
date_option = click.option(
    "--date", "day",
    type=click.DateTime(formats=DATE_OPTION_FORMATS),
    default=None,
    help="Day to edit as YYYY-MM-DD (default: today).",
)


def render_checklist(entry: Entry, title: str) -> Table:
    """Build a table with one row per category."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("", justify="center")
    table.add_column("Area", style="bold")
    table.add_column("Reflection")

    completed = set(entry.completed_categories)
    for category in Category:
        mark = "[green]✓[/green]" if category in completed else "[dim]○[/dim]"
        text = entry.get_text(category).strip() or f"[dim]{category.description}[/dim]"
        table.add_row(mark, category.display_name, text)
    return table


def render_feedback(entry: Entry) -> Panel:
    generated = (
        entry.feedback_generated_at.strftime("%Y-%m-%d %H:%M")
        if entry.feedback_generated_at
        else ""
    )
    return Panel(
        Markdown(entry.feedback or ""),
        title="[bold magenta]AI Feedback[/bold magenta]",
        subtitle=f"[dim]{generated}[/dim]",
        border_style="magenta",
    )


def _entry_title(store, wound_id, day: date) -> str:
    start = program_start(store, wound_id)
    number = day_for_date(start, day) if start else 1
    return f"Day {number}/{PROGRAM_LENGTH} - {day.strftime('%a %b %d, %Y')}"


def _edit(category: str, text: str, day: Optional[datetime]) -> None:
    store = get_data_store()
    wound = require_active_wound(store)
    manager = get_feedback_manager(store)
    settings = get_settings()

    try:
        try:
            with EntryEditor(
                store,
                wound.wound_id,
                day=option_day(day),
                feedback=manager,
                autosave_delay=settings.editor.autosave_delay,
            ) as editor:
                entry = editor.set_text(Category(category.lower()), text)
        except EntryLockedError:
            fail("[red]This day already has feedback and can no longer be edited.[/red]", title="Locked")
        except (ValueError, StorageError) as e:
            fail(f"[red]{e}[/red]")

        console.print(render_checklist(entry, _entry_title(store, wound.wound_id, entry.day)))

        if editor.feedback_future is not None:
            try:
                with console.status("[bold magenta]Generating AI feedback...[/bold magenta]"):
                    locked = editor.feedback_future.result()
            except CorePatchError:
                console.print(Panel(FEEDBACK_FAILED_MESSAGE, border_style="yellow"))
            else:
                if locked is not None:
                    console.print(render_feedback(locked))
    finally:
        manager.shutdown()
        manager.client.close()


@click.command()
@category_argument
@click.argument("text")
@date_option
def write(category: str, text: str, day: Optional[datetime]) -> None:
    """Write TEXT as today's reflection for CATEGORY.

    When the seventh area is written the day is sent for AI feedback
    and then locked.

    \b
    Examples:
      corepatch write career "I finished the report early"
      corepatch write social "Called my sister" --date 2026-10-18
    """
    if not text.strip():
        fail("[red]Reflection text is empty.[/red] Use [cyan]corepatch clear[/cyan] to remove one.")
    _edit(category, text, day)


@click.command()
@category_argument
@date_option
def clear(category: str, day: Optional[datetime]) -> None:
    """Remove the reflection for CATEGORY.

    Clearing every area of a day deletes that day's entry.
    """
    _edit(category, "", day)


@click.command()
@date_option
def show(day: Optional[datetime]) -> None:
    """Show a day's reflections and feedback."""
    store = get_data_store()
    wound = require_active_wound(store)
    target = option_day(day) or date.today()

    entry = store.get_entry_for_day(wound.wound_id, target)
    if entry is None:
        console.print(Panel(
            f"[dim]Nothing written on {target.isoformat()}[/dim]",
            title="[bold]Entry[/bold]",
            border_style="dim",
        ))
        return

    console.print(render_checklist(entry, _entry_title(store, wound.wound_id, target)))
    if entry.is_locked:
        console.print(render_feedback(entry))


@click.command()
@date_option
def feedback(day: Optional[datetime]) -> None:
    """Request AI feedback for a day that does not have it yet."""
    store = get_data_store()
    wound = require_active_wound(store)
    target = option_day(day) or date.today()

    entry = store.get_entry_for_day(wound.wound_id, target)
    if entry is None or not entry.completed_categories:
        fail(f"[red]Nothing written on {target.isoformat()}.[/red]")
    if entry.is_locked:
        console.print(render_feedback(entry))
        return

    manager = get_feedback_manager(store)
    try:
        with console.status("[bold magenta]Generating AI feedback...[/bold magenta]"):
            locked = manager.generate_feedback(entry)
    except CorePatchError:
        fail(FEEDBACK_FAILED_MESSAGE, title="Feedback Failed")
    finally:
        manager.client.close()

    if locked is not None:
        console.print(render_feedback(locked))
