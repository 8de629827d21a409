"""Helpers shared by CorePatch CLI commands."""

from datetime import date
from typing import NoReturn, Optional

import click
from rich.console import Console
from rich.panel import Panel

from corepatch.config import Settings, load_settings
from corepatch.db.store import DataStore
from corepatch.feedback.client import FeedbackClient
from corepatch.feedback.manager import FeedbackManager
from corepatch.models import UserCoreWound

console = Console()

DATE_OPTION_FORMATS = ["%Y-%m-%d"]


def get_settings() -> Settings:
    """Settings loaded by the root command, or freshly loaded."""
    ctx = click.get_current_context(silent=True)
    if ctx is not None:
        obj = ctx.find_root().obj
        if isinstance(obj, dict) and "settings" in obj:
            return obj["settings"]
    return load_settings()


def get_data_store() -> DataStore:
    """Get the data store instance."""
    return DataStore(get_settings().db_path)


def build_feedback_client() -> FeedbackClient:
    api = get_settings().api
    return FeedbackClient(api_url=api.url, user_id=api.user_id, timeout=api.timeout)


def get_feedback_manager(store: DataStore) -> FeedbackManager:
    return FeedbackManager(store, build_feedback_client())


def fail(message: str, title: str = "Error") -> NoReturn:
    """Print an error panel and exit with status 1."""
    console.print(Panel(
        message,
        title=f"[bold red]{title}[/bold red]",
        border_style="red",
    ))
    raise SystemExit(1)


def require_active_wound(store: DataStore) -> UserCoreWound:
    wound = store.get_active_wound()
    if wound is None:
        fail(
            "[red]No core wound selected.[/red]\n\n"
            "Run [cyan]corepatch wound list[/cyan] and "
            "[cyan]corepatch wound select <ID>[/cyan] to start a program."
        )
    return wound


def option_day(value) -> Optional[date]:
    """Convert a click DateTime option value to a date."""
    return value.date() if value is not None else None
