"""Chat command for CorePatch CLI."""

from typing import Optional

import click
from rich.markdown import Markdown
from rich.panel import Panel

from corepatch.cli.common import build_feedback_client, console, fail, get_data_store
from corepatch.errors import CorePatchError
from corepatch.feedback import ChatManager
from corepatch.models import MessageType

TRANSCRIPT_LABELS = {
    MessageType.GENERAL: "",
    MessageType.DAILY_REFLECTION: " [dim](daily reflection)[/dim]",
    MessageType.FEEDBACK: " [dim](feedback)[/dim]",
}


@click.command()
@click.argument("message", required=False)
@click.option("--history", "show_history", is_flag=True, help="Show the conversation so far.")
def chat(message: Optional[str], show_history: bool) -> None:
    """Talk with the CorePatch assistant.

    \b
    Examples:
      corepatch chat "Why does this belief feel so true?"
      corepatch chat --history
    """
    store = get_data_store()

    if show_history or not message:
        manager = ChatManager(store)
        messages = manager.messages()
        if not messages:
            console.print("[dim]No conversation yet.[/dim]")
            return
        for msg in messages:
            who = "[bold cyan]You[/bold cyan]" if msg.is_from_user else "[bold magenta]CorePatch[/bold magenta]"
            console.print(f"{who}{TRANSCRIPT_LABELS[msg.message_type]} [dim]{msg.timestamp:%Y-%m-%d %H:%M}[/dim]")
            console.print(Markdown(msg.content))
            console.print()
        return

    client = build_feedback_client()
    manager = ChatManager(store, client)
    try:
        with console.status("[bold magenta]Thinking...[/bold magenta]"):
            reply = manager.send_chat_message(message)
    except CorePatchError as e:
        fail(f"[red]Could not reach the assistant.[/red]\n\n[dim]{e}[/dim]")
    finally:
        client.close()

    console.print(Panel(Markdown(reply), title="[bold magenta]CorePatch[/bold magenta]", border_style="magenta"))
