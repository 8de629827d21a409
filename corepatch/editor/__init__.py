"""Entry editing sessions."""

from corepatch.editor.session import EntryEditor, EntryState

__all__ = ["EntryEditor", "EntryState"]
