"""CorePatch - a 21-day core wound reflection journal."""

__version__ = "0.1.0"
