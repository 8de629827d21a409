"""Persistence layer for CorePatch."""
