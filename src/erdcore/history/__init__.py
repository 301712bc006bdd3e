"""Undo/redo history."""

from erdcore.history.manager import (
    HistoryAction,
    HistoryEntry,
    HistoryManager,
    describe_action,
)

__all__ = ["HistoryAction", "HistoryEntry", "HistoryManager", "describe_action"]
