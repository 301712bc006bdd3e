"""Linear undo/redo history of full graph snapshots."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from erdcore.core.types import Graph, new_id

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50


class HistoryAction(StrEnum):
    """Kinds of edits recorded in the history."""

    INITIAL_STATE = "INITIAL_STATE"
    CREATE_ENTITY = "CREATE_ENTITY"
    DELETE_ENTITY = "DELETE_ENTITY"
    CREATE_RELATIONSHIP = "CREATE_RELATIONSHIP"
    DELETE_RELATIONSHIP = "DELETE_RELATIONSHIP"
    CHANGE_RELATIONSHIP_TYPE = "CHANGE_RELATIONSHIP_TYPE"
    ADD_COLUMN = "ADD_COLUMN"
    DELETE_COLUMN = "DELETE_COLUMN"
    MODIFY_COLUMN = "MODIFY_COLUMN"
    REORDER_COLUMNS = "REORDER_COLUMNS"
    CHANGE_COLUMN_PK = "CHANGE_COLUMN_PK"
    CHANGE_COLUMN_NN = "CHANGE_COLUMN_NN"
    CHANGE_COLUMN_UQ = "CHANGE_COLUMN_UQ"
    CHANGE_COLUMN_AI = "CHANGE_COLUMN_AI"
    CHANGE_COLUMN_FK_CONSTRAINT = "CHANGE_COLUMN_FK_CONSTRAINT"
    CHANGE_ENTITY_PHYSICAL_NAME = "CHANGE_ENTITY_PHYSICAL_NAME"
    CHANGE_ENTITY_LOGICAL_NAME = "CHANGE_ENTITY_LOGICAL_NAME"
    CHANGE_COLUMN_PHYSICAL_NAME = "CHANGE_COLUMN_PHYSICAL_NAME"
    CHANGE_COLUMN_LOGICAL_NAME = "CHANGE_COLUMN_LOGICAL_NAME"
    CHANGE_NODE_COLOR = "CHANGE_NODE_COLOR"
    TOGGLE_ENTITY_VISIBILITY = "TOGGLE_ENTITY_VISIBILITY"
    LOAD_DIAGRAM = "LOAD_DIAGRAM"


_DESCRIPTIONS: dict[HistoryAction, str] = {
    HistoryAction.INITIAL_STATE: "Initial state",
    HistoryAction.CREATE_ENTITY: "Created entity {entity}",
    HistoryAction.DELETE_ENTITY: "Deleted entity {entity}",
    HistoryAction.CREATE_RELATIONSHIP: "Connected {source} -> {target}",
    HistoryAction.DELETE_RELATIONSHIP: "Disconnected {source} -> {target}",
    HistoryAction.CHANGE_RELATIONSHIP_TYPE: "Changed {source} -> {target} to {kind}",
    HistoryAction.ADD_COLUMN: "Added column {entity}.{column}",
    HistoryAction.DELETE_COLUMN: "Deleted column {entity}.{column}",
    HistoryAction.MODIFY_COLUMN: "Modified {field} of {entity}.{column}",
    HistoryAction.REORDER_COLUMNS: "Reordered columns of {entity}",
    HistoryAction.CHANGE_COLUMN_PK: "Set PK={value} on {entity}.{column}",
    HistoryAction.CHANGE_COLUMN_NN: "Set NOT NULL={value} on {entity}.{column}",
    HistoryAction.CHANGE_COLUMN_UQ: "Set UNIQUE={value} on {entity}.{column}",
    HistoryAction.CHANGE_COLUMN_AI: "Set AUTO_INCREMENT={value} on {entity}.{column}",
    HistoryAction.CHANGE_COLUMN_FK_CONSTRAINT: "Set {field}={value} on {entity}.{column}",
    HistoryAction.CHANGE_ENTITY_PHYSICAL_NAME: "Renamed entity {old} to {new}",
    HistoryAction.CHANGE_ENTITY_LOGICAL_NAME: "Changed logical name of {entity} to {new}",
    HistoryAction.CHANGE_COLUMN_PHYSICAL_NAME: "Renamed column {entity}.{old} to {new}",
    HistoryAction.CHANGE_COLUMN_LOGICAL_NAME: "Changed logical name of {entity}.{column} to {new}",
    HistoryAction.CHANGE_NODE_COLOR: "Changed {kind} color of {element}",
    HistoryAction.TOGGLE_ENTITY_VISIBILITY: "Toggled visibility of {entity}",
    HistoryAction.LOAD_DIAGRAM: "Loaded diagram",
}


class _Defaulting(dict):
    def __missing__(self, key: str) -> str:
        return "?"


def describe_action(action: HistoryAction, metadata: dict[str, Any] | None = None) -> str:
    """Human-readable label for a history entry; missing metadata shows as ``?``."""
    template = _DESCRIPTIONS.get(action, action.value)
    return template.format_map(_Defaulting(metadata or {}))


class HistoryEntry(BaseModel):
    """One undo step: the full graph as it was right after an edit."""

    id: str = Field(default_factory=lambda: new_id("hst"))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    action_type: HistoryAction
    description: str
    snapshot: Graph


class HistoryManager:
    """Linear stack of snapshots with a cursor.

    Saving while the cursor is behind the end discards the redo tail. Once
    more than ``max_size`` entries are held the oldest is evicted.
    """

    def __init__(self, max_size: int = DEFAULT_HISTORY_LIMIT) -> None:
        if max_size < 1:
            raise ValueError("History size must be at least 1")
        self.max_size = max_size
        self._entries: list[HistoryEntry] = []
        self._index = -1

    def save_state(
        self,
        action_type: HistoryAction,
        snapshot: Graph,
        metadata: dict[str, Any] | None = None,
    ) -> HistoryEntry:
        """Record the graph state after an edit."""
        if self._index < len(self._entries) - 1:
            del self._entries[self._index + 1 :]

        entry = HistoryEntry(
            action_type=action_type,
            description=describe_action(action_type, metadata),
            snapshot=snapshot.model_copy(deep=True),
        )
        self._entries.append(entry)
        self._index += 1

        if len(self._entries) > self.max_size:
            self._entries.pop(0)
            self._index -= 1

        logger.debug(f"History saved [{self._index}]: {entry.description}")
        return entry

    def undo(self) -> Graph | None:
        """Step back; returns the restored snapshot or ``None`` at the start."""
        if not self.can_undo():
            return None
        undone = self._entries[self._index]
        self._index -= 1
        logger.info(f"Undo: {undone.description}")
        return self._entries[self._index].snapshot.model_copy(deep=True)

    def redo(self) -> Graph | None:
        """Step forward; returns the restored snapshot or ``None`` at the end."""
        if not self.can_redo():
            return None
        self._index += 1
        entry = self._entries[self._index]
        logger.info(f"Redo: {entry.description}")
        return entry.snapshot.model_copy(deep=True)

    def can_undo(self) -> bool:
        return self._index > 0

    def can_redo(self) -> bool:
        return self._index < len(self._entries) - 1

    def clear(self) -> None:
        """Forget every entry."""
        self._entries = []
        self._index = -1

    @property
    def current(self) -> HistoryEntry | None:
        """The entry under the cursor."""
        if self._index < 0:
            return None
        return self._entries[self._index]

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def entries(self) -> list[HistoryEntry]:
        """A copy of the entry list, oldest first."""
        return list(self._entries)

    @property
    def size(self) -> int:
        return len(self._entries)
