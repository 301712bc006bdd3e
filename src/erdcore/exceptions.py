"""Custom exceptions for erdcore.

Every error carries an actionable message plus a ``context`` dict so that
callers (the editor UI, the CLI in ``--json`` mode) can render it without
parsing the message text.
"""

from __future__ import annotations

from typing import Any


class ErdCoreError(Exception):
    """Base exception for all erdcore errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Return error as JSON-serializable dict."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


# === Lookup errors ===


class EntityNotFoundError(ErdCoreError):
    """Entity does not exist in the diagram."""

    def __init__(self, entity_id: str, available_entities: list[str] | None = None) -> None:
        available = available_entities or []
        if available:
            message = f"Entity '{entity_id}' not found. Available entities: {', '.join(available)}"
        else:
            message = f"Entity '{entity_id}' not found. The diagram has no entities yet."

        super().__init__(message, {"entity_id": entity_id, "available_entities": available})
        self.entity_id = entity_id
        self.available_entities = available


class EntityAlreadyExistsError(ErdCoreError):
    """An entity with the same id or physical name is already in the diagram."""

    def __init__(self, entity_name: str) -> None:
        message = (
            f"Entity '{entity_name}' already exists. "
            f"Pick another physical name or rename the existing entity first."
        )
        super().__init__(message, {"entity_name": entity_name})
        self.entity_name = entity_name


class ColumnNotFoundError(ErdCoreError):
    """Column does not exist on entity."""

    def __init__(
        self, column_id: str, entity_name: str, available_columns: list[str] | None = None
    ) -> None:
        available = available_columns or []
        if available:
            message = (
                f"Column '{column_id}' not found on '{entity_name}'. "
                f"Available columns: {', '.join(available)}"
            )
        else:
            message = f"Column '{column_id}' not found on '{entity_name}'. No columns defined."

        super().__init__(
            message,
            {
                "column_id": column_id,
                "entity_name": entity_name,
                "available_columns": available,
            },
        )
        self.column_id = column_id
        self.entity_name = entity_name
        self.available_columns = available


class ColumnAlreadyExistsError(ErdCoreError):
    """Column name or id is already used on the entity."""

    def __init__(self, column_name: str, entity_name: str) -> None:
        message = (
            f"Column '{column_name}' already exists on '{entity_name}'. "
            f"Column names must be unique within an entity."
        )
        super().__init__(message, {"column_name": column_name, "entity_name": entity_name})
        self.column_name = column_name
        self.entity_name = entity_name


class RelationshipNotFoundError(ErdCoreError):
    """Relationship does not exist in the diagram."""

    def __init__(self, relationship_id: str, available_relationships: list[str] | None = None) -> None:
        available = available_relationships or []
        if available:
            message = (
                f"Relationship '{relationship_id}' not found. "
                f"Available relationships: {', '.join(available)}"
            )
        else:
            message = f"Relationship '{relationship_id}' not found. No relationships defined."

        super().__init__(
            message,
            {"relationship_id": relationship_id, "available_relationships": available},
        )
        self.relationship_id = relationship_id
        self.available_relationships = available


# === Validation errors ===


class InvalidColumnFieldError(ErdCoreError):
    """A column field name or value was rejected."""

    def __init__(self, field: str, reason: str, value: Any = None) -> None:
        message = f"Cannot set column field '{field}': {reason}"
        super().__init__(message, {"field": field, "value": value, "reason": reason})
        self.field = field
        self.value = value
        self.reason = reason


class InvalidForeignKeyError(ErdCoreError):
    """A foreign key column does not fit its parent or its relationship."""

    def __init__(
        self,
        column_name: str,
        parent_entity_id: str,
        parent_column_id: str,
        reason: str | None = None,
    ) -> None:
        if reason is None:
            reason = f"'{parent_column_id}' is not a PK column of entity '{parent_entity_id}'"
            message = f"Foreign key column '{column_name}' must reference a primary key column: {reason}."
        else:
            message = f"Invalid foreign key column '{column_name}': {reason}."
        super().__init__(
            message,
            {
                "column_name": column_name,
                "parent_entity_id": parent_entity_id,
                "parent_column_id": parent_column_id,
                "reason": reason,
            },
        )
        self.column_name = column_name
        self.parent_entity_id = parent_entity_id
        self.parent_column_id = parent_column_id
        self.reason = reason


class UnknownColorMapError(ErdCoreError):
    """A color was set on a map that does not exist."""

    def __init__(self, kind: str, valid: list[str]) -> None:
        message = f"Unknown color map '{kind}'. Valid: {', '.join(valid)}"
        super().__init__(message, {"kind": kind, "valid": valid})
        self.kind = kind
        self.valid = valid


# === Relationship structure errors ===


class RelationshipAlreadyExistsError(ErdCoreError):
    """The pair is already connected in this direction."""

    def __init__(self, source_name: str, target_name: str) -> None:
        message = (
            f"Relationship '{source_name}' -> '{target_name}' already exists; "
            f"reconnect it to change its kind."
        )
        super().__init__(message, {"source": source_name, "target": target_name})
        self.source_name = source_name
        self.target_name = target_name


class CyclicRelationshipError(ErdCoreError):
    """A relationship already exists in the opposite direction."""

    def __init__(self, source_name: str, target_name: str) -> None:
        message = (
            f"Cannot connect '{source_name}' -> '{target_name}': a relationship "
            f"'{target_name}' -> '{source_name}' already exists. "
            f"Remove it first or reconnect it with another kind."
        )
        super().__init__(message, {"source": source_name, "target": target_name})
        self.source_name = source_name
        self.target_name = target_name


class MissingPrimaryKeyError(ErdCoreError):
    """The parent entity has no primary key column to reference."""

    def __init__(self, entity_name: str) -> None:
        message = (
            f"Entity '{entity_name}' has no primary key column. "
            f"Mark at least one column as PK before drawing a relationship from it."
        )
        super().__init__(message, {"entity_name": entity_name})
        self.entity_name = entity_name


class InvalidSelfIdentifyingError(ErdCoreError):
    """Self-relationships cannot be identifying."""

    def __init__(self, entity_name: str) -> None:
        message = (
            f"Self-relationship on '{entity_name}' cannot be identifying: a column "
            f"referencing its own entity cannot be part of that entity's primary key. "
            f"Use a non-identifying kind."
        )
        super().__init__(message, {"entity_name": entity_name})
        self.entity_name = entity_name


class FkMatchNotFoundError(ErdCoreError):
    """No descendant FK column matched during a cascade (non-fatal)."""

    def __init__(self, child_name: str, parent_name: str, column_name: str) -> None:
        message = (
            f"No FK column in '{child_name}' matches '{parent_name}.{column_name}'; "
            f"skipped this branch of the cascade."
        )
        super().__init__(
            message,
            {"child": child_name, "parent": parent_name, "column": column_name},
        )
        self.child_name = child_name
        self.parent_name = parent_name
        self.column_name = column_name


# === Snapshot and storage errors ===


class CorruptSnapshotError(ErdCoreError):
    """A persisted document or history snapshot could not be restored."""

    def __init__(self, reason: str, problems: list[str] | None = None) -> None:
        message = f"Corrupt diagram snapshot: {reason}"
        super().__init__(message, {"reason": reason, "problems": problems or []})
        self.reason = reason
        self.problems = problems or []


class StoreConnectionError(ErdCoreError):
    """Failed to connect to the diagram store database."""

    pass


class DiagramNotFoundError(ErdCoreError):
    """No saved diagram with the given id."""

    def __init__(self, diagram_id: str) -> None:
        message = f"Diagram '{diagram_id}' not found. Use 'erdcore store list' to see saved ids."
        super().__init__(message, {"diagram_id": diagram_id})
        self.diagram_id = diagram_id
