"""Column edits that cascade into descendant entities."""

from __future__ import annotations

import logging
from typing import Any

from erdcore.core.types import ChangeResult, Column, Graph, Notification, NotificationLevel
from erdcore.exceptions import InvalidForeignKeyError
from erdcore.propagation.engine import (
    propagate_column_addition,
    propagate_column_deletion,
    propagate_data_type_change,
    sibling_fk_settings,
)
from erdcore.relationships.resolver import toggle_fk_primary_key
from erdcore.schema import graph as ops

logger = logging.getLogger(__name__)


def _fit_foreign_key(graph: Graph, entity_id: str, column: Column) -> Column:
    """Align a hand-added FK column with its relationship and its sibling FKs.

    Raises:
        InvalidForeignKeyError: If the entities are not connected, or the
            column's ``pk`` flag disagrees with the relationship kind
    """
    fk = column.foreign_key
    if fk is None:
        return column
    entity = ops.get_entity(graph, entity_id)
    relationship = ops.relationship_between(graph, fk.parent_entity_id, entity.id)
    if relationship is None:
        raise InvalidForeignKeyError(
            column.name,
            fk.parent_entity_id,
            fk.parent_column_id,
            f"'{fk.parent_entity_id}' is not connected to '{entity.label}'; connect them first",
        )
    identifying = relationship.kind.is_identifying
    if column.pk != identifying:
        raise InvalidForeignKeyError(
            column.name,
            fk.parent_entity_id,
            fk.parent_column_id,
            f"pk must be {identifying} under a {relationship.kind.value} relationship",
        )

    siblings = ops.foreign_keys_from(entity, fk.parent_entity_id)
    if not siblings:
        return column
    group_id, on_delete, on_update = sibling_fk_settings(entity, fk.parent_entity_id)
    update: dict[str, Any] = {
        "foreign_key": fk.model_copy(
            update={
                "relationship_group_id": group_id,
                "on_delete": on_delete,
                "on_update": on_update,
            }
        )
    }
    if group_id is not None and not identifying:
        update["nn"] = siblings[0].nn
    return column.model_copy(update=update)


def add_column(
    graph: Graph,
    entity_id: str,
    column: Column,
    index: int | None = None,
    validate_names: bool = True,
) -> ChangeResult:
    """Add a column; a new PK column gets an FK on every child entity.

    An FK column must belong to an existing relationship: its ``pk`` flag
    follows the relationship kind and it joins the group and referential
    actions of the FKs already held from that parent.
    """
    column = _fit_foreign_key(graph, entity_id, column)
    graph = ops.add_column(graph, entity_id, column, index, validate_names)
    entity = ops.get_entity(graph, entity_id)
    added = ops.get_column(entity, column.id)
    logger.debug(f"Added column {entity.label}.{added.name}")
    if added.pk:
        result = propagate_column_addition(graph, entity_id, added)
        return ChangeResult(graph=result.graph, notifications=result.notifications)
    return ChangeResult(graph=graph)


def remove_column(graph: Graph, entity_id: str, column_id: str) -> ChangeResult:
    """Remove a column and everything derived from it.

    Removing a PK column removes its FK copies from every descendant.
    Removing an FK column directly drops an identifying relationship once
    the child keeps no FK from that parent.
    """
    entity = ops.get_entity(graph, entity_id)
    column = ops.get_column(entity, column_id)
    graph = ops.remove_column(graph, entity_id, column_id)
    notes: list[Notification] = []

    if column.pk:
        result = propagate_column_deletion(graph, entity_id, column)
        graph = result.graph
        notes.extend(result.notifications)

    fk = column.foreign_key
    if fk is not None:
        relationship = ops.relationship_between(graph, fk.parent_entity_id, entity_id)
        remaining = ops.foreign_keys_from(ops.get_entity(graph, entity_id), fk.parent_entity_id)
        if relationship is not None and relationship.kind.is_identifying and not remaining:
            graph = ops.remove_relationship(graph, relationship.id)
            parent = ops.get_entity(graph, fk.parent_entity_id)
            notes.append(
                Notification(
                    message=f"Removed relationship {parent.label} -> {entity.label}: "
                    f"its last foreign key was deleted",
                    entity_id=entity_id,
                )
            )

    logger.debug(f"Removed column {entity.label}.{column.name}")
    return ChangeResult(graph=graph, notifications=notes)


def _relink_legacy_references(graph: Graph, parent_id: str, column: Column, old_name: str) -> Graph:
    """Point FKs that reference a column by its old name at the column id instead."""
    for relationship in ops.child_relationships(graph, parent_id):
        child = ops.get_entity(graph, relationship.target)
        for fk_column in ops.foreign_keys_from(child, parent_id):
            fk = fk_column.foreign_key
            if fk is not None and fk.parent_column_id == old_name:
                relinked = fk_column.model_copy(
                    update={"foreign_key": fk.model_copy(update={"parent_column_id": column.id})}
                )
                graph = ops.replace_column(graph, child.id, relinked)
    return graph


def _demote_primary_key(graph: Graph, entity_id: str, column: Column, field: str, value: Any) -> ChangeResult:
    if column.fk:
        result = toggle_fk_primary_key(graph, entity_id, column.id, False)
        graph = result.graph
        if field != "pk":
            graph = ops.set_column_field(graph, entity_id, column.id, field, value)
        return ChangeResult(graph=graph, notifications=result.notifications)

    graph = ops.set_column_field(graph, entity_id, column.id, field, value)
    return propagate_column_deletion(graph, entity_id, column)


def set_column_field(
    graph: Graph,
    entity_id: str,
    column_id: str,
    field: str,
    value: Any,
    validate_names: bool = True,
) -> ChangeResult:
    """Set one column field and cascade its consequences.

    ``pk`` toggles create or remove descendant FKs (and, on an FK column,
    flip the relationship between identifying and non-identifying), ``uq``
    on a key column demotes it the same way, and a key column's
    ``data_type`` is copied down to every FK that references it.
    """
    field = ops.normalize_field(field)
    entity = ops.get_entity(graph, entity_id)
    column = ops.get_column(entity, column_id)

    if field == "pk" and isinstance(value, bool):
        if value == column.pk:
            return ChangeResult(graph=graph)
        if not value:
            return _demote_primary_key(graph, entity_id, column, field, value)
        if column.fk:
            return toggle_fk_primary_key(graph, entity_id, column_id, True)
        graph = ops.set_column_field(graph, entity_id, column_id, field, value, validate_names)
        promoted = ops.get_column(ops.get_entity(graph, entity_id), column_id)
        return propagate_column_addition(graph, entity_id, promoted)

    if field == "uq" and value is True and column.pk:
        return _demote_primary_key(graph, entity_id, column, field, value)

    graph = ops.set_column_field(graph, entity_id, column_id, field, value, validate_names)
    updated = ops.get_column(ops.get_entity(graph, entity_id), column_id)
    notes: list[Notification] = []

    if field == "data_type" and value != column.data_type:
        if column.ai and not updated.ai:
            notes.append(
                Notification(
                    level=NotificationLevel.WARNING,
                    message=f"Cleared AUTO_INCREMENT on {entity.label}.{column.name}: "
                    f"{value} is not an integer type",
                    entity_id=entity_id,
                )
            )
        if updated.pk:
            result = propagate_data_type_change(graph, entity_id, updated, value)
            graph = result.graph
            notes.extend(result.notifications)
    elif field == "name" and column.pk and value != column.name:
        graph = _relink_legacy_references(graph, entity_id, updated, column.name)

    return ChangeResult(graph=graph, notifications=notes)
