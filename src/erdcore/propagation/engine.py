"""FK propagation: ripple key changes through descendant entities.

Each algorithm takes the current graph and a change descriptor and returns a
``ChangeResult``. ``visited`` holds the entities on the active propagation
path; recursion never re-enters one of them, so cascades terminate even on
graphs that contain cycles. A branch whose FK cannot be located is skipped
with a warning notification instead of failing the whole edit.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from erdcore.core.types import (
    ChangeResult,
    Column,
    Entity,
    Graph,
    Notification,
    NotificationLevel,
    ReferentialAction,
    Relationship,
)
from erdcore.core.validation import is_integer_type
from erdcore.exceptions import FkMatchNotFoundError
from erdcore.propagation.matching import (
    build_fk_column,
    fk_column_name,
    match_deleted_fk,
    match_retyped_fk,
    require_match,
)
from erdcore.schema import graph as ops

logger = logging.getLogger(__name__)


def _skipped(error: FkMatchNotFoundError, entity_id: str) -> Notification:
    logger.warning(error.message)
    return Notification(level=NotificationLevel.WARNING, message=error.message, entity_id=entity_id)


def _drop_if_empty(graph: Graph, relationship: Relationship, notes: list[Notification]) -> Graph:
    """Remove the edge once the child holds no FK column from the parent."""
    child = ops.get_entity(graph, relationship.target)
    if ops.foreign_keys_from(child, relationship.source):
        return graph
    parent = ops.get_entity(graph, relationship.source)
    logger.debug(f"Removing relationship {relationship.id}: no FK columns left")
    notes.append(
        Notification(
            message=f"Removed relationship {parent.label} -> {child.label}: no foreign keys remain",
            entity_id=child.id,
        )
    )
    return ops.remove_relationship(graph, relationship.id)


def sibling_fk_settings(
    child: Entity, parent_id: str
) -> tuple[str | None, ReferentialAction, ReferentialAction]:
    """Group id and referential actions a new FK from ``parent_id`` should share."""
    siblings = ops.foreign_keys_from(child, parent_id)
    if not siblings or siblings[0].foreign_key is None:
        return None, ReferentialAction.NO_ACTION, ReferentialAction.NO_ACTION
    first = siblings[0].foreign_key
    return first.relationship_group_id, first.on_delete, first.on_update


def propagate_column_addition(
    graph: Graph,
    parent_id: str,
    added_column: Column,
    visited: frozenset[str] = frozenset(),
) -> ChangeResult:
    """Give every child of ``parent_id`` an FK for a new parent PK column.

    The FK is part of the child's key when the relationship is identifying,
    in which case the child's own children receive it in turn.
    """
    path = visited | {parent_id}
    notes: list[Notification] = []
    parent = ops.get_entity(graph, parent_id)

    for relationship in ops.child_relationships(graph, parent_id):
        child = ops.get_entity(graph, relationship.target)
        existing = [
            c
            for c in ops.foreign_keys_from(child, parent_id)
            if ops.refers_to(c.foreign_key.parent_column_id, added_column)  # type: ignore[union-attr]
            or c.name == fk_column_name(parent.label, added_column.name)
        ]
        if existing:
            logger.debug(f"{child.label} already references {parent.label}.{added_column.name}")
            continue

        identifying = relationship.kind.is_identifying and not relationship.is_self
        group_id, on_delete, on_update = sibling_fk_settings(child, parent_id)
        fk_column = build_fk_column(
            child, parent, added_column, identifying, group_id, on_delete, on_update
        )
        if group_id is not None and not identifying:
            # grouped FKs share nn
            fk_column = fk_column.model_copy(
                update={"nn": ops.foreign_keys_from(child, parent_id)[0].nn}
            )
        graph = ops.add_column(graph, child.id, fk_column, validate_names=False)
        logger.debug(f"Added {child.label}.{fk_column.name} -> {parent.label}.{added_column.name}")
        notes.append(
            Notification(
                message=f"Added foreign key {child.label}.{fk_column.name} "
                f"referencing {parent.label}.{added_column.name}",
                entity_id=child.id,
            )
        )

        if fk_column.pk and child.id not in path:
            result = propagate_column_addition(graph, child.id, fk_column, path)
            graph = result.graph
            notes.extend(result.notifications)

    return ChangeResult(graph=graph, notifications=notes)


def propagate_column_deletion(
    graph: Graph,
    parent_id: str,
    deleted_column: Column,
    previous_names: Iterable[str] = (),
    visited: frozenset[str] = frozenset(),
) -> ChangeResult:
    """Remove the FK every child holds for a parent column that left the key.

    The parent column must already be removed or demoted in ``graph``.
    A removed FK that was part of the child's key cascades further, and a
    relationship whose child keeps no FK from the parent is removed.
    """
    path = visited | {parent_id}
    notes: list[Notification] = []
    previous_names = tuple(previous_names)

    for relationship in ops.child_relationships(graph, parent_id):
        parent = ops.get_entity(graph, parent_id)
        child = ops.get_entity(graph, relationship.target)
        try:
            match, quality = require_match(
                match_deleted_fk(child, parent, deleted_column, previous_names),
                child,
                parent,
                deleted_column.name,
            )
        except FkMatchNotFoundError as e:
            notes.append(_skipped(e, child.id))
            continue

        logger.debug(f"Removing {child.label}.{match.name} (matched {quality.value})")
        graph = ops.remove_column(graph, child.id, match.id)
        notes.append(
            Notification(
                message=f"Removed foreign key {child.label}.{match.name}", entity_id=child.id
            )
        )

        if match.pk and child.id not in path:
            result = propagate_column_deletion(graph, child.id, match, (), path)
            graph = result.graph
            notes.extend(result.notifications)

        graph = _drop_if_empty(graph, relationship, notes)

    return ChangeResult(graph=graph, notifications=notes)


def propagate_data_type_change(
    graph: Graph,
    parent_id: str,
    changed_column: Column,
    new_type: str,
    visited: frozenset[str] = frozenset(),
) -> ChangeResult:
    """Copy a parent PK column's new data type onto every FK that references it."""
    path = visited | {parent_id}
    notes: list[Notification] = []

    for relationship in ops.child_relationships(graph, parent_id):
        parent = ops.get_entity(graph, parent_id)
        child = ops.get_entity(graph, relationship.target)
        try:
            match, quality = require_match(
                match_retyped_fk(child, parent, changed_column),
                child,
                parent,
                changed_column.name,
            )
        except FkMatchNotFoundError as e:
            notes.append(_skipped(e, child.id))
            continue

        update: dict[str, object] = {"data_type": new_type}
        if match.ai and not is_integer_type(new_type):
            update["ai"] = False
        retyped = match.model_copy(update=update)
        graph = ops.replace_column(graph, child.id, retyped)
        logger.debug(f"Retyped {child.label}.{match.name} to {new_type} (matched {quality.value})")

        if retyped.pk and child.id not in path:
            result = propagate_data_type_change(graph, child.id, retyped, new_type, path)
            graph = result.graph
            notes.extend(result.notifications)

    return ChangeResult(graph=graph, notifications=notes)


def propagate_relationship_type_change(
    graph: Graph,
    child_id: str,
    removed_pk_columns: list[Column],
    visited: frozenset[str] = frozenset(),
) -> ChangeResult:
    """Strip descendants of FK columns that fell out of ``child_id``'s key.

    Used after an identifying relationship into ``child_id`` was downgraded.
    For each relationship leaving ``child_id``, the FKs derived from the
    removed key columns are deleted; when they were all of that
    relationship's FKs, the relationship goes too.
    """
    path = visited | {child_id}
    notes: list[Notification] = []

    for relationship in ops.child_relationships(graph, child_id):
        entity = ops.get_entity(graph, child_id)
        grandchild = ops.get_entity(graph, relationship.target)
        affected: list[Column] = []
        for removed in removed_pk_columns:
            match, _ = match_deleted_fk(grandchild, entity, removed)
            if match is not None and match not in affected:
                affected.append(match)
        if not affected:
            continue

        all_fks = ops.foreign_keys_from(grandchild, child_id)
        graph = ops.remove_columns(graph, grandchild.id, {c.id for c in affected})
        names = ", ".join(c.name for c in affected)
        if len(affected) == len(all_fks):
            graph = ops.remove_relationship(graph, relationship.id)
            logger.debug(f"Removed relationship {relationship.id} with its FKs {names}")
            notes.append(
                Notification(
                    message=f"Removed relationship {entity.label} -> {grandchild.label} "
                    f"and its foreign keys ({names})",
                    entity_id=grandchild.id,
                )
            )
        else:
            notes.append(
                Notification(
                    message=f"Removed foreign keys {names} from {grandchild.label}",
                    entity_id=grandchild.id,
                )
            )

        cascaded = [c for c in affected if c.pk]
        if cascaded and grandchild.id not in path:
            result = propagate_relationship_type_change(graph, grandchild.id, cascaded, path)
            graph = result.graph
            notes.extend(result.notifications)

    return ChangeResult(graph=graph, notifications=notes)
