"""Connection resolver: create, retype and remove relationships.

Structural checks run before anything is touched, so a rejected call leaves
the graph exactly as it was.
"""

from __future__ import annotations

import logging

from erdcore.core.types import (
    ChangeResult,
    Column,
    Entity,
    ForeignKeyRef,
    Graph,
    Notification,
    ReferentialAction,
    Relationship,
    RelationshipKind,
    new_id,
)
from erdcore.exceptions import (
    CyclicRelationshipError,
    InvalidColumnFieldError,
    InvalidSelfIdentifyingError,
    MissingPrimaryKeyError,
)
from erdcore.propagation.engine import (
    propagate_column_addition,
    propagate_column_deletion,
    propagate_relationship_type_change,
)
from erdcore.propagation.matching import build_fk_column, claimed_keys, find_existing_fk_column
from erdcore.schema import graph as ops

logger = logging.getLogger(__name__)


def _merge(graph: Graph, notes: list[Notification], result: ChangeResult) -> Graph:
    notes.extend(result.notifications)
    return result.graph


def _materialize_fks(
    graph: Graph,
    source: Entity,
    target_id: str,
    identifying: bool,
    on_delete: ReferentialAction,
    on_update: ReferentialAction,
) -> tuple[Graph, list[Notification], list[Column], list[Column]]:
    """Create or update one FK on the target per source PK column.

    Returns:
        ``(graph, notifications, promoted, demoted)``: FK columns that
        became part of the target's key, and target key columns that were
        turned into non-key FKs
    """
    notes: list[Notification] = []
    promoted: list[Column] = []
    demoted: list[Column] = []
    pk_columns = source.pk_columns
    keys = claimed_keys(source)

    target = ops.get_entity(graph, target_id)
    existing_group = next(
        (c.group_id for c in ops.foreign_keys_from(target, source.id) if c.group_id), None
    )
    group_id = existing_group or (new_id("grp") if len(pk_columns) > 1 else None)

    for pk_column in pk_columns:
        target = ops.get_entity(graph, target_id)
        candidates = target.columns
        if target.id == source.id:
            candidates = tuple(c for c in candidates if not c.pk)
        match, quality = find_existing_fk_column(
            candidates, source.id, pk_column, source.label, keys
        )

        if match is None:
            column = build_fk_column(
                target, source, pk_column, identifying, group_id, on_delete, on_update
            )
            graph = ops.add_column(graph, target.id, column, validate_names=False)
            logger.debug(f"Created {target.label}.{column.name} for {source.label}.{pk_column.name}")
            notes.append(
                Notification(
                    message=f"Added foreign key {target.label}.{column.name} "
                    f"referencing {source.label}.{pk_column.name}",
                    entity_id=target.id,
                )
            )
            if column.pk:
                promoted.append(column)
            continue

        previous = match.foreign_key
        fk = ForeignKeyRef(
            parent_entity_id=source.id,
            parent_column_id=pk_column.id,
            relationship_group_id=group_id,
            on_delete=previous.on_delete if previous else on_delete,
            on_update=previous.on_update if previous else on_update,
        )
        update = {
            "foreign_key": fk,
            "pk": identifying,
            "nn": identifying,
            "data_type": pk_column.data_type,
            "ai": False,
        }
        if identifying:
            update["uq"] = False
        graph = ops.replace_column(graph, target.id, match.model_copy(update=update))
        logger.debug(f"Reused {target.label}.{match.name} as FK ({quality.value})")
        if identifying and not match.pk:
            promoted.append(match)
        elif match.pk and not identifying:
            demoted.append(match)

    return graph, notes, promoted, demoted


def connect(
    graph: Graph,
    source_id: str,
    target_id: str,
    kind: RelationshipKind,
    on_delete: ReferentialAction = ReferentialAction.NO_ACTION,
    on_update: ReferentialAction = ReferentialAction.NO_ACTION,
) -> ChangeResult:
    """Draw a relationship from parent ``source_id`` to child ``target_id``.

    Connecting an already connected pair with another kind retypes the
    existing relationship; with the same kind it only repairs missing FKs.

    Raises:
        CyclicRelationshipError: If ``target -> source`` already exists
        MissingPrimaryKeyError: If the source has no PK column
        InvalidSelfIdentifyingError: If a self-relationship is identifying
    """
    kind = RelationshipKind(kind)
    source = ops.get_entity(graph, source_id)
    target = ops.get_entity(graph, target_id)

    if source.id != target.id and ops.relationship_between(graph, target.id, source.id):
        raise CyclicRelationshipError(source.label, target.label)
    if not source.pk_columns:
        raise MissingPrimaryKeyError(source.label)
    if source.id == target.id and kind.is_identifying:
        raise InvalidSelfIdentifyingError(source.label)

    existing = ops.relationship_between(graph, source.id, target.id)
    if existing is not None and existing.kind != kind:
        return reconnect(graph, existing.id, kind)

    notes: list[Notification] = []
    graph, created, promoted, demoted = _materialize_fks(
        graph, source, target.id, kind.is_identifying, on_delete, on_update
    )
    notes.extend(created)

    if existing is None:
        relationship = Relationship(source=source.id, target=target.id, kind=kind)
        graph = ops.add_relationship(graph, relationship)
        notes.insert(
            0,
            Notification(
                message=f"Connected {source.label} -> {target.label} ({kind.value})",
                entity_id=target.id,
            ),
        )
    else:
        relationship = existing

    path = frozenset({source.id})
    for column in promoted:
        column = ops.get_column(ops.get_entity(graph, target.id), column.id)
        graph = _merge(graph, notes, propagate_column_addition(graph, target.id, column, path))
    for column in demoted:
        graph = _merge(graph, notes, propagate_column_deletion(graph, target.id, column, (), path))

    logger.info(f"Connected {source.label} -> {target.label} as {kind.value}")
    return ChangeResult(graph=graph, notifications=notes, relationship_id=relationship.id)


def reconnect(graph: Graph, relationship_id: str, kind: RelationshipKind) -> ChangeResult:
    """Change a relationship's kind, promoting or demoting its FK columns.

    Raises:
        MissingPrimaryKeyError: If an identifying kind is requested for a keyless parent
        InvalidSelfIdentifyingError: If a self-relationship would become identifying
    """
    kind = RelationshipKind(kind)
    relationship = ops.get_relationship(graph, relationship_id)
    if relationship.kind == kind:
        return ChangeResult(graph=graph, relationship_id=relationship.id)

    source = ops.get_entity(graph, relationship.source)
    target = ops.get_entity(graph, relationship.target)
    if kind.is_identifying and not source.pk_columns:
        raise MissingPrimaryKeyError(source.label)
    if relationship.is_self and kind.is_identifying:
        raise InvalidSelfIdentifyingError(source.label)

    notes = [
        Notification(
            message=f"Changed {source.label} -> {target.label} "
            f"from {relationship.kind.value} to {kind.value}",
            entity_id=target.id,
        )
    ]
    graph = ops.replace_relationship_kind(graph, relationship.id, kind)
    path = frozenset({source.id})

    if relationship.kind.is_identifying and not kind.is_identifying:
        demoted = [c for c in ops.foreign_keys_from(target, source.id) if c.pk]
        for column in demoted:
            graph = ops.replace_column(
                graph, target.id, column.model_copy(update={"pk": False, "nn": False, "ai": False})
            )
        graph = _merge(
            graph, notes, propagate_relationship_type_change(graph, target.id, demoted, path)
        )
    elif kind.is_identifying and not relationship.kind.is_identifying:
        graph, created, promoted, _ = _materialize_fks(
            graph, source, target.id, True, ReferentialAction.NO_ACTION, ReferentialAction.NO_ACTION
        )
        notes.extend(created)
        for column in promoted:
            column = ops.get_column(ops.get_entity(graph, target.id), column.id)
            graph = _merge(graph, notes, propagate_column_addition(graph, target.id, column, path))

    logger.info(f"Reconnected {source.label} -> {target.label} as {kind.value}")
    return ChangeResult(graph=graph, notifications=notes, relationship_id=relationship.id)


def disconnect(graph: Graph, relationship_id: str) -> ChangeResult:
    """Remove a relationship together with every FK the child holds from the parent."""
    relationship = ops.get_relationship(graph, relationship_id)
    source = ops.get_entity(graph, relationship.source)
    target = ops.get_entity(graph, relationship.target)
    fk_columns = ops.foreign_keys_from(target, source.id)

    notes: list[Notification] = []
    graph = ops.remove_columns(graph, target.id, {c.id for c in fk_columns})
    for column in fk_columns:
        notes.append(
            Notification(
                message=f"Removed foreign key {target.label}.{column.name}", entity_id=target.id
            )
        )

    path = frozenset({source.id})
    for column in fk_columns:
        if column.pk and not relationship.is_self:
            graph = _merge(
                graph, notes, propagate_column_deletion(graph, target.id, column, (), path)
            )

    if any(r.id == relationship.id for r in graph.relationships):
        graph = ops.remove_relationship(graph, relationship.id)
    notes.insert(
        0,
        Notification(message=f"Disconnected {source.label} -> {target.label}", entity_id=target.id),
    )
    logger.info(f"Disconnected {source.label} -> {target.label}")
    return ChangeResult(graph=graph, notifications=notes)


def fk_group(entity: Entity, column: Column) -> list[Column]:
    """The FK columns that move together with ``column``.

    ``relationshipGroupId`` decides when present. For ungrouped legacy data,
    an FK is composite when other FKs to the same parent reference distinct
    parent columns.
    """
    fk = column.foreign_key
    if fk is None:
        return [column]
    siblings = ops.foreign_keys_from(entity, fk.parent_entity_id)
    if column.group_id is not None:
        return [c for c in siblings if c.group_id == column.group_id]
    ungrouped = [c for c in siblings if c.group_id is None]
    referenced = {c.foreign_key.parent_column_id for c in ungrouped}  # type: ignore[union-attr]
    if len(ungrouped) > 1 and len(referenced) == len(ungrouped):
        return ungrouped
    return [column]


def toggle_fk_primary_key(graph: Graph, entity_id: str, column_id: str, value: bool) -> ChangeResult:
    """Promote or demote an FK column's group: the synthetic kind transition.

    When every FK from the parent ends up in the key the relationship
    becomes identifying; when none does it becomes non-identifying.
    Cardinality is preserved.

    Raises:
        InvalidSelfIdentifyingError: If a self-referencing FK would join the key
    """
    entity = ops.get_entity(graph, entity_id)
    column = ops.get_column(entity, column_id)
    if column.foreign_key is None:
        raise InvalidColumnFieldError("pk", f"column '{column.name}' is not a foreign key", value)
    parent_id = column.foreign_key.parent_entity_id
    if value and parent_id == entity.id:
        raise InvalidSelfIdentifyingError(entity.label)

    members = [c for c in fk_group(entity, column) if c.pk != value]
    notes: list[Notification] = []
    path = frozenset({parent_id})

    if value:
        promoted = [c.model_copy(update={"pk": True, "nn": True, "uq": False}) for c in members]
        for member in promoted:
            graph = ops.replace_column(graph, entity.id, member)
        for member in promoted:
            graph = _merge(graph, notes, propagate_column_addition(graph, entity.id, member, path))
    else:
        for member in members:
            graph = ops.replace_column(
                graph, entity.id, member.model_copy(update={"pk": False, "nn": False, "ai": False})
            )
        graph = _merge(
            graph, notes, propagate_relationship_type_change(graph, entity.id, members, path)
        )

    relationship = ops.relationship_between(graph, parent_id, entity.id)
    if relationship is not None:
        fks = ops.foreign_keys_from(ops.get_entity(graph, entity.id), parent_id)
        if value and all(c.pk for c in fks):
            kind = relationship.kind.with_identifying(True)
        elif not value and not any(c.pk for c in fks):
            kind = relationship.kind.with_identifying(False)
        else:
            kind = relationship.kind
        if kind != relationship.kind:
            graph = ops.replace_relationship_kind(graph, relationship.id, kind)
            parent = ops.get_entity(graph, parent_id)
            notes.append(
                Notification(
                    message=f"Relationship {parent.label} -> {entity.label} is now {kind.value}",
                    entity_id=entity.id,
                )
            )

    logger.info(f"Set pk={value} on {len(members)} FK column(s) of {entity.label}")
    return ChangeResult(graph=graph, notifications=notes)
