"""Graph Model: pure operations on an immutable ``Graph``.

Every mutating function takes a graph and returns a new one. The functions
here enforce the structural rules of a single edit (unique names, PK/NN
coupling, FK targets, relationship shape) but never ripple a change into
other entities; cross-entity propagation lives in ``erdcore.propagation``.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any

from pydantic.alias_generators import to_snake

from erdcore.core.types import (
    Column,
    Entity,
    Graph,
    ReferentialAction,
    Relationship,
    RelationshipKind,
)
from erdcore.core.validation import (
    is_integer_type,
    validate_data_type,
    validate_physical_name,
)
from erdcore.exceptions import (
    ColumnAlreadyExistsError,
    ColumnNotFoundError,
    CyclicRelationshipError,
    EntityAlreadyExistsError,
    EntityNotFoundError,
    InvalidColumnFieldError,
    InvalidForeignKeyError,
    InvalidSelfIdentifyingError,
    RelationshipAlreadyExistsError,
    RelationshipNotFoundError,
    UnknownColorMapError,
)

logger = logging.getLogger(__name__)

COLUMN_FIELDS = frozenset(
    {
        "name",
        "logical_name",
        "data_type",
        "pk",
        "nn",
        "uq",
        "ai",
        "comment",
        "default_value",
        "on_delete",
        "on_update",
    }
)
BOOLEAN_FIELDS = frozenset({"pk", "nn", "uq", "ai"})
FK_FIELDS = frozenset({"on_delete", "on_update"})
COLOR_MAPS = {"node": "node_colors", "edge": "edge_colors", "comment": "comment_colors"}


# === Lookups ===


def get_entity(graph: Graph, entity_id: str) -> Entity:
    """Get an entity by id.

    Raises:
        EntityNotFoundError: If no entity has that id
    """
    for entity in graph.entities:
        if entity.id == entity_id:
            return entity
    raise EntityNotFoundError(entity_id, [e.label for e in graph.entities])


def find_entity(graph: Graph, ref: str) -> Entity | None:
    """Find an entity by id, falling back to its physical name."""
    for entity in graph.entities:
        if entity.id == ref:
            return entity
    return next((e for e in graph.entities if e.physical_name == ref), None)


def get_column(entity: Entity, column_id: str) -> Column:
    """Get a column by id.

    Raises:
        ColumnNotFoundError: If the entity has no such column
    """
    column = entity.column(column_id)
    if column is None:
        raise ColumnNotFoundError(column_id, entity.label, [c.name for c in entity.columns])
    return column


def find_column(entity: Entity, ref: str) -> Column | None:
    """Find a column by id, falling back to its name."""
    return entity.column(ref) or entity.column_by_name(ref)


def get_relationship(graph: Graph, relationship_id: str) -> Relationship:
    """Get a relationship by id.

    Raises:
        RelationshipNotFoundError: If no relationship has that id
    """
    for relationship in graph.relationships:
        if relationship.id == relationship_id:
            return relationship
    raise RelationshipNotFoundError(relationship_id, [r.id for r in graph.relationships])


def relationship_between(graph: Graph, source_id: str, target_id: str) -> Relationship | None:
    """The relationship drawn from ``source_id`` to ``target_id``, if any."""
    return next(
        (r for r in graph.relationships if r.source == source_id and r.target == target_id),
        None,
    )


def child_relationships(graph: Graph, entity_id: str) -> list[Relationship]:
    """Relationships in which the entity is the parent."""
    return [r for r in graph.relationships if r.source == entity_id]


def parent_relationships(graph: Graph, entity_id: str) -> list[Relationship]:
    """Relationships in which the entity is the child."""
    return [r for r in graph.relationships if r.target == entity_id]


def foreign_keys_from(entity: Entity, parent_id: str) -> list[Column]:
    """FK columns of ``entity`` that reference ``parent_id``, in column order."""
    return [c for c in entity.columns if c.references(parent_id)]


def refers_to(reference: str, column: Column) -> bool:
    """Whether a ``parentColumnId`` value designates ``column`` (by id or legacy name)."""
    return reference == column.id or reference == column.name


def resolve_parent_column(parent: Entity, reference: str) -> Column | None:
    """Resolve a ``parentColumnId`` against the parent's columns, id first."""
    return parent.column(reference) or parent.column_by_name(reference)


# === Entities ===


def replace_entity(graph: Graph, entity: Entity) -> Graph:
    """Swap in a new version of an existing entity."""
    get_entity(graph, entity.id)
    return graph.model_copy(
        update={"entities": tuple(entity if e.id == entity.id else e for e in graph.entities)}
    )


def add_entity(graph: Graph, entity: Entity, validate_names: bool = True) -> Graph:
    """Add an entity to the graph.

    Raises:
        EntityAlreadyExistsError: If the id or physical name is taken
        InvalidColumnFieldError: If a name or data type is not SQL-safe
    """
    if any(e.id == entity.id or e.physical_name == entity.physical_name for e in graph.entities):
        raise EntityAlreadyExistsError(entity.physical_name)
    if validate_names and not validate_physical_name(entity.physical_name):
        raise InvalidColumnFieldError(
            "physical_name", "only letters, digits and underscores are allowed", entity.physical_name
        )

    names = Counter(c.name for c in entity.columns)
    duplicated = [name for name, count in names.items() if count > 1]
    if duplicated:
        raise ColumnAlreadyExistsError(duplicated[0], entity.physical_name)

    columns = []
    for column in entity.columns:
        _check_column_values(column, validate_names)
        if column.foreign_key is not None:
            raise InvalidForeignKeyError(
                column.name,
                column.foreign_key.parent_entity_id,
                column.foreign_key.parent_column_id,
            )
        columns.append(_normalize_flags(column))

    logger.debug(f"Adding entity {entity.physical_name} ({entity.id})")
    return graph.model_copy(
        update={"entities": (*graph.entities, entity.model_copy(update={"columns": tuple(columns)}))}
    )


def remove_entity(graph: Graph, entity_id: str) -> Graph:
    """Remove an entity, every relationship touching it, and its display state.

    FK columns that other entities hold towards it are left to the caller,
    which is expected to cascade them first.
    """
    get_entity(graph, entity_id)
    dropped = {r.id for r in graph.relationships if entity_id in (r.source, r.target)}
    return graph.model_copy(
        update={
            "entities": tuple(e for e in graph.entities if e.id != entity_id),
            "relationships": tuple(r for r in graph.relationships if r.id not in dropped),
            "node_colors": {k: v for k, v in graph.node_colors.items() if k != entity_id},
            "edge_colors": {k: v for k, v in graph.edge_colors.items() if k not in dropped},
            "hidden_entities": tuple(h for h in graph.hidden_entities if h != entity_id),
        }
    )


def rename_entity(
    graph: Graph,
    entity_id: str,
    physical_name: str | None = None,
    logical_name: str | None = None,
    validate_names: bool = True,
) -> Graph:
    """Change an entity's physical and/or logical name."""
    entity = get_entity(graph, entity_id)
    update: dict[str, Any] = {}
    if physical_name is not None and physical_name != entity.physical_name:
        if any(e.physical_name == physical_name for e in graph.entities):
            raise EntityAlreadyExistsError(physical_name)
        if validate_names and not validate_physical_name(physical_name):
            raise InvalidColumnFieldError(
                "physical_name", "only letters, digits and underscores are allowed", physical_name
            )
        update["physical_name"] = physical_name
    if logical_name is not None:
        update["logical_name"] = logical_name
    return replace_entity(graph, entity.model_copy(update=update))


# === Columns ===


def _normalize_flags(column: Column) -> Column:
    """A PK column is always NOT NULL and never separately UNIQUE."""
    if column.pk and (not column.nn or column.uq):
        return column.model_copy(update={"nn": True, "uq": False})
    return column


def _check_column_values(column: Column, validate_names: bool) -> None:
    if validate_names and not validate_physical_name(column.name):
        raise InvalidColumnFieldError(
            "name", "only letters, digits and underscores are allowed", column.name
        )
    if validate_names and not validate_data_type(column.data_type):
        raise InvalidColumnFieldError("data_type", "not a SQL-safe type", column.data_type)
    if column.ai and not (column.pk and is_integer_type(column.data_type)):
        raise InvalidColumnFieldError(
            "ai", "AUTO_INCREMENT needs an integer primary key column", column.ai
        )


def add_column(
    graph: Graph,
    entity_id: str,
    column: Column,
    index: int | None = None,
    validate_names: bool = True,
) -> Graph:
    """Add a column to an entity (appended unless ``index`` is given).

    Raises:
        ColumnAlreadyExistsError: If the name or id is already used
        InvalidForeignKeyError: If an FK does not point at a parent PK column
        InvalidSelfIdentifyingError: If a self-referencing FK is marked PK
    """
    entity = get_entity(graph, entity_id)
    if any(c.name == column.name or c.id == column.id for c in entity.columns):
        raise ColumnAlreadyExistsError(column.name, entity.label)
    _check_column_values(column, validate_names)

    fk = column.foreign_key
    if fk is not None:
        parent = next((e for e in graph.entities if e.id == fk.parent_entity_id), None)
        target = resolve_parent_column(parent, fk.parent_column_id) if parent else None
        if target is None or not target.pk:
            raise InvalidForeignKeyError(column.name, fk.parent_entity_id, fk.parent_column_id)
        if column.pk and fk.parent_entity_id == entity_id:
            raise InvalidSelfIdentifyingError(entity.label)

    columns = list(entity.columns)
    columns.insert(len(columns) if index is None else index, _normalize_flags(column))
    return replace_entity(graph, entity.model_copy(update={"columns": tuple(columns)}))


def replace_column(graph: Graph, entity_id: str, column: Column) -> Graph:
    """Swap in a new version of an existing column, keeping its position."""
    entity = get_entity(graph, entity_id)
    get_column(entity, column.id)
    columns = tuple(column if c.id == column.id else c for c in entity.columns)
    return replace_entity(graph, entity.model_copy(update={"columns": columns}))


def remove_column(graph: Graph, entity_id: str, column_id: str) -> Graph:
    """Remove a column from an entity."""
    entity = get_entity(graph, entity_id)
    get_column(entity, column_id)
    columns = tuple(c for c in entity.columns if c.id != column_id)
    return replace_entity(graph, entity.model_copy(update={"columns": columns}))


def remove_columns(graph: Graph, entity_id: str, column_ids: set[str]) -> Graph:
    """Remove several columns from one entity at once."""
    entity = get_entity(graph, entity_id)
    columns = tuple(c for c in entity.columns if c.id not in column_ids)
    return replace_entity(graph, entity.model_copy(update={"columns": columns}))


def reorder_columns(graph: Graph, entity_id: str, column_ids: list[str]) -> Graph:
    """Put an entity's columns in the given order (must be a permutation)."""
    entity = get_entity(graph, entity_id)
    if sorted(column_ids) != sorted(c.id for c in entity.columns):
        raise InvalidColumnFieldError(
            "order", "column ids must list every column of the entity exactly once", column_ids
        )
    by_id = {c.id: c for c in entity.columns}
    return replace_entity(
        graph, entity.model_copy(update={"columns": tuple(by_id[cid] for cid in column_ids)})
    )


def normalize_field(field: str) -> str:
    """Map ``dataType`` / ``data_type`` style names to the Python field name."""
    normalized = to_snake(field)
    if normalized == "fk":
        raise InvalidColumnFieldError(
            field, "the FK flag is derived; connect the entities to create a foreign key"
        )
    if normalized not in COLUMN_FIELDS:
        raise InvalidColumnFieldError(
            field, f"unknown field. Valid fields: {', '.join(sorted(COLUMN_FIELDS))}"
        )
    return normalized


def set_column_field(
    graph: Graph,
    entity_id: str,
    column_id: str,
    field: str,
    value: Any,
    validate_names: bool = True,
) -> Graph:
    """Set one column field, applying the single-column coupling rules.

    ``pk`` drags ``nn``/``uq``/``ai`` along, ``uq`` on a PK column drops the
    key, a non-integer ``data_type`` clears ``ai``, and ``nn``, ``on_delete``
    and ``on_update`` are kept identical across a composite FK group. Nothing
    is propagated to other entities.
    """
    field = normalize_field(field)
    entity = get_entity(graph, entity_id)
    column = get_column(entity, column_id)

    if field in BOOLEAN_FIELDS and not isinstance(value, bool):
        raise InvalidColumnFieldError(field, "expected true or false", value)
    if field not in BOOLEAN_FIELDS and field not in FK_FIELDS and not isinstance(value, str):
        raise InvalidColumnFieldError(field, "expected a string", value)

    if field in FK_FIELDS:
        return _set_referential_action(graph, entity, column, field, value)

    update: dict[str, Any] = {field: value}
    if field == "name":
        if validate_names and not validate_physical_name(value):
            raise InvalidColumnFieldError(field, "only letters, digits and underscores are allowed", value)
        if any(c.name == value and c.id != column.id for c in entity.columns):
            raise ColumnAlreadyExistsError(value, entity.label)
    elif field == "data_type":
        if validate_names and not validate_data_type(value):
            raise InvalidColumnFieldError(field, "not a SQL-safe type", value)
        if column.ai and not is_integer_type(value):
            update["ai"] = False
    elif field == "pk":
        if value and column.references(entity.id):
            raise InvalidSelfIdentifyingError(entity.label)
        update.update({"nn": True, "uq": False} if value else {"nn": False, "ai": False})
    elif field == "nn":
        if not value and column.pk:
            raise InvalidColumnFieldError(field, "primary key columns are always NOT NULL", value)
        if column.group_id is not None:
            return _set_group_nn(graph, entity, column, value)
    elif field == "uq":
        if value and column.pk:
            update.update({"pk": False, "nn": False, "ai": False})
    elif field == "ai":
        if value and not (column.pk and is_integer_type(column.data_type)):
            raise InvalidColumnFieldError(
                field, "AUTO_INCREMENT needs an integer primary key column", value
            )

    return replace_column(graph, entity_id, column.model_copy(update=update))


def _group_members(entity: Entity, column: Column) -> set[str]:
    """Ids of the FK columns sharing ``column``'s composite group."""
    fk = column.foreign_key
    if fk is None or column.group_id is None:
        return {column.id}
    return {
        c.id
        for c in entity.columns
        if c.group_id == column.group_id and c.references(fk.parent_entity_id)
    } | {column.id}


def _set_group_nn(graph: Graph, entity: Entity, column: Column, value: bool) -> Graph:
    members = _group_members(entity, column)
    columns = tuple(
        c.model_copy(update={"nn": value}) if c.id in members else c for c in entity.columns
    )
    logger.debug(f"Set nn={value} on FK group {column.group_id} of {entity.label}")
    return replace_entity(graph, entity.model_copy(update={"columns": columns}))


def _set_referential_action(
    graph: Graph, entity: Entity, column: Column, field: str, value: Any
) -> Graph:
    if column.foreign_key is None:
        raise InvalidColumnFieldError(field, f"column '{column.name}' is not a foreign key", value)
    try:
        action = ReferentialAction(value)
    except ValueError as e:
        raise InvalidColumnFieldError(
            field, f"valid actions: {', '.join(ReferentialAction.values())}", value
        ) from e

    members = _group_members(entity, column)
    columns = []
    for c in entity.columns:
        if c.id in members and c.foreign_key is not None:
            fk = c.foreign_key.model_copy(update={field: action})
            c = c.model_copy(update={"foreign_key": fk})
        columns.append(c)
    return replace_entity(graph, entity.model_copy(update={"columns": tuple(columns)}))


# === Relationships ===


def add_relationship(graph: Graph, relationship: Relationship) -> Graph:
    """Add a relationship edge.

    Raises:
        EntityNotFoundError: If an endpoint does not exist
        CyclicRelationshipError: If the pair is already connected in reverse
        InvalidSelfIdentifyingError: If a self-relationship is identifying
    """
    source = get_entity(graph, relationship.source)
    target = get_entity(graph, relationship.target)
    if relationship.is_self and relationship.kind.is_identifying:
        raise InvalidSelfIdentifyingError(source.label)
    if not relationship.is_self and relationship_between(graph, target.id, source.id):
        raise CyclicRelationshipError(source.label, target.label)
    if relationship_between(graph, source.id, target.id) or any(
        r.id == relationship.id for r in graph.relationships
    ):
        raise RelationshipAlreadyExistsError(source.label, target.label)
    return graph.model_copy(update={"relationships": (*graph.relationships, relationship)})


def remove_relationship(graph: Graph, relationship_id: str) -> Graph:
    """Remove a relationship edge (its FK columns are the caller's concern)."""
    get_relationship(graph, relationship_id)
    return graph.model_copy(
        update={
            "relationships": tuple(r for r in graph.relationships if r.id != relationship_id),
            "edge_colors": {k: v for k, v in graph.edge_colors.items() if k != relationship_id},
        }
    )


def replace_relationship_kind(graph: Graph, relationship_id: str, kind: RelationshipKind) -> Graph:
    """Set a relationship's kind; callers must promote/demote its FK columns."""
    relationship = get_relationship(graph, relationship_id)
    if relationship.is_self and kind.is_identifying:
        raise InvalidSelfIdentifyingError(get_entity(graph, relationship.source).label)
    updated = relationship.model_copy(update={"kind": kind})
    return graph.model_copy(
        update={
            "relationships": tuple(
                updated if r.id == relationship_id else r for r in graph.relationships
            )
        }
    )


# === Display state ===


def set_color(graph: Graph, kind: str, element_id: str, color: str | None) -> Graph:
    """Set (or clear, with ``None``) a node, edge or comment color."""
    if kind not in COLOR_MAPS:
        raise UnknownColorMapError(kind, list(COLOR_MAPS))
    attr = COLOR_MAPS[kind]
    colors = dict(getattr(graph, attr))
    if color is None:
        colors.pop(element_id, None)
    else:
        colors[element_id] = color
    return graph.model_copy(update={attr: colors})


def set_entity_hidden(graph: Graph, entity_id: str, hidden: bool) -> Graph:
    """Hide or show an entity on the canvas."""
    get_entity(graph, entity_id)
    rest = tuple(h for h in graph.hidden_entities if h != entity_id)
    return graph.model_copy(update={"hidden_entities": (*rest, entity_id) if hidden else rest})


# === Invariants ===


def find_invariant_violations(graph: Graph) -> list[str]:
    """Describe every consistency rule the graph currently breaks.

    An empty list means the graph is consistent.
    """
    problems: list[str] = []
    by_id = {e.id: e for e in graph.entities}

    for entity_id, count in Counter(e.id for e in graph.entities).items():
        if count > 1:
            problems.append(f"duplicate entity id {entity_id}")

    for entity in graph.entities:
        for column_id, count in Counter(c.id for c in entity.columns).items():
            if count > 1:
                problems.append(f"{entity.label}: duplicate column id {column_id}")
        for column in entity.columns:
            fk = column.foreign_key
            if fk is None:
                continue
            parent = by_id.get(fk.parent_entity_id)
            target = resolve_parent_column(parent, fk.parent_column_id) if parent else None
            if target is None or not target.pk:
                problems.append(
                    f"{entity.label}.{column.name}: FK does not reference a PK column "
                    f"({fk.parent_entity_id}.{fk.parent_column_id})"
                )

        groups: dict[str, set[tuple[Any, ...]]] = {}
        for column in entity.columns:
            if column.foreign_key is not None and column.group_id is not None:
                fk = column.foreign_key
                groups.setdefault(column.group_id, set()).add(
                    (column.pk, column.nn, fk.on_delete, fk.on_update)
                )
        for group_id, states in groups.items():
            if len(states) > 1:
                problems.append(f"{entity.label}: FK group {group_id} disagrees on pk/nn/actions")

    pairs: set[tuple[str, str]] = set()
    for relationship in graph.relationships:
        source = by_id.get(relationship.source)
        target = by_id.get(relationship.target)
        if source is None or target is None:
            problems.append(f"relationship {relationship.id} has a missing endpoint")
            continue
        pair = (source.id, target.id)
        if pair in pairs:
            problems.append(f"duplicate relationship {source.label} -> {target.label}")
        if not relationship.is_self and (target.id, source.id) in pairs:
            problems.append(f"relationships in both directions between {source.label} and {target.label}")
        pairs.add(pair)
        if relationship.is_self and relationship.kind.is_identifying:
            problems.append(f"self-relationship on {source.label} is identifying")

        fks = foreign_keys_from(target, source.id)
        identifying = relationship.kind.is_identifying
        if identifying and not fks:
            problems.append(f"identifying relationship {source.label} -> {target.label} has no FK columns")
        for column in fks:
            if column.pk != identifying:
                problems.append(
                    f"{target.label}.{column.name}: pk={column.pk} but relationship "
                    f"{source.label} -> {target.label} is {relationship.kind.value}"
                )

    return problems
