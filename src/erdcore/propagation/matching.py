"""FK column naming, construction and matching heuristics.

FK columns can be renamed independently of the parent column they
reference, so locating "the FK for parent column P" is tiered: exact
references first, then progressively weaker guesses. Heuristic tiers only
consider *orphaned* candidates, FK columns whose ``parentColumnId`` does
not resolve to another live PK column of the parent, so a composite key's
sibling FKs are never mistaken for one another.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from erdcore.core.types import Column, Entity, ForeignKeyRef, MatchQuality, ReferentialAction
from erdcore.exceptions import FkMatchNotFoundError
from erdcore.schema.graph import refers_to

logger = logging.getLogger(__name__)


def fk_column_name(parent_label: str, column_name: str) -> str:
    """The conventional FK name: ``<parent>_<column>``, e.g. ``user_id``."""
    return f"{parent_label.lower()}_{column_name}"


def unique_column_name(entity: Entity, name: str) -> str:
    """Suffix ``name`` with ``_2``, ``_3``, ... until it is free in ``entity``."""
    taken = {c.name for c in entity.columns}
    if name not in taken:
        return name
    n = 2
    while f"{name}_{n}" in taken:
        n += 1
    return f"{name}_{n}"


def build_fk_column(
    child: Entity,
    parent: Entity,
    parent_column: Column,
    identifying: bool,
    group_id: str | None = None,
    on_delete: ReferentialAction = ReferentialAction.NO_ACTION,
    on_update: ReferentialAction = ReferentialAction.NO_ACTION,
) -> Column:
    """Build the FK column ``child`` needs to reference ``parent_column``."""
    return Column(
        name=unique_column_name(child, fk_column_name(parent.label, parent_column.name)),
        logical_name=parent_column.logical_name or f"{parent.label} {parent_column.name}",
        data_type=parent_column.data_type,
        pk=identifying,
        nn=identifying,
        comment=parent_column.comment or f"Foreign key to {parent.label}.{parent_column.name}",
        foreign_key=ForeignKeyRef(
            parent_entity_id=parent.id,
            parent_column_id=parent_column.id,
            relationship_group_id=group_id,
            on_delete=on_delete,
            on_update=on_update,
        ),
    )


def claimed_keys(parent: Entity, excluding: str | None = None) -> set[str]:
    """Ids and names of the parent's live PK columns, optionally minus one column."""
    keys: set[str] = set()
    for column in parent.pk_columns:
        if column.id != excluding:
            keys.update((column.id, column.name))
    return keys


def orphaned_candidates(
    columns: Iterable[Column], parent_id: str, claimed: set[str]
) -> list[Column]:
    """Same-parent FK columns not tied to any claimed parent column."""
    return [
        c
        for c in columns
        if c.references(parent_id) and c.foreign_key.parent_column_id not in claimed  # type: ignore[union-attr]
    ]


def _exact(columns: Iterable[Column], parent_id: str, parent_column: Column) -> Column | None:
    return next(
        (
            c
            for c in columns
            if c.references(parent_id) and c.foreign_key.parent_column_id == parent_column.id  # type: ignore[union-attr]
        ),
        None,
    )


def _by_name_pattern(
    columns: Iterable[Column], parent_label: str, names: Iterable[str], parent_id: str
) -> Column | None:
    wanted = {fk_column_name(parent_label, n) for n in names}
    return next((c for c in columns if c.name in wanted and c.references(parent_id)), None)


def find_existing_fk_column(
    target_columns: Sequence[Column],
    source_entity_id: str,
    source_pk_column: Column,
    source_label: str,
    source_column_keys: set[str] | None = None,
) -> tuple[Column | None, MatchQuality]:
    """Find the target column that already plays the FK role for a source PK column.

    Tiers, in order: exact id reference, legacy name reference, unique
    same-parent candidate with the same type, ``<parent>_<column>`` naming,
    lowest-id candidate among several same-type ones, first same-parent
    candidate. Only columns that already reference the source qualify;
    plain columns are never adopted.

    Args:
        target_columns: Columns of the child entity
        source_entity_id: Parent entity id
        source_pk_column: The parent PK column to match
        source_label: Parent label used for the naming convention
        source_column_keys: Ids/names of the parent's other PK columns;
            candidates referencing them are not considered

    Returns:
        ``(column, quality)``, or ``(None, MatchQuality.NONE)``
    """
    claimed = set(source_column_keys or ())
    claimed.difference_update((source_pk_column.id, source_pk_column.name))

    exact = _exact(target_columns, source_entity_id, source_pk_column)
    if exact is not None:
        return exact, MatchQuality.EXACT

    by_name = next(
        (
            c
            for c in target_columns
            if c.references(source_entity_id)
            and c.foreign_key.parent_column_id == source_pk_column.name  # type: ignore[union-attr]
        ),
        None,
    )
    if by_name is not None:
        return by_name, MatchQuality.PREVIOUS_NAME

    candidates = orphaned_candidates(target_columns, source_entity_id, claimed)
    same_type = [c for c in candidates if c.data_type == source_pk_column.data_type]
    if len(same_type) == 1:
        return same_type[0], MatchQuality.TYPE_UNIQUE

    named = _by_name_pattern(candidates, source_label, [source_pk_column.name], source_entity_id)
    if named is not None:
        return named, MatchQuality.NAME_PATTERN

    if len(same_type) > 1:
        return min(same_type, key=lambda c: c.id), MatchQuality.LOWEST_ID

    if candidates:
        return candidates[0], MatchQuality.SAME_PARENT

    return None, MatchQuality.NONE


def match_deleted_fk(
    child: Entity,
    parent: Entity,
    deleted_column: Column,
    previous_names: Iterable[str] = (),
) -> tuple[Column | None, MatchQuality]:
    """Locate the child's FK for a parent column that was deleted or left the key.

    Tiers: exact id reference, current or previous name reference, unique
    same-type candidate, substring of ``parentColumnId``, naming convention.
    """
    names = [deleted_column.name, *(n for n in previous_names if n)]
    claimed = claimed_keys(parent, excluding=deleted_column.id)

    exact = _exact(child.columns, parent.id, deleted_column)
    if exact is not None:
        return exact, MatchQuality.EXACT

    for column in child.columns:
        if column.references(parent.id) and column.foreign_key.parent_column_id in names:  # type: ignore[union-attr]
            return column, MatchQuality.PREVIOUS_NAME

    candidates = orphaned_candidates(child.columns, parent.id, claimed)
    same_type = [c for c in candidates if c.data_type == deleted_column.data_type]
    if len(same_type) == 1:
        return same_type[0], MatchQuality.TYPE_UNIQUE

    if deleted_column.name:
        for column in candidates:
            if deleted_column.name in column.foreign_key.parent_column_id:  # type: ignore[union-attr]
                return column, MatchQuality.SUBSTRING

    named = _by_name_pattern(child.columns, parent.label, names, parent.id)
    if named is not None:
        return named, MatchQuality.NAME_PATTERN

    return None, MatchQuality.NONE


def require_match(
    result: tuple[Column | None, MatchQuality],
    child: Entity,
    parent: Entity,
    column_name: str,
) -> tuple[Column, MatchQuality]:
    """Unwrap a match result.

    Raises:
        FkMatchNotFoundError: If no FK column matched
    """
    column, quality = result
    if column is None:
        raise FkMatchNotFoundError(child.label, parent.label, column_name)
    return column, quality


def match_retyped_fk(
    child: Entity, parent: Entity, changed_column: Column
) -> tuple[Column | None, MatchQuality]:
    """Locate the child's FK for a parent column whose data type changed."""
    exact = _exact(child.columns, parent.id, changed_column)
    if exact is not None:
        return exact, MatchQuality.EXACT

    for column in child.columns:
        if column.references(parent.id) and refers_to(
            column.foreign_key.parent_column_id, changed_column  # type: ignore[union-attr]
        ):
            return column, MatchQuality.PREVIOUS_NAME

    named = _by_name_pattern(child.columns, parent.label, [changed_column.name], parent.id)
    if named is not None:
        return named, MatchQuality.NAME_PATTERN

    return None, MatchQuality.NONE
