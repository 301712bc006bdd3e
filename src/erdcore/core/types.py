"""Core types for erdcore.

All graph values are immutable pydantic models: every edit produces a new
``Graph`` and leaves the previous one untouched, which is what lets the
history manager keep plain references as snapshots. Field names are
snake_case in Python and camelCase in the JSON document.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field, computed_field, model_validator
from pydantic.alias_generators import to_camel

DOCUMENT_VERSION = "1.0"


def new_id(prefix: str) -> str:
    """Generate a short unique id such as ``col-3f2a9c01b7de``."""
    return f"{prefix}-{uuid4().hex[:12]}"


class RelationshipKind(StrEnum):
    """The four relationship kinds drawn between entities.

    Cardinality and identifying-ness are independent axes.
    """

    ONE_TO_ONE_IDENTIFYING = "one-to-one-identifying"
    ONE_TO_ONE_NON_IDENTIFYING = "one-to-one-non-identifying"
    ONE_TO_MANY_IDENTIFYING = "one-to-many-identifying"
    ONE_TO_MANY_NON_IDENTIFYING = "one-to-many-non-identifying"

    @property
    def is_identifying(self) -> bool:
        """Whether FK columns of this kind are part of the child's key."""
        return not self.value.endswith("non-identifying")

    @property
    def cardinality(self) -> str:
        """Either ``one-to-one`` or ``one-to-many``."""
        return "one-to-one" if self.value.startswith("one-to-one") else "one-to-many"

    def with_identifying(self, identifying: bool) -> RelationshipKind:
        """Return the kind with the same cardinality and the given identifying-ness."""
        suffix = "identifying" if identifying else "non-identifying"
        return RelationshipKind(f"{self.cardinality}-{suffix}")

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid relationship kind values."""
        return [k.value for k in cls]


class ReferentialAction(StrEnum):
    """ON DELETE / ON UPDATE actions of a foreign key."""

    CASCADE = "CASCADE"
    SET_NULL = "SET NULL"
    SET_DEFAULT = "SET DEFAULT"
    RESTRICT = "RESTRICT"
    NO_ACTION = "NO ACTION"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid referential action values."""
        return [a.value for a in cls]


class MatchQuality(StrEnum):
    """How confidently an existing FK column was matched to a parent PK column."""

    EXACT = "exact"  # parentEntityId + parentColumnId
    PREVIOUS_NAME = "previous-name"  # parentColumnId holds the column's (old) name
    TYPE_UNIQUE = "type-unique"  # only same-parent FK with the same data type
    SUBSTRING = "substring"  # parentColumnId contains the column name
    NAME_PATTERN = "name-pattern"  # <parent>_<column> naming convention
    LOWEST_ID = "lowest-id"  # tie-break among several same-type candidates
    SAME_PARENT = "same-parent"  # any orphaned FK to the same parent
    NONE = "none"


class NotificationLevel(StrEnum):
    """Severity of a notification surfaced to the UI."""

    INFO = "info"
    WARNING = "warning"


class _GraphModel(BaseModel):
    """Base for immutable graph values with camelCase JSON aliases."""

    model_config = {"frozen": True, "alias_generator": to_camel, "populate_by_name": True}


class ForeignKeyRef(_GraphModel):
    """The FK half of a column: which parent PK column it references."""

    parent_entity_id: str
    parent_column_id: str  # column id, or a column name in legacy documents
    relationship_group_id: str | None = None
    on_delete: ReferentialAction = ReferentialAction.NO_ACTION
    on_update: ReferentialAction = ReferentialAction.NO_ACTION


_LEGACY_FK_KEYS = {
    "parentEntityId": "parentEntityId",
    "parent_entity_id": "parentEntityId",
    "parentColumnId": "parentColumnId",
    "parent_column_id": "parentColumnId",
    "relationshipGroupId": "relationshipGroupId",
    "relationship_group_id": "relationshipGroupId",
    "onDelete": "onDelete",
    "on_delete": "onDelete",
    "onUpdate": "onUpdate",
    "on_update": "onUpdate",
}


class Column(_GraphModel):
    """A typed column of an entity. ``foreign_key`` is set iff the column is an FK."""

    id: str = Field(default_factory=lambda: new_id("col"))
    name: str
    logical_name: str = ""
    data_type: str = ""
    pk: bool = False
    nn: bool = False
    uq: bool = False
    ai: bool = False
    comment: str = ""
    default_value: str = ""
    foreign_key: ForeignKeyRef | None = None

    @model_validator(mode="before")
    @classmethod
    def _lift_legacy_fields(cls, data: Any) -> Any:
        """Accept the flat column layout older diagrams were saved with."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "dataType" not in data and "data_type" not in data and "type" in data:
            data["dataType"] = data.pop("type")
        has_nested = "foreignKey" in data or "foreign_key" in data
        legacy = {
            target: data.pop(key) for key, target in _LEGACY_FK_KEYS.items() if key in data
        }
        flagged = bool(data.pop("fk", False))
        if not has_nested and flagged:
            if not legacy.get("parentEntityId") or not legacy.get("parentColumnId"):
                raise ValueError(
                    f"FK column '{data.get('name')}' is missing parentEntityId/parentColumnId"
                )
            data["foreignKey"] = {k: v for k, v in legacy.items() if v is not None}
        return data

    @computed_field  # type: ignore[prop-decorator]
    @property
    def fk(self) -> bool:
        """Whether this column is a foreign key."""
        return self.foreign_key is not None

    @property
    def group_id(self) -> str | None:
        """The composite-relationship group this FK belongs to, if any."""
        return self.foreign_key.relationship_group_id if self.foreign_key else None

    def references(self, parent_entity_id: str) -> bool:
        """Whether this column is an FK to the given parent entity."""
        return self.foreign_key is not None and self.foreign_key.parent_entity_id == parent_entity_id


class Entity(_GraphModel):
    """A table: names, comment and an ordered sequence of columns."""

    id: str = Field(default_factory=lambda: new_id("ent"))
    physical_name: str
    logical_name: str = ""
    comment: str = ""
    columns: tuple[Column, ...] = ()

    @property
    def label(self) -> str:
        """Display label used in FK names and messages."""
        return self.physical_name or self.id

    @property
    def pk_columns(self) -> list[Column]:
        """Primary key columns, in column order."""
        return [c for c in self.columns if c.pk]

    def column(self, column_id: str) -> Column | None:
        """Find a column by id."""
        return next((c for c in self.columns if c.id == column_id), None)

    def column_by_name(self, name: str) -> Column | None:
        """Find a column by name."""
        return next((c for c in self.columns if c.name == name), None)


class Relationship(_GraphModel):
    """An edge from a parent (``source``) to a child (``target``) entity."""

    id: str = Field(default_factory=lambda: new_id("rel"))
    source: str
    target: str
    kind: RelationshipKind

    @property
    def is_self(self) -> bool:
        """Whether source and target are the same entity."""
        return self.source == self.target


class Viewport(_GraphModel):
    """Canvas viewport, passed through untouched."""

    x: float = 0.0
    y: float = 0.0
    zoom: float = 1.0


class Graph(_GraphModel):
    """The complete diagram state: the unit of persistence and of history.

    Color maps and the hidden-entity set are opaque pass-through data.
    """

    entities: tuple[Entity, ...] = ()
    relationships: tuple[Relationship, ...] = ()
    node_colors: dict[str, str] = Field(default_factory=dict)
    edge_colors: dict[str, str] = Field(default_factory=dict)
    comment_colors: dict[str, str] = Field(default_factory=dict)
    hidden_entities: tuple[str, ...] = ()
    viewport: Viewport = Field(default_factory=Viewport)
    version: str = DOCUMENT_VERSION


class Notification(_GraphModel):
    """A human-readable message produced by an edit, for the UI to display."""

    level: NotificationLevel = NotificationLevel.INFO
    message: str
    entity_id: str | None = None


class ChangeResult(BaseModel):
    """Result of one graph operation: the new graph plus its notifications."""

    graph: Graph
    notifications: list[Notification] = Field(default_factory=list)
    relationship_id: str | None = None

    def extend(self, other: ChangeResult) -> ChangeResult:
        """Chain another step: take its graph, append its notifications."""
        return ChangeResult(
            graph=other.graph,
            notifications=[*self.notifications, *other.notifications],
            relationship_id=other.relationship_id or self.relationship_id,
        )

    @property
    def warnings(self) -> list[Notification]:
        """Notifications about cascade branches that were skipped."""
        return [n for n in self.notifications if n.level == NotificationLevel.WARNING]


class EditorSettings(BaseModel):
    """Configuration for a ``DiagramEditor`` session."""

    history_limit: int = Field(default=50, ge=1, description="Snapshots kept for undo/redo")
    default_on_delete: ReferentialAction = ReferentialAction.NO_ACTION
    default_on_update: ReferentialAction = ReferentialAction.NO_ACTION
    validate_names: bool = Field(
        default=True, description="Reject physical names and data types that are not SQL-safe"
    )
