"""erdcore - consistency engine for entity-relationship diagrams.

Keeps the foreign keys implied by a diagram's relationships in step with
every edit: primary key changes ripple to descendant entities, relationship
kinds promote or demote FK columns, and each edit is one undoable snapshot.

Example:
    from erdcore import Column, DiagramEditor, Entity, RelationshipKind

    editor = DiagramEditor()
    editor.add_entity(
        Entity(id="user", physical_name="user",
               columns=(Column(name="id", data_type="INT", pk=True),))
    )
    editor.add_entity(Entity(id="order", physical_name="order"))

    # order gains user_id (PK, FK, NOT NULL)
    result = editor.connect("user", "order", RelationshipKind.ONE_TO_MANY_IDENTIFYING)

    # Retyping the parent key retypes every FK copy
    editor.set_column_field("user", editor.graph.entities[0].columns[0].id, "dataType", "BIGINT")

    editor.undo()
    document = editor.to_document()
"""

from erdcore.core.editor import DiagramEditor
from erdcore.core.types import (
    ChangeResult,
    Column,
    EditorSettings,
    Entity,
    ForeignKeyRef,
    Graph,
    MatchQuality,
    Notification,
    NotificationLevel,
    ReferentialAction,
    Relationship,
    RelationshipKind,
    Viewport,
)
from erdcore.exceptions import (
    ColumnAlreadyExistsError,
    ColumnNotFoundError,
    CorruptSnapshotError,
    CyclicRelationshipError,
    DiagramNotFoundError,
    EntityAlreadyExistsError,
    EntityNotFoundError,
    ErdCoreError,
    FkMatchNotFoundError,
    InvalidColumnFieldError,
    InvalidForeignKeyError,
    InvalidSelfIdentifyingError,
    MissingPrimaryKeyError,
    RelationshipAlreadyExistsError,
    RelationshipNotFoundError,
    StoreConnectionError,
    UnknownColorMapError,
)
from erdcore.history import HistoryAction, HistoryEntry, HistoryManager
from erdcore.schema.document import dump_document, dumps_document, load_document
from erdcore.storage import DiagramInfo, DiagramStore

__version__ = "0.1.0"

__all__ = [
    # Main classes
    "DiagramEditor",
    "DiagramStore",
    "DiagramInfo",
    "HistoryManager",
    "HistoryEntry",
    "HistoryAction",
    # Types
    "Column",
    "ForeignKeyRef",
    "Entity",
    "Relationship",
    "RelationshipKind",
    "ReferentialAction",
    "Graph",
    "Viewport",
    "Notification",
    "NotificationLevel",
    "ChangeResult",
    "MatchQuality",
    "EditorSettings",
    # Documents
    "dump_document",
    "dumps_document",
    "load_document",
    # Exceptions
    "ErdCoreError",
    "EntityNotFoundError",
    "EntityAlreadyExistsError",
    "ColumnNotFoundError",
    "ColumnAlreadyExistsError",
    "RelationshipNotFoundError",
    "RelationshipAlreadyExistsError",
    "InvalidColumnFieldError",
    "InvalidForeignKeyError",
    "CyclicRelationshipError",
    "MissingPrimaryKeyError",
    "InvalidSelfIdentifyingError",
    "FkMatchNotFoundError",
    "CorruptSnapshotError",
    "StoreConnectionError",
    "DiagramNotFoundError",
    "UnknownColorMapError",
]
