"""DiagramEditor: owns the live graph and its undo/redo history."""

from __future__ import annotations

import logging
from typing import Any

from erdcore.core.types import (
    ChangeResult,
    Column,
    EditorSettings,
    Entity,
    Graph,
    RelationshipKind,
)
from erdcore.history.manager import HistoryAction, HistoryManager
from erdcore.relationships import columns as column_ops
from erdcore.relationships import resolver
from erdcore.schema import graph as ops
from erdcore.schema.document import dump_document, load_document

logger = logging.getLogger(__name__)

_FIELD_ACTIONS = {
    "pk": HistoryAction.CHANGE_COLUMN_PK,
    "nn": HistoryAction.CHANGE_COLUMN_NN,
    "uq": HistoryAction.CHANGE_COLUMN_UQ,
    "ai": HistoryAction.CHANGE_COLUMN_AI,
    "on_delete": HistoryAction.CHANGE_COLUMN_FK_CONSTRAINT,
    "on_update": HistoryAction.CHANGE_COLUMN_FK_CONSTRAINT,
    "name": HistoryAction.CHANGE_COLUMN_PHYSICAL_NAME,
    "logical_name": HistoryAction.CHANGE_COLUMN_LOGICAL_NAME,
}


class DiagramEditor:
    """The single place a diagram is edited.

    Every edit runs synchronously: it is validated, applied with its
    cascades, and recorded as one history snapshot. An edit that raises,
    or that leaves the graph as it was, leaves the history untouched.
    Calls must not be
    interleaved from several threads.

    Example:
        editor = DiagramEditor()
        editor.add_entity(Entity(id="user", physical_name="user",
                                 columns=(Column(name="id", data_type="INT", pk=True),)))
        editor.add_entity(Entity(id="order", physical_name="order"))
        editor.connect("user", "order", RelationshipKind.ONE_TO_MANY_IDENTIFYING)
        editor.undo()
    """

    def __init__(self, graph: Graph | None = None, settings: EditorSettings | None = None) -> None:
        """Initialize the editor.

        Args:
            graph: Starting graph (empty when omitted)
            settings: Editor configuration
        """
        self.settings = settings or EditorSettings()
        self._graph = graph or Graph()
        self._history = HistoryManager(self.settings.history_limit)
        self._history.save_state(HistoryAction.INITIAL_STATE, self._graph)

    @property
    def graph(self) -> Graph:
        """The current graph."""
        return self._graph

    @property
    def history(self) -> HistoryManager:
        return self._history

    def _commit(
        self, action: HistoryAction, result: ChangeResult, **metadata: Any
    ) -> ChangeResult:
        if result.graph == self._graph:
            logger.debug(f"{action.value}: nothing changed, no snapshot recorded")
            return result
        self._graph = result.graph
        entry = self._history.save_state(action, self._graph, metadata)
        logger.info(f"{entry.description} ({len(result.notifications)} notification(s))")
        return result

    def _entity_label(self, entity_id: str) -> str:
        return ops.get_entity(self._graph, entity_id).label

    # === Entities ===

    def add_entity(self, entity: Entity) -> ChangeResult:
        """Add an entity (its columns may not be FKs; connect entities instead)."""
        graph = ops.add_entity(self._graph, entity, self.settings.validate_names)
        return self._commit(
            HistoryAction.CREATE_ENTITY, ChangeResult(graph=graph), entity=entity.label
        )

    def remove_entity(self, entity_id: str) -> ChangeResult:
        """Remove an entity after disconnecting it from every child."""
        entity = ops.get_entity(self._graph, entity_id)
        result = ChangeResult(graph=self._graph)
        for relationship in ops.child_relationships(self._graph, entity_id):
            if not relationship.is_self:
                result = result.extend(resolver.disconnect(result.graph, relationship.id))
        result = result.extend(ChangeResult(graph=ops.remove_entity(result.graph, entity_id)))
        return self._commit(HistoryAction.DELETE_ENTITY, result, entity=entity.label)

    def rename_entity(
        self,
        entity_id: str,
        physical_name: str | None = None,
        logical_name: str | None = None,
    ) -> ChangeResult:
        """Change an entity's physical and/or logical name."""
        old = self._entity_label(entity_id)
        graph = ops.rename_entity(
            self._graph, entity_id, physical_name, logical_name, self.settings.validate_names
        )
        if physical_name is not None:
            action = HistoryAction.CHANGE_ENTITY_PHYSICAL_NAME
            new = physical_name
        else:
            action = HistoryAction.CHANGE_ENTITY_LOGICAL_NAME
            new = logical_name
        return self._commit(action, ChangeResult(graph=graph), entity=old, old=old, new=new)

    # === Columns ===

    def add_column(self, entity_id: str, column: Column, index: int | None = None) -> ChangeResult:
        """Add a column; PK columns propagate to children."""
        result = column_ops.add_column(
            self._graph, entity_id, column, index, self.settings.validate_names
        )
        return self._commit(
            HistoryAction.ADD_COLUMN,
            result,
            entity=self._entity_label(entity_id),
            column=column.name,
        )

    def remove_column(self, entity_id: str, column_id: str) -> ChangeResult:
        """Remove a column and its FK copies in descendants."""
        entity = ops.get_entity(self._graph, entity_id)
        column = ops.get_column(entity, column_id)
        result = column_ops.remove_column(self._graph, entity_id, column_id)
        return self._commit(
            HistoryAction.DELETE_COLUMN, result, entity=entity.label, column=column.name
        )

    def set_column_field(
        self, entity_id: str, column_id: str, field: str, value: Any
    ) -> ChangeResult:
        """Set one column field, cascading key and type changes."""
        entity = ops.get_entity(self._graph, entity_id)
        column = ops.get_column(entity, column_id)
        name = ops.normalize_field(field)
        result = column_ops.set_column_field(
            self._graph, entity_id, column_id, name, value, self.settings.validate_names
        )
        return self._commit(
            _FIELD_ACTIONS.get(name, HistoryAction.MODIFY_COLUMN),
            result,
            entity=entity.label,
            column=column.name,
            field=name,
            value=value,
            old=column.name,
            new=value,
        )

    def reorder_columns(self, entity_id: str, column_ids: list[str]) -> ChangeResult:
        """Put an entity's columns in a new order."""
        graph = ops.reorder_columns(self._graph, entity_id, column_ids)
        return self._commit(
            HistoryAction.REORDER_COLUMNS,
            ChangeResult(graph=graph),
            entity=self._entity_label(entity_id),
        )

    # === Relationships ===

    def connect(
        self, source_id: str, target_id: str, kind: RelationshipKind | str
    ) -> ChangeResult:
        """Draw a relationship from parent to child, creating its FK columns."""
        kind = RelationshipKind(kind)
        retype = ops.relationship_between(self._graph, source_id, target_id) is not None
        result = resolver.connect(
            self._graph,
            source_id,
            target_id,
            kind,
            self.settings.default_on_delete,
            self.settings.default_on_update,
        )
        action = HistoryAction.CHANGE_RELATIONSHIP_TYPE if retype else HistoryAction.CREATE_RELATIONSHIP
        return self._commit(
            action,
            result,
            source=self._entity_label(source_id),
            target=self._entity_label(target_id),
            kind=kind.value,
        )

    def reconnect(self, relationship_id: str, kind: RelationshipKind | str) -> ChangeResult:
        """Change a relationship's kind."""
        kind = RelationshipKind(kind)
        relationship = ops.get_relationship(self._graph, relationship_id)
        result = resolver.reconnect(self._graph, relationship_id, kind)
        return self._commit(
            HistoryAction.CHANGE_RELATIONSHIP_TYPE,
            result,
            source=self._entity_label(relationship.source),
            target=self._entity_label(relationship.target),
            kind=kind.value,
        )

    def disconnect(self, relationship_id: str) -> ChangeResult:
        """Remove a relationship and the child's FK columns from the parent."""
        relationship = ops.get_relationship(self._graph, relationship_id)
        source = self._entity_label(relationship.source)
        target = self._entity_label(relationship.target)
        result = resolver.disconnect(self._graph, relationship_id)
        return self._commit(
            HistoryAction.DELETE_RELATIONSHIP, result, source=source, target=target
        )

    # === Display state ===

    def set_color(self, kind: str, element_id: str, color: str | None) -> ChangeResult:
        """Set or clear a node, edge or comment color."""
        graph = ops.set_color(self._graph, kind, element_id, color)
        return self._commit(
            HistoryAction.CHANGE_NODE_COLOR, ChangeResult(graph=graph), kind=kind, element=element_id
        )

    def set_entity_hidden(self, entity_id: str, hidden: bool) -> ChangeResult:
        """Hide or show an entity."""
        graph = ops.set_entity_hidden(self._graph, entity_id, hidden)
        return self._commit(
            HistoryAction.TOGGLE_ENTITY_VISIBILITY,
            ChangeResult(graph=graph),
            entity=self._entity_label(entity_id),
        )

    # === History ===

    def undo(self) -> Graph | None:
        """Restore the previous snapshot, or return ``None`` if there is none."""
        snapshot = self._history.undo()
        if snapshot is not None:
            self._graph = snapshot
        return snapshot

    def redo(self) -> Graph | None:
        """Re-apply the next snapshot, or return ``None`` if there is none."""
        snapshot = self._history.redo()
        if snapshot is not None:
            self._graph = snapshot
        return snapshot

    def can_undo(self) -> bool:
        return self._history.can_undo()

    def can_redo(self) -> bool:
        return self._history.can_redo()

    # === Documents ===

    def to_document(self) -> dict[str, Any]:
        """Serialize the current graph."""
        return dump_document(self._graph)

    def load_document(self, data: str | bytes | dict[str, Any], strict: bool = False) -> Graph:
        """Replace the graph with a document and start a fresh history.

        Raises:
            CorruptSnapshotError: If the document is malformed; the current
                graph and history are kept
        """
        graph = load_document(data, strict=strict)
        self._graph = graph
        self._history.clear()
        self._history.save_state(HistoryAction.LOAD_DIAGRAM, graph)
        logger.info(f"Loaded diagram with {len(graph.entities)} entities")
        return graph

    def validate(self) -> list[str]:
        """Invariant violations of the current graph (empty when consistent)."""
        return ops.find_invariant_violations(self._graph)

