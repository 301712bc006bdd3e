"""Integration tests for a full erdcore editing session."""

from erdcore import (
    Column,
    DiagramEditor,
    DiagramStore,
    Entity,
    Graph,
    RelationshipKind,
    dump_document,
)
from erdcore.schema import graph as ops


def _names(graph: Graph, entity_id: str) -> list[str]:
    return [c.name for c in ops.get_entity(graph, entity_id).columns]


class TestFullWorkflow:
    """End-to-end tests for erdcore."""

    def test_build_edit_undo_and_store(self, memory_store: DiagramStore):
        """Build a diagram, cascade edits through it, undo everything and persist it."""
        editor = DiagramEditor()

        # 1. Entities
        editor.add_entity(
            Entity(
                id="customer",
                physical_name="customer",
                columns=(Column(name="id", data_type="INT", pk=True, ai=True),),
            )
        )
        editor.add_entity(
            Entity(id="order", physical_name="order", columns=(Column(name="id", data_type="INT", pk=True),))
        )
        editor.add_entity(
            Entity(id="line", physical_name="line", columns=(Column(name="number", data_type="INT", pk=True),))
        )
        editor.add_entity(
            Entity(
                id="product",
                physical_name="product",
                columns=(Column(name="sku", data_type="VARCHAR(20)", pk=True),),
            )
        )

        # 2. Relationships
        editor.connect("customer", "order", RelationshipKind.ONE_TO_MANY_IDENTIFYING)
        editor.connect("order", "line", RelationshipKind.ONE_TO_MANY_IDENTIFYING)
        editor.connect("product", "line", RelationshipKind.ONE_TO_MANY_NON_IDENTIFYING)

        assert _names(editor.graph, "order") == ["id", "customer_id"]
        assert _names(editor.graph, "line") == ["number", "order_id", "order_customer_id", "product_sku"]
        line = ops.get_entity(editor.graph, "line")
        assert line.column_by_name("order_id").group_id is not None
        assert line.column_by_name("order_id").group_id == line.column_by_name("order_customer_id").group_id
        assert line.column_by_name("product_sku").pk is False

        # 3. Retype the root key: every FK copy follows
        customer_id = ops.get_entity(editor.graph, "customer").columns[0]
        editor.set_column_field("customer", customer_id.id, "dataType", "BIGINT")
        line = ops.get_entity(editor.graph, "line")
        assert ops.get_entity(editor.graph, "order").column_by_name("customer_id").data_type == "BIGINT"
        assert line.column_by_name("order_customer_id").data_type == "BIGINT"
        assert line.column_by_name("order_id").data_type == "INT"
        assert editor.validate() == []

        # 4. Remove the root entity
        before_removal = dump_document(editor.graph)
        editor.remove_entity("customer")
        assert _names(editor.graph, "order") == ["id"]
        assert _names(editor.graph, "line") == ["number", "order_id", "product_sku"]
        assert len(editor.graph.relationships) == 2
        assert editor.validate() == []
        final = editor.graph

        # 5. Undo one step, then everything
        editor.undo()
        assert dump_document(editor.graph) == before_removal
        while editor.can_undo():
            editor.undo()
        assert editor.graph == Graph()

        # 6. Redo everything
        while editor.can_redo():
            editor.redo()
        assert editor.graph == final

        # 7. Persist and restore
        info = memory_store.save(editor.graph, title="Orders", tags=["integration"])
        restored = DiagramEditor()
        restored.load_document(dump_document(memory_store.load(info.id)), strict=True)
        assert restored.graph == final
        assert restored.validate() == []

    def test_history_is_bounded(self, shop_graph: Graph):
        """Long sessions keep only the configured number of snapshots."""
        editor = DiagramEditor(shop_graph)
        for i in range(60):
            editor.set_column_field("user", "user-email", "comment", f"edit {i}")

        assert editor.history.size == 50
        steps = 0
        while editor.can_undo():
            editor.undo()
            steps += 1
        assert steps == 49
        assert ops.get_entity(editor.graph, "user").column("user-email").comment == "edit 10"
