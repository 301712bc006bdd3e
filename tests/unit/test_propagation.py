"""Tests for FK propagation through descendant entities."""

from erdcore.core.types import Column, Entity, Graph, RelationshipKind
from erdcore.propagation import (
    propagate_column_addition,
    propagate_column_deletion,
    propagate_data_type_change,
    propagate_relationship_type_change,
)
from erdcore.relationships import connect
from erdcore.schema import graph as ops

IDENTIFYING = RelationshipKind.ONE_TO_MANY_IDENTIFYING
NON_IDENTIFYING = RelationshipKind.ONE_TO_MANY_NON_IDENTIFYING


def _chain(graph: Graph, first: RelationshipKind = IDENTIFYING) -> Graph:
    """user -> order -> order_item, the second link identifying."""
    graph = connect(graph, "user", "order", first).graph
    return connect(graph, "order", "order_item", IDENTIFYING).graph


def _names(graph: Graph, entity_id: str) -> list[str]:
    return [c.name for c in ops.get_entity(graph, entity_id).columns]


class TestColumnAddition:
    """Tests for propagate_column_addition."""

    def test_new_key_reaches_grandchildren(self, shop_graph: Graph):
        """Identifying links carry a new parent key all the way down."""
        graph = _chain(shop_graph)
        tenant = Column(id="user-tenant", name="tenant", data_type="INT", pk=True, nn=True)
        graph = ops.add_column(graph, "user", tenant)

        result = propagate_column_addition(graph, "user", tenant)

        assert "user_tenant" in _names(result.graph, "order")
        assert ops.get_entity(result.graph, "order").column_by_name("user_tenant").pk is True
        order_item = ops.get_entity(result.graph, "order_item")
        added = order_item.column_by_name("order_user_tenant")
        assert added.pk is True
        assert added.group_id == order_item.column_by_name("order_id").group_id
        assert len(result.notifications) == 2

    def test_new_grouped_fk_takes_sibling_nn(self, composite_graph: Graph):
        """A key added to a composite parent joins the child's group with its nn."""
        graph = connect(composite_graph, "account", "invoice", NON_IDENTIFYING).graph
        region = ops.get_entity(graph, "invoice").column_by_name("account_region")
        graph = ops.set_column_field(graph, "invoice", region.id, "nn", True)
        branch = Column(id="acc-branch", name="branch", data_type="INT", pk=True, nn=True)
        graph = ops.add_column(graph, "account", branch)

        result = propagate_column_addition(graph, "account", branch)

        added = ops.get_entity(result.graph, "invoice").column_by_name("account_branch")
        assert (added.group_id, added.nn) == (region.group_id, True)
        assert ops.find_invariant_violations(result.graph) == []

    def test_non_identifying_child_stops_cascade(self, shop_graph: Graph):
        """A non-key FK does not propagate further."""
        graph = _chain(shop_graph, first=NON_IDENTIFYING)
        tenant = Column(id="user-tenant", name="tenant", data_type="INT", pk=True, nn=True)
        graph = ops.add_column(graph, "user", tenant)

        result = propagate_column_addition(graph, "user", tenant)

        assert ops.get_entity(result.graph, "order").column_by_name("user_tenant").pk is False
        assert "order_user_tenant" not in _names(result.graph, "order_item")

    def test_existing_reference_is_left_alone(self, shop_graph: Graph):
        """A child that already holds the FK gets no duplicate."""
        graph = connect(shop_graph, "user", "order", NON_IDENTIFYING).graph
        user_id = ops.get_column(ops.get_entity(graph, "user"), "user-id")

        result = propagate_column_addition(graph, "user", user_id)

        assert result.graph == graph
        assert result.notifications == []

    def test_cycle_terminates(self, make_pk):
        """Identifying cycles stop at entities already on the path."""
        graph = Graph(
            entities=tuple(
                Entity(id=name, physical_name=name, columns=(make_pk(f"{name}-id"),))
                for name in ("a", "b", "c")
            )
        )
        graph = connect(graph, "a", "b", IDENTIFYING).graph
        graph = connect(graph, "b", "c", IDENTIFYING).graph
        graph = connect(graph, "c", "a", IDENTIFYING).graph

        assert len(graph.relationships) == 3
        assert "c_id" in _names(graph, "a")
        assert "a_c_id" in _names(graph, "b")
        assert "b_a_c_id" in _names(graph, "c")


class TestColumnDeletion:
    """Tests for propagate_column_deletion."""

    def test_deleting_root_key_clears_chain(self, keyless_order_graph: Graph):
        """Removing user.id removes every derived FK and the emptied links."""
        graph = _chain(keyless_order_graph)
        assert "order_user_id" in _names(graph, "order_item")
        user_id = ops.get_column(ops.get_entity(graph, "user"), "user-id")
        graph = ops.remove_column(graph, "user", "user-id")

        result = propagate_column_deletion(graph, "user", user_id)

        assert _names(result.graph, "order") == ["total"]
        assert _names(result.graph, "order_item") == ["id"]
        assert result.graph.relationships == ()
        assert result.warnings == []

    def test_composite_child_keeps_other_link(self, shop_graph: Graph):
        """A relationship with FKs left over survives."""
        graph = _chain(shop_graph)
        user_id = ops.get_column(ops.get_entity(graph, "user"), "user-id")
        graph = ops.remove_column(graph, "user", "user-id")

        result = propagate_column_deletion(graph, "user", user_id)

        assert _names(result.graph, "order") == ["id"]
        assert _names(result.graph, "order_item") == ["id", "order_id"]
        assert [(r.source, r.target) for r in result.graph.relationships] == [
            ("order", "order_item")
        ]

    def test_missing_fk_is_skipped_with_warning(self, shop_graph: Graph):
        """An unmatched branch produces a warning instead of an error."""
        graph = connect(shop_graph, "user", "order", NON_IDENTIFYING).graph
        order = ops.get_entity(graph, "order")
        graph = ops.remove_column(graph, "order", order.column_by_name("user_id").id)
        user_id = ops.get_column(ops.get_entity(graph, "user"), "user-id")
        graph = ops.remove_column(graph, "user", "user-id")

        result = propagate_column_deletion(graph, "user", user_id)

        assert len(result.warnings) == 1
        assert "skipped" in result.warnings[0].message
        assert len(result.graph.relationships) == 1


class TestDataTypeChange:
    """Tests for propagate_data_type_change."""

    def test_retype_follows_identifying_chain(self, shop_graph: Graph):
        """BIGINT on user.id reaches order and order_item."""
        graph = _chain(shop_graph)
        graph = ops.set_column_field(graph, "user", "user-id", "data_type", "BIGINT")
        changed = ops.get_column(ops.get_entity(graph, "user"), "user-id")

        result = propagate_data_type_change(graph, "user", changed, "BIGINT")

        order = ops.get_entity(result.graph, "order")
        order_item = ops.get_entity(result.graph, "order_item")
        assert order.column_by_name("user_id").data_type == "BIGINT"
        assert order_item.column_by_name("order_user_id").data_type == "BIGINT"
        assert order_item.column_by_name("order_id").data_type == "INT"


class TestRelationshipTypeChange:
    """Tests for propagate_relationship_type_change."""

    def _demote(self, graph: Graph) -> tuple[Graph, Column]:
        order = ops.get_entity(graph, "order")
        user_id = order.column_by_name("user_id")
        graph = ops.replace_column(graph, "order", user_id.model_copy(update={"pk": False, "nn": False}))
        return graph, user_id

    def test_partial_removal_keeps_relationship(self, shop_graph: Graph):
        """Only the FK derived from the demoted column goes."""
        graph, user_id = self._demote(_chain(shop_graph))

        result = propagate_relationship_type_change(graph, "order", [user_id])

        assert _names(result.graph, "order_item") == ["id", "order_id"]
        assert len(result.graph.relationships) == 2

    def test_full_removal_drops_relationship(self, keyless_order_graph: Graph):
        """When every FK of a link goes, the link goes too."""
        graph, user_id = self._demote(_chain(keyless_order_graph))

        result = propagate_relationship_type_change(graph, "order", [user_id])

        assert _names(result.graph, "order_item") == ["id"]
        assert [(r.source, r.target) for r in result.graph.relationships] == [("user", "order")]
        assert "Removed relationship order -> order_item" in result.notifications[0].message
