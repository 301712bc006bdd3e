"""Tests for cascading column edits."""

import pytest

from erdcore.core.types import (
    Column,
    ForeignKeyRef,
    Graph,
    NotificationLevel,
    ReferentialAction,
    RelationshipKind,
)
from erdcore.exceptions import InvalidForeignKeyError
from erdcore.relationships import add_column, connect, remove_column, set_column_field
from erdcore.schema import graph as ops

IDENTIFYING = RelationshipKind.ONE_TO_MANY_IDENTIFYING
NON_IDENTIFYING = RelationshipKind.ONE_TO_MANY_NON_IDENTIFYING


def _names(graph: Graph, entity_id: str) -> list[str]:
    return [c.name for c in ops.get_entity(graph, entity_id).columns]


def _column(graph: Graph, entity_id: str, name: str) -> Column:
    return ops.get_entity(graph, entity_id).column_by_name(name)


def _user_fk(name: str, **kwargs) -> Column:
    return Column(
        name=name,
        data_type="INT",
        foreign_key=ForeignKeyRef(parent_entity_id="user", parent_column_id="user-id"),
        **kwargs,
    )


class TestAddColumn:
    """Tests for add_column."""

    def test_plain_column_does_not_propagate(self, shop_graph: Graph):
        """Only key columns reach children."""
        graph = connect(shop_graph, "user", "order", IDENTIFYING).graph
        result = add_column(graph, "user", Column(name="nickname", data_type="VARCHAR(20)"))
        assert _names(result.graph, "order") == ["id", "user_id"]
        assert result.notifications == []

    def test_key_column_propagates(self, shop_graph: Graph):
        """A new PK column appears as FK on each child."""
        graph = connect(shop_graph, "user", "order", NON_IDENTIFYING).graph
        result = add_column(graph, "user", Column(name="tenant", data_type="INT", pk=True))
        assert _names(result.graph, "order") == ["id", "user_id", "user_tenant"]
        assert _column(result.graph, "order", "user_tenant").pk is False

    def test_foreign_key_needs_relationship(self, shop_graph: Graph):
        """FK columns can only be added between connected entities."""
        with pytest.raises(InvalidForeignKeyError, match="connect them first"):
            add_column(shop_graph, "order", _user_fk("owner"))

    def test_foreign_key_pk_follows_relationship_kind(self, shop_graph: Graph):
        """A key FK under a non-identifying relationship is rejected."""
        graph = connect(shop_graph, "user", "order", NON_IDENTIFYING).graph

        with pytest.raises(InvalidForeignKeyError, match="pk must be False"):
            add_column(graph, "order", _user_fk("owner", pk=True))

        result = add_column(graph, "order", _user_fk("owner"))
        assert _column(result.graph, "order", "owner").pk is False
        assert ops.find_invariant_violations(result.graph) == []

    def test_foreign_key_joins_sibling_group(self, composite_graph: Graph):
        """A hand-added FK takes the group, actions and nn of its siblings."""
        graph = connect(composite_graph, "account", "invoice", NON_IDENTIFYING).graph
        region = _column(graph, "invoice", "account_region")
        graph = set_column_field(graph, "invoice", region.id, "on_delete", "CASCADE").graph
        graph = set_column_field(graph, "invoice", region.id, "nn", True).graph

        column = Column(
            name="billing_region",
            data_type="CHAR(2)",
            foreign_key=ForeignKeyRef(parent_entity_id="account", parent_column_id="acc-region"),
        )
        result = add_column(graph, "invoice", column)

        billing = _column(result.graph, "invoice", "billing_region")
        assert billing.group_id == region.group_id
        assert billing.foreign_key.on_delete == ReferentialAction.CASCADE
        assert billing.nn is True
        assert ops.find_invariant_violations(result.graph) == []


class TestRemoveColumn:
    """Tests for remove_column."""

    def test_removing_root_key_cascades(self, keyless_order_graph: Graph):
        """Removing the root key clears the chain and its relationships."""
        graph = connect(keyless_order_graph, "user", "order", IDENTIFYING).graph
        graph = connect(graph, "order", "order_item", IDENTIFYING).graph

        result = remove_column(graph, "user", "user-id")

        assert _names(result.graph, "order") == ["total"]
        assert _names(result.graph, "order_item") == ["id"]
        assert result.graph.relationships == ()

    def test_removing_last_identifying_fk_drops_relationship(self, shop_graph: Graph):
        """The edge goes with the last FK of an identifying link."""
        graph = connect(shop_graph, "user", "order", IDENTIFYING).graph
        column = _column(graph, "order", "user_id")

        result = remove_column(graph, "order", column.id)

        assert result.graph.relationships == ()
        assert "last foreign key" in result.notifications[-1].message

    def test_removing_non_identifying_fk_keeps_relationship(self, shop_graph: Graph):
        """A non-identifying edge may exist without FKs."""
        graph = connect(shop_graph, "user", "order", NON_IDENTIFYING).graph
        column = _column(graph, "order", "user_id")

        result = remove_column(graph, "order", column.id)

        assert len(result.graph.relationships) == 1


class TestSetColumnField:
    """Tests for set_column_field with propagation."""

    def test_promoting_plain_column_propagates(self, shop_graph: Graph):
        """A column that joins the key is passed to children."""
        graph = connect(shop_graph, "user", "order", NON_IDENTIFYING).graph
        result = set_column_field(graph, "user", "user-email", "pk", True)
        assert _column(result.graph, "user", "email").nn is True
        email_fk = _column(result.graph, "order", "user_email")
        assert email_fk.data_type == "VARCHAR(255)"
        assert email_fk.foreign_key.parent_column_id == "user-email"

    def test_demoting_key_column_cascades(self, shop_graph: Graph):
        """A column leaving the key takes its FKs along."""
        graph = connect(shop_graph, "user", "order", IDENTIFYING).graph
        result = set_column_field(graph, "user", "user-id", "pk", False)
        assert _names(result.graph, "order") == ["id"]
        assert result.graph.relationships == ()

    def test_unique_on_key_column_demotes(self, shop_graph: Graph):
        """uq on a key column behaves like a demotion."""
        graph = connect(shop_graph, "user", "order", NON_IDENTIFYING).graph
        result = set_column_field(graph, "user", "user-id", "uq", True)
        column = _column(result.graph, "user", "id")
        assert (column.pk, column.uq) == (False, True)
        assert _names(result.graph, "order") == ["id"]

    def test_same_pk_value_is_noop(self, shop_graph: Graph):
        """Setting pk to its current value changes nothing."""
        result = set_column_field(shop_graph, "user", "user-id", "pk", True)
        assert result.graph is shop_graph

    def test_fk_pk_toggle_changes_relationship_kind(self, shop_graph: Graph):
        """Unchecking PK on an identifying FK downgrades the link."""
        graph = connect(shop_graph, "user", "order", IDENTIFYING).graph
        column = _column(graph, "order", "user_id")
        result = set_column_field(graph, "order", column.id, "pk", False)
        assert _column(result.graph, "order", "user_id").fk is True
        assert ops.relationship_between(result.graph, "user", "order").kind == NON_IDENTIFYING

    def test_data_type_propagates(self, shop_graph: Graph):
        """A key column's type is copied to its FKs."""
        graph = connect(shop_graph, "user", "order", IDENTIFYING).graph
        result = set_column_field(graph, "user", "user-id", "dataType", "BIGINT")
        assert _column(result.graph, "order", "user_id").data_type == "BIGINT"

    def test_data_type_clears_auto_increment_with_warning(self, shop_graph: Graph):
        """Switching away from an integer type drops AUTO_INCREMENT."""
        graph = ops.set_column_field(shop_graph, "user", "user-id", "ai", True)
        result = set_column_field(graph, "user", "user-id", "data_type", "CHAR(36)")
        assert _column(result.graph, "user", "id").ai is False
        assert result.notifications[0].level == NotificationLevel.WARNING

    def test_renaming_key_relinks_legacy_references(self, shop_graph: Graph):
        """FKs that stored the old column name switch to the column id."""
        graph = connect(shop_graph, "user", "order", NON_IDENTIFYING).graph
        legacy = _column(graph, "order", "user_id")
        legacy = legacy.model_copy(
            update={
                "foreign_key": ForeignKeyRef(parent_entity_id="user", parent_column_id="id")
            }
        )
        graph = ops.replace_column(graph, "order", legacy)

        result = set_column_field(graph, "user", "user-id", "name", "user_key")

        assert _column(result.graph, "order", "user_id").foreign_key.parent_column_id == "user-id"
