"""Shared test fixtures for erdcore."""

from collections.abc import Callable, Generator

import pytest

from erdcore import Column, DiagramEditor, DiagramStore, Entity, Graph


def _pk(column_id: str, name: str = "id", data_type: str = "INT") -> Column:
    return Column(id=column_id, name=name, data_type=data_type, pk=True, nn=True)


@pytest.fixture
def make_pk() -> Callable[..., Column]:
    """Factory for a primary key column with a fixed id."""
    return _pk


@pytest.fixture
def shop_graph() -> Graph:
    """Three unconnected entities: user, order, order_item.

    user has PK ``id`` (INT) and a plain ``email`` column, order and
    order_item each have their own PK ``id``.
    """
    return Graph(
        entities=(
            Entity(
                id="user",
                physical_name="user",
                columns=(
                    _pk("user-id"),
                    Column(id="user-email", name="email", data_type="VARCHAR(255)"),
                ),
            ),
            Entity(id="order", physical_name="order", columns=(_pk("order-id"),)),
            Entity(id="order_item", physical_name="order_item", columns=(_pk("item-id"),)),
        )
    )


@pytest.fixture
def keyless_order_graph() -> Graph:
    """user (PK id), order without a key of its own, order_item (PK id)."""
    return Graph(
        entities=(
            Entity(id="user", physical_name="user", columns=(_pk("user-id"),)),
            Entity(
                id="order",
                physical_name="order",
                columns=(Column(id="order-total", name="total", data_type="DECIMAL(10,2)"),),
            ),
            Entity(id="order_item", physical_name="order_item", columns=(_pk("item-id"),)),
        )
    )


@pytest.fixture
def composite_graph() -> Graph:
    """account with a two-column key (region, number) and two children."""
    return Graph(
        entities=(
            Entity(
                id="account",
                physical_name="account",
                columns=(
                    _pk("acc-region", "region", "CHAR(2)"),
                    _pk("acc-number", "number", "INT"),
                ),
            ),
            Entity(id="invoice", physical_name="invoice", columns=(_pk("inv-id"),)),
            Entity(id="payment", physical_name="payment", columns=(_pk("pay-id"),)),
        )
    )


@pytest.fixture
def editor(shop_graph: Graph) -> DiagramEditor:
    """An editor over the shop graph."""
    return DiagramEditor(shop_graph)


@pytest.fixture
def memory_store() -> Generator[DiagramStore, None, None]:
    """Create a DiagramStore with SQLite in-memory."""
    store = DiagramStore("sqlite:///:memory:")
    yield store
    store.close()
