"""Tests for core types."""

import pytest
from pydantic import ValidationError

from erdcore.core.types import (
    ChangeResult,
    Column,
    EditorSettings,
    Entity,
    ForeignKeyRef,
    Graph,
    Notification,
    NotificationLevel,
    ReferentialAction,
    RelationshipKind,
    new_id,
)


class TestRelationshipKind:
    """Tests for RelationshipKind enum."""

    def test_all_kinds_exist(self):
        """The four kinds are available as values."""
        assert RelationshipKind.values() == [
            "one-to-one-identifying",
            "one-to-one-non-identifying",
            "one-to-many-identifying",
            "one-to-many-non-identifying",
        ]

    def test_is_identifying(self):
        """Identifying-ness is read from the kind."""
        assert RelationshipKind.ONE_TO_MANY_IDENTIFYING.is_identifying is True
        assert RelationshipKind.ONE_TO_ONE_IDENTIFYING.is_identifying is True
        assert RelationshipKind.ONE_TO_MANY_NON_IDENTIFYING.is_identifying is False
        assert RelationshipKind.ONE_TO_ONE_NON_IDENTIFYING.is_identifying is False

    def test_cardinality(self):
        """Cardinality is independent of identifying-ness."""
        assert RelationshipKind.ONE_TO_ONE_NON_IDENTIFYING.cardinality == "one-to-one"
        assert RelationshipKind.ONE_TO_MANY_IDENTIFYING.cardinality == "one-to-many"

    def test_with_identifying_keeps_cardinality(self):
        """Flipping the identifying axis never changes cardinality."""
        kind = RelationshipKind.ONE_TO_ONE_IDENTIFYING
        assert kind.with_identifying(False) == RelationshipKind.ONE_TO_ONE_NON_IDENTIFYING
        assert kind.with_identifying(True) == kind
        assert (
            RelationshipKind.ONE_TO_MANY_NON_IDENTIFYING.with_identifying(True)
            == RelationshipKind.ONE_TO_MANY_IDENTIFYING
        )


class TestReferentialAction:
    """Tests for ReferentialAction enum."""

    def test_values(self):
        """SQL spellings are used as values."""
        assert ReferentialAction.values() == [
            "CASCADE",
            "SET NULL",
            "SET DEFAULT",
            "RESTRICT",
            "NO ACTION",
        ]


class TestColumn:
    """Tests for the Column model."""

    def test_plain_column(self):
        """A column without foreign key reports fk=False."""
        column = Column(name="email", data_type="VARCHAR(255)")
        assert column.fk is False
        assert column.group_id is None
        assert column.id.startswith("col-")

    def test_foreign_key_column(self):
        """The nested FK record makes the column an FK."""
        column = Column(
            name="user_id",
            data_type="INT",
            foreign_key=ForeignKeyRef(
                parent_entity_id="user", parent_column_id="user-id", relationship_group_id="grp-1"
            ),
        )
        assert column.fk is True
        assert column.group_id == "grp-1"
        assert column.references("user") is True
        assert column.references("order") is False
        assert column.foreign_key.on_delete == ReferentialAction.NO_ACTION

    def test_camel_case_aliases(self):
        """Columns accept and produce camelCase keys."""
        column = Column.model_validate({"name": "id", "dataType": "INT", "logicalName": "Id"})
        assert column.data_type == "INT"
        dumped = column.model_dump(by_alias=True)
        assert dumped["dataType"] == "INT"
        assert dumped["logicalName"] == "Id"
        assert dumped["fk"] is False

    def test_legacy_flat_foreign_key_is_lifted(self):
        """Old documents kept FK fields on the column itself."""
        column = Column.model_validate(
            {
                "id": "c1",
                "name": "user_id",
                "type": "INT",
                "fk": True,
                "parentEntityId": "user",
                "parentColumnId": "id",
                "onDelete": "CASCADE",
            }
        )
        assert column.data_type == "INT"
        assert column.foreign_key is not None
        assert column.foreign_key.parent_entity_id == "user"
        assert column.foreign_key.parent_column_id == "id"
        assert column.foreign_key.on_delete == ReferentialAction.CASCADE

    def test_legacy_fk_flag_without_parent_is_rejected(self):
        """fk=true without a parent reference is malformed."""
        with pytest.raises(ValidationError):
            Column.model_validate({"name": "x", "fk": True})

    def test_columns_are_immutable(self):
        """Graph values are frozen."""
        column = Column(name="id")
        with pytest.raises(ValidationError):
            column.name = "other"


class TestEntity:
    """Tests for the Entity model."""

    def test_lookups(self):
        """Columns can be found by id or name, PKs in order."""
        entity = Entity(
            physical_name="user",
            columns=(
                Column(id="a", name="id", pk=True, nn=True),
                Column(id="b", name="email"),
                Column(id="c", name="tenant", pk=True, nn=True),
            ),
        )
        assert entity.column("b").name == "email"
        assert entity.column_by_name("tenant").id == "c"
        assert entity.column("missing") is None
        assert [c.id for c in entity.pk_columns] == ["a", "c"]
        assert entity.label == "user"


class TestChangeResult:
    """Tests for ChangeResult."""

    def test_extend_chains_notifications(self):
        """Extending takes the newer graph and concatenates notifications."""
        first = ChangeResult(graph=Graph(), notifications=[Notification(message="a")])
        newer = Graph(version="2.0")
        second = ChangeResult(
            graph=newer,
            notifications=[Notification(level=NotificationLevel.WARNING, message="b")],
        )
        merged = first.extend(second)
        assert merged.graph is newer
        assert [n.message for n in merged.notifications] == ["a", "b"]
        assert [n.message for n in merged.warnings] == ["b"]


class TestEditorSettings:
    """Tests for EditorSettings."""

    def test_defaults(self):
        """History keeps 50 snapshots by default."""
        settings = EditorSettings()
        assert settings.history_limit == 50
        assert settings.default_on_delete == ReferentialAction.NO_ACTION
        assert settings.validate_names is True

    def test_history_limit_must_be_positive(self):
        """A zero-size history is rejected."""
        with pytest.raises(ValidationError):
            EditorSettings(history_limit=0)


def test_new_id_prefix():
    """Generated ids carry their prefix and are unique."""
    first, second = new_id("ent"), new_id("ent")
    assert first.startswith("ent-")
    assert len(first) == len("ent-") + 12
    assert first != second
