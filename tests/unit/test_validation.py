"""Tests for name and data type validation."""

import pytest

from erdcore.core.validation import (
    is_integer_type,
    validate_data_type,
    validate_data_type_for_sql,
    validate_physical_name,
)


class TestPhysicalNames:
    """Tests for validate_physical_name."""

    @pytest.mark.parametrize("name", ["user", "order_item", "_tmp", "Table2", ""])
    def test_valid_names(self, name):
        """Identifiers (and the empty in-progress name) are accepted."""
        assert validate_physical_name(name) is True

    @pytest.mark.parametrize("name", ["2fast", "user-name", "drop table", "name;"])
    def test_invalid_names(self, name):
        """Anything that is not an identifier is rejected."""
        assert validate_physical_name(name) is False


class TestDataTypes:
    """Tests for the lenient editing check."""

    def test_accepts_parameterized_types(self):
        """Lengths, precisions and quoted value lists pass."""
        assert validate_data_type("VARCHAR(255)") is True
        assert validate_data_type("DECIMAL(10, 2)") is True
        assert validate_data_type("ENUM('a','b')") is True

    def test_rejects_statement_injection(self):
        """Semicolons and comments are not part of a type."""
        assert validate_data_type("INT; DROP TABLE user") is False
        assert validate_data_type("INT -- comment") is False

    def test_integer_types(self):
        """AUTO_INCREMENT-capable types."""
        assert is_integer_type("INT") is True
        assert is_integer_type("int(11)") is True
        assert is_integer_type("BIGINT") is True
        assert is_integer_type("DECIMAL(10,2)") is False
        assert is_integer_type("VARCHAR(20)") is False
        assert is_integer_type("") is False


class TestExportDataTypes:
    """Tests for validate_data_type_for_sql."""

    @pytest.mark.parametrize(
        "value",
        ["INT", "VARCHAR(255)", "DECIMAL(10,2)", "NUMERIC(5)", "ENUM('a','b')", "datetime"],
    )
    def test_valid(self, value):
        """Known and well-formed types pass."""
        assert validate_data_type_for_sql(value) == (True, None)

    @pytest.mark.parametrize(
        ("value", "fragment"),
        [
            ("", "empty"),
            ("FOO", "Unsupported"),
            ("VARCHAR", "requires a length"),
            ("VARCHAR(0)", "between 1 and 65535"),
            ("VARCHAR(70000)", "between 1 and 65535"),
            ("VARCHAR(255", "not closed"),
            ("DECIMAL(5,6)", "scale"),
            ("DECIMAL(70,2)", "between 1 and 65"),
            ("ENUM(a,b)", "quoted"),
        ],
    )
    def test_invalid(self, value, fragment):
        """Each failure explains itself."""
        ok, reason = validate_data_type_for_sql(value)
        assert ok is False
        assert fragment in reason
