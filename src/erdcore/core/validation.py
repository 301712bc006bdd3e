"""SQL-safety checks for physical names and column data types (MySQL flavour)."""

from __future__ import annotations

import re

MYSQL_DATA_TYPES = frozenset(
    {
        "BIGINT", "BINARY", "BIT", "BLOB", "BOOL", "BOOLEAN", "CHAR", "DATE",
        "DATETIME", "DECIMAL", "DOUBLE", "ENUM", "FLOAT", "GEOMETRY",
        "GEOMETRYCOLLECTION", "INT", "INTEGER", "JSON", "LINESTRING", "LONGBLOB",
        "LONGTEXT", "MEDIUMBLOB", "MEDIUMINT", "MEDIUMTEXT", "MULTILINESTRING",
        "MULTIPOINT", "MULTIPOLYGON", "NUMERIC", "POINT", "POLYGON", "REAL", "SET",
        "SMALLINT", "TEXT", "TIME", "TIMESTAMP", "TINYBLOB", "TINYINT", "TINYTEXT",
        "VARBINARY", "VARCHAR", "YEAR",
    }
)  # fmt: skip

PHYSICAL_NAME_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
DATA_TYPE_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9_(),' ]*$")
INTEGER_TYPE_PATTERN = re.compile(r"^(INT|INTEGER|BIGINT|SMALLINT|TINYINT)(\(\d+\))?$")

_LENGTH_TYPES = ("VARCHAR", "CHAR", "BINARY", "VARBINARY")
_PRECISION_TYPES = ("DECIMAL", "NUMERIC")
_VALUE_LIST_TYPES = ("ENUM", "SET")


def validate_physical_name(value: str) -> bool:
    """Physical names are identifiers: letters, digits and underscores.

    Empty names are allowed while the user is still typing.
    """
    if not value or not value.strip():
        return True
    return PHYSICAL_NAME_PATTERN.match(value) is not None


def validate_data_type(value: str) -> bool:
    """Lenient check used while editing: ASCII type text, any type name."""
    if not value:
        return True
    return DATA_TYPE_PATTERN.match(value) is not None


def is_integer_type(data_type: str) -> bool:
    """Whether the type can carry AUTO_INCREMENT."""
    return INTEGER_TYPE_PATTERN.match((data_type or "").upper().strip()) is not None


def validate_data_type_for_sql(value: str) -> tuple[bool, str | None]:
    """Strict check applied before exporting DDL.

    Returns:
        ``(True, None)`` when valid, otherwise ``(False, reason)``
    """
    if not value or not value.strip():
        return False, "Data type is empty."

    upper = value.upper().strip()
    base = upper.split("(")[0].strip()

    if base not in MYSQL_DATA_TYPES:
        return False, f"Unsupported data type: {base}"

    if "(" in upper and not upper.endswith(")"):
        return False, "Parentheses are not closed."

    if base in _LENGTH_TYPES:
        match = re.match(r"^(\w+)\((\d+)\)$", upper)
        if not match:
            return False, f"{base} requires a length, e.g. {base}(255)."
        length = int(match.group(2))
        if length <= 0 or length > 65535:
            return False, f"{base} length must be between 1 and 65535."

    if base in _PRECISION_TYPES:
        match = re.match(r"^(\w+)\((\d+)(?:,\s*(\d+))?\)$", upper)
        if not match:
            return False, f"{base} requires a precision, e.g. {base}(10,2)."
        precision = int(match.group(2))
        scale = int(match.group(3)) if match.group(3) else 0
        if precision <= 0 or precision > 65:
            return False, f"{base} precision must be between 1 and 65."
        if scale > precision:
            return False, f"{base} scale cannot exceed its precision."

    if base in _VALUE_LIST_TYPES:
        match = re.match(r"^(\w+)\((.+)\)$", value.strip(), re.IGNORECASE)
        if not match or not re.findall(r"'[^']*'", match.group(2)):
            return False, f"{base} values must be quoted, e.g. {base}('a','b')."

    return True, None
