"""Input parsing utilities for CLI commands."""

from typing import Any

from erdcore.core.types import Column
from erdcore.schema.graph import BOOLEAN_FIELDS, normalize_field

COLUMN_FLAGS = ("pk", "nn", "uq", "ai")
TRUE_VALUES = ("true", "yes", "on", "1")
FALSE_VALUES = ("false", "no", "off", "0")


def parse_column_spec(spec: str) -> Column:
    """Parse a column specification string.

    Format: name:type[:flag][:flag][:default=value]...

    Examples:
        "id:INT:pk:ai" → primary key, auto increment
        "email:VARCHAR(255):nn:uq"
        "status:VARCHAR(20):default=new"

    Args:
        spec: Column specification string

    Returns:
        A new ``Column``

    Raises:
        ValueError: If spec format is invalid
    """
    parts = spec.split(":")
    if len(parts) < 2 or not parts[0]:
        raise ValueError(f"Invalid column spec: '{spec}'. Expected format: name:type[:flag]...")

    column: dict[str, Any] = {"name": parts[0], "data_type": parts[1]}
    for modifier in parts[2:]:
        if "=" in modifier:
            key, value = modifier.split("=", 1)
            if key == "default":
                column["default_value"] = value
            elif key == "comment":
                column["comment"] = value
            else:
                raise ValueError(f"Invalid modifier: '{modifier}'. Supported: default=, comment=")
        elif modifier.lower() in COLUMN_FLAGS:
            column[modifier.lower()] = True
        else:
            raise ValueError(
                f"Invalid modifier: '{modifier}'. "
                f"Supported: {', '.join(COLUMN_FLAGS)}, default=value, comment=text"
            )

    if column.get("pk"):
        column["nn"] = True
    return Column(**column)


def parse_field_value(field: str, value: str) -> Any:
    """Convert a command-line value for a column field.

    Boolean fields accept true/false, yes/no, on/off or 1/0.

    Raises:
        ValueError: If a boolean field gets anything else
    """
    if normalize_field(field) not in BOOLEAN_FIELDS:
        return value
    lowered = value.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise ValueError(f"Expected true or false for '{field}', got '{value}'")
