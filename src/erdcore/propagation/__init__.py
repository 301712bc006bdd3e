"""FK propagation engine and matching heuristics."""

from erdcore.propagation.engine import (
    propagate_column_addition,
    propagate_column_deletion,
    propagate_data_type_change,
    propagate_relationship_type_change,
)
from erdcore.propagation.matching import (
    build_fk_column,
    find_existing_fk_column,
    fk_column_name,
)

__all__ = [
    "build_fk_column",
    "find_existing_fk_column",
    "fk_column_name",
    "propagate_column_addition",
    "propagate_column_deletion",
    "propagate_data_type_change",
    "propagate_relationship_type_change",
]
