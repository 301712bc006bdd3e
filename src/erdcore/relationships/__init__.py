"""Connection resolver and cascading column edits."""

from erdcore.relationships.columns import add_column, remove_column, set_column_field
from erdcore.relationships.resolver import connect, disconnect, reconnect, toggle_fk_primary_key

__all__ = [
    "add_column",
    "connect",
    "disconnect",
    "reconnect",
    "remove_column",
    "set_column_field",
    "toggle_fk_primary_key",
]
