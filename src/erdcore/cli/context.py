"""CLI context: diagram file, store connection and output preferences."""

import os
from dataclasses import dataclass, field
from pathlib import Path

from erdcore.core.editor import DiagramEditor
from erdcore.core.types import Entity, Graph
from erdcore.exceptions import EntityNotFoundError
from erdcore.schema.document import dumps_document, load_document
from erdcore.schema.graph import find_entity
from erdcore.storage import DiagramStore

DEFAULT_DIAGRAM_FILE = "diagram.json"
DEFAULT_DATABASE_URL = "sqlite:///./erdcore.db"


def get_diagram_file(path: str | None) -> str:
    """Resolve the diagram file from CLI arg, environment variable, or default.

    Priority:
    1. Explicit path argument
    2. ERDCORE_FILE environment variable
    3. Default: ./diagram.json
    """
    if path:
        return path
    if env_path := os.getenv("ERDCORE_FILE"):
        return env_path
    return DEFAULT_DIAGRAM_FILE


def get_database_url(url: str | None) -> str:
    """Resolve the store URL from CLI arg, environment variable, or default.

    Priority:
    1. Explicit URL argument
    2. ERDCORE_URL environment variable
    3. Default: sqlite:///./erdcore.db
    """
    if url:
        return url
    if env_url := os.getenv("ERDCORE_URL"):
        return env_url
    return DEFAULT_DATABASE_URL


def resolve_entity(graph: Graph, ref: str) -> Entity:
    """Find an entity by id or physical name, or raise ``EntityNotFoundError``."""
    entity = find_entity(graph, ref)
    if entity is None:
        raise EntityNotFoundError(ref, [e.label for e in graph.entities])
    return entity


@dataclass
class CLIContext:
    """Shared context for CLI commands.

    Each command loads the diagram file into an editor, applies one edit
    and writes the file back.
    """

    diagram_file: str
    database_url: str
    json_output: bool
    _store: DiagramStore | None = field(default=None, init=False, repr=False)

    def load_editor(self) -> DiagramEditor:
        """Open the diagram file (an empty diagram if it doesn't exist yet)."""
        path = Path(self.diagram_file)
        if not path.exists():
            return DiagramEditor()
        return DiagramEditor(load_document(path.read_text(encoding="utf-8")))

    def save_graph(self, graph: Graph) -> None:
        """Write the graph back to the diagram file."""
        Path(self.diagram_file).write_text(dumps_document(graph), encoding="utf-8")

    def get_store(self) -> DiagramStore:
        """Get or create the diagram store (lazy initialization)."""
        if self._store is None:
            self._store = DiagramStore(self.database_url)
        return self._store

    def close(self) -> None:
        """Close the store connection if open."""
        if self._store is not None:
            self._store.close()
            self._store = None
