"""JSON document (de)serialization for diagrams.

The document is the camelCase shape exchanged with the storage layer:
``{entities, relationships, nodeColors, edgeColors, commentColors,
hiddenEntities, viewport, version}``.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from erdcore.core.types import Graph
from erdcore.exceptions import CorruptSnapshotError
from erdcore.schema.graph import find_invariant_violations

logger = logging.getLogger(__name__)


def dump_document(graph: Graph) -> dict[str, Any]:
    """Serialize a graph to a JSON-compatible dict with camelCase keys."""
    return graph.model_dump(mode="json", by_alias=True)


def dumps_document(graph: Graph, indent: int | None = 2) -> str:
    """Serialize a graph to a JSON string."""
    return json.dumps(dump_document(graph), indent=indent)


def _structural_problems(graph: Graph) -> list[str]:
    """Problems that make a document unusable regardless of strictness."""
    problems = []
    ids = [e.id for e in graph.entities]
    if len(ids) != len(set(ids)):
        problems.append("duplicate entity ids")
    known = set(ids)
    for relationship in graph.relationships:
        if relationship.source not in known or relationship.target not in known:
            problems.append(f"relationship {relationship.id} points at a missing entity")
    return problems


def load_document(data: str | bytes | dict[str, Any], strict: bool = False) -> Graph:
    """Deserialize a diagram document into a ``Graph``.

    Args:
        data: JSON text or an already decoded dict
        strict: Also reject documents that break any graph invariant

    Raises:
        CorruptSnapshotError: If the document is malformed. Nothing is
            partially restored.
    """
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise CorruptSnapshotError(f"invalid JSON ({e.msg} at line {e.lineno})") from e

    if not isinstance(data, dict):
        raise CorruptSnapshotError(f"expected a JSON object, got {type(data).__name__}")

    try:
        graph = Graph.model_validate(data)
    except ValidationError as e:
        problems = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        raise CorruptSnapshotError(f"{e.error_count()} invalid field(s)", problems) from e

    problems = _structural_problems(graph)
    if strict:
        problems.extend(p for p in find_invariant_violations(graph) if p not in problems)
    if problems:
        raise CorruptSnapshotError(problems[0], problems)

    logger.debug(
        f"Loaded document v{graph.version}: {len(graph.entities)} entities, "
        f"{len(graph.relationships)} relationships"
    )
    return graph
