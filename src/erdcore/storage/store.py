"""DiagramStore: persist diagram documents in SQLite or PostgreSQL."""

from __future__ import annotations

import logging
from datetime import datetime

from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from erdcore.core.types import Graph
from erdcore.exceptions import DiagramNotFoundError
from erdcore.schema.document import dump_document, load_document
from erdcore.storage.connection import DatabaseConnection
from erdcore.storage.models import Base, DiagramRecord

logger = logging.getLogger(__name__)


class DiagramInfo(BaseModel):
    """Listing metadata of a saved diagram."""

    id: str
    title: str
    description: str | None = None
    owner_email: str | None = None
    is_public: bool = False
    tags: list[str] = Field(default_factory=list)
    version: int = 1
    entity_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_record(cls, record: DiagramRecord) -> DiagramInfo:
        return cls(
            id=record.id,
            title=record.title,
            description=record.description,
            owner_email=record.owner_email,
            is_public=record.is_public,
            tags=list(record.tags or []),
            version=record.version,
            entity_count=len((record.document or {}).get("entities", [])),
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class DiagramStore:
    """Saved diagrams, one JSON document per row.

    Example:
        with DiagramStore("sqlite:///./erdcore.db") as store:
            info = store.save(editor.graph, title="Shop")
            graph = store.load(info.id)
    """

    def __init__(self, url: str, echo: bool = False) -> None:
        """Initialize the store and create its table if needed.

        Args:
            url: Database URL (SQLite or PostgreSQL)
            echo: Whether to echo SQL statements
        """
        self._connection = DatabaseConnection(url, echo=echo)
        self._initialized = False
        self.initialize()

    def initialize(self) -> None:
        """Create the diagrams table if it doesn't exist."""
        if not self._initialized:
            Base.metadata.create_all(self._connection.engine)
            self._initialized = True

    def _get_record(self, session: Session, diagram_id: str) -> DiagramRecord:
        record = session.get(DiagramRecord, diagram_id)
        if record is None:
            raise DiagramNotFoundError(diagram_id)
        return record

    def save(
        self,
        graph: Graph,
        title: str,
        description: str | None = None,
        owner_email: str | None = None,
        is_public: bool = False,
        tags: list[str] | None = None,
    ) -> DiagramInfo:
        """Save a graph as a new diagram.

        Returns:
            Metadata of the stored diagram, including its new id
        """
        with self._connection.get_session() as session:
            record = DiagramRecord(
                title=title,
                description=description,
                owner_email=owner_email,
                document=dump_document(graph),
                is_public=is_public,
                tags=list(tags or []),
            )
            session.add(record)
            session.commit()
            info = DiagramInfo.from_record(record)

        logger.info(f"Saved diagram '{title}' as {info.id}")
        return info

    def update(
        self,
        diagram_id: str,
        graph: Graph | None = None,
        title: str | None = None,
        description: str | None = None,
        is_public: bool | None = None,
        tags: list[str] | None = None,
    ) -> DiagramInfo:
        """Update a saved diagram; a new document bumps its version.

        Raises:
            DiagramNotFoundError: If no diagram has that id
        """
        with self._connection.get_session() as session:
            record = self._get_record(session, diagram_id)
            if graph is not None:
                record.document = dump_document(graph)
                record.version = record.version + 1
            if title is not None:
                record.title = title
            if description is not None:
                record.description = description
            if is_public is not None:
                record.is_public = is_public
            if tags is not None:
                record.tags = list(tags)
            session.commit()
            info = DiagramInfo.from_record(record)

        logger.info(f"Updated diagram {diagram_id} (version {info.version})")
        return info

    def get(self, diagram_id: str) -> DiagramInfo:
        """Get a saved diagram's metadata.

        Raises:
            DiagramNotFoundError: If no diagram has that id
        """
        with self._connection.get_session() as session:
            return DiagramInfo.from_record(self._get_record(session, diagram_id))

    def load(self, diagram_id: str, strict: bool = False) -> Graph:
        """Load a saved diagram's graph.

        Raises:
            DiagramNotFoundError: If no diagram has that id
            CorruptSnapshotError: If the stored document is malformed
        """
        with self._connection.get_session() as session:
            document = self._get_record(session, diagram_id).document
        return load_document(document, strict=strict)

    def list_diagrams(self, owner_email: str | None = None) -> list[DiagramInfo]:
        """List saved diagrams, most recently updated first."""
        with self._connection.get_session() as session:
            query = session.query(DiagramRecord)
            if owner_email is not None:
                query = query.filter_by(owner_email=owner_email)
            records = query.order_by(DiagramRecord.updated_at.desc()).all()
            return [DiagramInfo.from_record(r) for r in records]

    def delete(self, diagram_id: str) -> None:
        """Delete a saved diagram.

        Raises:
            DiagramNotFoundError: If no diagram has that id
        """
        with self._connection.get_session() as session:
            session.delete(self._get_record(session, diagram_id))
            session.commit()
        logger.info(f"Deleted diagram {diagram_id}")

    def close(self) -> None:
        """Close the database connection."""
        self._connection.close()

    def __enter__(self) -> DiagramStore:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()
