"""SQLAlchemy ORM model for saved diagrams.

The whole diagram document lives in one JSON column (JSONB on PostgreSQL),
next to the metadata shown in a diagram listing.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from erdcore.core.types import new_id

# JSONB on PostgreSQL, JSON on SQLite
JSONType = JSONB().with_variant(JSON(), "sqlite")


def utc_now() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for erdcore storage models."""

    pass


class DiagramRecord(Base):
    """A saved diagram document with its listing metadata."""

    __tablename__ = "erd_diagrams"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: new_id("dgm"))
    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    owner_email: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    document: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    tags: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert listing metadata to a JSON-serializable dict."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "owner_email": self.owner_email,
            "is_public": self.is_public,
            "tags": list(self.tags or []),
            "version": self.version,
            "entity_count": len((self.document or {}).get("entities", [])),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
