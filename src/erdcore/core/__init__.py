"""Core types and validation."""

from erdcore.core.types import (
    ChangeResult,
    Column,
    EditorSettings,
    Entity,
    ForeignKeyRef,
    Graph,
    MatchQuality,
    Notification,
    NotificationLevel,
    ReferentialAction,
    Relationship,
    RelationshipKind,
    Viewport,
)

__all__ = [
    "ChangeResult",
    "Column",
    "EditorSettings",
    "Entity",
    "ForeignKeyRef",
    "Graph",
    "MatchQuality",
    "Notification",
    "NotificationLevel",
    "ReferentialAction",
    "Relationship",
    "RelationshipKind",
    "Viewport",
]
