"""Persistence of diagram documents."""

from erdcore.storage.connection import DatabaseConnection
from erdcore.storage.models import DiagramRecord
from erdcore.storage.store import DiagramInfo, DiagramStore

__all__ = ["DatabaseConnection", "DiagramInfo", "DiagramRecord", "DiagramStore"]
