"""Graph model operations and document serialization."""

from erdcore.schema import graph
from erdcore.schema.document import dump_document, dumps_document, load_document

__all__ = ["graph", "dump_document", "dumps_document", "load_document"]
