"""Document store implementations for configuration persistence."""

from maistro.server.store.base import DocumentStore
from maistro.server.store.local import JsonDocumentStore

__all__ = ["DocumentStore", "JsonDocumentStore"]
