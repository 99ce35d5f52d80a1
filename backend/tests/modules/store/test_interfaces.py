"""Tests for document store interface conformance."""

from unittest.mock import MagicMock

from modules.store.interfaces import IDocumentStore
from modules.store.service import DocumentStore


class TestDocumentStoreInterface:
    def test_service_implements_interface(self, settings):
        """DocumentStore should satisfy IDocumentStore."""
        store = DocumentStore(MagicMock(), settings)
        assert isinstance(store, IDocumentStore)

    def test_interface_methods(self):
        """The interface exposes the full set of store operations."""
        for name in (
            "create", "create_if_absent", "fetch", "get",
            "update", "delete", "find", "query", "subscribe",
        ):
            assert hasattr(IDocumentStore, name)
