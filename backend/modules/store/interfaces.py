"""
Document store module interface.

Other modules should depend on IDocumentStore, not the concrete implementation.
This enables testing with in-memory fakes and swapping the backend.
"""

from typing import Any, Mapping, Optional, Protocol, Sequence, runtime_checkable

from shared.models import Document, OperationResult

from .models import ConditionLike, DocumentResult, QueryResult, SortDirection
from .subscriptions import ChangeListener, Subscription


@runtime_checkable
class IDocumentStore(Protocol):
    """
    Interface for collection-level document access.

    No method raises for backend failures; every outcome is a result value.
    """

    async def create(
        self,
        collection: str,
        data: Mapping[str, Any],
        document_id: Optional[str] = None,
    ) -> OperationResult:
        """
        Create a document, or overwrite it when ``document_id`` is given.

        Both timestamps are stamped by the store.
        """
        ...

    async def create_if_absent(
        self,
        collection: str,
        data: Mapping[str, Any],
        document_id: str,
    ) -> OperationResult:
        """
        Create a document only if no document with this id exists.

        ``created`` on the result is False when an existing document was kept.
        """
        ...

    async def fetch(self, collection: str, document_id: str) -> DocumentResult:
        """Read one document, distinguishing absence from failure."""
        ...

    async def get(self, collection: str, document_id: str) -> Optional[Document]:
        """Read one document; None when absent or when the read failed."""
        ...

    async def update(
        self,
        collection: str,
        document_id: str,
        data: Mapping[str, Any],
    ) -> OperationResult:
        """Merge fields into an existing document and refresh ``updatedAt``."""
        ...

    async def delete(self, collection: str, document_id: str) -> OperationResult:
        """Remove a document. Succeeds when it is already absent."""
        ...

    async def find(
        self,
        collection: str,
        conditions: Sequence[ConditionLike] = (),
        order_by: Optional[str] = "createdAt",
        direction: SortDirection = SortDirection.DESC,
        limit: Optional[int] = None,
    ) -> QueryResult:
        """Filtered, ordered, bounded read, distinguishing failure from no data."""
        ...

    async def query(
        self,
        collection: str,
        conditions: Sequence[ConditionLike] = (),
        order_by: Optional[str] = "createdAt",
        direction: SortDirection = SortDirection.DESC,
        limit: Optional[int] = None,
    ) -> list[Document]:
        """Filtered read; an empty list on no matches or failure."""
        ...

    async def subscribe(
        self,
        collection: str,
        conditions: Sequence[ConditionLike],
        on_change: ChangeListener,
    ) -> Subscription:
        """Open a live view delivering the full matching set on every change."""
        ...
