"""
Document store implementation on Supabase.

Collections are PostgREST tables (see migrations/001_collections.sql).
Backend failures are logged and converted into result objects here;
nothing raised by the Supabase client escapes this module.
"""

import logging
from typing import Any, Mapping, Optional, Sequence
from uuid import uuid4

import httpx
from supabase import AsyncClient, PostgrestAPIError

from shared.config import Settings, get_settings
from shared.exceptions import TradepostError, ValidationError
from shared.models import Document, OperationResult
from shared.repository import BaseRepository

from .exceptions import DocumentMissingError, DocumentStoreError
from .filters import apply_condition, apply_order, to_body, to_document, to_row
from .interfaces import IDocumentStore
from .models import (
    Condition,
    ConditionLike,
    DocumentResult,
    QueryResult,
    SortDirection,
)
from .subscriptions import ChangeListener, Subscription

logger = logging.getLogger(__name__)

# Errors raised by the client for transport or permission failures
BACKEND_ERRORS = (PostgrestAPIError, httpx.HTTPError)

PATCH_FUNCTION = "patch_document"


def _direction(value: Any) -> SortDirection:
    try:
        return SortDirection(value)
    except ValueError:
        raise ValidationError(f"Unknown sort direction: {value!r}", code="INVALID_SORT") from None


def _backend_error(collection: str, error: Exception) -> DocumentStoreError:
    message = getattr(error, "message", None) or str(error) or type(error).__name__
    return DocumentStoreError(message, collection)


class DocumentStore(BaseRepository[Document], IDocumentStore):
    """
    Generic CRUD, query and live-query access to named collections.

    The store does not enforce per-collection schemas; documents are open
    mappings plus the store-owned ``id``, ``createdAt`` and ``updatedAt``.
    """

    def __init__(self, db: AsyncClient, settings: Optional[Settings] = None) -> None:
        super().__init__(db)
        self._settings = settings or get_settings()

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def create(
        self,
        collection: str,
        data: Mapping[str, Any],
        document_id: Optional[str] = None,
    ) -> OperationResult:
        """
        Create a document.

        With an explicit id this is an upsert that replaces the whole
        document body; the database re-stamps both timestamps. Without one, a new
        id is generated.
        """
        target_id = document_id or uuid4().hex
        row = to_row(target_id, data)
        try:
            if document_id:
                query = self._db.table(collection).upsert(row, on_conflict="id")
            else:
                query = self._db.table(collection).insert(row)
            result = await query.execute()
        except BACKEND_ERRORS as e:
            error = _backend_error(collection, e)
            logger.error(f"Error creating document in {collection}: {error.message}")
            return OperationResult.failure(error, id=target_id)

        written = to_document(result.data[0]) if result.data else to_document(row)
        return OperationResult.ok(target_id, data=written, created=True)

    async def create_if_absent(
        self,
        collection: str,
        data: Mapping[str, Any],
        document_id: str,
    ) -> OperationResult:
        """
        Insert a document unless one with the same id already exists.

        Concurrent callers racing on the same id leave exactly one document,
        written by whichever insert landed first.
        """
        row = to_row(document_id, data)
        try:
            result = await (
                self._db.table(collection)
                .upsert(row, on_conflict="id", ignore_duplicates=True)
                .execute()
            )
        except BACKEND_ERRORS as e:
            error = _backend_error(collection, e)
            logger.error(f"Error creating document {collection}/{document_id}: {error.message}")
            return OperationResult.failure(error, id=document_id)

        if not result.data:
            logger.debug(f"Document {collection}/{document_id} already exists, kept as is")
            return OperationResult.ok(document_id, created=False)
        return OperationResult.ok(document_id, data=to_document(result.data[0]), created=True)

    async def update(
        self,
        collection: str,
        document_id: str,
        data: Mapping[str, Any],
    ) -> OperationResult:
        """
        Merge fields into an existing document.

        ``createdAt`` is never touched. Updating a missing document fails
        with DOCUMENT_NOT_FOUND rather than creating it.
        """
        params = {
            "target": collection,
            "doc_id": document_id,
            "patch": to_body(data),
        }
        try:
            result = await self._db.rpc(PATCH_FUNCTION, params).execute()
            if not result.data:
                raise DocumentMissingError(collection, document_id)
        except DocumentMissingError as e:
            logger.error(f"Error updating document: {e.message}")
            return OperationResult.failure(e, id=document_id)
        except BACKEND_ERRORS as e:
            error = _backend_error(collection, e)
            logger.error(f"Error updating document {collection}/{document_id}: {error.message}")
            return OperationResult.failure(error, id=document_id)

        row = result.data[0] if isinstance(result.data, list) else result.data
        return OperationResult.ok(document_id, data=to_document(row))

    async def delete(self, collection: str, document_id: str) -> OperationResult:
        """Remove a document. Deleting an absent document succeeds."""
        try:
            await self._db.table(collection).delete().eq("id", document_id).execute()
        except BACKEND_ERRORS as e:
            error = _backend_error(collection, e)
            logger.error(f"Error deleting document {collection}/{document_id}: {error.message}")
            return OperationResult.failure(error, id=document_id)
        return OperationResult.ok(document_id)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def fetch(self, collection: str, document_id: str) -> DocumentResult:
        """Read one document. Absence is a successful result with no document."""
        try:
            result = await (
                self._db.table(collection).select("*").eq("id", document_id).limit(1).execute()
            )
        except BACKEND_ERRORS as e:
            error = _backend_error(collection, e)
            logger.error(f"Error getting document {collection}/{document_id}: {error.message}")
            return DocumentResult.failure(error)

        if not result.data:
            return DocumentResult(success=True)
        return DocumentResult(success=True, document=to_document(result.data[0]))

    async def get(self, collection: str, document_id: str) -> Optional[Document]:
        """Read one document, or None. Failures are logged and read as absence."""
        return (await self.fetch(collection, document_id)).document

    async def find(
        self,
        collection: str,
        conditions: Sequence[ConditionLike] = (),
        order_by: Optional[str] = "createdAt",
        direction: SortDirection = SortDirection.DESC,
        limit: Optional[int] = None,
    ) -> QueryResult:
        """
        Filtered, ordered, bounded read.

        Args:
            collection: Collection name.
            conditions: Filters, ANDed together.
            order_by: Field to order by; None for backend order.
            direction: Sort direction.
            limit: Maximum documents; None for the configured default,
                0 for no bound.
        """
        bound = self._settings.default_query_limit if limit is None else limit
        try:
            query = self._db.table(collection).select("*")
            for raw in conditions:
                query = apply_condition(query, Condition.coerce(raw))
            query = apply_order(query, order_by, _direction(direction))
            if bound:
                query = query.limit(bound)
            result = await query.execute()
        except TradepostError as e:
            logger.error(f"Invalid query on {collection}: {e.message}")
            return QueryResult.failure(e)
        except BACKEND_ERRORS as e:
            error = _backend_error(collection, e)
            logger.error(f"Error querying collection {collection}: {error.message}")
            return QueryResult.failure(error)

        return QueryResult(success=True, documents=[to_document(row) for row in result.data or []])

    async def query(
        self,
        collection: str,
        conditions: Sequence[ConditionLike] = (),
        order_by: Optional[str] = "createdAt",
        direction: SortDirection = SortDirection.DESC,
        limit: Optional[int] = None,
    ) -> list[Document]:
        """Filtered read returning documents only. Failures read as no data."""
        result = await self.find(collection, conditions, order_by, direction, limit)
        return result.documents

    async def subscribe(
        self,
        collection: str,
        conditions: Sequence[ConditionLike],
        on_change: ChangeListener,
    ) -> Subscription:
        """
        Open a live view of the documents matching ``conditions``.

        ``on_change`` receives the full matching set once immediately and
        again after every change to the collection. If the channel cannot
        be opened the returned subscription is inactive and never delivers.
        """
        parsed: list[Condition] = []

        async def load() -> QueryResult:
            return await self.find(collection, parsed, order_by=None, limit=0)

        subscription = Subscription(self._db, collection, load, on_change)
        try:
            parsed.extend(Condition.coerce(raw) for raw in conditions)
            await subscription.open()
        except Exception as e:
            logger.error(f"Error setting up realtime updates for {collection}: {e}")
            await subscription.unsubscribe()
        return subscription

