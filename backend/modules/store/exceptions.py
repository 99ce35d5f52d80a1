"""
Document store module exceptions.

Raised inside the store and converted to result objects at its boundary.
"""

from typing import Any

from shared.exceptions import ExternalServiceError, ValidationError


class DocumentStoreError(ExternalServiceError):
    """Raised when the backend is unreachable or denies access."""

    def __init__(self, message: str, collection: str):
        super().__init__(
            message,
            service="supabase",
            code="STORE_UNAVAILABLE",
            details={"collection": collection},
        )


class DocumentMissingError(ValidationError):
    """Raised when an update targets a document that does not exist."""

    def __init__(self, collection: str, document_id: str):
        super().__init__(
            f"Document not found: {collection}/{document_id}",
            code="DOCUMENT_NOT_FOUND",
            details={"collection": collection, "id": document_id},
        )


class InvalidConditionError(ValidationError):
    """Raised when a query condition cannot be translated."""

    def __init__(self, message: str, condition: Any = None):
        super().__init__(
            message,
            code="INVALID_CONDITION",
            details={"condition": repr(condition)} if condition is not None else None,
        )
