"""
Document store module.

Generic create/read/update/delete, filtered queries and live queries over
named collections.

Public API:
- IDocumentStore: Interface for document access
- DocumentStore: Supabase implementation
- Condition, Operator, SortDirection: Query building blocks
- DocumentResult, QueryResult: Read outcomes
- Subscription: Live query handle
"""

from .interfaces import IDocumentStore
from .service import DocumentStore
from .models import (
    COLLECTIONS,
    USERS,
    ITEMS,
    REQUESTS,
    CHATS,
    MESSAGES,
    Condition,
    Operator,
    SortDirection,
    DocumentResult,
    QueryResult,
)
from .subscriptions import Subscription
from .exceptions import DocumentStoreError, DocumentMissingError, InvalidConditionError

__all__ = [
    # Interface
    "IDocumentStore",
    "DocumentStore",
    # Models
    "COLLECTIONS",
    "USERS",
    "ITEMS",
    "REQUESTS",
    "CHATS",
    "MESSAGES",
    "Condition",
    "Operator",
    "SortDirection",
    "DocumentResult",
    "QueryResult",
    "Subscription",
    # Exceptions
    "DocumentStoreError",
    "DocumentMissingError",
    "InvalidConditionError",
]
