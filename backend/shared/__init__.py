"""
Shared infrastructure for the Tradepost backend.

This package contains cross-cutting concerns that are used by multiple modules:
- config: Centralized settings management
- database: Supabase client factory
- exceptions: Base exception classes
- models: Result shapes shared by module boundaries

Note: Business logic should NOT go here. This is for infrastructure only.
"""

from .config import Settings, get_settings
from .database import get_supabase_client, reset_client_cache
from .exceptions import (
    TradepostError,
    ValidationError,
    AuthenticationError,
    ExternalServiceError,
)
from .models import Document, OperationResult

__all__ = [
    "Settings",
    "get_settings",
    "get_supabase_client",
    "reset_client_cache",
    "TradepostError",
    "ValidationError",
    "AuthenticationError",
    "ExternalServiceError",
    "Document",
    "OperationResult",
]
