"""
Base exception classes for the Tradepost backend.

Each module defines its own exceptions that inherit from these bases.
Module boundaries (document store, identity) convert them into result
objects, so callers inspect ``success``/``error`` instead of catching.
"""

from typing import Optional, Any


class TradepostError(Exception):
    """
    Base exception for all Tradepost errors.

    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}


class ValidationError(TradepostError):
    """Caller supplied invalid arguments."""

    pass


class AuthenticationError(TradepostError):
    """Authentication failed or no authenticated principal is present."""

    pass


class ExternalServiceError(TradepostError):
    """Error communicating with an external service (unreachable or denied)."""

    def __init__(
        self,
        message: str,
        service: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
        self.service = service
        self.details["service"] = service
