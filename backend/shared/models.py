"""
Shared data models used across modules.

These models are shared infrastructure, not business logic.
Module-specific models stay in their respective module directories.
"""

from typing import Any, Optional
from pydantic import BaseModel, Field

from .exceptions import TradepostError


Document = dict[str, Any]


class OperationResult(BaseModel):
    """
    Uniform outcome of a mutating call.

    ``data`` carries the written document where the operation produces one.
    ``created`` is only set by create-if-absent style operations.
    """

    success: bool = Field(..., description="Whether the operation succeeded")
    id: Optional[str] = Field(None, description="Identifier of the affected document")
    data: Optional[Document] = Field(None, description="Document as written")
    created: Optional[bool] = Field(None, description="False when an existing document was kept")
    error: Optional[str] = Field(None, description="Failure message")
    code: Optional[str] = Field(None, description="Machine-readable failure code")

    model_config = {"frozen": True}

    @classmethod
    def ok(cls, id: Optional[str] = None, **kwargs: Any) -> "OperationResult":
        return cls(success=True, id=id, **kwargs)

    @classmethod
    def failure(cls, error: TradepostError, id: Optional[str] = None) -> "OperationResult":
        return cls(success=False, id=id, error=error.message, code=error.code)
