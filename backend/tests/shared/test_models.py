"""
Tests for shared models.
"""

import pytest
from pydantic import ValidationError

from shared.exceptions import TradepostError
from shared.models import OperationResult


class TestOperationResult:
    """Tests for the OperationResult model in shared."""

    def test_ok(self):
        """ok() should build a successful result."""
        result = OperationResult.ok("doc-1", data={"id": "doc-1"}, created=True)
        assert result.success is True
        assert result.id == "doc-1"
        assert result.data == {"id": "doc-1"}
        assert result.created is True
        assert result.error is None

    def test_ok_without_id(self):
        """ok() should work with no arguments."""
        result = OperationResult.ok()
        assert result.success is True
        assert result.id is None
        assert result.created is None

    def test_failure_copies_message_and_code(self):
        """failure() should take message and code from the exception."""
        result = OperationResult.failure(TradepostError("Denied", code="STORE_UNAVAILABLE"), id="doc-1")
        assert result.success is False
        assert result.id == "doc-1"
        assert result.error == "Denied"
        assert result.code == "STORE_UNAVAILABLE"

    def test_is_immutable(self):
        """Results should be frozen."""
        result = OperationResult.ok("doc-1")
        with pytest.raises(ValidationError):
            result.success = False
