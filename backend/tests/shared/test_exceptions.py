"""Tests for shared/exceptions.py."""

from shared.exceptions import (
    TradepostError,
    ValidationError,
    AuthenticationError,
    ExternalServiceError,
)


class TestTradepostError:
    def test_message(self):
        """TradepostError should store message."""
        error = TradepostError("Test error")
        assert error.message == "Test error"
        assert str(error) == "Test error"

    def test_default_code(self):
        """TradepostError should default code to class name."""
        assert TradepostError("Test error").code == "TradepostError"

    def test_custom_code(self):
        """TradepostError should accept custom code."""
        assert TradepostError("Test error", code="CUSTOM_ERROR").code == "CUSTOM_ERROR"

    def test_default_details(self):
        """TradepostError should default details to empty dict."""
        assert TradepostError("Test error").details == {}


class TestSubclasses:
    def test_subclass_codes_default_to_class_name(self):
        """Each subclass reports its own name as code."""
        assert ValidationError("x").code == "ValidationError"
        assert AuthenticationError("x").code == "AuthenticationError"

    def test_subclasses_are_tradepost_errors(self):
        """All subclasses inherit from TradepostError."""
        for cls in (ValidationError, AuthenticationError, ExternalServiceError):
            assert issubclass(cls, TradepostError)


class TestExternalServiceError:
    def test_records_service(self):
        """ExternalServiceError should record the service name in details."""
        error = ExternalServiceError("Timed out", service="supabase")
        assert error.service == "supabase"
        assert error.details["service"] == "supabase"

    def test_keeps_existing_details(self):
        """Service is added next to caller details."""
        error = ExternalServiceError(
            "Denied", service="supabase", code="DENIED", details={"collection": "items"}
        )
        assert error.code == "DENIED"
        assert error.details == {"collection": "items", "service": "supabase"}
