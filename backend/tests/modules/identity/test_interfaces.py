"""Tests for identity interface conformance."""

from unittest.mock import MagicMock

from modules.identity.interfaces import IAuthSubscription, IIdentityService
from modules.identity.service import AuthSubscription, IdentityService


class TestIdentityInterface:
    def test_service_implements_interface(self, settings):
        """IdentityService should satisfy IIdentityService."""
        service = IdentityService(MagicMock(), settings)
        assert isinstance(service, IIdentityService)

    def test_subscription_implements_interface(self):
        assert isinstance(AuthSubscription(MagicMock()), IAuthSubscription)
