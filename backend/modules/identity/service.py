"""
Identity service implementation.

Forwards each operation to Supabase Auth and normalizes the outcome to an
AuthResult. Provider errors are logged and returned, never raised.
"""

import logging
from typing import Any, Optional

import httpx
from supabase import AsyncClient, AuthError

from shared.config import Settings, get_settings
from shared.exceptions import TradepostError

from .exceptions import IdentityProviderError, NoCurrentUserError, OAuthFlowError
from .interfaces import AuthStateListener, IIdentityService, OAuthPopup
from .models import AuthEventKind, AuthResult, AuthStateEvent, Identity

logger = logging.getLogger(__name__)

# Errors raised by the auth client for rejected or failed requests
PROVIDER_ERRORS = (AuthError, httpx.HTTPError)

GOOGLE_PROVIDER = "google"


def _provider_failure(operation: str, error: Exception) -> AuthResult:
    message = getattr(error, "message", None) or str(error) or type(error).__name__
    logger.warning(f"Auth {operation} failed: {message}")
    return AuthResult.failure(IdentityProviderError(message, operation))


def _identity_or_raise(user: Any, operation: str) -> Identity:
    if user is None:
        raise IdentityProviderError(f"{operation} returned no user", operation)
    return Identity.from_supabase_user(user)


class AuthSubscription:
    """Handle returned by on_auth_state_change."""

    def __init__(self, provider_subscription: Any) -> None:
        self._provider_subscription = provider_subscription

    @property
    def active(self) -> bool:
        return self._provider_subscription is not None

    def unsubscribe(self) -> None:
        """Stop deliveries. Safe to call more than once."""
        subscription, self._provider_subscription = self._provider_subscription, None
        if subscription is not None:
            subscription.unsubscribe()


class IdentityService(IIdentityService):
    """
    Implementation of the identity service on Supabase Auth.

    Google sign-in uses the PKCE flow: the provider URL is handed to an
    OAuth popup (a browser window, a terminal prompt, ...) which returns the
    authorization code, and the code is exchanged for a session.
    """

    def __init__(
        self,
        client: AsyncClient,
        settings: Optional[Settings] = None,
        popup: Optional[OAuthPopup] = None,
    ):
        self._auth = client.auth
        self._settings = settings or get_settings()
        self._popup = popup

    async def sign_up(self, email: str, password: str) -> AuthResult:
        """
        Create an email/password account.

        When the project requires email confirmation Supabase returns the
        user without a session; the result is then ``confirmation_pending``
        and nobody is signed in.
        """
        try:
            response = await self._auth.sign_up({"email": email, "password": password})
            identity = _identity_or_raise(response.user, "sign up")
            if getattr(response, "session", None) is None:
                logger.info(f"Sign up for {identity.id} awaits email confirmation")
                return AuthResult.pending(identity)
            return AuthResult.ok(identity)
        except TradepostError as e:
            return AuthResult.failure(e)
        except PROVIDER_ERRORS as e:
            return _provider_failure("sign up", e)

    async def sign_in(self, email: str, password: str) -> AuthResult:
        try:
            response = await self._auth.sign_in_with_password(
                {"email": email, "password": password}
            )
            return AuthResult.ok(_identity_or_raise(response.user, "sign in"))
        except TradepostError as e:
            return AuthResult.failure(e)
        except PROVIDER_ERRORS as e:
            return _provider_failure("sign in", e)

    async def sign_in_with_google(self, popup: Optional[OAuthPopup] = None) -> AuthResult:
        """
        Sign in with Google.

        The account chooser is always shown (``prompt=select_account``).

        Args:
            popup: Overrides the popup given at construction.
        """
        popup = popup or self._popup
        redirect_to = self._settings.oauth_redirect_url
        try:
            if popup is None:
                raise OAuthFlowError("No OAuth popup handler configured")
            response = await self._auth.sign_in_with_oauth(
                {
                    "provider": GOOGLE_PROVIDER,
                    "options": {
                        "redirect_to": redirect_to,
                        "query_params": {"prompt": "select_account"},
                    },
                }
            )
            code = await popup(response.url)
            if not code:
                raise OAuthFlowError("Google sign in was cancelled")
            session_response = await self._auth.exchange_code_for_session(
                {"auth_code": code, "redirect_to": redirect_to}
            )
            return AuthResult.ok(_identity_or_raise(session_response.user, "google sign in"))
        except TradepostError as e:
            logger.warning(f"Google sign in failed: {e.message}")
            return AuthResult.failure(e)
        except PROVIDER_ERRORS as e:
            return _provider_failure("google sign in", e)

    async def reset_password(self, email: str) -> AuthResult:
        options = {}
        if self._settings.password_reset_redirect_url:
            options["redirect_to"] = self._settings.password_reset_redirect_url
        try:
            await self._auth.reset_password_for_email(email, options)
            return AuthResult.ok()
        except PROVIDER_ERRORS as e:
            return _provider_failure("password reset", e)

    async def sign_out(self) -> AuthResult:
        try:
            await self._auth.sign_out()
            return AuthResult.ok()
        except PROVIDER_ERRORS as e:
            return _provider_failure("sign out", e)

    async def update_profile_fields(
        self,
        display_name: Optional[str],
        photo_url: Optional[str],
    ) -> AuthResult:
        """Write display name and photo into the user's metadata."""
        try:
            if await self.get_current_identity() is None:
                raise NoCurrentUserError()
            response = await self._auth.update_user(
                {"data": {"full_name": display_name, "avatar_url": photo_url}}
            )
            return AuthResult.ok(_identity_or_raise(response.user, "profile update"))
        except TradepostError as e:
            return AuthResult.failure(e)
        except PROVIDER_ERRORS as e:
            return _provider_failure("profile update", e)

    async def on_auth_state_change(self, listener: AuthStateListener) -> AuthSubscription:
        def forward(event: str, session: Any) -> None:
            user = getattr(session, "user", None)
            identity = Identity.from_supabase_user(user) if user is not None else None
            listener(AuthStateEvent(kind=str(event), identity=identity))

        subscription = AuthSubscription(self._auth.on_auth_state_change(forward))
        current = await self.get_current_identity()
        if subscription.active:
            listener(AuthStateEvent(kind=AuthEventKind.INITIAL_SESSION.value, identity=current))
        return subscription

    async def get_current_identity(self) -> Optional[Identity]:
        try:
            session = await self._auth.get_session()
        except PROVIDER_ERRORS as e:
            logger.warning(f"Could not read current session: {e}")
            return None
        if session is None or session.user is None:
            return None
        return Identity.from_supabase_user(session.user)
