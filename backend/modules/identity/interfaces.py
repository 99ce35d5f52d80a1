"""
Identity module interface.

Other modules should depend on IIdentityService, not the concrete implementation.
"""

from typing import Awaitable, Callable, Optional, Protocol, runtime_checkable

from .models import AuthResult, AuthStateEvent, Identity

# Receives the provider authorization URL, returns the authorization code
# (or None when the user closed the window).
OAuthPopup = Callable[[str], Awaitable[Optional[str]]]

AuthStateListener = Callable[[AuthStateEvent], None]


@runtime_checkable
class IAuthSubscription(Protocol):
    """Cancellation handle for an auth state subscription."""

    @property
    def active(self) -> bool:
        ...

    def unsubscribe(self) -> None:
        """Stop deliveries. Safe to call more than once."""
        ...


@runtime_checkable
class IIdentityService(Protocol):
    """
    Interface for identity operations.

    Every call resolves to an AuthResult; provider failures never raise
    past this interface.
    """

    async def sign_up(self, email: str, password: str) -> AuthResult:
        """Create an email/password account; ``confirmation_pending`` when no session was issued."""
        ...

    async def sign_in(self, email: str, password: str) -> AuthResult:
        """Sign in with email and password."""
        ...

    async def sign_in_with_google(self, popup: Optional[OAuthPopup] = None) -> AuthResult:
        """Run the Google OAuth flow through ``popup``."""
        ...

    async def reset_password(self, email: str) -> AuthResult:
        """Send a password reset email."""
        ...

    async def sign_out(self) -> AuthResult:
        """End the current session."""
        ...

    async def update_profile_fields(
        self,
        display_name: Optional[str],
        photo_url: Optional[str],
    ) -> AuthResult:
        """Update the signed-in user's display name and photo."""
        ...

    async def on_auth_state_change(self, listener: AuthStateListener) -> IAuthSubscription:
        """
        Subscribe to auth state.

        The listener gets the current state once immediately and again on
        every sign-in, sign-out, token refresh or user update, including
        ones not initiated by this process.
        """
        ...

    async def get_current_identity(self) -> Optional[Identity]:
        """Return the signed-in identity, or None."""
        ...
