"""
Identity module data models.

These models define the identity handle and the auth outcomes exposed to
other modules through the interface.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from shared.exceptions import TradepostError


class Identity(BaseModel):
    """
    The authenticated principal as issued by the auth provider.

    Holding an Identity means "authenticated".
    """

    id: str = Field(..., description="Provider user ID")
    email: Optional[str] = Field(None, description="User's email address")
    display_name: Optional[str] = Field(None, description="Display name")
    photo_url: Optional[str] = Field(None, description="Profile photo URL")

    model_config = {"frozen": True}  # Make immutable for safety

    @classmethod
    def from_supabase_user(cls, user: Any) -> "Identity":
        """
        Build an identity from a Supabase Auth user.

        Google sign-in fills ``full_name``/``avatar_url`` in user metadata;
        older providers use ``name``/``picture``.
        """
        metadata = getattr(user, "user_metadata", None) or {}
        return cls(
            id=str(user.id),
            email=getattr(user, "email", None) or None,
            display_name=metadata.get("full_name") or metadata.get("name") or None,
            photo_url=metadata.get("avatar_url") or metadata.get("picture") or None,
        )


class AuthEventKind(str, Enum):
    """Auth state change events forwarded to subscribers."""

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"


class AuthStateEvent(BaseModel):
    """An auth state change: either an identity is present or it is absent."""

    kind: str = Field(..., description="Provider event name")
    identity: Optional[Identity] = Field(None, description="Current identity, if any")

    model_config = {"frozen": True}

    @property
    def authenticated(self) -> bool:
        return self.identity is not None


class AuthResult(BaseModel):
    """Uniform outcome of an auth call."""

    success: bool = Field(..., description="Whether the call succeeded")
    user: Optional[Identity] = Field(None, description="Identity, for sign-in style calls")
    confirmation_pending: bool = Field(
        False, description="Account created but not signed in until the email is confirmed"
    )
    error: Optional[str] = Field(None, description="Failure message")
    code: Optional[str] = Field(None, description="Machine-readable failure code")

    model_config = {"frozen": True}

    @classmethod
    def ok(cls, user: Optional[Identity] = None) -> "AuthResult":
        return cls(success=True, user=user)

    @classmethod
    def pending(cls, user: Identity) -> "AuthResult":
        """Sign-up accepted; no session exists until the email is confirmed."""
        return cls(success=True, user=user, confirmation_pending=True)

    @classmethod
    def failure(cls, error: TradepostError) -> "AuthResult":
        return cls(success=False, error=error.message, code=error.code)
