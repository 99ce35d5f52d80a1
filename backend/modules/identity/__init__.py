"""
Identity module.

Thin forwarding layer over Supabase Auth: email/password, Google OAuth,
password reset, sign-out, profile fields and auth state notifications.

Public API:
- IIdentityService: Interface for identity operations
- IdentityService: Supabase implementation
- Identity, AuthResult, AuthStateEvent, AuthEventKind: Models
- Identity exceptions: IdentityProviderError, OAuthFlowError, NoCurrentUserError
"""

from .interfaces import IIdentityService, IAuthSubscription, OAuthPopup, AuthStateListener
from .models import Identity, AuthResult, AuthStateEvent, AuthEventKind
from .service import IdentityService, AuthSubscription
from .exceptions import IdentityProviderError, OAuthFlowError, NoCurrentUserError

__all__ = [
    # Interface
    "IIdentityService",
    "IAuthSubscription",
    "OAuthPopup",
    "AuthStateListener",
    "IdentityService",
    "AuthSubscription",
    # Models
    "Identity",
    "AuthResult",
    "AuthStateEvent",
    "AuthEventKind",
    # Exceptions
    "IdentityProviderError",
    "OAuthFlowError",
    "NoCurrentUserError",
]
