"""
Session module.

Maintains the client Session (identity + profile) and reconciles profile
documents with authentication state.

Public API:
- ISessionReconciler: Interface for the client session
- SessionReconciler, open_session: Implementation and process wiring
- Session, SessionStatus, Profile, ProfileInput: Models
- NoActiveSessionError: Raised for profile changes while signed out
"""

from .interfaces import ISessionReconciler, SessionListener
from .models import Session, SessionStatus, Profile, ProfileInput
from .profiles import build_default_profile, derive_username
from .service import SessionReconciler, open_session
from .exceptions import NoActiveSessionError

__all__ = [
    # Interface
    "ISessionReconciler",
    "SessionListener",
    "SessionReconciler",
    "open_session",
    # Models
    "Session",
    "SessionStatus",
    "Profile",
    "ProfileInput",
    "build_default_profile",
    "derive_username",
    # Exceptions
    "NoActiveSessionError",
]
