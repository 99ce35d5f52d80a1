"""
Session module interface.

UI state providers should depend on ISessionReconciler, not the concrete
implementation.
"""

from typing import Any, Callable, Mapping, Optional, Protocol, Union, runtime_checkable

from shared.models import OperationResult
from modules.identity.interfaces import OAuthPopup
from modules.identity.models import AuthResult, Identity

from .models import Profile, ProfileInput, Session

SessionListener = Callable[[Session], None]


@runtime_checkable
class ISessionReconciler(Protocol):
    """
    Interface for the client session.

    Every operation resolves to a result and updates ``session.status``
    and ``session.last_error``.
    """

    @property
    def session(self) -> Session:
        """Current session snapshot."""
        ...

    async def start(self) -> None:
        """Begin following auth state."""
        ...

    async def close(self) -> None:
        """Stop following auth state and wait for in-flight work."""
        ...

    def listen(self, listener: SessionListener) -> Callable[[], None]:
        """Observe session snapshots. Returns an unsubscribe callable."""
        ...

    async def reconcile(
        self,
        identity: Identity,
        extra: Union[ProfileInput, Mapping[str, Any], None] = None,
    ) -> Optional[Profile]:
        """Ensure a profile exists for ``identity`` and return it."""
        ...

    async def sign_up(
        self,
        email: str,
        password: str,
        profile: Union[ProfileInput, Mapping[str, Any], None] = None,
    ) -> AuthResult:
        ...

    async def sign_in(self, email: str, password: str) -> AuthResult:
        ...

    async def sign_in_with_google(self, popup: Optional[OAuthPopup] = None) -> AuthResult:
        ...

    async def reset_password(self, email: str) -> AuthResult:
        ...

    async def sign_out(self) -> AuthResult:
        ...

    async def update_profile(self, fields: Mapping[str, Any]) -> OperationResult:
        """Persist profile fields for the signed-in user."""
        ...

    def clear_error(self) -> None:
        ...
