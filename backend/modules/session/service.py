"""
Session reconciler.

Keeps the client Session in step with Supabase Auth and makes sure every
identity that signs in has exactly one profile document.

Two paths reconcile the same identity: explicit sign-up/sign-in calls do it
before returning, and the auth state stream does it for every event
(including session restores nobody asked for). Stream reconciliations wait
for an explicit sign-in in progress, so caller-supplied sign-up data is
written first. Across processes both rely on an insert that is ignored on
id conflict: whichever lands first writes the defaults and the other loads
what was written.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from shared.config import Settings, get_settings
from shared.database import get_supabase_client
from shared.exceptions import TradepostError, ValidationError
from shared.models import Document, OperationResult
from modules.identity.interfaces import IAuthSubscription, IIdentityService, OAuthPopup
from modules.identity.models import AuthResult, AuthStateEvent, Identity
from modules.identity.service import IdentityService
from modules.store.interfaces import IDocumentStore
from modules.store.models import RESERVED_FIELDS
from modules.store.service import DocumentStore

from .exceptions import NoActiveSessionError
from .interfaces import ISessionReconciler, SessionListener
from .models import Profile, ProfileInput, Session, SessionStatus
from .profiles import build_default_profile, coerce_profile_input

logger = logging.getLogger(__name__)


class SessionReconciler(ISessionReconciler):
    """
    Owns the Session for one client process.

    Callers never set identity or profile themselves; they call operations
    and read ``session`` (or ``listen`` for snapshots).

    Note: mutations are expected to come from a single event loop. Running
    operations from several threads needs external locking.
    """

    def __init__(
        self,
        identity: IIdentityService,
        store: IDocumentStore,
        settings: Optional[Settings] = None,
    ):
        self._identity = identity
        self._store = store
        self._settings = settings or get_settings()
        self._session = Session()
        self._listeners: list[SessionListener] = []
        self._auth_subscription: Optional[IAuthSubscription] = None
        self._pending: set[asyncio.Task] = set()
        self._busy = 0
        # Held by explicit sign-ins; stream reconciliations wait for them
        self._sign_in_lock = asyncio.Lock()
        # Bumped on every sign-out; reconciliations started before it are discarded
        self._sign_out_epoch = 0

    @property
    def session(self) -> Session:
        return self._session

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """Subscribe to auth state. The current state is reconciled right away."""
        if self._auth_subscription is not None:
            return
        self._auth_subscription = await self._identity.on_auth_state_change(self._on_auth_event)

    async def close(self) -> None:
        """Unsubscribe from auth state and cancel in-flight reconciliations."""
        subscription, self._auth_subscription = self._auth_subscription, None
        if subscription is not None:
            subscription.unsubscribe()
        pending = list(self._pending)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        self._listeners.clear()

    async def drain(self) -> None:
        """Wait until auth-state driven reconciliations have finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def listen(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    # -------------------------------------------------------------------------
    # Reconciliation
    # -------------------------------------------------------------------------

    async def reconcile(
        self,
        identity: Identity,
        extra: Union[ProfileInput, Mapping[str, Any], None] = None,
    ) -> Optional[Profile]:
        """
        Find or create the profile document for ``identity``.

        Best effort: failures are logged and yield None. A failed read is
        never treated as absence, so an existing profile is not replaced
        with defaults because the backend was briefly unreachable.
        """
        users = self._settings.users_collection
        fetched = await self._store.fetch(users, identity.id)
        if not fetched.success:
            logger.error(f"Could not load profile for {identity.id}: {fetched.error}")
            return None
        if fetched.document is not None:
            return self._to_profile(fetched.document)

        draft = build_default_profile(identity, extra, rating=self._settings.default_rating)
        created = await self._store.create_if_absent(
            users, draft.to_document(include_timestamps=False), identity.id
        )
        if not created.success:
            logger.error(f"Error creating user profile for {identity.id}: {created.error}")
            return None
        if created.created:
            logger.info(f"Created profile for {identity.id}")
            return self._to_profile(created.data) if created.data else draft

        # Lost the race to a concurrent reconciliation; load its document
        logger.debug(f"Profile for {identity.id} was created concurrently")
        winner = await self._store.get(users, identity.id)
        return self._to_profile(winner) if winner else None

    def _to_profile(self, document: Document) -> Optional[Profile]:
        try:
            return Profile.from_document(document)
        except PydanticValidationError as e:
            logger.error(f"Stored profile {document.get('id')} is malformed: {e}")
            return None

    def _on_auth_event(self, event: AuthStateEvent) -> None:
        logger.debug(f"Auth state event {event.kind}")
        if event.identity is None:
            self._sign_out_epoch += 1
            self._update(
                identity=None,
                profile=None,
                last_error=None,
                status=SessionStatus.READY,
            )
            return
        task = asyncio.ensure_future(self._follow_identity(event.identity, self._sign_out_epoch))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _follow_identity(self, identity: Identity, epoch: int) -> None:
        self._begin()
        try:
            async with self._sign_in_lock:
                profile = await self.reconcile(identity)
            if epoch == self._sign_out_epoch:
                self._update(
                    identity=identity,
                    profile=profile,
                    last_error=None,
                    status=SessionStatus.READY,
                )
            else:
                logger.debug(f"Discarded reconciliation for {identity.id}: signed out meanwhile")
        finally:
            self._end()

    async def _establish(
        self,
        identity: Identity,
        epoch: int,
        extra: Union[ProfileInput, Mapping[str, Any], None] = None,
    ) -> None:
        profile = await self.reconcile(identity, extra)
        if epoch == self._sign_out_epoch:
            self._update(identity=identity, profile=profile, status=SessionStatus.READY)

    # -------------------------------------------------------------------------
    # Explicit operations
    # -------------------------------------------------------------------------

    async def sign_up(
        self,
        email: str,
        password: str,
        profile: Union[ProfileInput, Mapping[str, Any], None] = None,
    ) -> AuthResult:
        """
        Create an account and its profile.

        The full name from ``profile`` is also written to the identity's
        display name (best effort).
        """
        async with self._operation(), self._sign_in_lock:
            epoch = self._sign_out_epoch
            extra = coerce_profile_input(profile)
            result = await self._identity.sign_up(email, password)
            if not result.success or result.user is None:
                return self._auth_failure(result, "Sign up failed")
            if result.confirmation_pending:
                # Not signed in until the email is confirmed; the profile is
                # created on the first sign-in instead
                logger.info(f"Account {result.user.id} created, awaiting email confirmation")
                self._update(status=SessionStatus.READY)
                return result

            identity = result.user
            if extra.full_name and not identity.display_name:
                named = await self._identity.update_profile_fields(extra.full_name, identity.photo_url)
                if named.success and named.user is not None:
                    identity = named.user
                else:
                    logger.warning(f"Could not set display name for {identity.id}: {named.error}")

            await self._establish(identity, epoch, extra)
            return AuthResult.ok(identity)

    async def sign_in(self, email: str, password: str) -> AuthResult:
        async with self._operation(), self._sign_in_lock:
            epoch = self._sign_out_epoch
            result = await self._identity.sign_in(email, password)
            if not result.success or result.user is None:
                return self._auth_failure(result, "Sign in failed")
            await self._establish(result.user, epoch)
            return AuthResult.ok(result.user)

    async def sign_in_with_google(self, popup: Optional[OAuthPopup] = None) -> AuthResult:
        async with self._operation(), self._sign_in_lock:
            epoch = self._sign_out_epoch
            result = await self._identity.sign_in_with_google(popup)
            if not result.success or result.user is None:
                return self._auth_failure(result, "Google sign in failed")
            await self._establish(result.user, epoch)
            return AuthResult.ok(result.user)

    async def reset_password(self, email: str) -> AuthResult:
        async with self._operation():
            result = await self._identity.reset_password(email)
            if not result.success:
                return self._auth_failure(result, "Password reset failed")
            self._update(status=SessionStatus.READY)
            return result

    async def sign_out(self) -> AuthResult:
        """Sign out. On failure the current identity and profile are kept."""
        async with self._operation():
            result = await self._identity.sign_out()
            if not result.success:
                return self._auth_failure(result, "Sign out failed")
            self._sign_out_epoch += 1
            self._update(identity=None, profile=None, status=SessionStatus.READY)
            return result

    async def update_profile(self, fields: Mapping[str, Any]) -> OperationResult:
        """
        Persist profile fields for the signed-in user.

        The loaded profile is updated from ``fields`` without re-reading the
        stored document. When no profile was loaded, the document returned
        by the store becomes the profile. Store-owned fields (id, timestamps)
        are ignored.
        """
        async with self._operation():
            identity = self._session.identity
            if identity is None:
                return self._operation_failure(NoActiveSessionError())

            changes = {
                key: value
                for key, value in Profile.document_fields(fields).items()
                if key not in RESERVED_FIELDS
            }
            current = self._session.profile
            try:
                # Validates the field values even when there is no loaded profile
                merged = (current or Profile(id=identity.id)).merged(changes)
            except PydanticValidationError as e:
                return self._operation_failure(
                    ValidationError(f"Invalid profile fields: {e}", code="INVALID_PROFILE")
                )

            result = await self._store.update(self._settings.users_collection, identity.id, changes)
            if not result.success:
                self._fail(result.error or "Profile update failed")
                return result

            if current is not None:
                updated = merged
            else:
                updated = self._to_profile(result.data) if result.data else None
            self._update(profile=updated, status=SessionStatus.READY)
            return result

    def clear_error(self) -> None:
        """Dismiss the last error."""
        status = SessionStatus.READY if self._session.status == SessionStatus.ERROR else self._session.status
        self._update(last_error=None, status=status)

    # -------------------------------------------------------------------------
    # State helpers
    # -------------------------------------------------------------------------

    @asynccontextmanager
    async def _operation(self) -> AsyncIterator[None]:
        self._begin(clear_error=True)
        try:
            yield
        finally:
            self._end()

    def _begin(self, clear_error: bool = False) -> None:
        self._busy += 1
        if clear_error:
            self._update(loading=True, last_error=None)
        else:
            self._update(loading=True)

    def _end(self) -> None:
        self._busy -= 1
        self._update(loading=self._busy > 0)

    def _fail(self, message: str) -> None:
        self._update(status=SessionStatus.ERROR, last_error=message)

    def _auth_failure(self, result: AuthResult, fallback: str) -> AuthResult:
        message = result.error or fallback
        self._fail(message)
        return AuthResult(success=False, error=message, code=result.code)

    def _operation_failure(self, error: TradepostError) -> OperationResult:
        self._fail(error.message)
        return OperationResult.failure(error)

    def _update(self, **changes: Any) -> None:
        self._session = self._session.model_copy(update=changes)
        for listener in list(self._listeners):
            try:
                listener(self._session)
            except Exception:
                logger.exception("Session listener raised")


@asynccontextmanager
async def open_session(
    popup: Optional[OAuthPopup] = None,
    settings: Optional[Settings] = None,
) -> AsyncIterator[SessionReconciler]:
    """
    Wire client, store, identity service and reconciler for this process.

    The reconciler follows auth state for the lifetime of the context.

    Example:
        async with open_session() as reconciler:
            await reconciler.sign_in(email, password)
            print(reconciler.session.profile)
    """
    settings = settings or get_settings()
    client = await get_supabase_client()
    reconciler = SessionReconciler(
        IdentityService(client, settings, popup),
        DocumentStore(client, settings),
        settings,
    )
    await reconciler.start()
    try:
        yield reconciler
    finally:
        await reconciler.close()
