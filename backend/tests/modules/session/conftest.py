"""
Pytest fixtures for session module tests.

In-memory stand-ins for the store and identity interfaces follow the same
contracts as the Supabase implementations (results, never exceptions) and
let tests inject failures per operation.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Sequence
from uuid import uuid4

import pytest

from shared.exceptions import TradepostError
from shared.models import Document, OperationResult
from modules.identity.interfaces import AuthStateListener, IIdentityService, OAuthPopup
from modules.identity.models import AuthEventKind, AuthResult, AuthStateEvent, Identity
from modules.store.exceptions import DocumentMissingError
from modules.store.interfaces import IDocumentStore
from modules.store.models import (
    RESERVED_FIELDS,
    Condition,
    ConditionLike,
    DocumentResult,
    Operator,
    QueryResult,
    SortDirection,
)
from modules.session.service import SessionReconciler


def _matches(document: Mapping[str, Any], condition: Condition) -> bool:
    candidate = document.get(condition.field)
    value = condition.value
    op = condition.operator
    if op == Operator.EQ:
        return candidate == value
    if op == Operator.NE:
        return candidate != value
    if op == Operator.IN:
        return candidate in value
    if op == Operator.NOT_IN:
        return candidate not in value
    if op == Operator.ARRAY_CONTAINS:
        return isinstance(candidate, list) and value in candidate
    if candidate is None:
        return False
    return {
        Operator.LT: candidate < value,
        Operator.LTE: candidate <= value,
        Operator.GT: candidate > value,
        Operator.GTE: candidate >= value,
    }[op]


class InMemoryDocumentStore(IDocumentStore):
    """Dictionary-backed document store."""

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, Document]] = {}
        self.failures: dict[str, TradepostError] = {}
        self.writes: list[tuple[str, str, str]] = []
        self._clock = 0

    def fail(self, operation: str, error: TradepostError) -> None:
        """Make every call to ``operation`` fail with ``error``."""
        self.failures[operation] = error

    def _stamp(self) -> str:
        self._clock += 1
        return datetime(2024, 1, 1, 0, 0, self._clock % 60, tzinfo=timezone.utc).isoformat()

    def _body(self, data: Mapping[str, Any]) -> Document:
        return {k: v for k, v in data.items() if k not in RESERVED_FIELDS}

    async def create(self, collection, data, document_id=None) -> OperationResult:
        await asyncio.sleep(0)
        if "create" in self.failures:
            return OperationResult.failure(self.failures["create"], id=document_id)
        target = document_id or uuid4().hex
        stamp = self._stamp()
        document = {"id": target, **self._body(data), "createdAt": stamp, "updatedAt": stamp}
        self.collections.setdefault(collection, {})[target] = document
        self.writes.append(("create", collection, target))
        return OperationResult.ok(target, data=dict(document), created=True)

    async def create_if_absent(self, collection, data, document_id) -> OperationResult:
        await asyncio.sleep(0)
        if "create_if_absent" in self.failures:
            return OperationResult.failure(self.failures["create_if_absent"], id=document_id)
        existing = self.collections.setdefault(collection, {})
        if document_id in existing:
            return OperationResult.ok(document_id, created=False)
        stamp = self._stamp()
        document = {"id": document_id, **self._body(data), "createdAt": stamp, "updatedAt": stamp}
        existing[document_id] = document
        self.writes.append(("create_if_absent", collection, document_id))
        return OperationResult.ok(document_id, data=dict(document), created=True)

    async def fetch(self, collection, document_id) -> DocumentResult:
        await asyncio.sleep(0)
        if "fetch" in self.failures:
            return DocumentResult.failure(self.failures["fetch"])
        document = self.collections.get(collection, {}).get(document_id)
        return DocumentResult(success=True, document=dict(document) if document else None)

    async def get(self, collection, document_id) -> Optional[Document]:
        return (await self.fetch(collection, document_id)).document

    async def update(self, collection, document_id, data) -> OperationResult:
        await asyncio.sleep(0)
        if "update" in self.failures:
            return OperationResult.failure(self.failures["update"], id=document_id)
        document = self.collections.get(collection, {}).get(document_id)
        if document is None:
            return OperationResult.failure(DocumentMissingError(collection, document_id), id=document_id)
        document.update(self._body(data))
        document["updatedAt"] = self._stamp()
        self.writes.append(("update", collection, document_id))
        return OperationResult.ok(document_id, data=dict(document))

    async def delete(self, collection, document_id) -> OperationResult:
        if "delete" in self.failures:
            return OperationResult.failure(self.failures["delete"], id=document_id)
        self.collections.get(collection, {}).pop(document_id, None)
        self.writes.append(("delete", collection, document_id))
        return OperationResult.ok(document_id)

    async def find(
        self,
        collection: str,
        conditions: Sequence[ConditionLike] = (),
        order_by: Optional[str] = "createdAt",
        direction: SortDirection = SortDirection.DESC,
        limit: Optional[int] = None,
    ) -> QueryResult:
        if "find" in self.failures:
            return QueryResult.failure(self.failures["find"])
        parsed = [Condition.coerce(c) for c in conditions]
        documents = [
            dict(doc)
            for doc in self.collections.get(collection, {}).values()
            if all(_matches(doc, c) for c in parsed)
        ]
        if order_by:
            documents.sort(key=lambda d: d.get(order_by), reverse=direction == SortDirection.DESC)
        bound = 20 if limit is None else limit
        return QueryResult(success=True, documents=documents[:bound] if bound else documents)

    async def query(self, collection, conditions=(), order_by="createdAt", direction=SortDirection.DESC, limit=None):
        return (await self.find(collection, conditions, order_by, direction, limit)).documents

    async def subscribe(self, collection, conditions, on_change):
        raise NotImplementedError("Live queries are exercised against the Supabase store")


class FakeAuthSubscription:
    def __init__(self, owner: "FakeIdentityService", listener: AuthStateListener) -> None:
        self._owner = owner
        self._listener: Optional[AuthStateListener] = listener

    @property
    def active(self) -> bool:
        return self._listener is not None

    def unsubscribe(self) -> None:
        if self._listener is not None:
            self._owner.listeners.remove(self._listener)
            self._listener = None


class FakeIdentityService(IIdentityService):
    """
    Identity service over a dict of accounts.

    Like Supabase Auth, successful sign-in, sign-out and user updates also
    notify auth state listeners.

    Setting ``require_confirmation`` makes sign-up return an account
    without a session, as a project with email confirmation does.
    """

    def __init__(self) -> None:
        self.accounts: dict[str, tuple[str, Identity]] = {}
        self.current: Optional[Identity] = None
        self.listeners: list[AuthStateListener] = []
        self.failures: dict[str, TradepostError] = {}
        self.google_identity: Optional[Identity] = None
        self.require_confirmation = False
        self.calls: list[str] = []

    def add_account(self, email: str, password: str, **fields: Any) -> Identity:
        identity = Identity(id=fields.pop("id", f"uid-{len(self.accounts) + 1}"), email=email, **fields)
        self.accounts[email] = (password, identity)
        return identity

    def emit(self, kind: AuthEventKind, identity: Optional[Identity]) -> None:
        for listener in list(self.listeners):
            listener(AuthStateEvent(kind=kind.value, identity=identity))

    def _failed(self, operation: str) -> Optional[AuthResult]:
        self.calls.append(operation)
        if operation in self.failures:
            return AuthResult.failure(self.failures[operation])
        return None

    def _signed_in(self, identity: Identity) -> AuthResult:
        self.current = identity
        self.emit(AuthEventKind.SIGNED_IN, identity)
        return AuthResult.ok(identity)

    async def sign_up(self, email, password) -> AuthResult:
        failed = self._failed("sign_up")
        if failed:
            return failed
        identity = self.add_account(email, password)
        if self.require_confirmation:
            return AuthResult.pending(identity)
        return self._signed_in(identity)

    async def sign_in(self, email, password) -> AuthResult:
        failed = self._failed("sign_in")
        if failed:
            return failed
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            return AuthResult(success=False, error="Invalid login credentials", code="AUTH_PROVIDER_ERROR")
        return self._signed_in(account[1])

    async def sign_in_with_google(self, popup: Optional[OAuthPopup] = None) -> AuthResult:
        failed = self._failed("sign_in_with_google")
        if failed:
            return failed
        return self._signed_in(self.google_identity)

    async def reset_password(self, email) -> AuthResult:
        return self._failed("reset_password") or AuthResult.ok()

    async def sign_out(self) -> AuthResult:
        failed = self._failed("sign_out")
        if failed:
            return failed
        self.current = None
        self.emit(AuthEventKind.SIGNED_OUT, None)
        return AuthResult.ok()

    async def update_profile_fields(self, display_name, photo_url) -> AuthResult:
        failed = self._failed("update_profile_fields")
        if failed:
            return failed
        if self.current is None:
            return AuthResult(success=False, error="No user logged in", code="NO_CURRENT_USER")
        self.current = self.current.model_copy(update={"display_name": display_name, "photo_url": photo_url})
        self.emit(AuthEventKind.USER_UPDATED, self.current)
        return AuthResult.ok(self.current)

    async def on_auth_state_change(self, listener) -> FakeAuthSubscription:
        self.listeners.append(listener)
        listener(AuthStateEvent(kind=AuthEventKind.INITIAL_SESSION.value, identity=self.current))
        return FakeAuthSubscription(self, listener)

    async def get_current_identity(self) -> Optional[Identity]:
        return self.current


@pytest.fixture
def memory_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def identity_service() -> FakeIdentityService:
    return FakeIdentityService()


@pytest.fixture
def reconciler(identity_service, memory_store, settings):
    """Reconciler wired to the in-memory fakes, not yet started."""
    return SessionReconciler(identity_service, memory_store, settings)
