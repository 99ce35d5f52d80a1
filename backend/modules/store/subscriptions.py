"""
Live filtered views over a collection.

A subscription listens to Realtime ``postgres_changes`` for one table and,
after every change, re-runs its query and hands the complete matching set
to the listener. Deliveries are serialized, so a listener never sees an
older result after a newer one.
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Union
from uuid import uuid4

from supabase import AsyncClient

from shared.models import Document

from .models import QueryResult

logger = logging.getLogger(__name__)

ChangeListener = Callable[[list[Document]], Union[None, Awaitable[None]]]
Loader = Callable[[], Awaitable[QueryResult]]


class Subscription:
    """
    Handle for a live query.

    ``unsubscribe()`` detaches the Realtime channel and stops deliveries; it
    is safe to call any number of times. It does not abort a query that is
    already in flight, but that query's result is discarded.
    """

    def __init__(
        self,
        db: AsyncClient,
        collection: str,
        load: Loader,
        on_change: ChangeListener,
    ) -> None:
        self._db = db
        self.collection = collection
        self._load = load
        self._on_change = on_change
        self._channel: Optional[Any] = None
        self._active = False
        self._lock = asyncio.Lock()
        self._tasks: set[asyncio.Task] = set()

    @property
    def active(self) -> bool:
        """Whether the subscription still delivers changes."""
        return self._active

    async def open(self) -> None:
        """Attach to the collection's change feed and deliver the initial set."""
        channel = self._db.channel(f"{self.collection}:{uuid4().hex}")
        channel.on_postgres_changes(
            event="*",
            schema="public",
            table=self.collection,
            callback=self._handle_change,
        )
        # Kept before subscribing so a failed subscribe can still be removed
        self._channel = channel
        await channel.subscribe()
        self._active = True
        logger.debug(f"Subscribed to {self.collection}")
        await self.refresh()

    def _handle_change(self, payload: Any) -> None:
        if not self._active:
            return
        task = asyncio.ensure_future(self.refresh())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def refresh(self) -> None:
        """Re-run the query and deliver the full matching set."""
        async with self._lock:
            if not self._active:
                return
            result = await self._load()
            if not self._active:
                return
            if not result.success:
                # Keep the listener's last good view rather than blanking it
                logger.error(f"Live query on {self.collection} failed: {result.error}")
                return
            try:
                outcome = self._on_change(result.documents)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception:
                logger.exception(f"Change listener for {self.collection} raised")

    async def unsubscribe(self) -> None:
        """Detach from the change feed. Idempotent."""
        if not self._active and self._channel is None:
            return
        self._active = False
        channel, self._channel = self._channel, None
        # A listener may unsubscribe from inside its own delivery
        current = asyncio.current_task()
        for task in list(self._tasks):
            if task is not current:
                task.cancel()
        if channel is None:
            return
        try:
            await self._db.remove_channel(channel)
        except Exception as e:
            logger.warning(f"Failed to remove channel for {self.collection}: {e}")
        logger.debug(f"Unsubscribed from {self.collection}")
