"""In-process realtime change feed: row inserts fanned out to subscribers.

Usage:
    async with get_feed().subscribe("messages") as subscription:
        async for event in subscription:
            ...

Leaving the ``async with`` block always unsubscribes.
"""

import asyncio
import logging
import threading
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, AsyncIterator

from gigchat.core.errors import SubscriptionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InsertEvent:
    table: str
    record: dict[str, Any]
    committed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class Subscription:
    """Unbounded, non-restartable stream of insert events for one table."""

    def __init__(self, feed: "ChangeFeed", table: str) -> None:
        self.table = table
        self._feed = feed
        self._loop = asyncio.get_running_loop()
        self._queue: asyncio.Queue[InsertEvent | None] = asyncio.Queue()
        self._closed = False
        self._finished = False

    @property
    def closed(self) -> bool:
        return self._closed

    def deliver(self, event: InsertEvent) -> None:
        if self._closed:
            return
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, event)
        except RuntimeError as e:
            # Owning loop is gone; the subscriber will never read again.
            logger.warning(f"Dropping {self.table} event for dead subscriber: {e}")
            self._feed.discard(self)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._feed.discard(self)
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, None)
        except RuntimeError:
            pass

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> InsertEvent:
        if self._finished:
            raise StopAsyncIteration
        event = await self._queue.get()
        if event is None:
            self._finished = True
            raise StopAsyncIteration
        return event


class ChangeFeed:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscribers: dict[str, list[Subscription]] = {}
        self._shut_down = False

    def subscriber_count(self, table: str | None = None) -> int:
        with self._lock:
            if table is not None:
                return len(self._subscribers.get(table, []))
            return sum(len(subs) for subs in self._subscribers.values())

    @asynccontextmanager
    async def subscribe(self, table: str) -> AsyncIterator[Subscription]:
        with self._lock:
            if self._shut_down:
                raise SubscriptionError("Change feed is shut down")
            subscription = Subscription(self, table)
            self._subscribers.setdefault(table, []).append(subscription)
        logger.debug(f"Subscribed to {table} inserts")
        try:
            yield subscription
        finally:
            subscription.close()
            logger.debug(f"Unsubscribed from {table} inserts")

    def discard(self, subscription: Subscription) -> None:
        with self._lock:
            subs = self._subscribers.get(subscription.table, [])
            if subscription in subs:
                subs.remove(subscription)

    def publish(self, table: str, record: dict[str, Any]) -> int:
        """Deliver an insert to every live subscriber of table. Safe from any thread."""
        event = InsertEvent(table=table, record=record)
        with self._lock:
            targets = list(self._subscribers.get(table, []))
        for subscription in targets:
            subscription.deliver(event)
        return len(targets)

    def shutdown(self) -> None:
        with self._lock:
            self._shut_down = True
            subs = [s for group in self._subscribers.values() for s in group]
        for subscription in subs:
            subscription.close()
        logger.info(f"Change feed shut down ({len(subs)} subscribers closed)")


_feed: ChangeFeed | None = None


def get_feed() -> ChangeFeed:
    global _feed
    if _feed is None:
        _feed = ChangeFeed()
    return _feed


def reset_feed() -> ChangeFeed:
    """Shut down the current feed and install a fresh one."""
    global _feed
    if _feed is not None:
        _feed.shutdown()
    _feed = ChangeFeed()
    return _feed
