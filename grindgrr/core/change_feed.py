"""In-process change feed for insert-events.

Publishers run on any thread (request handlers execute in the threadpool);
each subscription owns an asyncio queue on the loop that created it and is
fed through ``call_soon_threadsafe``. Delivery is at-least-once from the
subscriber's point of view and carries no ordering guarantee, so consumers
must deduplicate and sort on their own.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

ChangeEvent = dict[str, Any]
Predicate = Callable[[ChangeEvent], bool]

_RELEASED = object()


class Subscription:
    def __init__(
        self,
        feed: ChangeFeed,
        predicate: Predicate,
        loop: asyncio.AbstractEventLoop,
    ) -> None:
        self._feed = feed
        self._predicate = predicate
        self._loop = loop
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self.released = False

    def matches(self, event: ChangeEvent) -> bool:
        return bool(self._predicate(event))

    def deliver(self, event: ChangeEvent) -> None:
        if self.released:
            return
        self._push(event)

    def _push(self, item: Any) -> None:
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, item)
        except RuntimeError:
            # Subscriber loop already closed; nothing left to wake up
            logger.debug("dropping change event for closed loop")

    def unsubscribe(self) -> None:
        if self.released:
            return
        self.released = True
        self._feed._remove(self)
        self._push(_RELEASED)

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> ChangeEvent:
        item = await self._queue.get()
        if item is _RELEASED or self.released:
            raise StopAsyncIteration
        return item


class ChangeFeed:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscribers: list[Subscription] = []

    def subscribe(self, predicate: Predicate) -> Subscription:
        """Register a subscription on the running event loop."""
        subscription = Subscription(self, predicate, asyncio.get_running_loop())
        with self._lock:
            self._subscribers.append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscribers:
                self._subscribers.remove(subscription)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, table: str, record: dict[str, Any]) -> int:
        event: ChangeEvent = {"table": table, "type": "INSERT", "record": record}
        with self._lock:
            subscribers = list(self._subscribers)
        delivered = 0
        for subscription in subscribers:
            if subscription.matches(event):
                subscription.deliver(event)
                delivered += 1
        return delivered


change_feed = ChangeFeed()
