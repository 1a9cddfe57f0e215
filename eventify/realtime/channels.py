"""In-process publish/subscribe channels backed by asyncio queues."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional, Set

logger = logging.getLogger(__name__)


class Subscription:
    """One subscriber's view of a topic.

    Messages are queued in publish order. Iterating the subscription yields
    them until it is closed.
    """

    def __init__(self, channel: "Channel", topic: str, maxsize: int = 0) -> None:
        self.channel = channel
        self.topic = topic
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.closed = False

    async def get(self) -> Any:
        return await self.queue.get()

    def get_nowait(self) -> Any:
        return self.queue.get_nowait()

    def pending(self) -> int:
        return self.queue.qsize()

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self.channel._remove(self)

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> Any:
        if self.closed:
            raise StopAsyncIteration
        return await self.queue.get()


class Channel:
    """Topic-based fan-out to subscriber queues.

    ``max_queue=0`` gives every subscriber an unbounded queue. With a bound
    and ``drop_when_full`` a slow subscriber silently loses messages instead
    of holding up the publisher.
    """

    def __init__(self, *, name: str = "channel", max_queue: int = 0, drop_when_full: bool = False) -> None:
        self.name = name
        self.max_queue = max_queue
        self.drop_when_full = drop_when_full
        self._subscribers: Dict[str, Set[Subscription]] = defaultdict(set)

    def subscribe(self, topic: str) -> Subscription:
        sub = Subscription(self, topic, maxsize=self.max_queue)
        self._subscribers[topic].add(sub)
        logger.debug("%s: subscriber added to %s (%d total)", self.name, topic, len(self._subscribers[topic]))
        return sub

    @asynccontextmanager
    async def listen(self, topic: str) -> AsyncIterator[Subscription]:
        sub = self.subscribe(topic)
        try:
            yield sub
        finally:
            sub.close()

    def _remove(self, sub: Subscription) -> None:
        subscribers = self._subscribers.get(sub.topic)
        if not subscribers:
            return
        subscribers.discard(sub)
        if not subscribers:
            del self._subscribers[sub.topic]

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, ()))

    def publish(self, topic: str, message: Any, *, exclude: Optional[Subscription] = None) -> int:
        """Queue ``message`` for every subscriber of ``topic``; returns how many got it."""

        delivered = 0
        for sub in list(self._subscribers.get(topic, ())):
            if sub is exclude:
                continue
            try:
                sub.queue.put_nowait(message)
            except asyncio.QueueFull:
                if not self.drop_when_full:
                    raise
                logger.debug("%s: dropped message for slow subscriber on %s", self.name, topic)
                continue
            delivered += 1
        return delivered
