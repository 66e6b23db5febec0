# This project was developed with assistance from AI tools.
"""In-process change feed for notifications.

Each WebSocket connection subscribes with the authenticated user id and
gets its own bounded queue. Services publish a ``ChangeEvent`` after the
notification change commits; the connection reacts by refetching, so an
event carries only enough to say *something changed*.

Publishing is safe from any thread: events are handed to the subscriber's
event loop with ``call_soon_threadsafe`` when the caller runs elsewhere.
When a queue is full the oldest event is dropped, since every event
triggers a full refetch anyway.
"""

import asyncio
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeEvent:
    """A notification row for ``user_id`` was inserted or updated."""

    user_id: str
    event: str
    notification_id: int | None = None


@dataclass(eq=False)
class Subscription:
    user_id: str
    loop: asyncio.AbstractEventLoop
    queue: asyncio.Queue = field(default_factory=asyncio.Queue)

    def offer(self, event: ChangeEvent) -> None:
        """Enqueue without blocking, discarding the oldest event when full."""
        if self.queue.full():
            try:
                self.queue.get_nowait()
            except asyncio.QueueEmpty:
                pass
        self.queue.put_nowait(event)

    async def get(self) -> ChangeEvent:
        return await self.queue.get()


class NotificationHub:
    """Publish/subscribe keyed by user id."""

    def __init__(self, queue_size: int = 100):
        self._queue_size = queue_size
        self._subscribers: dict[str, set[Subscription]] = defaultdict(set)

    def subscribe(self, user_id: str) -> Subscription:
        """Register a subscriber on the running event loop."""
        sub = Subscription(
            user_id=user_id,
            loop=asyncio.get_running_loop(),
            queue=asyncio.Queue(maxsize=self._queue_size),
        )
        self._subscribers[user_id].add(sub)
        logger.debug("Subscribed to notifications: user=%s", user_id)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        subs = self._subscribers.get(sub.user_id)
        if not subs:
            return
        subs.discard(sub)
        if not subs:
            del self._subscribers[sub.user_id]
        logger.debug("Unsubscribed from notifications: user=%s", sub.user_id)

    @asynccontextmanager
    async def subscription(self, user_id: str):
        """Subscribe for the duration of a ``async with`` block."""
        sub = self.subscribe(user_id)
        try:
            yield sub
        finally:
            self.unsubscribe(sub)

    def subscriber_count(self, user_id: str) -> int:
        return len(self._subscribers.get(user_id, ()))

    def publish(self, event: ChangeEvent) -> int:
        """Deliver ``event`` to every subscriber of its user. Returns the count."""
        subs = list(self._subscribers.get(event.user_id, ()))
        if not subs:
            return 0

        try:
            current = asyncio.get_running_loop()
        except RuntimeError:
            current = None

        for sub in subs:
            if sub.loop is current:
                sub.offer(event)
            elif sub.loop.is_closed():
                self.unsubscribe(sub)
            else:
                sub.loop.call_soon_threadsafe(sub.offer, event)
        return len(subs)


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

_hub: NotificationHub | None = None


def get_notification_hub() -> NotificationHub:
    """Return the process-wide hub, creating it on first use."""
    global _hub  # noqa: PLW0603
    if _hub is None:
        from ..core.config import settings

        _hub = NotificationHub(queue_size=settings.NOTIFICATION_QUEUE_SIZE)
    return _hub
