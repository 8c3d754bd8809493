"""
In-memory fan-out of match snapshots.

Every viewer gets its own bounded asyncio.Queue, bound to the event loop it
subscribed from. ``publish`` serializes the state once and hands the message
to each queue through its loop, so delivery to one viewer never waits on
another and can be triggered from any thread.
"""
import asyncio
import logging
import threading
from typing import Set

from .state import StateStore

logger = logging.getLogger(__name__)


class Subscription:
    """One viewer's channel. Async-iterating yields serialized snapshots until closed."""

    def __init__(self, loop: asyncio.AbstractEventLoop, maxsize: int):
        self.loop = loop
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.closed = False

    def __aiter__(self):
        return self

    async def __anext__(self) -> str:
        message = await self.queue.get()
        if message is None:
            raise StopAsyncIteration
        return message

    def _put(self, message: str) -> None:
        self.queue.put_nowait(message)

    def _shutdown(self) -> None:
        # Runs on the subscription's own loop: drop pending data, wake the reader.
        while True:
            try:
                self.queue.get_nowait()
            except asyncio.QueueEmpty:
                break
        self.queue.put_nowait(None)


class Broadcaster:
    def __init__(self, store: StateStore, queue_size: int = 256):
        if queue_size < 1:
            raise ValueError("queue_size must be at least 1")
        self._store = store
        self._queue_size = queue_size
        self._subscribers: Set[Subscription] = set()
        # Separate from the state lock so subscriber churn never delays mutators.
        self._lock = threading.Lock()

    def subscribe(self) -> Subscription:
        """Register a channel whose first message is the current snapshot."""
        sub = Subscription(asyncio.get_running_loop(), self._queue_size)
        with self._lock:
            sub._put(self._store.read_json())
            self._subscribers.add(sub)
            count = len(self._subscribers)
        logger.debug("Viewer subscribed (%d connected)", count)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            self._subscribers.discard(sub)
            already_closed = sub.closed
            sub.closed = True
        if already_closed:
            return
        self._call_on(sub, sub._shutdown)
        logger.debug("Viewer unsubscribed")

    def publish(self) -> int:
        """Send the current snapshot to every subscriber; returns how many were targeted."""
        dead = []
        with self._lock:
            message = self._store.read_json()
            targets = list(self._subscribers)
            for sub in targets:
                if not self._call_on(sub, self._deliver, sub, message):
                    dead.append(sub)
            for sub in dead:
                self._subscribers.discard(sub)
                sub.closed = True
        if dead:
            logger.info("Dropped %d viewer(s) whose event loop is gone", len(dead))
        return len(targets)

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def _deliver(self, sub: Subscription, message: str) -> None:
        if sub.closed:
            return
        try:
            sub._put(message)
        except asyncio.QueueFull:
            logger.warning("Viewer fell %d messages behind, disconnecting it", self._queue_size)
            self.unsubscribe(sub)

    @staticmethod
    def _call_on(sub: Subscription, callback, *args) -> bool:
        try:
            sub.loop.call_soon_threadsafe(callback, *args)
        except RuntimeError:
            # Loop already closed; nothing left to deliver to.
            return False
        return True
