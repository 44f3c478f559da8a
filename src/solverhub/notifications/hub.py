"""Fan-out of status events to WebSocket subscribers.

Producers enqueue events; a single consumer task drains the queue and
writes each event to every registered subscriber. A subscriber whose write
fails or times out is pruned without affecting the others.
"""

import asyncio
import logging
from typing import Any, Optional, Protocol

from solverhub.notifications.events import StatusEvent
from solverhub.utils.locks import AsyncRWLock

logger = logging.getLogger(__name__)


class Subscriber(Protocol):
    """Anything that accepts JSON messages, e.g. a FastAPI WebSocket."""

    async def send_json(self, data: Any) -> None: ...

    async def close(self, code: int = 1000) -> None: ...


class NotificationHub:
    """Registry of subscribers plus the broadcast consumer."""

    def __init__(self, send_timeout: float = 5.0):
        self.send_timeout = send_timeout
        # Keyed by identity; WebSocket objects are not hashable
        self._subscribers: dict[int, Subscriber] = {}
        self._lock = AsyncRWLock("subscribers")
        self._queue: asyncio.Queue = asyncio.Queue()
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run(), name="notification-hub")
        logger.info("Notification hub started")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Notification hub stopped")

    async def register(self, subscriber: Subscriber) -> bool:
        """Add a subscriber; registering twice is a no-op."""
        async with self._lock.write():
            if id(subscriber) in self._subscribers:
                return False
            self._subscribers[id(subscriber)] = subscriber
        logger.info(f"Subscriber connected ({self.subscriber_count} total)")
        return True

    async def unregister(self, subscriber: Subscriber) -> bool:
        async with self._lock.write():
            if self._subscribers.pop(id(subscriber), None) is None:
                return False
        logger.info(f"Subscriber disconnected ({self.subscriber_count} total)")
        return True

    async def publish(self, event: StatusEvent) -> None:
        """Queue an event for broadcast."""
        await self._queue.put(event)

    async def join(self) -> None:
        """Wait until every queued event has been broadcast."""
        await self._queue.join()

    async def _run(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self.broadcast(event)
            except Exception:
                logger.exception(f"Broadcast of {event.type.value} failed")
            finally:
                self._queue.task_done()

    async def broadcast(self, event: StatusEvent) -> int:
        """Write an event to every subscriber and return the delivery count."""
        payload = event.to_dict()

        async with self._lock.read():
            subscribers = list(self._subscribers.values())
            results = await asyncio.gather(
                *(self._deliver(subscriber, payload) for subscriber in subscribers)
            )

        failed = [s for s, ok in zip(subscribers, results) if not ok]
        if failed:
            await self._prune(failed)

        delivered = len(subscribers) - len(failed)
        logger.debug(f"Broadcast {event.type.value} to {delivered} subscriber(s)")
        return delivered

    async def _deliver(self, subscriber: Subscriber, payload: dict) -> bool:
        try:
            await asyncio.wait_for(subscriber.send_json(payload), timeout=self.send_timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning(f"Subscriber write timed out after {self.send_timeout}s")
            return False
        except Exception as e:
            logger.warning(f"Error broadcasting to subscriber: {e}")
            return False

    async def _prune(self, subscribers: list) -> None:
        async with self._lock.write():
            for subscriber in subscribers:
                self._subscribers.pop(id(subscriber), None)
        logger.info(f"Pruned {len(subscribers)} subscriber(s)")

        for subscriber in subscribers:
            try:
                await subscriber.close()
            except Exception as e:
                logger.debug(f"Error closing pruned subscriber: {e}")

    async def send(self, subscriber: Subscriber, event: StatusEvent) -> None:
        """Reply to a single subscriber."""
        await subscriber.send_json(event.to_dict())

    async def handle_message(self, subscriber: Subscriber, message: Any) -> StatusEvent:
        """Answer an inbound message: ping gets pong, anything else an error."""
        kind = message.get("type") if isinstance(message, dict) else None
        reply = StatusEvent.pong() if kind == "ping" else StatusEvent.unknown_message()
        await self.send(subscriber, reply)
        return reply
