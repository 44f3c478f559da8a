"""Concurrency control utilities.

Provides a reader-writer lock so the notification hub can fan out to its
subscriber set while registrations wait.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

logger = logging.getLogger(__name__)


class LockTimeoutError(Exception):
    """Raised when a lock cannot be acquired within the timeout period."""

    pass


class AsyncRWLock:
    """Reader-writer lock for asyncio tasks.

    Any number of readers may hold the lock together; a writer holds it
    alone. Waiting writers block new readers so registrations are not
    starved by a steady stream of broadcasts.

    Example:
        lock = AsyncRWLock()
        async with lock.read():
            snapshot = list(items)
        async with lock.write():
            items.add(item)
    """

    def __init__(self, name: str = "rwlock"):
        self.name = name
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @property
    def readers(self) -> int:
        return self._readers

    @property
    def write_locked(self) -> bool:
        return self._writer

    async def _acquire_read(self) -> None:
        async with self._cond:
            await self._cond.wait_for(
                lambda: not self._writer and self._writers_waiting == 0
            )
            self._readers += 1

    async def _release_read(self) -> None:
        async with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    async def _acquire_write(self) -> None:
        async with self._cond:
            self._writers_waiting += 1
            try:
                await self._cond.wait_for(lambda: not self._writer and self._readers == 0)
            finally:
                self._writers_waiting -= 1
                # A cancelled writer must not keep readers parked
                self._cond.notify_all()
            self._writer = True

    async def _release_write(self) -> None:
        async with self._cond:
            self._writer = False
            self._cond.notify_all()

    async def _wait(self, acquire, timeout: Optional[float], mode: str) -> None:
        try:
            if timeout:
                await asyncio.wait_for(acquire(), timeout=timeout)
            else:
                await acquire()
        except asyncio.TimeoutError:
            logger.warning(f"{mode} lock timeout on {self.name} after {timeout}s")
            raise LockTimeoutError(
                f"Could not acquire {mode} lock on {self.name} within {timeout}s"
            )

    @asynccontextmanager
    async def read(self, timeout: Optional[float] = None):
        """Hold the lock shared."""
        await self._wait(self._acquire_read, timeout, "read")
        try:
            yield
        finally:
            await self._release_read()

    @asynccontextmanager
    async def write(self, timeout: Optional[float] = None):
        """Hold the lock exclusively."""
        await self._wait(self._acquire_write, timeout, "write")
        logger.debug(f"Write lock acquired on {self.name}")
        try:
            yield
        finally:
            await self._release_write()
            logger.debug(f"Write lock released on {self.name}")
