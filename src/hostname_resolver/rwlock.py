"""
Reader/writer lock for asyncio tasks
"""
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator


class ReadWriteLock:
    """
    Reader-writer lock: any number of readers OR one exclusive writer.

    Writer-preference: when a writer is waiting, new readers queue
    behind it rather than jumping ahead.

    Example:
        lock = ReadWriteLock()
        async with lock.read():
            ...
        async with lock.write():
            ...
    """

    def __init__(self) -> None:
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writing = False
        self._waiting_writers = 0

    @property
    def reader_count(self) -> int:
        """Return the number of active readers."""
        return self._readers

    @property
    def is_writing(self) -> bool:
        """Return whether a writer currently holds the lock."""
        return self._writing

    async def acquire_read(self) -> None:
        async with self._cond:
            await self._cond.wait_for(
                lambda: not self._writing and self._waiting_writers == 0
            )
            self._readers += 1

    async def release_read(self) -> None:
        # State must change before the first await.
        self._readers -= 1
        if self._readers == 0:
            await asyncio.shield(self._wake_all())

    async def acquire_write(self) -> None:
        async with self._cond:
            self._waiting_writers += 1
            try:
                await self._cond.wait_for(
                    lambda: not self._writing and self._readers == 0
                )
            except asyncio.CancelledError:
                self._waiting_writers -= 1
                # Readers parked behind this writer may proceed now.
                self._cond.notify_all()
                raise
            self._waiting_writers -= 1
            self._writing = True

    async def release_write(self) -> None:
        self._writing = False
        await asyncio.shield(self._wake_all())

    async def _wake_all(self) -> None:
        async with self._cond:
            self._cond.notify_all()

    @asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        """Hold the lock for reading."""
        await self.acquire_read()
        try:
            yield
        finally:
            await self.release_read()

    @asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        """Hold the lock exclusively."""
        await self.acquire_write()
        try:
            yield
        finally:
            await self.release_write()
