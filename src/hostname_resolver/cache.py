"""
TTL cache for host records with a background janitor
"""
import asyncio
import logging
import time
from typing import Callable, Optional, Sequence

from .errors import (
    DuplicateEntryError,
    HostnameResolverError,
    InvalidInputError,
    NotFoundError,
)
from .types import CacheStats, HostRecord, HostStore

logger = logging.getLogger(__name__)

_REPLACE_ATTEMPTS = 3


class HostCache:
    """
    Host Cache

    Memoizes resolution outcomes with:
    - A fixed TTL applied on every write (writes reset the TTL, reads never do)
    - Negative entries for failed resolutions
    - A janitor task that removes expired records every cleanup interval
    - A synchronous close that waits for the janitor to acknowledge

    Example:
        cache = HostCache(MemoryStore(), ttl_seconds=60.0, cleanup_interval_seconds=30.0)
        await cache.put_addresses("example.com", ["93.184.216.34"])
        record = await cache.get("example.com")
        await cache.close()
    """

    def __init__(
        self,
        store: HostStore,
        ttl_seconds: float,
        cleanup_interval_seconds: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._ttl = ttl_seconds
        self._cleanup_interval = cleanup_interval_seconds
        self._clock = clock
        self._stop_requests: Optional[asyncio.Queue] = None
        self._janitor_task: Optional[asyncio.Task] = None
        self._closed = False

        # Statistics
        self._hits = 0
        self._negative_hits = 0
        self._misses = 0
        self._sweeps = 0
        self._swept_entries = 0

    @property
    def store(self) -> HostStore:
        return self._store

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        """Start the janitor task. Must be called with a running event loop."""
        if self._janitor_task is None and not self._closed:
            self._stop_requests = asyncio.Queue()
            self._janitor_task = asyncio.create_task(self._janitor_loop(self._stop_requests))

    async def _janitor_loop(self, stop_requests: asyncio.Queue) -> None:
        """Sweep every cleanup interval until a stop request arrives."""
        while True:
            try:
                ack = await asyncio.wait_for(
                    stop_requests.get(), timeout=self._cleanup_interval
                )
            except asyncio.TimeoutError:
                try:
                    await self.sweep()
                except Exception as e:
                    logger.error(f"HostCache cleanup failed: {e}")
                continue
            ack.set_result(None)
            return

    async def sweep(self) -> int:
        """Remove every expired record. Returns the number removed."""
        now = self._clock()
        removed = 0

        async def visit(key: str, record: HostRecord) -> None:
            nonlocal removed
            if not record.is_expired(now):
                return
            try:
                await self._store.delete(key)
                removed += 1
            except HostnameResolverError as e:
                logger.debug(f"HostCache cleanup: delete {key} failed: {e}")

        await self._store.iterate(visit)
        self._sweeps += 1
        self._swept_entries += removed
        if removed:
            logger.debug(f"HostCache cleanup removed {removed} expired entries")
        return removed

    async def close(self) -> None:
        """
        Stop the janitor and wait for it to acknowledge.

        After close returns the janitor no longer mutates the store.
        """
        if self._closed:
            raise RuntimeError("HostCache is already closed")
        self._closed = True

        if self._janitor_task is None or self._stop_requests is None:
            return
        if self._janitor_task.done():
            self._janitor_task = None
            return

        ack: asyncio.Future = asyncio.get_running_loop().create_future()
        await self._stop_requests.put(ack)
        await ack
        await self._janitor_task
        self._janitor_task = None

    async def get(self, key: str) -> Optional[HostRecord]:
        """Get a live record, or None if absent or expired"""
        try:
            record = await self._store.get(key)
        except NotFoundError:
            self._misses += 1
            return None

        if record.is_expired(self._clock()):
            self._misses += 1
            return None

        if record.failed:
            self._negative_hits += 1
        else:
            self._hits += 1
        return record

    async def put_addresses(self, key: str, addrs: Sequence[str]) -> None:
        """Cache a positive forward result"""
        if not addrs:
            raise InvalidInputError(f"refusing to cache an empty address list for {key}")
        await self._replace(key, HostRecord(
            addresses=tuple(addrs),
            expires_at=self._clock() + self._ttl,
        ))

    async def put_ptr(self, key: str, ptr: str) -> None:
        """Cache a positive reverse result"""
        await self._replace(key, HostRecord(
            addresses=(ptr,),
            expires_at=self._clock() + self._ttl,
        ))

    async def put_servfail(self, key: str) -> None:
        """Cache a failed resolution"""
        await self._replace(key, HostRecord(
            addresses=("",),
            failed=True,
            expires_at=self._clock() + self._ttl,
        ))

    async def _replace(self, key: str, record: HostRecord) -> None:
        """Delete-then-insert so every write resets the TTL"""
        for _ in range(_REPLACE_ATTEMPTS):
            try:
                await self._store.delete(key)
            except NotFoundError:
                pass
            try:
                await self._store.put(key, record)
                break
            except DuplicateEntryError:
                # A concurrent writer reinserted the key between our delete and put.
                logger.debug(f"HostCache put {key}: concurrent write, retrying")
        else:
            logger.debug(f"HostCache put {key}: gave up after {_REPLACE_ATTEMPTS} attempts")

        if not self._closed:
            self.start()

    async def get_stats(self) -> CacheStats:
        """Get cache statistics"""
        return CacheStats(
            total_entries=await self._store.size(),
            hits=self._hits,
            negative_hits=self._negative_hits,
            misses=self._misses,
            sweeps=self._sweeps,
            swept_entries=self._swept_entries,
        )


def create_host_cache(
    store: HostStore,
    ttl_seconds: float,
    cleanup_interval_seconds: float,
    clock: Callable[[], float] = time.time,
) -> HostCache:
    """Factory function to create a host cache"""
    return HostCache(store, ttl_seconds, cleanup_interval_seconds, clock)
