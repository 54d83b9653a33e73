"""
In-memory host record store implementation
"""
from ..errors import DuplicateEntryError, IterStop, NotFoundError
from ..rwlock import ReadWriteLock
from ..types import HostRecord, HostStore, StoreVisitor


class MemoryStore(HostStore):
    """
    In-memory host record store guarded by a single reader/writer lock

    Example:
        store = MemoryStore()
        await store.put("example.com", record)
        record = await store.get("example.com")
    """

    def __init__(self) -> None:
        self._records: dict[str, HostRecord] = {}
        self._lock = ReadWriteLock()

    async def get(self, key: str) -> HostRecord:
        """Get a record"""
        async with self._lock.read():
            record = self._records.get(key)
        if record is None:
            raise NotFoundError(f"entry not found: {key}")
        return record

    async def put(self, key: str, record: HostRecord) -> None:
        """Insert a record, never overwriting"""
        async with self._lock.write():
            if key in self._records:
                raise DuplicateEntryError(f"duplicated entry: {key}")
            self._records[key] = record

    async def delete(self, key: str) -> None:
        """Delete a record"""
        async with self._lock.write():
            if key not in self._records:
                raise NotFoundError(f"entry not found: {key}")
            del self._records[key]

    async def iterate(self, visitor: StoreVisitor) -> None:
        """
        Visit a snapshot of the store.

        The lock is released before visiting so the visitor may delete keys.
        """
        async with self._lock.read():
            snapshot = list(self._records.items())

        for key, record in snapshot:
            try:
                await visitor(key, record)
            except IterStop:
                return

    async def keys(self) -> list[str]:
        """Get all keys"""
        async with self._lock.read():
            return list(self._records.keys())

    async def size(self) -> int:
        """Get the number of records"""
        async with self._lock.read():
            return len(self._records)


def create_memory_store() -> MemoryStore:
    """Create a memory store instance"""
    return MemoryStore()
