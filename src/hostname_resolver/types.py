"""
Type definitions for hostname_resolver
"""
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Literal, Optional
from abc import ABC, abstractmethod

from .errors import ServerFailureError


@dataclass(frozen=True)
class HostRecord:
    """A cached resolution outcome"""

    addresses: tuple[str, ...]
    """Resolved addresses, or the PTR name for reverse entries"""

    failed: bool = False
    """Whether this entry caches a failure (negative result)"""

    expires_at: float = 0.0
    """When this entry expires (Unix timestamp)"""

    def return_addrs(self) -> list[str]:
        """Return the cached addresses, or raise if this is a negative entry"""
        if self.failed:
            raise ServerFailureError("serv fail")
        return list(self.addresses)

    def return_ptr(self) -> str:
        """Return the cached PTR name, or raise if this is a negative entry"""
        if self.failed:
            raise ServerFailureError("serv fail")
        return self.addresses[0]

    def is_expired(self, now: float) -> bool:
        return self.expires_at <= now


# Store visitor: awaited once per (key, record). Raise IterStop to end early.
StoreVisitor = Callable[[str, HostRecord], Awaitable[None]]


class HostStore(ABC):
    """Key/value store interface for host records"""

    @abstractmethod
    async def get(self, key: str) -> HostRecord:
        """Get a record. Raises NotFoundError if absent"""
        pass

    @abstractmethod
    async def put(self, key: str, record: HostRecord) -> None:
        """Insert a record. Raises DuplicateEntryError if the key exists"""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete a record. Raises NotFoundError if absent"""
        pass

    @abstractmethod
    async def iterate(self, visitor: StoreVisitor) -> None:
        """Visit every record; IterStop from the visitor ends iteration"""
        pass

    @abstractmethod
    async def keys(self) -> list[str]:
        """Get all keys"""
        pass

    @abstractmethod
    async def size(self) -> int:
        """Get the number of records"""
        pass


@dataclass(frozen=True)
class ServerConfig:
    """Unicast DNS server configuration"""

    servers: tuple[str, ...]
    """Name server addresses, tried in order"""

    port: str = "53"
    """Name server port"""

    attempts: int = 3
    """Passes the fail-over loop makes over the server list. Default: 3"""

    ndots: int = 1
    """Dots required before a name is tried as absolute. Default: 1"""

    timeout_seconds: int = 5
    """Upper bound for one exchange with one server. Default: 5"""


@dataclass
class ResolverConfig:
    """Configuration for the hostname resolver"""

    id: str = "hostname-resolver"
    """Identifier for this resolver instance (used in logs)"""

    resolv_conf_path: str = "/etc/resolv.conf"
    """Resolver file read once at construction"""

    default_ttl_seconds: float = 24 * 60 * 60
    """TTL for every cache write, positive or negative. Default: 24h"""

    cleanup_interval_seconds: float = 3600.0
    """Interval between janitor sweeps (seconds). Default: 3600.0"""

    dial_timeout_seconds: float = 10.0
    """Connect timeout for TCP exchanges. Default: 10.0"""

    read_timeout_seconds: float = 0.5
    """Read timeout for one exchange. Default: 0.5"""

    write_timeout_seconds: float = 0.5
    """Write timeout for one exchange. Default: 0.5"""

    multicast_enabled: bool = True
    """Whether to fall back to multicast DNS. Default: True"""

    multicast_timeout_seconds: float = 5.0
    """Browse window for the multicast fallback. Default: 5.0"""

    multicast_domain: str = "local."
    """Domain browsed by the multicast fallback"""

    multicast_interfaces: Optional[list[str]] = None
    """Interface addresses for multicast, None for all"""


@dataclass
class CacheStats:
    """Statistics from the host cache"""

    total_entries: int
    """Records currently stored"""

    hits: int
    """Lookups answered with a positive record"""

    negative_hits: int
    """Lookups answered with a cached failure"""

    misses: int
    """Lookups with no usable record"""

    sweeps: int
    """Janitor passes completed"""

    swept_entries: int
    """Records removed by the janitor"""


@dataclass
class ResolverStats:
    """Statistics from the resolver"""

    cache: CacheStats
    """Cache statistics"""

    unicast_queries: int
    """Questions sent through the fail-over loop"""

    multicast_browses: int
    """Multicast fallbacks attempted"""

    failures: int
    """Lookups that ended in an error"""


# Event types
EventType = Literal[
    "cache:hit",
    "cache:miss",
    "cache:negative",
    "resolve:start",
    "resolve:success",
    "resolve:error",
    "unicast:server_error",
    "multicast:start",
    "multicast:result",
]


@dataclass
class ResolverEvent:
    """Event emitted by the resolver"""

    type: EventType
    """Event type"""

    data: dict[str, Any] = field(default_factory=dict)
    """Event-specific data"""


# Event listener type
ResolverEventListener = Callable[[ResolverEvent], None]
