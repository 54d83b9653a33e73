"""
Caching hostname resolver with unicast DNS fail-over and a multicast DNS fallback.
"""
from .types import (
    HostRecord,
    HostStore,
    StoreVisitor,
    ServerConfig,
    ResolverConfig,
    CacheStats,
    ResolverStats,
    EventType,
    ResolverEvent,
    ResolverEventListener,
)
from .errors import (
    HostnameResolverError,
    NotFoundError,
    DuplicateEntryError,
    IterStop,
    ServerFailureError,
    InvalidInputError,
    UnresolvedError,
    TransportError,
)
from .config import (
    DEFAULT_SERVER_CONFIG,
    DEFAULT_RESOLVER_CONFIG,
    merge_config,
    config_from_env,
    load_server_config,
    with_servers,
)
from .hostport import (
    is_valid_ipv4,
    is_valid_ipv6,
    is_valid_domain,
    split_host_port,
    ip_port,
)
from .rwlock import ReadWriteLock
from .stores import MemoryStore, create_memory_store
from .cache import HostCache, create_host_cache
from .transport import DnsTransport, UdpDnsTransport, create_udp_transport
from .multicast import (
    ServiceEntry,
    MulticastTransport,
    ZeroconfTransport,
    create_zeroconf_transport,
)
from .resolver import HostnameResolver, create_hostname_resolver


__all__ = [
    # Types
    "HostRecord",
    "HostStore",
    "StoreVisitor",
    "ServerConfig",
    "ResolverConfig",
    "CacheStats",
    "ResolverStats",
    "EventType",
    "ResolverEvent",
    "ResolverEventListener",
    # Errors
    "HostnameResolverError",
    "NotFoundError",
    "DuplicateEntryError",
    "IterStop",
    "ServerFailureError",
    "InvalidInputError",
    "UnresolvedError",
    "TransportError",
    # Config
    "DEFAULT_SERVER_CONFIG",
    "DEFAULT_RESOLVER_CONFIG",
    "merge_config",
    "config_from_env",
    "load_server_config",
    "with_servers",
    # Host/port helpers
    "is_valid_ipv4",
    "is_valid_ipv6",
    "is_valid_domain",
    "split_host_port",
    "ip_port",
    # Stores
    "ReadWriteLock",
    "MemoryStore",
    "create_memory_store",
    # Cache
    "HostCache",
    "create_host_cache",
    # Transports
    "DnsTransport",
    "UdpDnsTransport",
    "create_udp_transport",
    "ServiceEntry",
    "MulticastTransport",
    "ZeroconfTransport",
    "create_zeroconf_transport",
    # Resolver
    "HostnameResolver",
    "create_hostname_resolver",
]


__version__ = "1.0.0"
