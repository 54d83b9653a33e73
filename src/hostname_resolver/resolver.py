"""
Hostname Resolver - Resolution pipeline implementation
"""
import asyncio
import logging
import re
import time
from typing import Awaitable, Callable, Optional, Sequence, TypeVar
from urllib.parse import urlsplit, urlunsplit

import dns.message
import dns.rcode
import dns.rdatatype
import dns.rdtypes.ANY.PTR

from .cache import HostCache
from .config import load_server_config, merge_config, with_servers
from .errors import (
    InvalidInputError,
    ServerFailureError,
    TransportError,
    UnresolvedError,
)
from .hostport import ip_port, is_valid_ipv4, is_valid_ipv6, split_host_port
from .multicast import MulticastTransport, ZeroconfTransport
from .stores.memory import MemoryStore
from .transport import DnsTransport, UdpDnsTransport, fqdn, reverse_addr_name
from .types import (
    ResolverConfig,
    ResolverEvent,
    ResolverEventListener,
    ResolverStats,
    ServerConfig,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

LOCALHOST = "localhost"
LOOPBACK_ADDRS = ("127.0.0.1", "::1")

_LOCAL_SUFFIX = ".local"
_DRIVER_NOTATION_RE = re.compile(r".*\(.*\)")
_PASSTHROUGH_SCHEMES = ("file", "socket", "unix")


class HostnameResolver:
    """
    Hostname Resolver

    Answers forward and reverse queries by composing:
    - A TTL cache with negative entries
    - Unicast DNS (A, AAAA, PTR) with sequential per-server fail-over
    - A multicast DNS fallback for names unicast could not resolve

    Example:
        resolver = HostnameResolver(ResolverConfig(id="app"))
        addrs = await resolver.lookup_host("example.com")
        name = await resolver.lookup_ip("93.184.216.34")
        target = await resolver.resolve("example.com:443")
        await resolver.close()
    """

    def __init__(
        self,
        config: Optional[ResolverConfig] = None,
        *,
        server_config: Optional[ServerConfig] = None,
        cache: Optional[HostCache] = None,
        transport: Optional[DnsTransport] = None,
        multicast: Optional[MulticastTransport] = None,
    ) -> None:
        self._config = merge_config(config)
        self._server_config = server_config or load_server_config(self._config.resolv_conf_path)
        self._cache = cache or HostCache(
            MemoryStore(),
            self._config.default_ttl_seconds,
            self._config.cleanup_interval_seconds,
        )
        self._transport = transport or UdpDnsTransport(
            self._config.dial_timeout_seconds,
            self._config.read_timeout_seconds,
            self._config.write_timeout_seconds,
        )
        self._multicast = multicast
        if self._multicast is None and self._config.multicast_enabled:
            self._multicast = ZeroconfTransport(self._config.multicast_interfaces)
        self._listeners: set[ResolverEventListener] = set()

        # Statistics
        self._unicast_queries = 0
        self._multicast_browses = 0
        self._failures = 0

    @property
    def server_config(self) -> ServerConfig:
        return self._server_config

    @property
    def cache(self) -> HostCache:
        return self._cache

    async def lookup_host(self, host: str) -> list[str]:
        """Resolve a host name to its addresses, using the cache"""
        return await self._timed("LookupHost", host, self._lookup_host(host, True, self._server_config))

    async def lookup_host_no_cache(self, host: str) -> list[str]:
        """Resolve a host name without reading the cache (results are still written)"""
        return await self._timed(
            "LookupHostNoCache", host, self._lookup_host(host, False, self._server_config)
        )

    async def lookup_host_with_servers(
        self,
        host: str,
        servers: Sequence[str],
        attempts: int,
        timeout: int,
    ) -> list[str]:
        """Resolve a host name against the given servers for this call only"""
        config = with_servers(self._server_config, servers, attempts, timeout)
        return await self._timed("LookupHostWithServers", host, self._lookup_host(host, True, config))

    async def _timed(self, operation: str, arg: str, lookup: Awaitable[T]) -> T:
        start = time.monotonic()
        try:
            return await lookup
        finally:
            logger.debug(f"{operation} {arg} took: {time.monotonic() - start:.6f}s")

    async def _lookup_host(
        self,
        host: str,
        use_cache: bool,
        config: ServerConfig,
    ) -> list[str]:
        if not host:
            raise InvalidInputError("empty host name")

        if host == LOCALHOST:
            return list(LOOPBACK_ADDRS)

        if is_valid_ipv4(host) or is_valid_ipv6(host):
            return [host]

        self._emit(ResolverEvent(type="resolve:start", data={"host": host}))

        unicast_error: Exception
        try:
            addrs = await self._query_dns(host, use_cache, config)
            self._emit(ResolverEvent(
                type="resolve:success",
                data={"host": host, "addresses": addrs, "source": "unicast"},
            ))
            return addrs
        except (UnresolvedError, ServerFailureError) as e:
            unicast_error = e
        except InvalidInputError as e:
            self._fail(host, e)
            raise

        multicast = self._multicast
        if multicast is None:
            self._fail(host, unicast_error)
            raise unicast_error

        try:
            addrs = await self._query_mdns(host, multicast)
        except UnresolvedError as e:
            # A cached negative answer is reported as the server failure it was.
            if isinstance(unicast_error, ServerFailureError):
                self._fail(host, unicast_error)
                raise unicast_error from e
            self._fail(host, e)
            raise

        self._emit(ResolverEvent(
            type="resolve:success",
            data={"host": host, "addresses": addrs, "source": "multicast"},
        ))
        return addrs

    async def _query_dns(
        self,
        host: str,
        use_cache: bool,
        config: ServerConfig,
    ) -> list[str]:
        """Unicast layer: cache check, then A and AAAA questions"""
        if use_cache:
            record = await self._cache.get(host)
            if record is not None:
                if record.failed:
                    self._emit(ResolverEvent(type="cache:negative", data={"host": host}))
                    raise ServerFailureError(f"cached failure for {host}")
                self._emit(ResolverEvent(type="cache:hit", data={"host": host}))
                return record.return_addrs()
            self._emit(ResolverEvent(type="cache:miss", data={"host": host}))

        name = fqdn(host)
        addrs: list[str] = []

        for rdtype in (dns.rdatatype.A, dns.rdatatype.AAAA):
            query = dns.message.make_query(name, rdtype)
            label = dns.rdatatype.to_text(rdtype)
            try:
                response = await self._exchange(query, config, f"{label} {host}")
            except TransportError as e:
                logger.debug(f"Lookup addrs {label} {host} fail: {e}")
                continue

            if response.rcode() != dns.rcode.NOERROR:
                logger.debug(
                    f"Lookup addrs {label} {host}: rcode {dns.rcode.to_text(response.rcode())}"
                )
                continue

            for rrset in response.answer:
                if rrset.rdtype == rdtype:
                    addrs.extend(rdata.address for rdata in rrset)

        if not addrs:
            await self._cache.put_servfail(host)
            raise UnresolvedError(f"can't resolve the address {host}")

        await self._cache.put_addresses(host, addrs)
        return addrs

    async def _query_mdns(self, host: str, multicast: MulticastTransport) -> list[str]:
        """Multicast layer: browse the local network for the name"""
        self._multicast_browses += 1
        name = host[: -len(_LOCAL_SUFFIX)] if host.endswith(_LOCAL_SUFFIX) else host
        self._emit(ResolverEvent(type="multicast:start", data={"host": host, "name": name}))

        start = time.monotonic()
        addrs: list[str] = []
        try:
            async for entry in multicast.browse(
                name,
                self._config.multicast_domain,
                self._config.multicast_timeout_seconds,
            ):
                logger.debug(f"mDNS entry: {entry}")
                addrs.extend(entry.addr_v4)
                addrs.extend(entry.addr_v6)
        except TransportError as e:
            logger.debug(f"mDNS browse {name} failed: {e}")
        finally:
            logger.debug(f"mDNS lookupHost {host} took: {time.monotonic() - start:.6f}s")

        self._emit(ResolverEvent(
            type="multicast:result",
            data={"host": host, "addresses": list(addrs)},
        ))

        if not addrs:
            await self._cache.put_servfail(host)
            raise UnresolvedError(f"can't resolve {host}")

        await self._cache.put_addresses(host, addrs)
        return addrs

    async def _exchange(
        self,
        query: dns.message.Message,
        config: ServerConfig,
        label: str,
    ) -> dns.message.Message:
        """
        Fail-over loop: try each server in order, one pass per attempt.

        The first answer without a transport error wins. Every exchange is
        bounded by the configured timeout.
        """
        self._unicast_queries += 1
        port = int(config.port)
        last_error: Optional[TransportError] = None

        for _ in range(max(config.attempts, 1)):
            for server in config.servers:
                try:
                    return await self._exchange_one(query, server, port, config.timeout_seconds)
                except TransportError as e:
                    logger.debug(f"Lookup {label} fail on {server}: {e}")
                    self._emit(ResolverEvent(
                        type="unicast:server_error",
                        data={"query": label, "server": server, "error": str(e)},
                    ))
                    last_error = e

        if last_error is None:
            raise TransportError(f"Lookup {label}: no servers configured")
        raise last_error

    async def _exchange_one(
        self,
        query: dns.message.Message,
        server: str,
        port: int,
        timeout_seconds: float,
    ) -> dns.message.Message:
        try:
            return await asyncio.wait_for(
                self._transport.exchange(query, server, port),
                timeout=timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise TransportError(
                f"exchange with {server}:{port} timed out after {timeout_seconds}s", server
            ) from e

    async def lookup_ip(self, ip: str) -> str:
        """Resolve an IP address to a host name via PTR"""
        return await self._timed("LookupIp", ip, self._lookup_ip(ip))

    async def _lookup_ip(self, ip: str) -> str:
        record = await self._cache.get(ip)
        if record is not None:
            return record.return_ptr()

        if ip in LOOPBACK_ADDRS:
            return LOCALHOST

        if not is_valid_ipv4(ip) and not is_valid_ipv6(ip):
            raise InvalidInputError(f"not a valid ip address: {ip!r}")

        query = dns.message.make_query(reverse_addr_name(ip), dns.rdatatype.PTR)
        try:
            response = await self._exchange(query, self._server_config, f"PTR {ip}")
        except TransportError as e:
            logger.debug(f"Lookup {ip} ptr fail: {e}")
            await self._cache.put_servfail(ip)
            raise UnresolvedError(f"can't resolve {ip}: {e}") from e

        if response.rcode() != dns.rcode.NOERROR:
            await self._cache.put_servfail(ip)
            raise ServerFailureError(
                f"can't resolve {ip}: rcode {dns.rcode.to_text(response.rcode())}"
            )

        for rrset in response.answer:
            for rdata in rrset:
                if isinstance(rdata, dns.rdtypes.ANY.PTR.PTR):
                    name = rdata.target.to_text(omit_final_dot=True)
                    await self._cache.put_ptr(ip, name)
                    return name

        await self._cache.put_servfail(ip)
        raise UnresolvedError(f"no ptr available for {ip}")

    async def resolve(self, hostport: str) -> str:
        """
        Resolve one host name, with an optional port, to one display address.

        Example:
            await resolver.resolve("localhost:8080")  # "127.0.0.1:8080"
        """
        start = time.monotonic()
        try:
            host, port = split_host_port(hostport)

            addrs = await self.lookup_host(host)
            if not addrs:
                raise UnresolvedError(f"host name not resolved: {host}")

            if port:
                return ip_port(addrs[0], port)
            return f"[{addrs[0]}]" if is_valid_ipv6(addrs[0]) else addrs[0]
        finally:
            logger.debug(f"Resolve {hostport} took: {time.monotonic() - start:.6f}s")

    async def resolve_url(self, url: str) -> str:
        """
        Replace the host of a URL with its resolved address.

        Socket, file and driver-style URLs are returned unchanged.
        """
        try:
            parts = urlsplit(url)
        except ValueError as e:
            raise InvalidInputError(f"invalid url {url!r}: {e}") from e
        userinfo, _, hostport = parts.netloc.rpartition("@")

        if parts.scheme in _PASSTHROUGH_SCHEMES:
            return url
        if hostport.startswith("/"):
            return url
        if len(hostport) >= 3 and hostport[1] == ":" and hostport[2] == "/":
            return url
        if _DRIVER_NOTATION_RE.match(hostport):
            return url

        resolved = await self.resolve(hostport)
        netloc = f"{userinfo}@{resolved}" if userinfo else resolved
        return urlunsplit(parts._replace(netloc=netloc))

    async def configure_multicast(self, interfaces: Sequence[str]) -> None:
        """Bind the multicast fallback to the given interface addresses"""
        if not interfaces:
            raise InvalidInputError("invalid interfaces")
        previous = self._multicast
        self._multicast = ZeroconfTransport(interfaces)
        if previous is not None:
            await previous.close()

    async def get_stats(self) -> ResolverStats:
        """Get resolver statistics"""
        return ResolverStats(
            cache=await self._cache.get_stats(),
            unicast_queries=self._unicast_queries,
            multicast_browses=self._multicast_browses,
            failures=self._failures,
        )

    def on(self, listener: ResolverEventListener) -> Callable[[], None]:
        """Subscribe to events"""
        self._listeners.add(listener)
        return lambda: self._listeners.discard(listener)

    def off(self, listener: ResolverEventListener) -> None:
        """Unsubscribe from events"""
        self._listeners.discard(listener)

    def _emit(self, event: ResolverEvent) -> None:
        """Emit an event"""
        for listener in self._listeners:
            try:
                listener(event)
            except Exception:
                # Ignore listener errors
                pass

    def _fail(self, host: str, error: Exception) -> None:
        self._failures += 1
        self._emit(ResolverEvent(
            type="resolve:error",
            data={"host": host, "error": str(error)},
        ))

    async def close(self) -> None:
        """Stop the cache janitor and release transports"""
        self._listeners.clear()
        await self._cache.close()
        await self._transport.close()
        if self._multicast is not None:
            await self._multicast.close()

    async def __aenter__(self) -> "HostnameResolver":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


def create_hostname_resolver(
    config: Optional[ResolverConfig] = None,
    *,
    server_config: Optional[ServerConfig] = None,
    cache: Optional[HostCache] = None,
    transport: Optional[DnsTransport] = None,
    multicast: Optional[MulticastTransport] = None,
) -> HostnameResolver:
    """Factory function to create a hostname resolver"""
    return HostnameResolver(
        config,
        server_config=server_config,
        cache=cache,
        transport=transport,
        multicast=multicast,
    )
