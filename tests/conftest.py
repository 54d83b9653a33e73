"""Pytest configuration for hostname_resolver tests."""
import asyncio
import logging
from typing import Optional

import dns.message
import dns.rdataclass
import dns.rdatatype
import dns.rrset
import pytest

from hostname_resolver.cache import HostCache
from hostname_resolver.errors import TransportError
from hostname_resolver.multicast import MulticastTransport, ServiceEntry
from hostname_resolver.resolver import HostnameResolver
from hostname_resolver.stores.memory import MemoryStore
from hostname_resolver.transport import DnsTransport
from hostname_resolver.types import ResolverConfig, ServerConfig

logging.basicConfig(level=logging.DEBUG)


class FakeClock:
    """Manually advanced clock"""

    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeDnsTransport(DnsTransport):
    """Answers queries from tables instead of the network"""

    def __init__(self) -> None:
        self.answers: dict[tuple[str, str], list[str]] = {}
        self.rcodes: dict[tuple[str, str], int] = {}
        self.failing_servers: set[str] = set()
        self.delays: dict[str, float] = {}
        self.calls: list[tuple[str, str, str]] = []
        self.closed = False

    def answer(self, name: str, rdtype: str, *rdatas: str) -> None:
        self.answers[(name, rdtype)] = list(rdatas)

    def rcode(self, name: str, rdtype: str, rcode: int) -> None:
        self.rcodes[(name, rdtype)] = rcode

    async def exchange(
        self,
        query: dns.message.Message,
        server: str,
        port: int,
    ) -> dns.message.Message:
        question = query.question[0]
        name = question.name.to_text(omit_final_dot=True)
        rdtype = dns.rdatatype.to_text(question.rdtype)
        self.calls.append((server, rdtype, name))

        if server in self.delays:
            await asyncio.sleep(self.delays[server])
        if server in self.failing_servers:
            raise TransportError(f"unreachable {server}", server)

        response = dns.message.make_response(query)
        key = (name, rdtype)
        if key in self.rcodes:
            response.set_rcode(self.rcodes[key])
            return response

        rdatas = self.answers.get(key)
        if rdatas:
            response.answer.append(dns.rrset.from_text(
                question.name, 300, dns.rdataclass.IN, question.rdtype, *rdatas
            ))
        return response

    async def close(self) -> None:
        self.closed = True


class FakeMulticastTransport(MulticastTransport):
    """Yields preset service entries"""

    def __init__(
        self,
        entries: Optional[list[ServiceEntry]] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.entries = entries or []
        self.error = error
        self.browses: list[tuple[str, str]] = []
        self.closed = False

    async def browse(self, query_name: str, domain: str, timeout_seconds: float):
        self.browses.append((query_name, domain))
        if self.error is not None:
            raise self.error
        for entry in self.entries:
            yield entry

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def dns_transport() -> FakeDnsTransport:
    return FakeDnsTransport()


@pytest.fixture
def mdns_transport() -> FakeMulticastTransport:
    return FakeMulticastTransport()


@pytest.fixture
def server_config() -> ServerConfig:
    return ServerConfig(
        servers=("10.0.0.1", "10.0.0.2"),
        port="53",
        attempts=1,
        ndots=1,
        timeout_seconds=5,
    )


@pytest.fixture
def make_resolver(clock, dns_transport, server_config):
    """Build resolvers wired to the fake transports"""

    def factory(multicast: Optional[MulticastTransport] = None, **overrides) -> HostnameResolver:
        config = ResolverConfig(
            id="test-resolver",
            default_ttl_seconds=60.0,
            cleanup_interval_seconds=3600.0,
            multicast_enabled=multicast is not None,
            multicast_timeout_seconds=0.1,
        )
        for name, value in overrides.items():
            setattr(config, name, value)
        cache = HostCache(
            MemoryStore(),
            config.default_ttl_seconds,
            config.cleanup_interval_seconds,
            clock,
        )
        return HostnameResolver(
            config,
            server_config=server_config,
            cache=cache,
            transport=dns_transport,
            multicast=multicast,
        )

    return factory
