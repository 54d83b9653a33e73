"""
Multicast DNS transport for local network name discovery
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import AsyncIterator, Optional, Sequence, Union

from zeroconf import (
    BadTypeInNameException,
    InterfaceChoice,
    IPVersion,
    ServiceStateChange,
    Zeroconf,
)
from zeroconf.asyncio import AsyncServiceBrowser, AsyncServiceInfo, AsyncZeroconf

from .errors import TransportError

logger = logging.getLogger(__name__)

# Time allowed for one discovered service to answer its address query
SERVICE_INFO_TIMEOUT_MS = 3000


@dataclass
class ServiceEntry:
    """A service discovered on the local network"""

    name: str
    """Full service instance name"""

    addr_v4: list[str] = field(default_factory=list)
    """IPv4 addresses of the service"""

    addr_v6: list[str] = field(default_factory=list)
    """IPv6 addresses of the service"""


class MulticastTransport(ABC):
    """Browses the local network for a name"""

    @abstractmethod
    def browse(
        self,
        query_name: str,
        domain: str,
        timeout_seconds: float,
    ) -> AsyncIterator[ServiceEntry]:
        """
        Yield service entries discovered until timeout_seconds have passed.

        Raises:
            TransportError: If the browse could not be started.
        """
        pass

    async def close(self) -> None:
        """Release transport resources"""
        pass


class ZeroconfTransport(MulticastTransport):
    """
    Multicast transport backed by python-zeroconf.

    The AsyncZeroconf instance is created on first browse and kept until close.

    Example:
        transport = ZeroconfTransport(interfaces=["192.168.1.10"])
        async for entry in transport.browse("_http._tcp", "local.", 5.0):
            print(entry.addr_v4)
        await transport.close()
    """

    def __init__(self, interfaces: Optional[Sequence[str]] = None) -> None:
        self._interfaces: Union[InterfaceChoice, list[str]] = (
            list(interfaces) if interfaces else InterfaceChoice.All
        )
        self._aiozc: Optional[AsyncZeroconf] = None

    async def _zeroconf(self) -> AsyncZeroconf:
        if self._aiozc is None:
            try:
                self._aiozc = AsyncZeroconf(interfaces=self._interfaces)
            except OSError as e:
                raise TransportError(f"failed to initialize multicast resolver: {e}") from e
        return self._aiozc

    async def browse(
        self,
        query_name: str,
        domain: str,
        timeout_seconds: float,
    ) -> AsyncIterator[ServiceEntry]:
        aiozc = await self._zeroconf()
        service_type = f"{query_name.rstrip('.')}.{domain.lstrip('.')}"
        if not service_type.endswith("."):
            service_type += "."

        entries: asyncio.Queue[ServiceEntry] = asyncio.Queue()
        pending: set[asyncio.Task] = set()

        def on_service_state_change(
            zeroconf: Zeroconf,
            service_type: str,
            name: str,
            state_change: ServiceStateChange,
        ) -> None:
            if state_change is not ServiceStateChange.Added:
                return
            task = asyncio.ensure_future(_fetch_entry(zeroconf, service_type, name, entries))
            pending.add(task)
            task.add_done_callback(pending.discard)

        try:
            browser = AsyncServiceBrowser(
                aiozc.zeroconf,
                [service_type],
                handlers=[on_service_state_change],
            )
        except (BadTypeInNameException, OSError) as e:
            raise TransportError(f"failed to browse {service_type}: {e}") from e

        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout_seconds
        try:
            while True:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    break
                try:
                    entry = await asyncio.wait_for(entries.get(), timeout=remaining)
                except asyncio.TimeoutError:
                    break
                yield entry
        finally:
            await browser.async_cancel()
            for task in list(pending):
                task.cancel()
            logger.debug(f"ZeroconfTransport: browse {service_type} finished")

    async def close(self) -> None:
        if self._aiozc is not None:
            await self._aiozc.async_close()
            self._aiozc = None


async def _fetch_entry(
    zeroconf: Zeroconf,
    service_type: str,
    name: str,
    entries: "asyncio.Queue[ServiceEntry]",
) -> None:
    info = AsyncServiceInfo(service_type, name)
    if not await info.async_request(zeroconf, SERVICE_INFO_TIMEOUT_MS):
        logger.debug(f"ZeroconfTransport: no answer from {name}")
        return
    entry = ServiceEntry(
        name=name,
        addr_v4=info.parsed_addresses(IPVersion.V4Only),
        addr_v6=info.parsed_addresses(IPVersion.V6Only),
    )
    logger.debug(f"ZeroconfTransport: mDNS entry: {entry}")
    entries.put_nowait(entry)


def create_zeroconf_transport(interfaces: Optional[Sequence[str]] = None) -> ZeroconfTransport:
    """Create the default multicast transport"""
    return ZeroconfTransport(interfaces)
