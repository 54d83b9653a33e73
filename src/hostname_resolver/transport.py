"""
Unicast DNS transport
"""
import logging
from abc import ABC, abstractmethod

import dns.asyncquery
import dns.exception
import dns.flags
import dns.message
import dns.name
import dns.reversename

from .errors import InvalidInputError, TransportError

logger = logging.getLogger(__name__)


class DnsTransport(ABC):
    """Sends one question to one server"""

    @abstractmethod
    async def exchange(
        self,
        query: dns.message.Message,
        server: str,
        port: int,
    ) -> dns.message.Message:
        """
        Send a query and return the response.

        Raises:
            TransportError: If the server could not be reached or answered garbage.
        """
        pass

    async def close(self) -> None:
        """Release transport resources"""
        pass


class UdpDnsTransport(DnsTransport):
    """
    DNS over UDP, retrying truncated answers over TCP.

    The UDP exchange is bounded by write + read timeouts; the TCP retry
    additionally allows the dial timeout for the connection.
    """

    def __init__(
        self,
        dial_timeout_seconds: float = 10.0,
        read_timeout_seconds: float = 0.5,
        write_timeout_seconds: float = 0.5,
    ) -> None:
        self._dial_timeout = dial_timeout_seconds
        self._read_timeout = read_timeout_seconds
        self._write_timeout = write_timeout_seconds

    async def exchange(
        self,
        query: dns.message.Message,
        server: str,
        port: int,
    ) -> dns.message.Message:
        udp_timeout = self._write_timeout + self._read_timeout
        try:
            response = await dns.asyncquery.udp(query, server, timeout=udp_timeout, port=port)
            if response.flags & dns.flags.TC:
                logger.debug(f"UdpDnsTransport: truncated answer from {server}, retrying over tcp")
                response = await dns.asyncquery.tcp(
                    query,
                    server,
                    timeout=self._dial_timeout + udp_timeout,
                    port=port,
                )
        except (dns.exception.DNSException, OSError) as e:
            raise TransportError(f"exchange with {server}:{port} failed: {e!r}", server) from e
        return response


def fqdn(host: str) -> dns.name.Name:
    """Build the absolute name queried for host"""
    try:
        return dns.name.from_text(host)
    except dns.exception.DNSException as e:
        raise InvalidInputError(f"invalid host name {host!r}: {e}") from e


def reverse_addr_name(ip: str) -> dns.name.Name:
    """Build the in-addr.arpa / ip6.arpa name for an IP literal"""
    try:
        return dns.reversename.from_address(ip)
    except (dns.exception.DNSException, ValueError) as e:
        raise InvalidInputError(f"not a valid ip address: {ip!r}") from e


def create_udp_transport(
    dial_timeout_seconds: float = 10.0,
    read_timeout_seconds: float = 0.5,
    write_timeout_seconds: float = 0.5,
) -> UdpDnsTransport:
    """Create the default DNS transport"""
    return UdpDnsTransport(dial_timeout_seconds, read_timeout_seconds, write_timeout_seconds)
