"""
IP literal checks and host:port splitting
"""
import ipaddress
import re
from typing import Optional

from .errors import InvalidInputError

_LABEL_RE = re.compile(r"^(?!-)[A-Za-z0-9_-]{1,63}(?<!-)$")
_BRACKETED_RE = re.compile(r"^\[([^\]]+)\](?::([0-9]*))?$")


def is_valid_ipv4(ip: str) -> bool:
    """Check for a dotted-quad IPv4 literal"""
    try:
        ipaddress.IPv4Address(ip)
    except ValueError:
        return False
    return True


def is_valid_ipv6(ip: str) -> bool:
    """Check for an IPv6 literal, with or without surrounding brackets"""
    if ip.startswith("[") and ip.endswith("]"):
        ip = ip[1:-1]
    try:
        ipaddress.IPv6Address(ip)
    except ValueError:
        return False
    return True


def is_valid_domain(host: str) -> bool:
    """Check that every label of a host name is well formed"""
    name = host[:-1] if host.endswith(".") else host
    if not name or len(name) > 253:
        return False
    return all(_LABEL_RE.match(label) for label in name.split("."))


def split_host_port(hostport: str) -> tuple[str, Optional[str]]:
    """
    Split an IPv4, bracketed IPv6 or host name from an optional port.

    Returns:
        (host, port) where port is None when the input carries no port.

    Raises:
        InvalidInputError: If the host or the port is malformed.
    """
    if not hostport:
        raise InvalidInputError("invalid host length")

    if hostport.startswith("["):
        match = _BRACKETED_RE.match(hostport)
        if match is None or not is_valid_ipv6(match.group(1)):
            raise InvalidInputError(f"can't get ip from {hostport!r}")
        host, port = match.group(1), match.group(2)
    elif is_valid_ipv6(hostport):
        return hostport.lower(), None
    else:
        host, _, port = hostport.partition(":")
        if not host:
            raise InvalidInputError(f"can't find the host in {hostport!r}")
        if not is_valid_ipv4(host) and not is_valid_domain(host):
            raise InvalidInputError(f"invalid domain name or ipv4: {host!r}")

    if not port:
        return host.lower(), None

    if not port.isdigit() or int(port) > 65535:
        raise InvalidInputError(f"invalid port number: {port!r}")

    return host.lower(), port


def ip_port(ip: str, port: str) -> str:
    """Join an IP literal and a port, bracketing IPv6"""
    if is_valid_ipv4(ip):
        return f"{ip}:{port}"
    if is_valid_ipv6(ip):
        return f"[{ip}]:{port}"
    raise InvalidInputError(f"invalid ip address: {ip!r}")
