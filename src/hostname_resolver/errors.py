"""
Error types for hostname_resolver
"""
from typing import Optional


class HostnameResolverError(Exception):
    """Base class for every error raised by this package."""

    code = "HOSTNAME_RESOLVER_ERROR"


class NotFoundError(HostnameResolverError):
    """Raised by a store when a key is absent."""

    code = "NOT_FOUND"


class DuplicateEntryError(HostnameResolverError):
    """Raised by a store when a key already exists."""

    code = "DUPLICATE_ENTRY"


class IterStop(HostnameResolverError):
    """Raised by a store visitor to end iteration early."""

    code = "ITER_STOP"


class ServerFailureError(HostnameResolverError):
    """No answer could be produced, live or from a cached failure."""

    code = "SERVER_FAILURE"


class InvalidInputError(HostnameResolverError, ValueError):
    """Malformed IP address, host name or port."""

    code = "INVALID_INPUT"


class UnresolvedError(HostnameResolverError):
    """Every resolution layer was exhausted."""

    code = "UNRESOLVED"


class TransportError(HostnameResolverError):
    """Network failure talking to one server."""

    code = "TRANSPORT"

    def __init__(self, message: str, server: Optional[str] = None) -> None:
        super().__init__(message)
        self.server = server
