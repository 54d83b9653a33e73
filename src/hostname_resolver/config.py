"""
Configuration utilities for hostname_resolver
"""
import dataclasses
import logging
import os
from typing import Optional, Sequence

import dns.exception
import dns.resolver

from .errors import InvalidInputError
from .types import ResolverConfig, ServerConfig

logger = logging.getLogger(__name__)


ENV_RESOLV_CONF = "HOSTNAME_RESOLVER_RESOLV_CONF"
ENV_TTL_SECONDS = "HOSTNAME_RESOLVER_TTL_SECONDS"

# Default timeout applied to every server configuration (seconds)
DEFAULT_TIMEOUT_SECONDS = 5

# Used when the resolver file cannot be read
DEFAULT_SERVER_CONFIG = ServerConfig(
    servers=("8.8.8.8", "8.8.4.4"),
    port="53",
    attempts=3,
    ndots=1,
    timeout_seconds=DEFAULT_TIMEOUT_SECONDS,
)

DEFAULT_RESOLVER_CONFIG = ResolverConfig()


def merge_config(config: Optional[ResolverConfig]) -> ResolverConfig:
    """Merge user config with defaults"""
    if config is None:
        return dataclasses.replace(DEFAULT_RESOLVER_CONFIG)
    if not config.resolv_conf_path:
        config.resolv_conf_path = DEFAULT_RESOLVER_CONFIG.resolv_conf_path
    if not config.multicast_domain:
        config.multicast_domain = DEFAULT_RESOLVER_CONFIG.multicast_domain
    if config.default_ttl_seconds <= 0:
        config.default_ttl_seconds = DEFAULT_RESOLVER_CONFIG.default_ttl_seconds
    if config.cleanup_interval_seconds <= 0:
        config.cleanup_interval_seconds = DEFAULT_RESOLVER_CONFIG.cleanup_interval_seconds
    return config


def config_from_env(base: Optional[ResolverConfig] = None) -> ResolverConfig:
    """Apply environment overrides on top of a resolver config"""
    config = merge_config(base)

    path = os.environ.get(ENV_RESOLV_CONF)
    if path:
        logger.debug(f"config_from_env: Using {ENV_RESOLV_CONF}: {path}")
        config.resolv_conf_path = path

    ttl = os.environ.get(ENV_TTL_SECONDS)
    if ttl:
        try:
            config.default_ttl_seconds = float(ttl)
            logger.debug(f"config_from_env: Using {ENV_TTL_SECONDS}: {ttl}")
        except ValueError:
            logger.warning(f"config_from_env: ignoring non-numeric {ENV_TTL_SECONDS}={ttl!r}")

    return config


def _nameserver_address(nameserver: object) -> str:
    # dnspython may hand back plain strings or Nameserver objects
    return str(getattr(nameserver, "address", nameserver))


def load_server_config(path: str) -> ServerConfig:
    """
    Load name servers from a resolv.conf style file.

    Falls back to DEFAULT_SERVER_CONFIG when the file is missing or lists no
    name server. The timeout is always DEFAULT_TIMEOUT_SECONDS.
    """
    try:
        parsed = dns.resolver.Resolver(filename=path, configure=True)
    except (dns.exception.DNSException, OSError) as e:
        logger.error(f"load_server_config: config failed for {path}: {e}")
        return DEFAULT_SERVER_CONFIG

    servers = tuple(_nameserver_address(ns) for ns in parsed.nameservers)
    if not servers:
        logger.error(f"load_server_config: no nameserver in {path}")
        return DEFAULT_SERVER_CONFIG

    ndots = parsed.ndots if parsed.ndots is not None else DEFAULT_SERVER_CONFIG.ndots
    config = ServerConfig(
        servers=servers,
        port=str(parsed.port or DEFAULT_SERVER_CONFIG.port),
        attempts=DEFAULT_SERVER_CONFIG.attempts,
        ndots=ndots,
        timeout_seconds=DEFAULT_TIMEOUT_SECONDS,
    )
    logger.debug(f"load_server_config: loaded {config} from {path}")
    return config


def with_servers(
    base: ServerConfig,
    servers: Sequence[str],
    attempts: int,
    timeout_seconds: int,
) -> ServerConfig:
    """Build a per-call override; ndots and port come from base"""
    if not servers:
        raise InvalidInputError("at least one server is required")
    if attempts < 1:
        raise InvalidInputError(f"attempts must be positive, got {attempts}")
    if timeout_seconds <= 0:
        raise InvalidInputError(f"timeout must be positive, got {timeout_seconds}")
    return dataclasses.replace(
        base,
        servers=tuple(servers),
        attempts=attempts,
        timeout_seconds=timeout_seconds,
    )
