"""Address handling for pycat.

Contains:
- Address: A pre-resolved (family, sockaddr) pair
- parse_address: Validate an IP literal without any name resolution
- resolve: Resolver used by the CLI before a session starts
- wildcard_for: Ephemeral bind address matching a remote's family
- format_sockaddr: host:port text for a socket-level address tuple
"""

import ipaddress
import logging
import socket
from dataclasses import dataclass

from common.connection import AcquireError, ConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Address:
    """A numeric socket address with its address family."""

    family: socket.AddressFamily
    host: str
    port: int

    @property
    def sockaddr(self) -> tuple[str, int]:
        return (self.host, self.port)

    def __str__(self) -> str:
        if self.family == socket.AF_INET6:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


def parse_address(host: str, port: int) -> Address:
    """Parse an IP literal and port into an Address.

    Raises AcquireError if host is not an IP literal; names must be
    resolved by the caller (see resolve()).
    """
    try:
        ip = ipaddress.ip_address(host.strip("[]"))
    except ValueError as e:
        raise AcquireError(f"invalid remote address '{host}:{port}': {e}") from e
    family = socket.AF_INET6 if ip.version == 6 else socket.AF_INET
    return Address(family=family, host=str(ip), port=port)


def wildcard_for(remote: Address) -> Address:
    """Return the ephemeral wildcard bind address for remote's family."""
    if remote.family == socket.AF_INET6:
        return Address(family=socket.AF_INET6, host="::", port=0)
    return Address(family=socket.AF_INET, host="0.0.0.0", port=0)


def resolve(
    host: str,
    port: int,
    family: socket.AddressFamily = socket.AF_UNSPEC,
    numeric: bool = False,
    udp: bool = False,
) -> str:
    """Resolve host to an IP literal of the requested family.

    Args:
        host: Hostname or IP literal.
        port: Destination port (only used to build the query).
        family: AF_INET / AF_INET6 to force a family, AF_UNSPEC for either.
        numeric: Forbid DNS lookups (-n).
        udp: Query for datagram sockets instead of stream sockets.

    Returns:
        The first matching IP literal.

    Raises:
        ConfigError: If the name cannot be resolved or no address of the
            forced family exists.
    """
    flags = socket.AI_NUMERICHOST if numeric else 0
    socktype = socket.SOCK_DGRAM if udp else socket.SOCK_STREAM
    try:
        infos = socket.getaddrinfo(host, port, family, socktype, 0, flags)
    except socket.gaierror as e:
        if family != socket.AF_UNSPEC:
            raise ConfigError(
                f"cannot resolve '{host}' as {_family_name(family)}: {e}"
            ) from e
        raise ConfigError(f"cannot resolve '{host}': {e}") from e

    if not infos:
        raise ConfigError(f"no addresses found for '{host}'")

    resolved = infos[0][4][0]
    logger.debug(f"Resolved {host} -> {resolved}")
    return resolved


def _family_name(family: socket.AddressFamily) -> str:
    return "IPv6" if family == socket.AF_INET6 else "IPv4"


def format_sockaddr(addr: tuple) -> str:
    """Format a socket address tuple as host:port ([host]:port for IPv6)."""
    host, port = addr[0], addr[1]
    return f"[{host}]:{port}" if ":" in host else f"{host}:{port}"
