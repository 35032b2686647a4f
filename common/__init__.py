"""Common modules for pycat.

This package contains shared code used by both client and listener:
- protocol: Transport enum, buffer/poll constants, stdio Protocols
- connection: Role, SessionConfig, error taxonomy
- address: Address parsing and the resolver used by the CLI
- io: Local stdio helpers (read_chunk, write_chunk)
- report: Reporting abstractions
"""

from common.address import Address, format_sockaddr, parse_address, resolve, wildcard_for
from common.connection import (
    AcquireError,
    AcquireTimeout,
    ConfigError,
    Role,
    SessionConfig,
)
from common.io import LocalStreams, stdio_streams
from common.protocol import (
    DEFAULT_RECV_SIZE,
    DEFAULT_SEND_SIZE,
    POLL_INTERVAL_S,
    Transport,
)

__all__ = [
    # Protocol
    "Transport",
    "DEFAULT_SEND_SIZE",
    "DEFAULT_RECV_SIZE",
    "POLL_INTERVAL_S",
    # Connection
    "Role",
    "SessionConfig",
    # Address
    "Address",
    "format_sockaddr",
    "parse_address",
    "resolve",
    "wildcard_for",
    # IO
    "LocalStreams",
    "stdio_streams",
    # Exceptions
    "AcquireError",
    "AcquireTimeout",
    "ConfigError",
]
