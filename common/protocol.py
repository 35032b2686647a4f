"""Protocol definitions for pycat.

Contains:
- Transport enum for the supported transports
- LocalReader / LocalWriter Protocols for stdio-like streams
- Buffer size and polling constants
- Logging configuration
"""

import logging
import os
from enum import Enum
from typing import Protocol

# TRACE logging level (below DEBUG)
TRACE = 5
logging.addLevelName(TRACE, "TRACE")


class Transport(Enum):
    """Transport used for the session."""

    TCP = "tcp"
    UDP = "udp"


class LocalReader(Protocol):
    """Protocol for the local input stream (stdin side).

    read() returns as soon as any input is available, b"" at end of input.
    """

    def read(self, size: int = ..., /) -> bytes: ...


class LocalWriter(Protocol):
    """Protocol for the local output stream (stdout side)."""

    def write(self, data: bytes, /) -> int | None: ...
    def flush(self) -> None: ...


# Chunk sizes (configurable via envvar)
DEFAULT_SEND_SIZE = int(os.environ.get("PYCAT_SEND_SIZE", "8192"))  # Local read chunk
DEFAULT_RECV_SIZE = int(os.environ.get("PYCAT_RECV_SIZE", "65536"))  # Max datagram/stream read

# Receive loops wake up this often to check for session teardown
POLL_INTERVAL_S = 0.2

# Listener defaults
DEFAULT_BIND_HOST = "0.0.0.0"
DEFAULT_BIND_HOST_V6 = "::"
LISTEN_BACKLOG = 1
