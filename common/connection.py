"""Session configuration and error types for pycat.

Contains:
- Role: Enum for client/listener role
- ConfigError, AcquireError, AcquireTimeout: Error taxonomy
- SessionConfig: Resolved, immutable session configuration
"""

from dataclasses import dataclass
from enum import Enum

from common.protocol import (
    DEFAULT_BIND_HOST,
    DEFAULT_RECV_SIZE,
    DEFAULT_SEND_SIZE,
    Transport,
)


class Role(Enum):
    """Role of this process in the session."""

    CLIENT = "client"
    LISTENER = "listener"


class ConfigError(Exception):
    """Raised when the session configuration is incomplete or invalid."""

    pass


class AcquireError(Exception):
    """Raised when the endpoint cannot be acquired (connect, bind, accept)."""

    pass


class AcquireTimeout(AcquireError):
    """Raised when connect or accept does not complete within its timeout."""

    pass


@dataclass(frozen=True)
class SessionConfig:
    """Resolved configuration for one session.

    host is an IP literal; name resolution happens before the session starts.
    connect_timeout_s bounds connect/accept only, session_timeout_s bounds
    the data phase only. The CLI sets both from -w.
    """

    transport: Transport
    role: Role
    port: int | None = None
    host: str | None = None  # Client only
    bind_host: str = DEFAULT_BIND_HOST  # Listener only
    connect_timeout_s: float | None = None
    session_timeout_s: float | None = None
    verbose: bool = False
    send_size: int = DEFAULT_SEND_SIZE
    recv_size: int = DEFAULT_RECV_SIZE

    def validate(self) -> None:
        """Check role requirements. Raises ConfigError."""
        if self.port is None:
            raise ConfigError(f"{self.role.value} mode requires a port")
        if not 0 <= self.port <= 65535:
            raise ConfigError(f"port out of range: {self.port}")
        if self.role == Role.CLIENT:
            if not self.host:
                raise ConfigError("destination required in client mode")
            if self.port == 0:
                raise ConfigError("client mode requires a non-zero port")
        for name in ("connect_timeout_s", "session_timeout_s"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ConfigError(f"timeout must be positive, got {value}")
        if self.send_size <= 0 or self.recv_size <= 0:
            raise ConfigError(
                f"buffer lengths must be positive (send={self.send_size}, recv={self.recv_size})"
            )
