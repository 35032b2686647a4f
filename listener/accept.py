"""Listener-side endpoint acquisition for pycat.

- tcp_accept: Bind, accept exactly one connection, discard the listener
- udp_bind: Bind a datagram socket; peers are discovered from traffic
"""

import logging
import socket
from collections.abc import Callable

from common.address import Address, parse_address
from common.connection import AcquireError, AcquireTimeout
from common.protocol import LISTEN_BACKLOG

logger = logging.getLogger(__name__)

BoundCallback = Callable[[tuple], None]


def _new_socket(local: Address, kind: socket.SocketKind) -> socket.socket:
    try:
        return socket.socket(local.family, kind)
    except OSError as e:
        raise AcquireError(f"cannot create socket for {local}: {e}") from e


def tcp_accept(
    bind_host: str,
    port: int,
    timeout_s: float | None = None,
    on_bound: BoundCallback | None = None,
) -> tuple[socket.socket, tuple]:
    """Accept a single TCP connection on bind_host:port.

    Args:
        bind_host: IP literal to bind (wildcard for all interfaces).
        port: Port to bind, 0 for an ephemeral one.
        timeout_s: Maximum time to wait for the connection.
        on_bound: Called with the bound address before waiting.

    Returns:
        (connected socket, peer address). The listener is closed.

    Raises:
        AcquireTimeout: No connection arrived within timeout_s.
        AcquireError: Bind or accept failed.
    """
    local = parse_address(bind_host, port)
    listener = _new_socket(local, socket.SOCK_STREAM)

    with listener:
        try:
            listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            listener.bind(local.sockaddr)
            listener.listen(LISTEN_BACKLOG)
        except OSError as e:
            raise AcquireError(f"bind to {local} failed: {e}") from e

        bound = listener.getsockname()
        if on_bound is not None:
            on_bound(bound)

        listener.settimeout(timeout_s)
        try:
            conn, peer = listener.accept()
        except TimeoutError as e:
            raise AcquireTimeout(f"accept on {local} timed out after {timeout_s}s") from e
        except OSError as e:
            raise AcquireError(f"accept on {local} failed: {e}") from e

    conn.settimeout(None)
    return conn, peer


def udp_bind(
    bind_host: str,
    port: int,
    on_bound: BoundCallback | None = None,
) -> socket.socket:
    """Bind a UDP socket on bind_host:port.

    Raises AcquireError if the address is invalid or in use.
    """
    local = parse_address(bind_host, port)
    sock = _new_socket(local, socket.SOCK_DGRAM)
    try:
        sock.bind(local.sockaddr)
    except OSError as e:
        sock.close()
        raise AcquireError(f"bind to {local} failed: {e}") from e

    if on_bound is not None:
        on_bound(sock.getsockname())
    return sock
