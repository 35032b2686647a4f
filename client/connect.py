"""Client-side endpoint acquisition for pycat.

- tcp_connect: Outward TCP connection with an optional connect timeout
- udp_open: Ephemeral UDP socket matching the remote's address family
"""

import logging
import socket

from common.address import Address, wildcard_for
from common.connection import AcquireError, AcquireTimeout

logger = logging.getLogger(__name__)


def tcp_connect(remote: Address, timeout_s: float | None = None) -> socket.socket:
    """Connect to remote.

    Returns a connected, blocking socket.
    Raises AcquireTimeout if timeout_s elapses first, AcquireError on
    refusal or any other failure. No retries.
    """
    try:
        sock = socket.create_connection(remote.sockaddr, timeout=timeout_s)
    except TimeoutError as e:
        raise AcquireTimeout(f"connect to {remote} timed out after {timeout_s}s") from e
    except OSError as e:
        raise AcquireError(f"connect to {remote} failed: {e}") from e

    # The connect timeout must not leak into the data phase
    sock.settimeout(None)
    logger.debug(f"Connected {sock.getsockname()} -> {remote}")
    return sock


def udp_open(remote: Address) -> socket.socket:
    """Bind an ephemeral UDP socket of the same family as remote.

    Raises AcquireError if the socket cannot be created or bound.
    """
    local = wildcard_for(remote)
    try:
        sock = socket.socket(remote.family, socket.SOCK_DGRAM)
    except OSError as e:
        raise AcquireError(f"cannot create UDP socket for {remote}: {e}") from e

    try:
        sock.bind(local.sockaddr)
    except OSError as e:
        sock.close()
        raise AcquireError(f"bind to {local} failed: {e}") from e
    return sock
