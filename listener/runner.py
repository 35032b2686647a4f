"""Listener entry points for pycat.

Contains tcp_listen() and udp_listen(). Both serve a single session:
TCP accepts one connection, UDP answers whoever sent the latest datagram.
"""

import logging

from common.address import format_sockaddr
from common.connection import AcquireError, Role
from common.io import LocalStreams, close_endpoint, stdio_streams
from common.protocol import (
    DEFAULT_BIND_HOST,
    DEFAULT_RECV_SIZE,
    DEFAULT_SEND_SIZE,
    Transport,
)
from common.report import AcquireReport, progress_level
from listener.accept import BoundCallback, tcp_accept, udp_bind
from session.relay import relay_tcp, relay_udp_listener
from session.report import log_outcome
from session.result import Outcome, SessionResult

logger = logging.getLogger(__name__)


def _announce(level: int, on_bound: BoundCallback | None) -> BoundCallback:
    """Wrap on_bound so the bound address (not the requested one) is logged."""

    def bound(addr: tuple) -> None:
        logger.log(level, f"Listening on {format_sockaddr(addr)}")
        if on_bound is not None:
            on_bound(addr)

    return bound


def _acquire_failed(transport: Transport, error: AcquireError, verbose: bool) -> SessionResult:
    logger.error(f"{transport.value}: {error}")
    if verbose:
        AcquireReport(acquired=False, transport=transport, role=Role.LISTENER, error=error).print()
    return SessionResult(outcome=Outcome.FAILED, error=error)


def tcp_listen(
    port: int,
    timeout_s: float | None = None,
    verbose: bool = False,
    *,
    session_timeout_s: float | None = None,
    bind_host: str = DEFAULT_BIND_HOST,
    streams: LocalStreams | None = None,
    send_size: int = DEFAULT_SEND_SIZE,
    recv_size: int = DEFAULT_RECV_SIZE,
    on_bound: BoundCallback | None = None,
) -> SessionResult:
    """Accept one TCP connection on port and relay local streams over it.

    Args:
        port: Port to listen on, 0 for ephemeral (see on_bound).
        timeout_s: Bounds the accept and, separately, the whole data phase.
        session_timeout_s: Data phase timeout when it should differ from timeout_s.
        verbose: Emit progress lines and reports on stderr.
        bind_host: IP literal to bind, all IPv4 interfaces by default.
        streams: Local input/output, stdin/stdout by default.
        send_size: Max bytes per local read.
        recv_size: Max bytes per socket read.
        on_bound: Called with the bound address once listening.

    Returns:
        SessionResult; outcome FAILED if bind or accept failed.
    """
    level = progress_level(verbose)
    streams = streams or stdio_streams()
    data_timeout_s = timeout_s if session_timeout_s is None else session_timeout_s

    try:
        sock, peer = tcp_accept(bind_host, port, timeout_s, on_bound=_announce(level, on_bound))
    except AcquireError as e:
        return _acquire_failed(Transport.TCP, e, verbose)

    try:
        local, remote = format_sockaddr(sock.getsockname()), format_sockaddr(peer)
        logger.log(level, f"Accepted connection from {remote}")
        if verbose:
            AcquireReport(
                acquired=True, transport=Transport.TCP, role=Role.LISTENER,
                local=local, peer=remote,
            ).print()

        result = relay_tcp(sock, streams, data_timeout_s, send_size, recv_size)
        result.local = local
        result.peer = remote
        log_outcome(result, data_timeout_s, verbose)
        return result
    finally:
        close_endpoint(sock)


def udp_listen(
    port: int,
    timeout_s: float | None = None,
    verbose: bool = False,
    *,
    session_timeout_s: float | None = None,
    bind_host: str = DEFAULT_BIND_HOST,
    streams: LocalStreams | None = None,
    send_size: int = DEFAULT_SEND_SIZE,
    recv_size: int = DEFAULT_RECV_SIZE,
    on_bound: BoundCallback | None = None,
) -> SessionResult:
    """Bind a UDP port, print incoming datagrams, send local input to the last sender.

    Local input read before any datagram has arrived is dropped.
    """
    level = progress_level(verbose)
    streams = streams or stdio_streams()
    data_timeout_s = timeout_s if session_timeout_s is None else session_timeout_s

    try:
        sock = udp_bind(bind_host, port, on_bound=on_bound)
    except AcquireError as e:
        return _acquire_failed(Transport.UDP, e, verbose)

    try:
        local = format_sockaddr(sock.getsockname())
        logger.log(level, f"udp: listening on {local}")
        if verbose:
            AcquireReport(
                acquired=True, transport=Transport.UDP, role=Role.LISTENER, local=local,
            ).print()

        result = relay_udp_listener(sock, streams, data_timeout_s, send_size, recv_size)
        result.local = local
        log_outcome(result, data_timeout_s, verbose)
        return result
    finally:
        close_endpoint(sock)

