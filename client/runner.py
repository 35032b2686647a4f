"""Client entry points for pycat.

Contains tcp_client() and udp_client(), which acquire an outward endpoint,
relay local streams over it and return a SessionResult. Transport errors
are reported in the result, never raised.
"""

import logging

from client.connect import tcp_connect, udp_open
from common.address import format_sockaddr, parse_address
from common.connection import AcquireError, Role
from common.io import LocalStreams, close_endpoint, stdio_streams
from common.protocol import DEFAULT_RECV_SIZE, DEFAULT_SEND_SIZE, Transport
from common.report import AcquireReport, progress_level
from session.relay import relay_tcp, relay_udp_client
from session.report import log_outcome
from session.result import Outcome, SessionResult

logger = logging.getLogger(__name__)


def _acquire_failed(transport: Transport, error: AcquireError, verbose: bool) -> SessionResult:
    logger.error(f"{transport.value}: {error}")
    if verbose:
        AcquireReport(acquired=False, transport=transport, role=Role.CLIENT, error=error).print()
    return SessionResult(outcome=Outcome.FAILED, error=error)


def tcp_client(
    host: str,
    port: int,
    timeout_s: float | None = None,
    verbose: bool = False,
    *,
    session_timeout_s: float | None = None,
    streams: LocalStreams | None = None,
    send_size: int = DEFAULT_SEND_SIZE,
    recv_size: int = DEFAULT_RECV_SIZE,
) -> SessionResult:
    """Connect to host:port over TCP and relay local streams until both sides finish.

    Args:
        host: IP literal of the remote (already resolved).
        port: Remote port.
        timeout_s: Bounds the connect and, separately, the whole data phase.
        session_timeout_s: Data phase timeout when it should differ from timeout_s.
        verbose: Emit progress lines and reports on stderr.
        streams: Local input/output, stdin/stdout by default.
        send_size: Max bytes per local read.
        recv_size: Max bytes per socket read.

    Returns:
        SessionResult; outcome FAILED if the connection could not be made.
    """
    level = progress_level(verbose)
    streams = streams or stdio_streams()
    data_timeout_s = timeout_s if session_timeout_s is None else session_timeout_s

    try:
        remote = parse_address(host, port)
        logger.log(level, f"Connecting to {remote}")
        sock = tcp_connect(remote, timeout_s)
    except AcquireError as e:
        return _acquire_failed(Transport.TCP, e, verbose)

    try:
        local = format_sockaddr(sock.getsockname())
        logger.log(level, f"Connected to {remote} from {local}, starting IO copy")
        if verbose:
            AcquireReport(
                acquired=True, transport=Transport.TCP, role=Role.CLIENT,
                local=local, peer=str(remote),
            ).print()

        result = relay_tcp(sock, streams, data_timeout_s, send_size, recv_size)
        result.local = local
        result.peer = str(remote)
        log_outcome(result, data_timeout_s, verbose)
        return result
    finally:
        close_endpoint(sock)


def udp_client(
    host: str,
    port: int,
    timeout_s: float | None = None,
    verbose: bool = False,
    *,
    session_timeout_s: float | None = None,
    streams: LocalStreams | None = None,
    send_size: int = DEFAULT_SEND_SIZE,
    recv_size: int = DEFAULT_RECV_SIZE,
) -> SessionResult:
    """Send local chunks to host:port as datagrams and write every reply locally.

    Each local read becomes one datagram; each datagram received becomes one
    flushed write. Without a timeout the session ends only when both local
    input is exhausted and the socket fails.
    """
    level = progress_level(verbose)
    streams = streams or stdio_streams()
    data_timeout_s = timeout_s if session_timeout_s is None else session_timeout_s

    try:
        remote = parse_address(host, port)
        sock = udp_open(remote)
    except AcquireError as e:
        return _acquire_failed(Transport.UDP, e, verbose)

    try:
        local = format_sockaddr(sock.getsockname())
        logger.log(level, f"udp: bound to {local}, sending to {remote}")
        if verbose:
            AcquireReport(
                acquired=True, transport=Transport.UDP, role=Role.CLIENT,
                local=local, peer=str(remote),
            ).print()

        result = relay_udp_client(sock, remote, streams, data_timeout_s, send_size, recv_size)
        result.local = local
        result.peer = str(remote)
        log_outcome(result, data_timeout_s, verbose)
        return result
    finally:
        close_endpoint(sock)
