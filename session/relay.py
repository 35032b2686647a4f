"""Relay engines for pycat.

Contains:
- PeerAddress: Lock-guarded "last sender" for the UDP listener
- relay_tcp: Byte-stream relay over a connected TCP socket
- relay_udp_client: Datagram relay to a fixed remote
- relay_udp_listener: Datagram relay to whoever sent last

Each engine builds its two copy loops and hands them to the supervisor.
Receive loops wait for readability in POLL_INTERVAL_S steps so they can
notice session teardown; send loops block on local input and are abandoned
on timeout.
"""

import logging
import selectors
import socket
import threading

from common.address import Address, format_sockaddr
from common.io import LocalStreams, read_chunk, write_chunk
from common.protocol import POLL_INTERVAL_S, TRACE, LocalReader, LocalWriter
from session.result import CopyResult, SessionResult
from session.supervisor import supervise

logger = logging.getLogger(__name__)

SockAddr = tuple  # (host, port) or (host, port, flowinfo, scope_id)


class PeerAddress:
    """The most recent datagram sender, shared by the listener's two tasks.

    The receive task is the only writer; the send task reads a snapshot
    before every send.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._addr: SockAddr | None = None

    def get(self) -> SockAddr | None:
        with self._lock:
            return self._addr

    def set(self, addr: SockAddr) -> None:
        with self._lock:
            self._addr = addr


def _wait_readable(selector: selectors.BaseSelector, stop: threading.Event) -> bool:
    """Block until the registered socket is readable. False once stop is set."""
    while not stop.is_set():
        if selector.select(POLL_INTERVAL_S):
            return True
    return False


def _record_error(result: CopyResult, error: Exception, stop: threading.Event) -> None:
    result.error = error
    if stop.is_set():
        # Endpoint torn down underneath us
        logger.debug(f"{result.direction.value}: stopped ({error})")
    else:
        logger.warning(f"{result.direction.value}: {error}")


# -----------------------------------------------------------------------------
# TCP
# -----------------------------------------------------------------------------


def _tcp_send_loop(
    sock: socket.socket,
    reader: LocalReader,
    send_size: int,
    stop: threading.Event,
    result: CopyResult,
) -> None:
    """Copy local input to the socket, then half-close the write side."""
    try:
        while True:
            data = read_chunk(reader, send_size)
            if not data:
                break
            sock.sendall(data)
            result.record(len(data))
            logger.log(TRACE, f"tcp: sent {len(data)} bytes")
    except (OSError, ValueError) as e:
        _record_error(result, e, stop)
        return

    logger.debug("tcp: local input exhausted, shutting down write side")
    try:
        sock.shutdown(socket.SHUT_WR)
    except OSError as e:
        logger.debug(f"tcp: half-close failed: {e}")


def _tcp_receive_loop(
    sock: socket.socket,
    writer: LocalWriter,
    recv_size: int,
    stop: threading.Event,
    result: CopyResult,
) -> None:
    """Copy socket data to local output until the peer closes."""
    try:
        with selectors.DefaultSelector() as selector:
            selector.register(sock, selectors.EVENT_READ)
            while _wait_readable(selector, stop):
                data = sock.recv(recv_size)
                if not data:
                    logger.debug("tcp: peer closed its write side")
                    break
                write_chunk(writer, data)
                result.record(len(data))
                logger.log(TRACE, f"tcp: received {len(data)} bytes")
    except (OSError, ValueError) as e:
        _record_error(result, e, stop)


def relay_tcp(
    sock: socket.socket,
    streams: LocalStreams,
    timeout_s: float | None,
    send_size: int,
    recv_size: int,
) -> SessionResult:
    """Relay a connected TCP socket to and from local streams.

    The two directions are independent: local EOF half-closes the socket
    but keeps reading; peer EOF does not stop local input from being sent.
    """
    stop = threading.Event()
    return supervise(
        send=lambda result: _tcp_send_loop(sock, streams.reader, send_size, stop, result),
        receive=lambda result: _tcp_receive_loop(sock, streams.writer, recv_size, stop, result),
        timeout_s=timeout_s,
        stop=stop,
    )


# -----------------------------------------------------------------------------
# UDP
# -----------------------------------------------------------------------------


def _udp_receive_loop(
    sock: socket.socket,
    writer: LocalWriter,
    recv_size: int,
    stop: threading.Event,
    result: CopyResult,
    peer: PeerAddress | None = None,
) -> None:
    """Write each datagram to local output as its own flushed chunk.

    When peer is given, every sender is recorded before its payload is written.
    """
    try:
        with selectors.DefaultSelector() as selector:
            selector.register(sock, selectors.EVENT_READ)
            while _wait_readable(selector, stop):
                data, src = sock.recvfrom(recv_size)
                if peer is not None:
                    peer.set(src)
                write_chunk(writer, data)
                result.record(len(data))
                logger.log(TRACE, f"udp: {len(data)} bytes from {format_sockaddr(src)}")
    except (OSError, ValueError) as e:
        _record_error(result, e, stop)


def _udp_client_send_loop(
    sock: socket.socket,
    reader: LocalReader,
    remote: Address,
    send_size: int,
    stop: threading.Event,
    result: CopyResult,
) -> None:
    """Send each local chunk as one datagram to remote."""
    try:
        while True:
            data = read_chunk(reader, send_size)
            if not data:
                break
            sock.sendto(data, remote.sockaddr)
            result.record(len(data))
            logger.log(TRACE, f"udp: sent {len(data)} bytes to {remote}")
    except (OSError, ValueError) as e:
        _record_error(result, e, stop)
        return
    logger.debug("udp: local input exhausted")


def _udp_listener_send_loop(
    sock: socket.socket,
    reader: LocalReader,
    peer: PeerAddress,
    send_size: int,
    stop: threading.Event,
    result: CopyResult,
) -> None:
    """Send each local chunk to the last known peer; drop it if none yet."""
    try:
        while True:
            data = read_chunk(reader, send_size)
            if not data:
                break
            addr = peer.get()
            if addr is None:
                result.dropped += 1
                logger.log(TRACE, f"udp: no peer yet, dropped {len(data)} bytes")
                continue
            sock.sendto(data, addr)
            result.record(len(data))
            logger.log(TRACE, f"udp: sent {len(data)} bytes to {format_sockaddr(addr)}")
    except (OSError, ValueError) as e:
        _record_error(result, e, stop)
        return
    logger.debug("udp: local input exhausted")


def relay_udp_client(
    sock: socket.socket,
    remote: Address,
    streams: LocalStreams,
    timeout_s: float | None,
    send_size: int,
    recv_size: int,
) -> SessionResult:
    """Relay local chunks to remote as datagrams and print every reply."""
    stop = threading.Event()
    return supervise(
        send=lambda result: _udp_client_send_loop(
            sock, streams.reader, remote, send_size, stop, result
        ),
        receive=lambda result: _udp_receive_loop(sock, streams.writer, recv_size, stop, result),
        timeout_s=timeout_s,
        stop=stop,
    )


def relay_udp_listener(
    sock: socket.socket,
    streams: LocalStreams,
    timeout_s: float | None,
    send_size: int,
    recv_size: int,
) -> SessionResult:
    """Relay datagrams on a bound socket, replying to the most recent sender.

    The returned result's peer is the last sender seen, if any.
    """
    stop = threading.Event()
    peer = PeerAddress()
    result = supervise(
        send=lambda result: _udp_listener_send_loop(
            sock, streams.reader, peer, send_size, stop, result
        ),
        receive=lambda result: _udp_receive_loop(
            sock, streams.writer, recv_size, stop, result, peer=peer
        ),
        timeout_s=timeout_s,
        stop=stop,
    )
    last = peer.get()
    if last is not None:
        result.peer = format_sockaddr(last)
    return result
