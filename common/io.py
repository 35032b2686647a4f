"""Local stdio and endpoint helpers for pycat.

Contains:
- LocalStreams: The local input/output pair a session relays
- stdio_streams: Process stdin/stdout as binary streams
- read_chunk: Read whatever is available from local input
- write_chunk: Write one chunk to local output and flush
- close_endpoint: Shut down and close a session socket
"""

import logging
import socket
import sys
from dataclasses import dataclass

from common.protocol import LocalReader, LocalWriter

logger = logging.getLogger(__name__)


@dataclass
class LocalStreams:
    """Local side of a session.

    reader is owned by the local->remote task, writer by the
    remote->local task. Neither is shared between tasks.
    """

    reader: LocalReader
    writer: LocalWriter


def stdio_streams() -> LocalStreams:
    """Return the process's stdin/stdout as binary streams.

    stdin is read through its unbuffered raw file so a reader thread that is
    abandoned mid-read holds no buffer lock at interpreter shutdown.
    """
    return LocalStreams(reader=sys.stdin.buffer.raw, writer=sys.stdout.buffer)


def read_chunk(reader: LocalReader, size: int) -> bytes:
    """Read up to size bytes, returning as soon as any data is available.

    Returns b"" at end of input.
    """
    return reader.read(size)


def write_chunk(writer: LocalWriter, data: bytes) -> None:
    """Write data to local output and flush so nothing is held back."""
    writer.write(data)
    writer.flush()


def close_endpoint(sock: socket.socket) -> None:
    """Shut down both directions of sock and close it.

    Shutting down first wakes any thread still blocked on the socket.
    """
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError as e:
        # Already closed by the peer or never connected (UDP)
        logger.debug(f"shutdown: {e}")
    sock.close()
