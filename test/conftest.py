"""pytest configuration and fixtures for pycat tests.

Provides:
- ChunkedInput: Local input double handing out one queued chunk per read
- CapturedOutput: Local output double recording every write separately
- Background: Run an entry point in a thread and collect its result
- TCP/UDP echo server fixtures on 127.0.0.1
- Markers for unit vs integration tests
"""

import queue
import socket
import threading
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest


class ChunkedInput:
    """Local input double.

    Each read() returns the next pushed chunk (split if larger than size),
    blocking until one is available. After close() every read returns b"".
    """

    def __init__(self, *chunks: bytes, closed: bool = False) -> None:
        self._queue: queue.Queue[bytes | None] = queue.Queue()
        self._pending = b""
        self._cond = threading.Condition()
        self.reads = 0
        for chunk in chunks:
            self.push(chunk)
        if closed:
            self.close()

    def push(self, data: bytes) -> None:
        self._queue.put(data)

    def close(self) -> None:
        self._queue.put(None)

    def read(self, size: int = -1, /) -> bytes:
        if self._pending:
            item: bytes | None = self._pending
            self._pending = b""
        else:
            item = self._queue.get()

        if item is None:
            self._queue.put(None)  # Stay at EOF for later reads
            data = b""
        elif 0 < size < len(item):
            data, self._pending = item[:size], item[size:]
        else:
            data = item

        with self._cond:
            self.reads += 1
            self._cond.notify_all()
        return data

    def wait_reads(self, count: int, timeout: float = 5.0) -> bool:
        """Wait until at least count reads have returned."""
        with self._cond:
            return self._cond.wait_for(lambda: self.reads >= count, timeout)


class CapturedOutput:
    """Local output double. Every write() is kept as its own chunk."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self.chunks: list[bytes] = []
        self.flushes = 0

    def write(self, data: bytes, /) -> int:
        with self._cond:
            self.chunks.append(bytes(data))
            self._cond.notify_all()
        return len(data)

    def flush(self) -> None:
        with self._cond:
            self.flushes += 1

    @property
    def data(self) -> bytes:
        return b"".join(self.chunks)

    def wait_for_bytes(self, count: int, timeout: float = 5.0) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: len(self.data) >= count, timeout)

    def wait_for_chunks(self, count: int, timeout: float = 5.0) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: len(self.chunks) >= count, timeout)


class Background:
    """Run fn(*args, **kwargs) in a daemon thread."""

    def __init__(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        self._result: Any = None
        self._error: BaseException | None = None
        self._thread = threading.Thread(target=self._run, args=(fn, args, kwargs), daemon=True)
        self._thread.start()

    def _run(self, fn: Callable[..., Any], args: tuple, kwargs: dict) -> None:
        try:
            self._result = fn(*args, **kwargs)
        except BaseException as e:
            self._error = e

    def result(self, timeout: float = 10.0) -> Any:
        self._thread.join(timeout)
        if self._thread.is_alive():
            raise TimeoutError(f"background call still running after {timeout}s")
        if self._error is not None:
            raise self._error
        return self._result


class PortWaiter:
    """on_bound callback that hands the bound port to the test thread."""

    def __init__(self) -> None:
        self._ports: queue.Queue[int] = queue.Queue()

    def __call__(self, addr: tuple) -> None:
        self._ports.put(addr[1])

    def port(self, timeout: float = 5.0) -> int:
        return self._ports.get(timeout=timeout)


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test (uses loopback sockets)")


@pytest.fixture
def tcp_echo_server() -> Generator[tuple[str, int], None, None]:
    """Single-connection TCP echo server.

    Echoes everything until the client half-closes, then closes.
    Yields (host, port).
    """
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen(1)
    listener.settimeout(10.0)

    def serve() -> None:
        try:
            conn, _peer = listener.accept()
        except OSError:
            return
        with conn:
            while True:
                data = conn.recv(4096)
                if not data:
                    break
                conn.sendall(data)

    thread = threading.Thread(target=serve, daemon=True)
    thread.start()
    try:
        yield listener.getsockname()
    finally:
        listener.close()
        thread.join(timeout=5)


@pytest.fixture
def udp_echo_server() -> Generator[tuple[str, int], None, None]:
    """UDP echo server returning each datagram to its sender. Yields (host, port)."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.settimeout(0.1)
    running = threading.Event()
    running.set()

    def serve() -> None:
        while running.is_set():
            try:
                data, peer = sock.recvfrom(65536)
            except TimeoutError:
                continue
            except OSError:
                break
            sock.sendto(data, peer)

    thread = threading.Thread(target=serve, daemon=True)
    thread.start()
    try:
        yield sock.getsockname()
    finally:
        running.clear()
        thread.join(timeout=5)
        sock.close()


@pytest.fixture
def udp_peer() -> Generator[Callable[[], socket.socket], None, None]:
    """Factory for bound UDP sockets on 127.0.0.1, closed after the test."""
    created: list[socket.socket] = []

    def make() -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        sock.bind(("127.0.0.1", 0))
        sock.settimeout(5.0)
        created.append(sock)
        return sock

    yield make
    for sock in created:
        sock.close()


@pytest.fixture
def closed_port() -> int:
    """A loopback TCP port with nothing listening on it."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


@pytest.fixture
def script_dir() -> Path:
    """Return path to the project root."""
    return Path(__file__).parent.parent


@pytest.fixture
def netcat_path(script_dir: Path) -> Path:
    """Return path to netcat.py."""
    return script_dir / "netcat.py"
