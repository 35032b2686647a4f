"""Integration tests for the four session entry points."""

import logging
import socket
import time

import pytest

from client.runner import tcp_client, udp_client
from common.connection import AcquireError, AcquireTimeout
from common.io import LocalStreams
from conftest import Background, CapturedOutput, ChunkedInput, PortWaiter
from listener.runner import tcp_listen, udp_listen
from session.result import Outcome


@pytest.mark.integration
class TestTcpSessions:
    """tcp_client() / tcp_listen()."""

    def test_listener_receives_client_input(self) -> None:
        """hello_tcp from the client's stdin lands on the listener's stdout."""
        waiter = PortWaiter()
        listener_out = CapturedOutput()
        listening = Background(
            tcp_listen,
            0,
            bind_host="127.0.0.1",
            streams=LocalStreams(ChunkedInput(closed=True), listener_out),
            on_bound=waiter,
        )
        port = waiter.port()

        client_out = CapturedOutput()
        client_result = tcp_client(
            "127.0.0.1",
            port,
            streams=LocalStreams(ChunkedInput(b"hello_tcp", closed=True), client_out),
        )
        listener_result = listening.result()

        assert listener_out.data == b"hello_tcp"
        assert client_out.data == b""
        assert client_result.outcome == Outcome.COMPLETED
        assert listener_result.outcome == Outcome.COMPLETED
        assert listener_result.peer == client_result.local

    def test_echo_round_trip(self, tcp_echo_server: tuple[str, int]) -> None:
        host, port = tcp_echo_server
        payload = b"".join(f"line {i}\n".encode() for i in range(500))
        local_out = CapturedOutput()

        result = tcp_client(
            host,
            port,
            timeout_s=10.0,
            streams=LocalStreams(ChunkedInput(payload[:1000], payload[1000:], closed=True), local_out),
            send_size=333,
        )

        assert result.outcome == Outcome.COMPLETED
        assert local_out.data == payload
        assert result.bytes_sent == result.bytes_received == len(payload)

    def test_session_timeout_is_not_an_error(self) -> None:
        """A silent peer and endless stdin end at the session timeout."""
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as server:
            server.bind(("127.0.0.1", 0))
            server.listen(1)
            host, port = server.getsockname()
            local_in = ChunkedInput()

            start = time.monotonic()
            try:
                result = tcp_client(
                    host, port, timeout_s=0.5, streams=LocalStreams(local_in, CapturedOutput())
                )
            finally:
                local_in.close()
            elapsed = time.monotonic() - start

        assert result.outcome == Outcome.TIMED_OUT
        assert result.success is True
        assert elapsed < 2.0

    def test_separate_session_timeout(self) -> None:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as server:
            server.bind(("127.0.0.1", 0))
            server.listen(1)
            host, port = server.getsockname()
            local_in = ChunkedInput()
            try:
                result = tcp_client(
                    host,
                    port,
                    timeout_s=30.0,
                    session_timeout_s=0.3,
                    streams=LocalStreams(local_in, CapturedOutput()),
                )
            finally:
                local_in.close()

        assert result.outcome == Outcome.TIMED_OUT
        assert result.elapsed_s < 2.0

    def test_refused_connect_fails(self, closed_port: int) -> None:
        result = tcp_client(
            "127.0.0.1",
            closed_port,
            streams=LocalStreams(ChunkedInput(closed=True), CapturedOutput()),
        )
        assert result.outcome == Outcome.FAILED
        assert isinstance(result.error, AcquireError)
        assert not isinstance(result.error, AcquireTimeout)
        assert result.sent is None

    def test_unresolved_host_fails(self) -> None:
        result = tcp_client(
            "localhost.invalid",
            80,
            streams=LocalStreams(ChunkedInput(closed=True), CapturedOutput()),
        )
        assert result.outcome == Outcome.FAILED
        assert "invalid remote address" in str(result.error)

    def test_accept_timeout_fails(self) -> None:
        start = time.monotonic()
        result = tcp_listen(
            0,
            timeout_s=0.3,
            bind_host="127.0.0.1",
            streams=LocalStreams(ChunkedInput(closed=True), CapturedOutput()),
        )
        assert result.outcome == Outcome.FAILED
        assert isinstance(result.error, AcquireTimeout)
        assert time.monotonic() - start < 2.0

    def test_listening_line_shows_bound_port(self, caplog: pytest.LogCaptureFixture) -> None:
        """An ephemeral bind is announced with the port actually bound."""
        caplog.set_level(logging.DEBUG, logger="listener.runner")
        waiter = PortWaiter()
        tcp_listen(
            0,
            timeout_s=0.3,
            bind_host="127.0.0.1",
            streams=LocalStreams(ChunkedInput(closed=True), CapturedOutput()),
            on_bound=waiter,
        )
        port = waiter.port()
        assert port != 0
        assert f"Listening on 127.0.0.1:{port}" in caplog.messages
        assert "Listening on 127.0.0.1:0" not in caplog.messages

    def test_verbose_reports_on_stderr(
        self, tcp_echo_server: tuple[str, int], capsys: pytest.CaptureFixture[str]
    ) -> None:
        host, port = tcp_echo_server
        tcp_client(
            host,
            port,
            verbose=True,
            streams=LocalStreams(ChunkedInput(b"ping", closed=True), CapturedOutput()),
        )
        captured = capsys.readouterr()
        assert "Endpoint: READY (tcp client" in captured.err
        assert "Session: FINISHED" in captured.err
        assert captured.out == ""


@pytest.mark.integration
class TestUdpSessions:
    """udp_client() / udp_listen()."""

    def test_client_echo(self, udp_echo_server: tuple[str, int]) -> None:
        """hello_udp comes back from an echo server as exactly one chunk."""
        host, port = udp_echo_server
        local_out = CapturedOutput()

        result = udp_client(
            host,
            port,
            timeout_s=0.5,
            streams=LocalStreams(ChunkedInput(b"hello_udp", closed=True), local_out),
        )

        assert local_out.chunks == [b"hello_udp"]
        assert result.outcome == Outcome.TIMED_OUT
        assert result.success is True
        assert result.peer == f"{host}:{port}"

    def test_client_rejects_hostname(self) -> None:
        result = udp_client(
            "example.com",
            53,
            streams=LocalStreams(ChunkedInput(closed=True), CapturedOutput()),
        )
        assert result.outcome == Outcome.FAILED
        assert "invalid remote address" in str(result.error)

    def test_listener_talks_to_client(self) -> None:
        waiter = PortWaiter()
        listener_in = ChunkedInput()
        listener_out = CapturedOutput()
        listening = Background(
            udp_listen,
            0,
            timeout_s=2.0,
            bind_host="127.0.0.1",
            streams=LocalStreams(listener_in, listener_out),
            on_bound=waiter,
        )
        port = waiter.port()

        client_in = ChunkedInput(b"ping")
        client_out = CapturedOutput()
        client = Background(
            udp_client, "127.0.0.1", port, timeout_s=2.0,
            streams=LocalStreams(client_in, client_out),
        )

        assert listener_out.wait_for_chunks(1)
        listener_in.push(b"pong")
        assert client_out.wait_for_chunks(1)

        client_in.close()
        listener_in.close()
        client_result = client.result()
        listener_result = listening.result()

        assert listener_out.chunks == [b"ping"]
        assert client_out.chunks == [b"pong"]
        assert listener_result.peer == client_result.local.replace("0.0.0.0", "127.0.0.1")

    def test_listener_bind_in_use(self) -> None:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as taken:
            taken.bind(("127.0.0.1", 0))
            port = taken.getsockname()[1]
            result = udp_listen(
                port,
                bind_host="127.0.0.1",
                streams=LocalStreams(ChunkedInput(closed=True), CapturedOutput()),
            )
        assert result.outcome == Outcome.FAILED
        assert isinstance(result.error, AcquireError)
