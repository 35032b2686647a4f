#!/usr/bin/env python3
"""pycat: relay stdin/stdout over a single TCP or UDP session."""

import argparse
import logging
import socket
import sys
from collections.abc import Callable
from enum import IntEnum
from typing import Any

from client.runner import tcp_client, udp_client
from common.address import resolve
from common.connection import AcquireTimeout, ConfigError, Role, SessionConfig
from common.protocol import (
    DEFAULT_BIND_HOST,
    DEFAULT_BIND_HOST_V6,
    DEFAULT_RECV_SIZE,
    DEFAULT_SEND_SIZE,
    Transport,
)
from listener.runner import tcp_listen, udp_listen
from session.result import SessionResult

logger = logging.getLogger("pycat")


class ExitCode(IntEnum):
    """Process exit codes."""

    SUCCESS = 0  # Session finished or timed out
    ACQUIRE_FAILED = 1  # Connect refused, bind in use, accept failed
    CONFIG_ERROR = 2  # Missing/invalid arguments, unresolvable host
    ACQUIRE_TIMEOUT = 3  # Connect or accept timed out
    INTERRUPTED = 130  # Ctrl-C


# Flags accepted for compatibility with OpenBSD netcat but not implemented
_IGNORED_FLAGS = {
    "unix": "-U",
    "zero": "-z",
    "keep_open": "-k",
    "interval": "-i",
    "quit_after": "-q",
    "proxy_proto": "-X",
    "proxy": "-x",
    "proxy_username": "-P",
    "tos": "-T",
    "rtable": "-V",
    "broadcast": "-b",
    "crlf": "-C",
    "debug": "-d",
    "no_delay_ack": "-D",
    "random": "-r",
    "md5sig": "-S",
    "telnet": "-t",
}


def _port(value: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port: {value!r}")
    if not 0 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"port out of range: {port}")
    return port


def _positive(kind: type) -> Callable[[str], Any]:
    def parse(value: str) -> Any:
        try:
            number = kind(value)
        except ValueError:
            raise argparse.ArgumentTypeError(f"invalid value: {value!r}")
        if number <= 0:
            raise argparse.ArgumentTypeError(f"must be positive: {value}")
        return number

    return parse


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pycat",
        description="Relay stdin/stdout over a single TCP or UDP session",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s example.com 80              Connect over TCP
  %(prog)s -l -p 1234                  Accept one TCP connection on port 1234
  %(prog)s -u -l 1234                  Print UDP datagrams arriving on port 1234
  %(prog)s -u -w 5 10.0.0.1 53         UDP session ending after 5 seconds
""",
    )

    family = parser.add_mutually_exclusive_group()
    family.add_argument("-4", dest="ipv4", action="store_true", help="Force IPv4")
    family.add_argument("-6", dest="ipv6", action="store_true", help="Force IPv6")

    parser.add_argument("-u", "--udp", action="store_true", help="Use UDP instead of TCP")
    parser.add_argument("-l", "--listen", action="store_true", help="Listen mode")
    parser.add_argument("-n", "--numeric", action="store_true", help="Do not resolve names (no DNS)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose")
    parser.add_argument(
        "-w",
        "--timeout",
        type=_positive(float),
        help="Timeout in seconds for connect/accept and, separately, for the session",
    )
    parser.add_argument("-s", "--source", help="Address to bind in listen mode")
    parser.add_argument("-p", dest="source_port", type=_port, help="Port to listen on")
    parser.add_argument(
        "-I",
        "--send-length",
        type=_positive(int),
        default=DEFAULT_SEND_SIZE,
        help=f"Bytes per local read / datagram sent (default: {DEFAULT_SEND_SIZE})",
    )
    parser.add_argument(
        "-O",
        "--recv-length",
        type=_positive(int),
        default=DEFAULT_RECV_SIZE,
        help=f"Max bytes per network read (default: {DEFAULT_RECV_SIZE})",
    )

    ignored = parser.add_argument_group("accepted but ignored")
    ignored.add_argument("-U", dest="unix", action="store_true", help="Unix-domain socket")
    ignored.add_argument("-z", dest="zero", action="store_true", help="Zero-I/O mode")
    ignored.add_argument("-k", "--keep-open", action="store_true", help="Keep listening")
    ignored.add_argument("-i", "--interval", type=float, help="Interval between lines")
    ignored.add_argument("-q", "--quit-after", type=int, help="Quit N seconds after EOF")
    ignored.add_argument("-X", "--proxy-protocol", dest="proxy_proto", help="Proxy protocol")
    ignored.add_argument("-x", "--proxy", help="Proxy address")
    ignored.add_argument("-P", "--proxy-user", dest="proxy_username", help="Proxy username")
    ignored.add_argument("-T", "--tos", help="TOS keyword")
    ignored.add_argument("-V", "--rtable", help="Routing table")
    ignored.add_argument("-b", "--broadcast", action="store_true", help="Allow broadcast")
    ignored.add_argument("-C", "--crlf", action="store_true", help="Send CRLF on line-feed")
    ignored.add_argument("-d", "--debug", action="store_true", help="Socket debugging")
    ignored.add_argument("-D", "--no-delay-ack", action="store_true", help="No delayed ack")
    ignored.add_argument("-r", "--random", action="store_true", help="Randomize ports")
    ignored.add_argument("-S", "--md5sig", action="store_true", help="TCP MD5 signatures")
    ignored.add_argument("-t", "--telnet", action="store_true", help="Telnet negotiation")

    parser.add_argument("destination", nargs="?", help="Destination host (bind host with -l)")
    parser.add_argument("port", nargs="?", type=_port, help="Destination port")
    return parser


def _family(args: argparse.Namespace) -> socket.AddressFamily:
    if args.ipv4:
        return socket.AF_INET
    if args.ipv6:
        return socket.AF_INET6
    return socket.AF_UNSPEC


def _warn_ignored(args: argparse.Namespace) -> None:
    for attr, flag in _IGNORED_FLAGS.items():
        value = getattr(args, attr)
        if value is not None and value is not False:
            logger.warning(f"{flag} is not supported and will be ignored")


def build_config(args: argparse.Namespace) -> SessionConfig:
    """Turn parsed arguments into a validated SessionConfig.

    Resolves the destination (or listen address) so the session only ever
    sees IP literals. Raises ConfigError.
    """
    transport = Transport.UDP if args.udp else Transport.TCP
    family = _family(args)
    shared = dict(
        transport=transport,
        connect_timeout_s=args.timeout,
        session_timeout_s=args.timeout,
        verbose=args.verbose,
        send_size=args.send_length,
        recv_size=args.recv_length,
    )

    if args.listen:
        bind_host, port = args.destination, args.port
        if port is None:
            port = args.source_port
            if port is None and bind_host is not None:
                # "-l 1234": a lone positional is the port
                try:
                    port = _port(bind_host)
                except argparse.ArgumentTypeError as e:
                    raise ConfigError(str(e)) from e
                bind_host = None
        bind_host = bind_host or args.source
        if bind_host is not None:
            bind_host = resolve(bind_host, port or 0, family, args.numeric, args.udp)
        else:
            bind_host = DEFAULT_BIND_HOST_V6 if args.ipv6 else DEFAULT_BIND_HOST
        config = SessionConfig(role=Role.LISTENER, port=port, bind_host=bind_host, **shared)
    else:
        if args.source is not None:
            logger.warning("-s is only used in listen mode and will be ignored")
        host = args.destination
        if host is not None and args.port is not None:
            host = resolve(host, args.port, family, args.numeric, args.udp)
        config = SessionConfig(role=Role.CLIENT, host=host, port=args.port, **shared)

    config.validate()
    return config


def run(config: SessionConfig) -> SessionResult:
    """Dispatch a validated config to the matching entry point."""
    options = dict(
        session_timeout_s=config.session_timeout_s,
        send_size=config.send_size,
        recv_size=config.recv_size,
    )
    timeout_s, verbose = config.connect_timeout_s, config.verbose
    match (config.transport, config.role):
        case (Transport.TCP, Role.CLIENT):
            return tcp_client(config.host, config.port, timeout_s, verbose, **options)
        case (Transport.UDP, Role.CLIENT):
            return udp_client(config.host, config.port, timeout_s, verbose, **options)
        case (Transport.TCP, Role.LISTENER):
            return tcp_listen(config.port, timeout_s, verbose, bind_host=config.bind_host, **options)
        case (Transport.UDP, Role.LISTENER):
            return udp_listen(config.port, timeout_s, verbose, bind_host=config.bind_host, **options)
    raise ConfigError(f"unsupported mode: {config.transport.value} {config.role.value}")


def exit_code(result: SessionResult) -> ExitCode:
    """Map a session result to the process exit code."""
    if result.success:
        return ExitCode.SUCCESS
    if isinstance(result.error, AcquireTimeout):
        return ExitCode.ACQUIRE_TIMEOUT
    return ExitCode.ACQUIRE_FAILED


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        stream=sys.stderr,
    )
    _warn_ignored(args)

    try:
        config = build_config(args)
    except ConfigError as e:
        logger.error(f"{e}")
        return ExitCode.CONFIG_ERROR

    try:
        return exit_code(run(config))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return ExitCode.INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
