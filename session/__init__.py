"""Session relay package for pycat.

This package moves bytes once an endpoint is acquired:
- Relay engines for TCP, UDP client and UDP listener roles
- Peer tracking for the UDP listener
- Supervision of the two directional tasks under one timeout
- Session results and reporting
"""

from session.relay import PeerAddress, relay_tcp, relay_udp_client, relay_udp_listener
from session.report import SessionReport
from session.result import CopyResult, Direction, Outcome, SessionResult
from session.supervisor import join_all, supervise

__all__ = [
    "CopyResult",
    "Direction",
    "Outcome",
    "PeerAddress",
    "SessionReport",
    "SessionResult",
    "join_all",
    "relay_tcp",
    "relay_udp_client",
    "relay_udp_listener",
    "supervise",
]
