"""Client package for pycat.

Contains the outward-connecting role:
- connect: tcp_connect, udp_open
- runner: tcp_client, udp_client entry points
"""

from client.connect import tcp_connect, udp_open
from client.runner import tcp_client, udp_client

__all__ = [
    "tcp_connect",
    "udp_open",
    "tcp_client",
    "udp_client",
]
