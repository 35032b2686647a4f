"""Listener package for pycat.

Contains the listening role:
- accept: tcp_accept, udp_bind
- runner: tcp_listen, udp_listen entry points
"""

from listener.accept import tcp_accept, udp_bind
from listener.runner import tcp_listen, udp_listen

__all__ = [
    "tcp_accept",
    "udp_bind",
    "tcp_listen",
    "udp_listen",
]
