"""Session result types for pycat.

Contains:
- Direction: Which way a directional task moves bytes
- CopyResult: Outcome of one directional copy task
- Outcome: How the session ended
- SessionResult: Result returned by every entry point
"""

from dataclasses import dataclass
from enum import Enum


class Direction(Enum):
    """Direction of a copy task."""

    LOCAL_TO_REMOTE = "local->remote"
    REMOTE_TO_LOCAL = "remote->local"


class Outcome(Enum):
    """How a session ended."""

    COMPLETED = "completed"  # Both directions finished on their own
    TIMED_OUT = "timed out"  # Session timeout fired first
    FAILED = "failed"  # Endpoint could not be acquired


@dataclass
class CopyResult:
    """Result of one directional copy task.

    Attributes:
        direction: Which way the task copied.
        bytes: Total payload bytes moved.
        chunks: Number of reads/datagrams moved.
        dropped: Chunks discarded because no peer was known (UDP listener).
        error: I/O error that ended the task, if any. Never fatal.
        finished: True once the task returned on its own.
    """

    direction: Direction
    bytes: int = 0
    chunks: int = 0
    dropped: int = 0
    error: Exception | None = None
    finished: bool = False

    def record(self, size: int) -> None:
        """Account for one chunk of size bytes."""
        self.chunks += 1
        self.bytes += size


@dataclass
class SessionResult:
    """Result of a session.

    Attributes:
        outcome: COMPLETED, TIMED_OUT or FAILED.
        sent: local->remote copy result (None if the session never started).
        received: remote->local copy result (None if the session never started).
        local: Local endpoint address as text.
        peer: Remote address as text (last sender for a UDP listener).
        elapsed_s: Duration of the data phase in seconds.
        error: Acquire/config error when outcome is FAILED.
    """

    outcome: Outcome
    sent: CopyResult | None = None
    received: CopyResult | None = None
    local: str | None = None
    peer: str | None = None
    elapsed_s: float = 0.0
    error: Exception | None = None

    @property
    def success(self) -> bool:
        """A timed out session is still a successful one."""
        return self.outcome != Outcome.FAILED

    @property
    def timed_out(self) -> bool:
        return self.outcome == Outcome.TIMED_OUT

    @property
    def bytes_sent(self) -> int:
        return self.sent.bytes if self.sent else 0

    @property
    def bytes_received(self) -> int:
        return self.received.bytes if self.received else 0
