"""Reporting abstractions for pycat.

Contains:
- Report ABC: Base class for all reports
- AcquireReport: Report after the endpoint is acquired (or not)
- progress_level: Log level for verbose progress lines

Reports are written to stderr; stdout carries session data.
"""

import logging
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TextIO

from common.connection import AcquireTimeout, Role
from common.protocol import Transport


class Report(ABC):
    """Abstract base class for session reports."""

    @abstractmethod
    def print(self, file: TextIO | None = None) -> None:
        """Print the report to file, stderr by default."""
        pass

    @abstractmethod
    def success(self) -> bool:
        """Return True if the report indicates success."""
        pass


@dataclass
class AcquireReport(Report):
    """Report after connect/bind/accept.

    When acquired=True, local is required.
    When acquired=False, error should be set.
    peer is set for TCP sessions and UDP clients.
    """

    acquired: bool
    transport: Transport
    role: Role
    local: str | None = None
    peer: str | None = None
    error: Exception | None = None

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.acquired and self.local is None:
            raise ValueError("local is required when acquired=True")

    def print(self, file: TextIO | None = None) -> None:
        """Print the acquire report."""
        file = sys.stderr if file is None else file
        name = f"{self.transport.value} {self.role.value}"
        if self.acquired:
            peer = f", peer={self.peer}" if self.peer else ""
            print(f"Endpoint: READY ({name}, local={self.local}{peer})", file=file)
        elif isinstance(self.error, AcquireTimeout):
            print(f"Endpoint: TIMED OUT ({name}: {self.error})", file=file)
        else:
            print(f"Endpoint: FAILED ({name}: {self.error})", file=file)

    def success(self) -> bool:
        """Return True if the endpoint was acquired."""
        return self.acquired


def progress_level(verbose: bool) -> int:
    """Log level for progress lines: visible with -v, debug-only otherwise."""
    return logging.INFO if verbose else logging.DEBUG
