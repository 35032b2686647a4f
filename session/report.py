"""Session reporting for pycat.

Contains:
- SessionReport: Report after the data phase ends
- log_outcome: Progress line (and report) when a session ends
"""

import logging
import sys
from dataclasses import dataclass
from typing import TextIO

from common.report import Report, progress_level
from session.result import CopyResult, Outcome, SessionResult

logger = logging.getLogger(__name__)


def _describe(copy: CopyResult | None) -> str:
    if copy is None:
        return "not started"
    text = f"{copy.bytes} bytes in {copy.chunks} chunks"
    if copy.dropped:
        text += f", {copy.dropped} dropped"
    if copy.error is not None:
        text += f", ended by error: {copy.error}"
    elif not copy.finished:
        text += ", abandoned"
    return text


@dataclass
class SessionReport(Report):
    """Report after a session ends."""

    result: SessionResult

    def print(self, file: TextIO | None = None) -> None:
        """Print the session report."""
        file = sys.stderr if file is None else file
        r = self.result

        if r.outcome == Outcome.FAILED:
            print(f"Session: FAILED ({r.error})", file=file)
            return

        status = "FINISHED" if r.outcome == Outcome.COMPLETED else "TIMED OUT"
        peer = f" with {r.peer}" if r.peer else ""
        print(f"Session: {status}{peer} after {r.elapsed_s:.1f}s", file=file)
        print(f"         sent: {_describe(r.sent)}", file=file)
        print(f"         received: {_describe(r.received)}", file=file)

    def success(self) -> bool:
        """Return True unless the endpoint could not be acquired."""
        return self.result.success


def log_outcome(result: SessionResult, timeout_s: float | None, verbose: bool) -> None:
    """Log how the data phase ended and, when verbose, print the session report."""
    level = progress_level(verbose)
    if result.timed_out:
        logger.log(level, f"Session timed out after {timeout_s}s")
    else:
        logger.log(level, "Session finished")
    if verbose:
        SessionReport(result=result).print()
