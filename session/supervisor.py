"""Session supervisor for pycat.

Runs the two directional copy tasks as threads and joins them under one
optional session timeout. A timeout ends the wait, not the tasks: anything
still running is abandoned and unblocked by the caller closing the endpoint.
"""

import dataclasses
import logging
import threading
import time
from collections.abc import Callable, Sequence

from common.protocol import POLL_INTERVAL_S
from session.result import CopyResult, Direction, Outcome, SessionResult

logger = logging.getLogger(__name__)

CopyTask = Callable[[CopyResult], None]


class DirectionalTask(threading.Thread):
    """Thread running one copy loop, filling in its CopyResult as it goes."""

    def __init__(self, direction: Direction, copy: CopyTask) -> None:
        super().__init__(name=f"pycat {direction.value}", daemon=True)
        self.result = CopyResult(direction=direction)
        self._copy = copy

    def run(self) -> None:
        try:
            self._copy(self.result)
        finally:
            self.result.finished = True
            logger.debug(
                f"{self.result.direction.value}: done "
                f"({self.result.bytes} bytes in {self.result.chunks} chunks)"
            )


def join_all(threads: Sequence[threading.Thread], timeout_s: float | None) -> bool:
    """Join threads against one shared deadline.

    Returns True if every thread finished, False if the deadline passed first.
    """
    if timeout_s is None:
        for thread in threads:
            thread.join()
        return True

    deadline = time.monotonic() + timeout_s
    for thread in threads:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            break
        thread.join(remaining)
    return not any(thread.is_alive() for thread in threads)


def supervise(
    send: CopyTask,
    receive: CopyTask,
    timeout_s: float | None,
    stop: threading.Event,
) -> SessionResult:
    """Run local->remote and remote->local concurrently until both finish or timeout.

    Args:
        send: Copy loop moving local input to the endpoint.
        receive: Copy loop moving endpoint data to local output.
        timeout_s: Overall session timeout, None to wait indefinitely.
        stop: Set on return so receive loops can exit before the endpoint closes.

    Returns:
        SessionResult with outcome COMPLETED or TIMED_OUT.
    """
    tasks = [
        DirectionalTask(Direction.LOCAL_TO_REMOTE, send),
        DirectionalTask(Direction.REMOTE_TO_LOCAL, receive),
    ]
    start = time.monotonic()
    for task in tasks:
        task.start()

    try:
        finished = join_all(tasks, timeout_s)
    finally:
        stop.set()

    elapsed_s = time.monotonic() - start
    if finished:
        return SessionResult(
            outcome=Outcome.COMPLETED,
            sent=tasks[0].result,
            received=tasks[1].result,
            elapsed_s=elapsed_s,
        )

    # Receive loops exit within one poll interval of stop
    tasks[1].join(2 * POLL_INTERVAL_S)
    pending = ", ".join(t.result.direction.value for t in tasks if t.is_alive())
    logger.debug(f"Session timeout after {elapsed_s:.2f}s, abandoning: {pending}")

    # Abandoned tasks keep updating their own results, not the returned ones
    return SessionResult(
        outcome=Outcome.TIMED_OUT,
        sent=dataclasses.replace(tasks[0].result),
        received=dataclasses.replace(tasks[1].result),
        elapsed_s=elapsed_s,
    )
