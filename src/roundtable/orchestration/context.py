from __future__ import annotations

import threading
import time
from typing import Optional

from roundtable.errors import ExecutionCancelledError


class RunContext:
    """
    Cancellation signal and optional deadline for one discussion run.

    The same instance is threaded through every `Agent.execute` call.
    Nothing is interrupted forcibly: agents and schedulers call
    `raise_if_cancelled()` between blocking steps.
    """

    def __init__(self, *, timeout: Optional[float] = None) -> None:
        self._cancelled = threading.Event()
        self._deadline = None if timeout is None else time.monotonic() + timeout

    @classmethod
    def background(cls) -> "RunContext":
        """A context that is never cancelled and has no deadline."""
        return cls()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        if self._cancelled.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def raise_if_cancelled(self) -> None:
        if self._cancelled.is_set():
            raise ExecutionCancelledError("run cancelled")
        if self._deadline is not None and time.monotonic() >= self._deadline:
            raise ExecutionCancelledError("deadline exceeded")
