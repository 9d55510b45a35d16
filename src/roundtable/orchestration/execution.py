from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Generator, Optional

from roundtable.agents.base_agent import Agent
from roundtable.errors import ExecutionFailedError
from roundtable.orchestration.callbacks import OutputCallback
from roundtable.orchestration.context import RunContext


logger = logging.getLogger(__name__)


def invoke_agent(
    agent: Agent,
    ctx: RunContext,
    text: str,
    callback: Optional[OutputCallback] = None,
) -> str:
    """
    Run one agent turn, bracketed by on_start/on_complete.

    Any failure comes back as ExecutionFailedError naming the agent. That
    includes cancellation before the call and cancellation observed once
    the call returns.
    """
    if callback is not None:
        callback.on_start(agent.name)
    try:
        ctx.raise_if_cancelled()
        result = agent.execute(ctx, text)
        # Cancellation while the call was in flight discards its answer.
        ctx.raise_if_cancelled()
        return result
    except ExecutionFailedError:
        raise
    except Exception as exc:
        logger.error("Agent %s failed: %s", agent.name, exc)
        raise ExecutionFailedError(agent.name, exc) from exc
    finally:
        if callback is not None:
            callback.on_complete(agent.name)


class HandOffToken:
    """
    One-slot execution token handed along in a fixed order.

    Turn `n` may only proceed after turn `n - 1` released the token, so
    concurrently launched tasks still invoke their agents strictly one at
    a time, in launch order.
    """

    def __init__(self) -> None:
        self._turn = 0
        self._cond = threading.Condition()

    @contextmanager
    def hold(self, turn: int) -> Generator[None, None, None]:
        with self._cond:
            self._cond.wait_for(lambda: self._turn == turn)
        try:
            yield
        finally:
            with self._cond:
                self._turn += 1
                self._cond.notify_all()
