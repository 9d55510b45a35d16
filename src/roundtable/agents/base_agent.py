from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from roundtable.llm.base_client import ChatMessage
from roundtable.memory.store import TaskContext
from roundtable.orchestration.callbacks import OutputCallback
from roundtable.orchestration.context import RunContext


class Agent(ABC):
    """
    Base class for everything a scheduler can run.

    Responsibilities:
    - hold identity (name, capability tags, description)
    - turn one text input into one text output via `execute`
    - report streamed content through the bound OutputCallback

    It does NOT:
    - know the round structure or other participants
    - decide when it runs; schedulers do that

    `history()` and `description` are what the capability scorer reads;
    agents without a memory simply keep the defaults.
    """

    def __init__(self) -> None:
        self._callback: Optional[OutputCallback] = None

    # ---- Public identity properties ----------------------------------------

    @property
    @abstractmethod
    def name(self) -> str:
        raise NotImplementedError

    @property
    def capabilities(self) -> Tuple[str, ...]:
        return ()

    @property
    def description(self) -> str:
        return ""

    def history(self) -> List[ChatMessage]:
        return []

    @property
    def task(self) -> Optional[TaskContext]:
        """The task whose memory this agent writes to, if it keeps one."""
        return None

    # ---- Callback wiring -----------------------------------------------------

    @property
    def callback(self) -> Optional[OutputCallback]:
        return self._callback

    def bind_callback(self, callback: Optional[OutputCallback]) -> None:
        self._callback = callback

    def _emit_content(self, content: str) -> None:
        if self._callback is not None and content:
            self._callback.on_content(self.name, content)

    # ---- Core interface: execute ---------------------------------------------

    @abstractmethod
    def execute(self, ctx: RunContext, text: str) -> str:
        """
        Produce this agent's answer to `text`.

        Must check `ctx` between blocking steps and raise on failure; the
        scheduler wraps the error with the agent's name.
        """
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
