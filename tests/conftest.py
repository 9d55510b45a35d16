from __future__ import annotations

import threading
import time
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Tuple

import pytest

from roundtable.agents.base_agent import Agent
from roundtable.llm.base_client import ChatMessage, ChatResponse, LLMClient
from roundtable.orchestration.context import RunContext


class FakeAgent(Agent):
    """
    Scriptable agent: records every input and answers with `reply(text)`.

    `log` can be shared between agents to observe global call order.
    """

    def __init__(
        self,
        name: str,
        *,
        capabilities: Sequence[str] = (),
        description: str = "",
        reply: Optional[Callable[[str], str]] = None,
        fail: Optional[Exception] = None,
        delay: float = 0.0,
        log: Optional[List[str]] = None,
        history: Sequence[ChatMessage] = (),
    ) -> None:
        super().__init__()
        self._name = name
        self._capabilities = tuple(capabilities)
        self._description = description
        self._reply = reply or (lambda text: f"{name} says hello")
        self._fail = fail
        self._delay = delay
        self._history = list(history)
        self.log = log if log is not None else []
        self.inputs: List[str] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def capabilities(self) -> Tuple[str, ...]:
        return self._capabilities

    @property
    def description(self) -> str:
        return self._description

    def history(self) -> List[ChatMessage]:
        return list(self._history)

    def execute(self, ctx: RunContext, text: str) -> str:
        self.log.append(self._name)
        self.inputs.append(text)
        if self._delay:
            time.sleep(self._delay)
        if self._fail is not None:
            raise self._fail
        answer = self._reply(text)
        self._emit_content(answer)
        return answer


class FakeLLMClient(LLMClient):
    """
    Returns scripted ChatResponses in order and records every call.
    """

    def __init__(
        self,
        responses: Iterable[ChatResponse] = (),
        *,
        chunks: Sequence[str] = (),
        error: Optional[Exception] = None,
    ) -> None:
        self._responses = list(responses)
        self._chunks = list(chunks)
        self._error = error
        self.calls: List[dict] = []
        self._lock = threading.Lock()

    def _next(self, messages, **kwargs) -> ChatResponse:
        with self._lock:
            self.calls.append({"messages": list(messages), **kwargs})
            if self._error is not None:
                raise self._error
            if not self._responses:
                return ChatResponse(content="default answer")
            return self._responses.pop(0)

    def complete(self, messages, *, model_alias=None, **overrides) -> str:
        return self._next(messages, model_alias=model_alias, **overrides).content

    def chat(self, messages, *, tools=None, model_alias=None, **overrides) -> ChatResponse:
        return self._next(messages, tools=tools, model_alias=model_alias, **overrides)

    def stream(self, messages, *, model_alias=None, **overrides) -> Iterator[str]:
        with self._lock:
            self.calls.append({"messages": list(messages), "stream": True})
        yield from self._chunks


@pytest.fixture
def ctx() -> RunContext:
    return RunContext.background()
