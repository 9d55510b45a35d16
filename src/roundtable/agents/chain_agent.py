from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from roundtable.agents.base_agent import Agent
from roundtable.memory.store import TaskContext
from roundtable.orchestration.callbacks import OutputCallback
from roundtable.orchestration.context import RunContext


class ChainAgent(Agent):
    """
    Pipes text through a fixed sequence of agents.

    Each member receives the previous member's output; the whole sequence
    is repeated `max_rounds` times and the last output is returned.
    """

    def __init__(
        self,
        name: str,
        agents: Sequence[Agent],
        *,
        max_rounds: int = 1,
    ) -> None:
        super().__init__()
        if not agents:
            raise ValueError("a chain needs at least one agent")
        self._name = name
        self._agents: List[Agent] = list(agents)
        self._max_rounds = max(1, max_rounds)

    @property
    def name(self) -> str:
        return self._name

    @property
    def members(self) -> List[Agent]:
        return list(self._agents)

    @property
    def capabilities(self) -> Tuple[str, ...]:
        seen: List[str] = []
        for agent in self._agents:
            for tag in agent.capabilities:
                if tag not in seen:
                    seen.append(tag)
        return tuple(seen)

    @property
    def task(self) -> Optional[TaskContext]:
        for agent in self._agents:
            if agent.task is not None:
                return agent.task
        return None

    @property
    def description(self) -> str:
        return " ".join(a.description for a in self._agents if a.description)

    def bind_callback(self, callback: Optional[OutputCallback]) -> None:
        super().bind_callback(callback)
        for agent in self._agents:
            agent.bind_callback(callback)

    def execute(self, ctx: RunContext, text: str) -> str:
        result = text
        for _ in range(self._max_rounds):
            for agent in self._agents:
                ctx.raise_if_cancelled()
                result = agent.execute(ctx, result)
        return result
