from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

from roundtable.agents.base_agent import Agent
from roundtable.config.prompts import get_first_round_prompt, get_followup_round_prompt
from roundtable.errors import ExecutionFailedError
from roundtable.memory.store import TaskContext
from roundtable.orchestration.callbacks import OutputCallback
from roundtable.orchestration.context import RunContext
from roundtable.orchestration.execution import HandOffToken, invoke_agent
from roundtable.orchestration.scoring import agent_capability
from roundtable.orchestration.selector import AgentSelector
from roundtable.orchestration.transcript import RoundResult, Transcript, build_round_input
from roundtable.utils.tracing import trace_block


logger = logging.getLogger(__name__)


class Group:
    """
    A flat set of agents discussing over several rounds.

    Round 0 runs every agent (best capability first); later rounds run the
    top half (plus one) by freshly computed capability. When a selector is
    set and picks someone, that single agent answers the round instead.

    Agents run either serially or "in parallel": one worker per agent, but
    a hand-off token lets only one of them call its agent at a time, in
    ranking order.

    On completion the task memory shared by the agents is cleared. Without
    an explicit `task`, the group adopts the task of the first agent that
    keeps one; agents bound to a different task are rejected.
    """

    def __init__(
        self,
        max_rounds: int = 1,
        *,
        parallel: bool = False,
        callback: Optional[OutputCallback] = None,
        task: Optional[TaskContext] = None,
        selector: Optional[AgentSelector] = None,
        pacing_delay: float = 0.0,
    ) -> None:
        self._max_rounds = max(1, max_rounds)
        self._parallel = parallel
        self._callback = callback
        self._task = task
        self._selector = selector
        self._pacing_delay = max(0.0, pacing_delay)
        self._agents: List[Agent] = []
        self._round_results: Transcript = []
        self._lock = threading.RLock()

    # ---- Registration -------------------------------------------------------

    @property
    def max_rounds(self) -> int:
        return self._max_rounds

    @property
    def parallel(self) -> bool:
        return self._parallel

    @property
    def task(self) -> Optional[TaskContext]:
        return self._task

    @property
    def agents(self) -> List[Agent]:
        with self._lock:
            return list(self._agents)

    @property
    def selector(self) -> Optional[AgentSelector]:
        return self._selector

    def add_agent(self, agent: Agent) -> None:
        with self._lock:
            agent_task = agent.task
            if agent_task is not None:
                if self._task is None:
                    self._task = agent_task
                elif agent_task is not self._task:
                    raise ValueError(
                        f"agent {agent.name} uses task {agent_task.task_id}, "
                        f"but the group runs task {self._task.task_id}"
                    )
            agent.bind_callback(self._callback)
            self._agents.append(agent)

    def set_selector(self, selector: Optional[AgentSelector]) -> None:
        with self._lock:
            self._selector = selector

    # ---- Execution ----------------------------------------------------------

    def execute(self, ctx: RunContext, text: str) -> Transcript:
        """
        Run every round and return one result map per round.

        Raises ExecutionFailedError and returns nothing on failure.
        """
        with self._lock:
            self._round_results = []
            try:
                with trace_block("group.execute", extra={"rounds": self._max_rounds}):
                    results = self._execute_first_round(ctx, text)
                    self._finish_round(0, results)
                    current_input = build_round_input(text, self._round_results)

                    for round_index in range(1, self._max_rounds):
                        results = self._execute_subsequent_round(ctx, current_input, round_index)
                        self._finish_round(round_index, results)
                        current_input = build_round_input(text, self._round_results)

                transcript = [dict(r) for r in self._round_results]
                if self._callback is not None:
                    self._callback.on_all_complete(transcript)
                return transcript
            finally:
                if self._task is not None:
                    self._task.dispose()

    def _finish_round(self, round_index: int, results: RoundResult) -> None:
        self._round_results.append(results)
        if self._callback is not None:
            self._callback.on_round_complete(round_index, dict(results))

    def _execute_selected(self, ctx: RunContext, text: str) -> Optional[RoundResult]:
        if self._selector is None:
            return None
        chosen = self._selector.select_agents(text, list(self._agents), 1)
        if not chosen:
            return None
        agent = chosen[0]
        logger.info("Selector chose %s", agent.name)
        return {agent.name: invoke_agent(agent, ctx, text, self._callback)}

    def _execute_first_round(self, ctx: RunContext, text: str) -> RoundResult:
        selected = self._execute_selected(ctx, text)
        if selected is not None:
            return selected

        prompt = get_first_round_prompt(text) if self._max_rounds > 1 else text
        ordered = self.sort_agents_by_capability(self._agents)
        logger.info("Round 1: %s", ", ".join(a.name for a in ordered))
        return self._run(ctx, ordered, prompt)

    def _execute_subsequent_round(
        self,
        ctx: RunContext,
        text: str,
        round_index: int,
    ) -> RoundResult:
        selected = self._execute_selected(ctx, text)
        if selected is not None:
            return selected

        prompt = get_followup_round_prompt(round_index, text)
        chosen = self.select_top_agents(len(self._agents) // 2 + 1)
        logger.info("Round %d: %s", round_index + 1, ", ".join(a.name for a in chosen))
        return self._run(ctx, chosen, prompt)

    def _run(self, ctx: RunContext, agents: Sequence[Agent], prompt: str) -> RoundResult:
        if self._parallel:
            return self.execute_parallel(ctx, agents, prompt)
        return self.execute_serial(ctx, agents, prompt)

    # ---- Ranking ------------------------------------------------------------

    @staticmethod
    def sort_agents_by_capability(agents: Sequence[Agent]) -> List[Agent]:
        """Descending capability; ties keep the given order."""
        scored = [(agent_capability(agent), agent) for agent in agents]
        scored.sort(key=lambda pair: pair[0], reverse=True)
        for score, agent in scored:
            logger.debug("capability %s = %.3f", agent.name, score)
        return [agent for _, agent in scored]

    def select_top_agents(self, count: int) -> List[Agent]:
        """The `count` best agents by freshly computed capability."""
        with self._lock:
            return self.sort_agents_by_capability(self._agents)[: max(0, count)]

    # ---- Round primitives ---------------------------------------------------

    def execute_serial(
        self,
        ctx: RunContext,
        agents: Sequence[Agent],
        prompt: str,
    ) -> RoundResult:
        results: RoundResult = {}
        for agent in agents:
            results[agent.name] = invoke_agent(agent, ctx, prompt, self._callback)
            self._pace()
        return results

    def execute_parallel(
        self,
        ctx: RunContext,
        agents: Sequence[Agent],
        prompt: str,
    ) -> RoundResult:
        """
        One worker per agent, serialised by a hand-off token in `agents`
        order. Every worker finishes before the round fails; only the first
        reported error is raised and all results are dropped.
        """
        if not agents:
            return {}

        results: RoundResult = {}
        errors: List[ExecutionFailedError] = []
        results_lock = threading.Lock()
        token = HandOffToken()

        def work(turn: int, agent: Agent) -> None:
            with token.hold(turn):
                try:
                    result = invoke_agent(agent, ctx, prompt, self._callback)
                except ExecutionFailedError as exc:
                    with results_lock:
                        errors.append(exc)
                    return
                with results_lock:
                    results[agent.name] = result
                self._pace()

        with ThreadPoolExecutor(
            max_workers=len(agents),
            thread_name_prefix="roundtable-agent",
        ) as pool:
            futures = [pool.submit(work, turn, agent) for turn, agent in enumerate(agents)]
            for future in futures:
                future.result()

        if errors:
            raise errors[0]
        return results

    def _pace(self) -> None:
        if self._pacing_delay > 0:
            time.sleep(self._pacing_delay)
