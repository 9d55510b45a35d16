from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from roundtable.agents.base_agent import Agent
from roundtable.config.prompts import get_first_round_prompt, get_followup_round_prompt
from roundtable.errors import (
    AgentNotFoundError,
    CircularDependencyError,
    InvalidDependencyError,
)
from roundtable.orchestration.callbacks import OutputCallback
from roundtable.orchestration.context import RunContext
from roundtable.orchestration.execution import invoke_agent
from roundtable.orchestration.scoring import agent_capability, relevance
from roundtable.orchestration.transcript import RoundResult, Transcript, build_round_input
from roundtable.utils.tracing import trace_block


logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Node:
    """
    One agent in the graph.

    - dependencies: names of agents that must answer first in round 0
    - capability: ranking score, blended with relevance after every later
      round the node takes part in
    - visited: set during one round-0 traversal
    """
    agent: Agent
    dependencies: List[str] = field(default_factory=list)
    capability: float = 0.5
    visited: bool = False

    @property
    def name(self) -> str:
        return self.agent.name


class DependencyGraph:
    """
    Runs agents connected by "depends on" edges over several rounds.

    Round 0 visits every node once, dependencies first. When no edge exists
    at all, nodes go in descending capability order. Every later round picks
    the top half (plus one) of the nodes by capability, runs them serially on
    the topic plus the full transcript so far, and re-scores each one.

    The first failing agent aborts the whole run.
    """

    def __init__(
        self,
        max_rounds: int = 1,
        callback: Optional[OutputCallback] = None,
    ) -> None:
        self._max_rounds = max(1, max_rounds)
        self._callback = callback
        self._nodes: Dict[str, Node] = {}
        self._round_results: Transcript = []
        self._lock = threading.RLock()

    # ---- Registration -------------------------------------------------------

    @property
    def max_rounds(self) -> int:
        return self._max_rounds

    def add_agent(self, agent: Agent) -> None:
        """Register `agent`; an existing node with the same name is replaced."""
        capability = agent_capability(agent)
        with self._lock:
            if agent.name in self._nodes:
                logger.warning("Replacing agent %s in dependency graph", agent.name)
            self._nodes[agent.name] = Node(agent=agent, capability=capability)
        logger.debug("Added %s with capability %.3f", agent.name, capability)

    def add_dependency(self, dependent: str, dependency: str) -> None:
        """
        Make `dependent` wait for `dependency` in round 0.

        Re-adding an existing edge is a no-op. An edge that would close a
        cycle is rejected with CircularDependencyError.
        """
        with self._lock:
            node = self._nodes.get(dependent)
            if node is None:
                raise AgentNotFoundError(dependent)
            if dependency not in self._nodes:
                raise AgentNotFoundError(dependency)
            if dependent == dependency:
                raise InvalidDependencyError(f"agent {dependent} cannot depend on itself")
            if dependency in node.dependencies:
                return

            path = self._find_path(dependency, dependent)
            if path is not None:
                raise CircularDependencyError([dependent, *path])

            node.dependencies.append(dependency)

    def _find_path(self, start: str, target: str) -> Optional[List[str]]:
        """Dependency path from `start` down to `target`, if any."""
        seen: Set[str] = set()

        def walk(name: str) -> Optional[List[str]]:
            if name == target:
                return [name]
            if name in seen:
                return None
            seen.add(name)
            for dep in self._nodes[name].dependencies:
                rest = walk(dep)
                if rest is not None:
                    return [name, *rest]
            return None

        return walk(start)

    # ---- Introspection ------------------------------------------------------

    def capability_of(self, name: str) -> float:
        with self._lock:
            node = self._nodes.get(name)
            if node is None:
                raise AgentNotFoundError(name)
            return node.capability

    def dependencies_of(self, name: str) -> List[str]:
        with self._lock:
            node = self._nodes.get(name)
            if node is None:
                raise AgentNotFoundError(name)
            return list(node.dependencies)

    @property
    def agent_names(self) -> List[str]:
        with self._lock:
            return list(self._nodes)

    def has_any_dependencies(self) -> bool:
        with self._lock:
            return any(node.dependencies for node in self._nodes.values())

    def sorted_nodes(self) -> List[Node]:
        """All nodes by descending capability; ties keep registration order."""
        with self._lock:
            return sorted(self._nodes.values(), key=lambda n: n.capability, reverse=True)

    # ---- Execution ----------------------------------------------------------

    def execute(self, ctx: RunContext, text: str) -> Transcript:
        """
        Run every round and return one result map per round.

        Raises ExecutionFailedError (or CircularDependencyError) and returns
        nothing on failure.
        """
        with self._lock:
            for node in self._nodes.values():
                node.agent.bind_callback(self._callback)
            self._round_results = []

            with trace_block("dependency_graph.execute", extra={"rounds": self._max_rounds}):
                self._round_results.append(self._execute_first_round(ctx, text))
                current_input = build_round_input(text, self._round_results)

                for round_index in range(1, self._max_rounds):
                    results = self._execute_subsequent_round(ctx, current_input, round_index)
                    self._round_results.append(results)
                    current_input = build_round_input(text, self._round_results)

            transcript = [dict(results) for results in self._round_results]

        if self._callback is not None:
            self._callback.on_all_complete(transcript)
        return transcript

    def _execute_first_round(self, ctx: RunContext, text: str) -> RoundResult:
        prompt = get_first_round_prompt(text) if self._max_rounds > 1 else text
        results: RoundResult = {}
        active: List[str] = []

        for node in self._nodes.values():
            node.visited = False

        def visit(node: Node) -> None:
            if node.visited:
                return
            if node.name in active:
                raise CircularDependencyError([*active[active.index(node.name):], node.name])

            active.append(node.name)
            for dep in node.dependencies:
                visit(self._nodes[dep])
            results[node.name] = invoke_agent(node.agent, ctx, prompt, self._callback)
            node.visited = True
            active.pop()

        if self.has_any_dependencies():
            order = list(self._nodes.values())
        else:
            order = self.sorted_nodes()

        logger.info("Round 1: %d agents", len(order))
        with trace_block("dependency_graph.round", extra={"round": 0}):
            for node in order:
                visit(node)

        if self._callback is not None:
            self._callback.on_round_complete(0, dict(results))
        return results

    def _execute_subsequent_round(
        self,
        ctx: RunContext,
        text: str,
        round_index: int,
    ) -> RoundResult:
        results: RoundResult = {}
        ranked = self.sorted_nodes()
        selected = ranked[: len(ranked) // 2 + 1]
        prompt = get_followup_round_prompt(round_index, text)

        logger.info(
            "Round %d: %s", round_index + 1, ", ".join(node.name for node in selected)
        )
        with trace_block("dependency_graph.round", extra={"round": round_index}):
            for node in selected:
                result = invoke_agent(node.agent, ctx, prompt, self._callback)
                results[node.name] = result
                self._update_capability(node, prompt, result)

        if self._callback is not None:
            self._callback.on_round_complete(round_index, dict(results))
        return results

    def _update_capability(self, node: Node, prompt: str, output: str) -> None:
        score = relevance(prompt, output)
        node.capability = (node.capability + score) / 2
        logger.debug(
            "%s capability -> %.3f (relevance %.3f)", node.name, node.capability, score
        )
