from __future__ import annotations

from typing import Sequence


class RoundtableError(Exception):
    """Base class for every error raised by roundtable."""


class AgentNotFoundError(RoundtableError):
    def __init__(self, name: str) -> None:
        super().__init__(f"agent not found: {name}")
        self.name = name


class InvalidDependencyError(RoundtableError):
    """An edge that can never be valid, e.g. an agent depending on itself."""


class CircularDependencyError(RoundtableError):
    def __init__(self, cycle: Sequence[str]) -> None:
        super().__init__(f"circular dependency detected: {' -> '.join(cycle)}")
        self.cycle = list(cycle)


class ExecutionFailedError(RoundtableError):
    """
    An agent's underlying call failed.

    The original exception is available as `__cause__`.
    """

    def __init__(self, agent_name: str, cause: BaseException) -> None:
        super().__init__(f"agent {agent_name} execution failed: {cause}")
        self.agent_name = agent_name


class ExecutionCancelledError(RoundtableError):
    """The run context was cancelled or its deadline passed."""


class ToolNotFoundError(RoundtableError):
    def __init__(self, name: str) -> None:
        super().__init__(f"tool not found: {name}")
        self.name = name


class InvalidParametersError(RoundtableError):
    """Tool arguments are missing, malformed or of the wrong type."""
