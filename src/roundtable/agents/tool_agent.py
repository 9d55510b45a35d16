from __future__ import annotations

import json
from typing import Optional, Tuple

from roundtable.agents.base_agent import Agent
from roundtable.agents.expert_agent import stringify_tool_result
from roundtable.errors import InvalidParametersError
from roundtable.orchestration.context import RunContext
from roundtable.tools.base import Tool


class ToolAgent(Agent):
    """
    Runs a single tool directly, without a model in the loop.

    The input text must be a JSON object holding the tool's arguments; the
    output is the tool result as text.
    """

    def __init__(self, tool: Tool, *, name: Optional[str] = None) -> None:
        super().__init__()
        self._tool = tool
        self._name = name or tool.name

    @property
    def name(self) -> str:
        return self._name

    @property
    def capabilities(self) -> Tuple[str, ...]:
        return (self._tool.name,)

    @property
    def description(self) -> str:
        return self._tool.description

    def execute(self, ctx: RunContext, text: str) -> str:
        ctx.raise_if_cancelled()
        try:
            params = json.loads(text)
        except json.JSONDecodeError as exc:
            raise InvalidParametersError(f"{self.name}: input is not valid JSON: {exc}") from exc
        if not isinstance(params, dict):
            raise InvalidParametersError(f"{self.name}: input must be a JSON object")

        result = stringify_tool_result(self._tool.execute(ctx, params))
        self._emit_content(result)
        return result
