from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from roundtable.agents.base_agent import Agent
from roundtable.config.prompts import (
    TOOL_USAGE_FOOTER,
    TOOL_USAGE_HEADER,
    get_expert_system_prompt,
)
from roundtable.errors import InvalidParametersError, RoundtableError
from roundtable.llm.base_client import ChatMessage, LLMClient, ToolCall
from roundtable.memory.store import TaskContext
from roundtable.orchestration.context import RunContext
from roundtable.tools.base import Tool, to_tool_def
from roundtable.tools.registry import ToolRegistry
from roundtable.utils.text import preview


logger = logging.getLogger(__name__)

MAX_TOOL_ITERATIONS = 8


@dataclass(frozen=True)
class ExpertConfig:
    """
    Static configuration for an expert.

    - name: unique label within a discussion ("designer")
    - expertise: capability tag, also used in the prompt ("ui_ux_design")
    - description: free-text self description fed to the prompt and scorer
    - model_alias: which logical model to use (None lets the client pick)
    """
    name: str
    expertise: str
    description: str
    model_alias: Optional[str] = None


class ExpertAgent(Agent):
    """
    LLM-backed domain expert with optional tool use.

    Each call sends: system prompt, the task memory's history, the new user
    input. The input and the final answer are appended to the task memory,
    which is shared by every agent built on the same TaskContext.
    """

    def __init__(
        self,
        config: ExpertConfig,
        llm_client: LLMClient,
        task: TaskContext,
        *,
        stream: bool = False,
        tool_registry: Optional[ToolRegistry] = None,
    ) -> None:
        super().__init__()
        self._config = config
        self._llm = llm_client
        self._task = task
        self._stream = stream
        self._tools = tool_registry if tool_registry is not None else ToolRegistry()
        self._lock = threading.Lock()

    # ---- Public identity properties ----------------------------------------

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def expertise(self) -> str:
        return self._config.expertise

    @property
    def capabilities(self) -> Tuple[str, ...]:
        return (self._config.expertise,)

    @property
    def description(self) -> str:
        return self._config.description

    @property
    def model_alias(self) -> Optional[str]:
        return self._config.model_alias

    @property
    def task(self) -> TaskContext:
        return self._task

    def history(self) -> List[ChatMessage]:
        return self._task.memory.history()

    # ---- Configuration -------------------------------------------------------

    def set_stream_output(self, stream: bool) -> None:
        with self._lock:
            self._stream = stream

    def add_tool(self, tool: Tool) -> None:
        self._tools.register(tool)

    @property
    def tool_registry(self) -> ToolRegistry:
        return self._tools

    @property
    def tools(self) -> List[Tool]:
        return self._tools.tools()

    def clear_task_memory(self) -> None:
        self._task.memory_manager.clear_task(self._task.task_id)

    # ---- Prompt building -----------------------------------------------------

    def build_system_prompt(self) -> str:
        prompt = get_expert_system_prompt(self.expertise, self.description)
        tools = self.tools
        if not tools:
            return prompt

        lines: List[str] = [prompt, "", TOOL_USAGE_HEADER, ""]
        for tool in tools:
            lines.append(f"Tool name: {tool.name}")
            lines.append(f"Description: {tool.description}")
            lines.append("Parameters:")
            for param_name, spec in tool.parameters.items():
                marker = " [required]" if spec.required else ""
                lines.append(f"- {param_name} ({spec.type}){marker}: {spec.description}")
                if spec.enum:
                    lines.append(f"  Allowed values: {', '.join(spec.enum)}")
            lines.append("")
        lines.append(TOOL_USAGE_FOOTER)
        return "\n".join(lines)

    # ---- Core interface: execute ---------------------------------------------

    def execute(self, ctx: RunContext, text: str) -> str:
        ctx.raise_if_cancelled()

        memory = self._task.memory
        messages: List[ChatMessage] = [
            ChatMessage(role="system", content=self.build_system_prompt()),
            *memory.history(),
            ChatMessage(role="user", content=text),
        ]
        memory.append(ChatMessage(role="user", content=text))

        tools = self.tools
        tool_defs = [to_tool_def(t) for t in tools] or None
        parts: List[str] = []

        for _ in range(MAX_TOOL_ITERATIONS):
            ctx.raise_if_cancelled()

            if self._stream and tool_defs is None:
                parts.append(self._stream_answer(ctx, messages))
                break

            response = self._llm.chat(
                messages,
                tools=tool_defs,
                model_alias=self.model_alias,
                **request_deadline(ctx),
            )
            ctx.raise_if_cancelled()
            if not response.tool_calls:
                self._emit_content(response.content)
                parts.append(response.content)
                break

            messages.append(
                ChatMessage(
                    role="assistant",
                    content=response.content,
                    tool_calls=tuple(response.tool_calls),
                )
            )
            for call in response.tool_calls:
                ctx.raise_if_cancelled()
                result = self._run_tool(ctx, call)
                messages.append(
                    ChatMessage(role="tool", content=result, tool_call_id=call.id)
                )
                block = f"\nTool {call.name} result:\n{result}\n"
                self._emit_content(block)
                parts.append(block)
        else:
            raise RoundtableError(
                f"{self.name}: no final answer after {MAX_TOOL_ITERATIONS} tool iterations"
            )

        answer = "".join(parts)
        ctx.raise_if_cancelled()
        if answer:
            memory.append(ChatMessage(role="assistant", content=answer))
        logger.debug("%s answered: %s", self.name, preview(answer))
        return answer

    # ---- Internal helpers ----------------------------------------------------

    def _stream_answer(self, ctx: RunContext, messages: List[ChatMessage]) -> str:
        chunks: List[str] = []
        stream = self._llm.stream(messages, model_alias=self.model_alias, **request_deadline(ctx))
        for chunk in stream:
            ctx.raise_if_cancelled()
            self._emit_content(chunk)
            chunks.append(chunk)
        ctx.raise_if_cancelled()
        return "".join(chunks)

    def _run_tool(self, ctx: RunContext, call: ToolCall) -> str:
        tool = self._tools.get(call.name)

        try:
            params = json.loads(call.arguments or "{}")
        except json.JSONDecodeError as exc:
            raise InvalidParametersError(
                f"tool {call.name}: arguments are not valid JSON: {exc}"
            ) from exc
        if not isinstance(params, dict):
            raise InvalidParametersError(f"tool {call.name}: arguments must be an object")

        logger.info("%s calling tool %s", self.name, call.name)
        return stringify_tool_result(tool.execute(ctx, params))


def request_deadline(ctx: RunContext) -> Dict[str, float]:
    """`timeout` override bounding one model request by the run deadline."""
    remaining = ctx.remaining()
    if remaining is None:
        return {}
    return {"timeout": remaining}


def stringify_tool_result(result: Any) -> str:
    if isinstance(result, str):
        return result
    if isinstance(result, bytes):
        return result.decode("utf-8", errors="replace")
    return json.dumps(result, ensure_ascii=False, indent=2, default=str)
