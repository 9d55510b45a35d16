from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Literal, Mapping, Optional, Tuple

from roundtable.config.settings import ModelConfig


Role = Literal["system", "user", "assistant", "tool"]


@dataclass(frozen=True)
class ToolCall:
    """
    A function call requested by the model.

    `arguments` is kept as the raw JSON string the provider returned; the
    agent decides how to parse it.
    """
    id: str
    name: str
    arguments: str


@dataclass(frozen=True)
class ChatMessage:
    """
    Simple chat message model, independent of any specific LLM provider.

    - tool_calls: set on assistant messages that requested tools
    - tool_call_id: set on "tool" messages answering one of those calls
    """
    role: Role
    content: str = ""
    tool_calls: Tuple[ToolCall, ...] = ()
    tool_call_id: Optional[str] = None


@dataclass
class ChatResponse:
    """
    One assistant turn: either final content, tool calls, or both.
    """
    content: str = ""
    tool_calls: List[ToolCall] = field(default_factory=list)


class LLMClient(ABC):
    """
    Abstract interface for any chat-based LLM client.

    Agents and selectors depend on this interface, not on Groq, Ollama
    or any other concrete SDK.
    """

    @abstractmethod
    def complete(
        self,
        messages: Iterable[ChatMessage],
        *,
        model_alias: Optional[str] = None,
        **overrides,
    ) -> str:
        """
        Non-streaming completion.

        Returns the full assistant message content as a single string.

        `model_alias` is a logical key (e.g. "llama3", "gpt_oss_120b")
        that the concrete client maps to provider-specific model names.
        `overrides` can be used for per-call settings like temperature, etc.
        """
        raise NotImplementedError

    @abstractmethod
    def stream(
        self,
        messages: Iterable[ChatMessage],
        *,
        model_alias: Optional[str] = None,
        **overrides,
    ) -> Iterator[str]:
        """
        Streaming completion.

        Yields chunks of assistant content (strings). The caller is responsible
        for joining them if needed.
        """
        raise NotImplementedError

    def chat(
        self,
        messages: Iterable[ChatMessage],
        *,
        tools: Optional[List[Dict[str, Any]]] = None,
        model_alias: Optional[str] = None,
        **overrides,
    ) -> ChatResponse:
        """
        Single exchange that may come back with tool calls.

        Clients without function calling support fall back to `complete`
        and never report tool calls.
        """
        return ChatResponse(
            content=self.complete(messages, model_alias=model_alias, **overrides),
        )


class ModelAliasClient(LLMClient):
    """
    Shared plumbing for provider clients that address models by alias.

    Subclasses receive the alias table from Settings and resolve a
    per-call alias (or the default one) to its ModelConfig.
    """

    def __init__(self, models: Mapping[str, ModelConfig], default_model_alias: str) -> None:
        self._models = dict(models)
        self._default_model_alias = default_model_alias

    @property
    def default_model_alias(self) -> str:
        return self._default_model_alias

    def resolve_model(self, model_alias: Optional[str]) -> ModelConfig:
        alias = model_alias or self._default_model_alias
        config = self._models.get(alias)
        if config is None:
            raise KeyError(
                f"Unknown model alias '{alias}'. "
                f"Known aliases: {', '.join(sorted(self._models))}"
            )
        return config
