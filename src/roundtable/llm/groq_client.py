from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

from groq import Groq  # type: ignore

from roundtable.config.settings import ModelConfig, Settings
from roundtable.llm.base_client import ChatMessage, ChatResponse, ModelAliasClient, ToolCall


logger = logging.getLogger(__name__)


def _groq_message(message: ChatMessage) -> Dict[str, Any]:
    item: Dict[str, Any] = {"role": message.role, "content": message.content}
    if message.tool_calls:
        item["tool_calls"] = [
            {
                "id": call.id,
                "type": "function",
                "function": {"name": call.name, "arguments": call.arguments},
            }
            for call in message.tool_calls
        ]
    if message.tool_call_id is not None:
        item["tool_call_id"] = message.tool_call_id
    return item


class GroqLLMClient(ModelAliasClient):
    """
    LLMClient backed by Groq's OpenAI-compatible chat completions API.

    Function calling is passed through unchanged: tool definitions go out
    as `tools`, requested calls come back as ToolCall with the raw JSON
    argument string.
    """

    def __init__(
        self,
        *,
        api_key: str,
        models: Mapping[str, ModelConfig],
        default_model_alias: str,
    ) -> None:
        super().__init__(models, default_model_alias)
        self._client = Groq(api_key=api_key)

    @classmethod
    def from_settings(cls, settings: Settings) -> "GroqLLMClient":
        return cls(
            api_key=settings.groq_api_key or "",
            models=settings.models,
            default_model_alias=settings.default_model_alias,
        )

    def _request(
        self,
        messages: Iterable[ChatMessage],
        model_alias: Optional[str],
        overrides: Mapping[str, Any],
        *,
        stream: bool,
    ) -> Dict[str, Any]:
        cfg = self.resolve_model(model_alias)
        request: Dict[str, Any] = {
            "model": cfg.name,
            "messages": [_groq_message(m) for m in messages],
            "temperature": cfg.temperature,
            "top_p": cfg.top_p,
            "max_completion_tokens": cfg.max_completion_tokens,
            "stream": stream,
        }
        if cfg.reasoning_effort is not None:
            request["reasoning_effort"] = cfg.reasoning_effort
        # Groq accepts the OpenAI parameter names and a per-request `timeout`,
        # so overrides go in as-is.
        request.update(overrides)
        return request

    # ---- LLMClient implementation -------------------------------------------

    def complete(
        self,
        messages: Iterable[ChatMessage],
        *,
        model_alias: Optional[str] = None,
        **overrides: Any,
    ) -> str:
        return self.chat(messages, model_alias=model_alias, **overrides).content

    def chat(
        self,
        messages: Iterable[ChatMessage],
        *,
        tools: Optional[List[Dict[str, Any]]] = None,
        model_alias: Optional[str] = None,
        **overrides: Any,
    ) -> ChatResponse:
        request = self._request(messages, model_alias, overrides, stream=False)
        if tools:
            request["tools"] = tools

        completion = self._client.chat.completions.create(**request)
        if not completion.choices:
            logger.warning("Groq returned no choices for model %s", request["model"])
            return ChatResponse()

        # Only the first choice is used.
        reply = completion.choices[0].message
        return ChatResponse(
            content=reply.content or "",
            tool_calls=[
                ToolCall(
                    id=call.id,
                    name=call.function.name,
                    arguments=call.function.arguments or "",
                )
                for call in reply.tool_calls or []
            ],
        )

    def stream(
        self,
        messages: Iterable[ChatMessage],
        *,
        model_alias: Optional[str] = None,
        **overrides: Any,
    ) -> Iterator[str]:
        """Yield `delta.content` pieces as Groq sends them."""
        request = self._request(messages, model_alias, overrides, stream=True)
        for chunk in self._client.chat.completions.create(**request):
            if chunk.choices and chunk.choices[0].delta.content:
                yield chunk.choices[0].delta.content
