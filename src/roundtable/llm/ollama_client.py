from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

from ollama import Client  # type: ignore

from roundtable.config.settings import ModelConfig, Settings
from roundtable.llm.base_client import ChatMessage, ChatResponse, ModelAliasClient, ToolCall


logger = logging.getLogger(__name__)

# Per-call overrides that Ollama expects inside `options`, by incoming name.
_OPTION_NAMES = {
    "temperature": "temperature",
    "top_p": "top_p",
    "max_completion_tokens": "num_predict",
    "num_predict": "num_predict",
}

# Overrides accepted at the top level of the chat request.
_REQUEST_KEYS = ("format", "keep_alive", "tools")


def _ollama_message(message: ChatMessage) -> Dict[str, Any]:
    item: Dict[str, Any] = {"role": message.role, "content": message.content}
    if message.tool_calls:
        # Ollama wants decoded argument objects, not JSON strings.
        item["tool_calls"] = [
            {"function": {"name": call.name, "arguments": json.loads(call.arguments or "{}")}}
            for call in message.tool_calls
        ]
    return item


def _tool_calls(message: Mapping[str, Any]) -> List[ToolCall]:
    calls: List[ToolCall] = []
    for idx, call in enumerate(message.get("tool_calls") or []):
        function = call.get("function") or {}
        arguments = function.get("arguments") or {}
        if not isinstance(arguments, str):
            arguments = json.dumps(dict(arguments))
        # Ollama assigns no call ids.
        calls.append(ToolCall(id=f"call_{idx}", name=function.get("name") or "", arguments=arguments))
    return calls


class OllamaLLMClient(ModelAliasClient):
    """
    LLMClient talking to a local or remote Ollama server.

    Sampling settings travel in Ollama's `options` block; tool calls come
    back with decoded arguments and are re-encoded to JSON strings.
    """

    def __init__(
        self,
        *,
        host: str,
        models: Mapping[str, ModelConfig],
        default_model_alias: str,
    ) -> None:
        super().__init__(models, default_model_alias)
        self._host = host
        self._client = Client(host=host)

    @classmethod
    def from_settings(cls, settings: Settings) -> "OllamaLLMClient":
        return cls(
            host=settings.ollama_host,
            models=settings.models,
            default_model_alias=settings.default_model_alias,
        )

    def _client_for(self, overrides: Mapping[str, Any]) -> Any:
        """
        The shared client, or a one-off client when the call carries a
        `timeout`. Ollama only takes timeouts at construction.
        """
        timeout = overrides.get("timeout")
        if timeout is None:
            return self._client
        return Client(host=self._host, timeout=timeout)

    def _request(
        self,
        messages: Iterable[ChatMessage],
        model_alias: Optional[str],
        overrides: Mapping[str, Any],
        *,
        stream: bool,
    ) -> Dict[str, Any]:
        cfg = self.resolve_model(model_alias)
        options: Dict[str, Any] = {
            "temperature": cfg.temperature,
            "top_p": cfg.top_p,
            "num_predict": cfg.max_completion_tokens,
        }
        request: Dict[str, Any] = {
            "model": cfg.name,
            "messages": [_ollama_message(m) for m in messages],
            "stream": stream,
            "options": options,
        }

        for key, value in overrides.items():
            if key in _OPTION_NAMES:
                options[_OPTION_NAMES[key]] = value
            elif key == "options" and isinstance(value, Mapping):
                options.update(value)
            elif key in _REQUEST_KEYS:
                request[key] = value
            elif key == "timeout":
                continue
            else:
                logger.debug("Ignoring override %s for Ollama", key)
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

        reply = self._client_for(overrides).chat(**request).get("message") or {}
        return ChatResponse(content=reply.get("content") or "", tool_calls=_tool_calls(reply))

    def stream(
        self,
        messages: Iterable[ChatMessage],
        *,
        model_alias: Optional[str] = None,
        **overrides: Any,
    ) -> Iterator[str]:
        """Yield message content pieces as Ollama produces them."""
        request = self._request(messages, model_alias, overrides, stream=True)
        for chunk in self._client_for(overrides).chat(**request):
            text = (chunk.get("message") or {}).get("content")
            if text:
                yield text
