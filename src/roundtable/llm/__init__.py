# src/roundtable/llm/__init__.py

from .base_client import ChatMessage, ChatResponse, LLMClient, ModelAliasClient, ToolCall

__all__ = ["ChatMessage", "ChatResponse", "LLMClient", "ModelAliasClient", "ToolCall"]
