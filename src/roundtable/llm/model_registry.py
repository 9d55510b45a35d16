from __future__ import annotations

import logging
import threading
from typing import Dict, Optional

from roundtable.config.settings import ModelConfig, Settings, get_settings
from roundtable.llm.base_client import LLMClient


logger = logging.getLogger(__name__)

_client: Optional[LLMClient] = None
_client_lock = threading.Lock()


def build_llm_client(settings: Settings) -> LLMClient:
    """
    Client for `settings.provider`.

    Only the selected provider's SDK gets imported.
    """
    logger.info("Using %s with default model %s", settings.provider, settings.default_model_alias)
    if settings.provider == "groq":
        from roundtable.llm.groq_client import GroqLLMClient

        return GroqLLMClient.from_settings(settings)

    from roundtable.llm.ollama_client import OllamaLLMClient

    return OllamaLLMClient.from_settings(settings)


def get_llm_client() -> LLMClient:
    """Process-wide client built from `get_settings()` on first use."""
    global _client
    with _client_lock:
        if _client is None:
            _client = build_llm_client(get_settings())
        return _client


def reset_llm_client() -> None:
    """Forget the cached client, e.g. after `override_settings`."""
    global _client
    with _client_lock:
        _client = None


def get_model_config(alias: str) -> ModelConfig:
    models = get_settings().models
    if alias not in models:
        raise KeyError(f"Unknown model alias '{alias}'. Known aliases: {', '.join(sorted(models))}")
    return models[alias]


def list_models() -> Dict[str, ModelConfig]:
    """Copy of the alias -> ModelConfig table."""
    return dict(get_settings().models)
