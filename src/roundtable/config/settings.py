from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional


_TRUTHY = {"1", "true", "yes", "on"}


# ---- Model configuration ----------------------------------------------------


@dataclass(frozen=True)
class ModelConfig:
    """
    Configuration for a single LLM model.

    This is intentionally generic so it can be used for Groq, Ollama or others.
    """
    name: str
    max_completion_tokens: int = 1024
    temperature: float = 0.7
    top_p: float = 1.0
    reasoning_effort: Optional[str] = None  # e.g. "medium"
    stream: bool = True


def _default_models() -> Dict[str, ModelConfig]:
    return {
        # Local default served by Ollama:
        "llama3": ModelConfig(
            name="llama3.1:8b",
            max_completion_tokens=1024,
            temperature=0.7,
        ),
        # High-capacity, long outputs model (Groq):
        "gpt_oss_120b": ModelConfig(
            name="openai/gpt-oss-120b",
            max_completion_tokens=1024,
            temperature=1.0,
            top_p=1.0,
            reasoning_effort="medium",
        ),
        # Faster, smaller model (Groq):
        "llama_4_scout_17b": ModelConfig(
            name="meta-llama/llama-4-scout-17b-16e-instruct",
            max_completion_tokens=1024,
            temperature=1.0,
            top_p=1.0,
        ),
    }


# ---- Application-wide settings ---------------------------------------------


@dataclass
class Settings:
    """
    Application-wide configuration for Roundtable.

    This should not depend on any provider SDK imports. It only stores data.
    The orchestration layer never reads it; only LLM clients, the agent
    factory and the UI do.
    """

    # --- Provider & credentials ---
    provider: str = "ollama"
    groq_api_key: Optional[str] = None
    ollama_host: str = "http://localhost:11434"

    # --- Model choices ---
    default_model_alias: str = "llama3"
    models: Dict[str, ModelConfig] = field(default_factory=_default_models)

    # --- Discussion defaults ---
    max_rounds: int = 3
    parallel: bool = False
    pacing_delay: float = 0.0

    # Optional: logging / debugging flags
    debug: bool = False

    def __post_init__(self) -> None:
        if self.provider not in {"groq", "ollama"}:
            raise ValueError(
                f"Unknown provider '{self.provider}'. Known providers: groq, ollama"
            )
        if self.provider == "groq" and not self.groq_api_key:
            raise RuntimeError(
                "GROQ_API_KEY is not set. "
                "Please set it in your environment or configuration file."
            )
        if self.default_model_alias not in self.models:
            raise ValueError(
                f"Default model alias '{self.default_model_alias}' is not configured. "
                f"Known aliases: {', '.join(sorted(self.models.keys()))}"
            )

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from environment variables.

        - ROUNDTABLE_PROVIDER            : "ollama" (default) or "groq"
        - GROQ_API_KEY                   : required when provider is groq
        - OLLAMA_HOST                    : optional Ollama endpoint
        - ROUNDTABLE_DEFAULT_MODEL_ALIAS : optional override for default model alias
        - ROUNDTABLE_MAX_ROUNDS          : optional, default 3
        - ROUNDTABLE_PARALLEL            : optional ("1"/"true" to enable)
        - ROUNDTABLE_PACING_DELAY        : optional seconds between agents
        - ROUNDTABLE_DEBUG               : optional ("1"/"true" to enable)
        """
        provider = os.getenv("ROUNDTABLE_PROVIDER", "ollama").lower()

        return cls(
            provider=provider,
            groq_api_key=os.getenv("GROQ_API_KEY") or None,
            ollama_host=os.getenv("OLLAMA_HOST", "http://localhost:11434"),
            default_model_alias=os.getenv(
                "ROUNDTABLE_DEFAULT_MODEL_ALIAS",
                "gpt_oss_120b" if provider == "groq" else "llama3",
            ),
            models=_default_models(),
            max_rounds=int(os.getenv("ROUNDTABLE_MAX_ROUNDS", "3")),
            parallel=os.getenv("ROUNDTABLE_PARALLEL", "").lower() in _TRUTHY,
            pacing_delay=float(os.getenv("ROUNDTABLE_PACING_DELAY", "0")),
            debug=os.getenv("ROUNDTABLE_DEBUG", "").lower() in _TRUTHY,
        )

    @classmethod
    def from_json(cls, path: str | Path) -> "Settings":
        """
        Build settings from a JSON file.

        Recognised keys: api_key, base_url, model, provider, max_rounds,
        parallel. A `model` entry is registered under the "default" alias
        and becomes the default model.
        """
        with Path(path).open("r", encoding="utf-8") as f:
            data: Dict[str, Any] = json.load(f)

        provider = str(data.get("provider", "groq" if data.get("api_key") else "ollama")).lower()
        models = _default_models()
        default_alias = "gpt_oss_120b" if provider == "groq" else "llama3"
        if data.get("model"):
            models["default"] = ModelConfig(name=str(data["model"]))
            default_alias = "default"

        return cls(
            provider=provider,
            groq_api_key=data.get("api_key") or None,
            ollama_host=data.get("base_url") or "http://localhost:11434",
            default_model_alias=default_alias,
            models=models,
            max_rounds=int(data.get("max_rounds", 3)),
            parallel=bool(data.get("parallel", False)),
        )


# ---- Lazy global accessor (DI-friendly) ------------------------------------

# Internal singleton cache. We avoid constructing Settings at import time so
# tests or tools can control the environment first.
_SETTINGS: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Access the global Settings instance.

    Using a function instead of a module-level variable:
    - plays nicely with tests
    - avoids import-time failures if env is not ready
    """
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS


def override_settings(new_settings: Optional[Settings]) -> None:
    """
    Allow tests or special environments to override settings at runtime.

    Passing None drops the cached instance so the next `get_settings()`
    re-reads the environment.
    """
    global _SETTINGS
    _SETTINGS = new_settings
