# src/roundtable/config/__init__.py

from .settings import ModelConfig, Settings, get_settings, override_settings
from .prompts import (
    get_expert_system_prompt,
    get_first_round_prompt,
    get_followup_round_prompt,
    get_selector_prompt,
)

__all__ = [
    "ModelConfig",
    "Settings",
    "get_settings",
    "override_settings",
    "get_expert_system_prompt",
    "get_first_round_prompt",
    "get_followup_round_prompt",
    "get_selector_prompt",
]
