from __future__ import annotations

from typing import List, Optional, Sequence

from roundtable.agents.expert_agent import ExpertAgent, ExpertConfig
from roundtable.config.settings import get_settings
from roundtable.llm.base_client import LLMClient
from roundtable.llm.model_registry import get_llm_client
from roundtable.memory.store import TaskContext


# Default discussion panel. Expertise tags match the scorer's domain table.
DEFAULT_PROFILES: List[ExpertConfig] = [
    ExpertConfig(
        name="product_manager",
        expertise="product_management",
        description="I am a product manager responsible for planning AI products and their roadmap.",
    ),
    ExpertConfig(
        name="designer",
        expertise="ui_ux_design",
        description="I am a senior UI/UX designer focused on interaction design and usability.",
    ),
    ExpertConfig(
        name="developer",
        expertise="ai_development",
        description="I am an AI development engineer building machine-learning systems and infrastructure.",
    ),
    ExpertConfig(
        name="operations",
        expertise="operation_management",
        description="I am an operations specialist responsible for growth and user engagement.",
    ),
]


def _resolve_model_alias(alias: Optional[str]) -> Optional[str]:
    """
    Keep a profile's alias only if it is configured; otherwise let the
    client fall back to its default model.
    """
    if alias is None:
        return None
    settings = get_settings()
    if alias not in settings.models:
        # Safety net: if config is stale, just use default
        return None
    return alias


def create_panel(
    task: TaskContext,
    *,
    profiles: Sequence[ExpertConfig] | None = None,
    llm_client: LLMClient | None = None,
    stream: bool = False,
) -> List[ExpertAgent]:
    """
    Build the experts for one discussion, all sharing `task`.

    - If `profiles` is None, use DEFAULT_PROFILES.
    - If `llm_client` is None, use the shared client from model_registry.

    Returns the agents in the order of `profiles`.
    """
    llm = llm_client or get_llm_client()
    profiles = list(profiles) if profiles is not None else DEFAULT_PROFILES

    names = [p.name for p in profiles]
    if len(set(names)) != len(names):
        raise ValueError(f"Expert names must be unique, got: {', '.join(names)}")

    panel: List[ExpertAgent] = []
    for profile in profiles:
        config = ExpertConfig(
            name=profile.name,
            expertise=profile.expertise,
            description=profile.description,
            model_alias=_resolve_model_alias(profile.model_alias),
        )
        panel.append(ExpertAgent(config, llm, task, stream=stream))

    return panel
