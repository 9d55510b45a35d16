from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from roundtable.agents.base_agent import Agent
from roundtable.config.prompts import (
    SELECTOR_AGENT_ENTRY,
    SELECTOR_SYSTEM_PROMPT,
    get_selector_prompt,
)
from roundtable.llm.base_client import ChatMessage, LLMClient
from roundtable.orchestration.scoring import agent_capability
from roundtable.utils.text import preview
from roundtable.utils.tracing import traced


logger = logging.getLogger(__name__)

_INDEX_RE = re.compile(r"-?\d+")


class AgentSelector(ABC):
    """
    Picks which agent(s) should answer a given input.

    Returning an empty list means "no opinion"; the group then falls back
    to capability ranking.
    """

    @abstractmethod
    def select_agents(
        self,
        text: str,
        candidates: Sequence[Agent],
        limit: int = 1,
    ) -> List[Agent]:
        raise NotImplementedError


class LLMSelector(AgentSelector):
    """
    Delegates the choice to a model: lists the candidates with an index and
    asks for a single index back.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        *,
        model_alias: Optional[str] = None,
        max_completion_tokens: int = 10,
    ) -> None:
        self._llm = llm_client
        self._model_alias = model_alias
        self._max_completion_tokens = max_completion_tokens

    def build_prompt(self, text: str, candidates: Sequence[Agent]) -> str:
        entries = [
            SELECTOR_AGENT_ENTRY.format(
                index=idx,
                name=agent.name,
                expertise=", ".join(agent.capabilities),
                description=agent.description,
            )
            for idx, agent in enumerate(candidates)
        ]
        return get_selector_prompt(text, entries, len(candidates))

    @traced("llm_selector.select_agents")
    def select_agents(
        self,
        text: str,
        candidates: Sequence[Agent],
        limit: int = 1,
    ) -> List[Agent]:
        if not candidates or limit < 1:
            return []

        messages = [
            ChatMessage(role="system", content=SELECTOR_SYSTEM_PROMPT),
            ChatMessage(role="user", content=self.build_prompt(text, candidates)),
        ]
        try:
            reply = self._llm.complete(
                messages,
                model_alias=self._model_alias,
                max_completion_tokens=self._max_completion_tokens,
            )
        except Exception:
            logger.warning("Agent selection call failed; falling back", exc_info=True)
            return []

        index = parse_index(reply)
        if index is None or not 0 <= index < len(candidates):
            logger.warning("Selector returned an unusable index: %r", preview(reply or ""))
            return []

        logger.info("Selector picked %s", candidates[index].name)
        return [candidates[index]]


class CapabilitySelector(AgentSelector):
    """
    Deterministic rule: the highest-scoring candidates, ties in candidate
    order.
    """

    def select_agents(
        self,
        text: str,
        candidates: Sequence[Agent],
        limit: int = 1,
    ) -> List[Agent]:
        ranked = sorted(candidates, key=agent_capability, reverse=True)
        return ranked[: max(0, limit)]


def parse_index(reply: str) -> Optional[int]:
    """First integer in the reply, or None."""
    match = _INDEX_RE.search(reply or "")
    if match is None:
        return None
    return int(match.group(0))
