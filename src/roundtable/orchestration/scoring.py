from __future__ import annotations

import math
import unicodedata
from typing import Dict, Iterable, List

from roundtable.agents.base_agent import Agent
from roundtable.utils.text import split_paragraphs, words


# Base weight per expertise tag; unknown tags count as DEFAULT_DOMAIN_WEIGHT.
DOMAIN_WEIGHTS: Dict[str, float] = {
    "product_management": 0.9,
    "ui_ux_design": 0.85,
    "ai_development": 0.95,
    "data_science": 0.9,
    "operation_management": 0.8,
    "business_analysis": 0.85,
    "system_architecture": 0.95,
    "security": 0.9,
    "testing": 0.8,
}

DEFAULT_DOMAIN_WEIGHT = 0.5
NEUTRAL_SCORE = 0.5

MIN_TERM_LENGTH = 3
MAX_TERM_LENGTH = 20
MIN_TERM_FREQ = 0.001
MAX_TERM_FREQ = 0.8

TECHNICAL_PREFIXES = ("micro", "multi", "inter", "cyber", "tech", "auto", "meta")

SCORE_FLOOR = 0.1
SCORE_CEILING = 1.0


# ---- Agent capability -------------------------------------------------------


def agent_capability(agent: Agent) -> float:
    """
    Heuristic suitability of an agent, in [0.1, 1.0].

    0.4 * domain weight + 0.3 * experience + 0.3 * expertise density.
    """
    base = base_domain_weight(agent.capabilities)
    experience = experience_score(agent)
    expertise = expertise_score(agent.description)
    return clamp_score(base * 0.4 + experience * 0.3 + expertise * 0.3)


def base_domain_weight(capabilities: Iterable[str]) -> float:
    tags = list(capabilities)
    if not tags:
        return DEFAULT_DOMAIN_WEIGHT
    return sum(DOMAIN_WEIGHTS.get(tag, DEFAULT_DOMAIN_WEIGHT) for tag in tags) / len(tags)


def experience_score(agent: Agent) -> float:
    """
    Share of the agent's stored messages that are good assistant answers.

    The denominator is the whole history (user turns included), so a
    memory with one question and one good answer scores 0.5.
    """
    history = agent.history()
    if not history:
        return NEUTRAL_SCORE
    good = sum(
        1 for msg in history if msg.role == "assistant" and is_quality_response(msg.content)
    )
    return good / len(history)


def expertise_score(description: str) -> float:
    """Professional terms per word of the self description."""
    fields = words(description)
    if not fields:
        return NEUTRAL_SCORE
    return len(extract_professional_terms(description)) / len(fields)


def is_quality_response(content: str) -> bool:
    if len(words(content)) < 20:
        return False
    if len(extract_professional_terms(content)) < 3:
        return False
    return len(split_paragraphs(content)) >= 2


def extract_professional_terms(text: str) -> List[str]:
    """Long words (more than 8 characters) or words with a technical prefix."""
    terms: List[str] = []
    for word in words(text.lower()):
        word = clean_word(word)
        if len(word) > 8 or word.startswith(TECHNICAL_PREFIXES):
            terms.append(word)
    return terms


# ---- Input/output relevance -------------------------------------------------


def relevance(input_text: str, output_text: str) -> float:
    """
    How well an output tracks its input, in [0.1, 1.0].

    0.5 * cosine of weighted term vectors + 0.2 * length ratio
    + 0.3 * structural similarity.
    """
    similarity = cosine_similarity(
        term_weights(term_counts(input_text)),
        term_weights(term_counts(output_text)),
    )
    length = length_score(input_text, output_text)
    structure = structure_score(input_text, output_text)
    return clamp_score(similarity * 0.5 + length * 0.2 + structure * 0.3)


def term_counts(text: str) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for word in words(text.lower()):
        word = clean_word(word)
        if MIN_TERM_LENGTH <= len(word) <= MAX_TERM_LENGTH:
            counts[word] = counts.get(word, 0) + 1
    return counts


def term_weights(counts: Dict[str, int]) -> Dict[str, float]:
    """
    tf * ln(1 + 1/tf), keeping only terms with tf in [0.001, 0.8].
    """
    total = sum(counts.values())
    vector: Dict[str, float] = {}
    if total == 0:
        return vector
    for term, count in counts.items():
        tf = count / total
        if MIN_TERM_FREQ <= tf <= MAX_TERM_FREQ:
            vector[term] = tf * math.log(1.0 + 1.0 / tf)
    return vector


def cosine_similarity(v1: Dict[str, float], v2: Dict[str, float]) -> float:
    dot = sum(value * v2[term] for term, value in v1.items() if term in v2)
    norm1 = math.sqrt(sum(value * value for value in v1.values()))
    norm2 = math.sqrt(sum(value * value for value in v2.values()))
    if norm1 == 0 or norm2 == 0:
        return 0.0
    return dot / (norm1 * norm2)


def length_score(input_text: str, output_text: str) -> float:
    """
    1.0 when the output has 1x-3x the input's word count, penalised
    linearly outside that band.
    """
    input_len = len(words(input_text))
    output_len = len(words(output_text))
    if input_len == 0:
        return 1.0 if output_len == 0 else 0.0

    ratio = output_len / input_len
    if ratio < 1:
        return ratio
    if ratio > 3:
        return 3 / ratio
    return 1.0


def structure_score(input_text: str, output_text: str) -> float:
    """
    Mean of paragraph-count and punctuation-count similarity, each in [0, 1].
    """
    para_score = _count_similarity(
        len(split_paragraphs(input_text)),
        len(split_paragraphs(output_text)),
    )
    punct_score = _count_similarity(
        count_punctuation(input_text),
        count_punctuation(output_text),
    )
    return (para_score + punct_score) / 2


def _count_similarity(reference: int, observed: int) -> float:
    if reference == 0:
        return 1.0 if observed == 0 else 0.0
    return max(0.0, 1.0 - abs(observed - reference) / reference)


# ---- Helpers ----------------------------------------------------------------


def clean_word(word: str) -> str:
    """Keep letters and digits only."""
    return "".join(ch for ch in word if ch.isalnum())


def count_punctuation(text: str) -> int:
    return sum(1 for ch in text if unicodedata.category(ch).startswith("P"))


def clamp_score(score: float) -> float:
    if math.isnan(score) or score < SCORE_FLOOR:
        return SCORE_FLOOR
    if score > SCORE_CEILING:
        return SCORE_CEILING
    return score
