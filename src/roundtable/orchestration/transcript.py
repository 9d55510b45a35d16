from __future__ import annotations

from typing import Dict, List, Mapping, Sequence

from roundtable.config.prompts import (
    CONTINUE_MARKER,
    CURRENT_ROUND_HEADER,
    EARLIER_ROUNDS_HEADER,
    ENTRY_LINE,
    ROUND_HEADER,
)


# agent name -> that agent's output for one round
RoundResult = Dict[str, str]
# index = round number (0-based)
Transcript = List[RoundResult]


def _render_entries(results: Mapping[str, str]) -> List[str]:
    return [ENTRY_LINE.format(name=name, content=content) for name, content in results.items()]


def render_transcript(rounds: Sequence[Mapping[str, str]]) -> str:
    """
    Render every round so far: earlier rounds under numbered headers, the
    latest one as the current round.
    """
    if not rounds:
        return ""

    *earlier, current = rounds
    lines: List[str] = []
    if earlier:
        lines.append(EARLIER_ROUNDS_HEADER)
        for idx, results in enumerate(earlier):
            lines.append("")
            lines.append(ROUND_HEADER.format(round_number=idx + 1))
            lines.extend(_render_entries(results))
        lines.append("")
        lines.append(CONTINUE_MARKER)

    lines.append("")
    lines.append(CURRENT_ROUND_HEADER)
    lines.extend(_render_entries(current))
    return "\n".join(lines) + "\n"


def build_round_input(topic: str, rounds: Sequence[Mapping[str, str]]) -> str:
    """The original topic followed by the full rendered history."""
    return f"{topic}\n\n{render_transcript(rounds)}"
