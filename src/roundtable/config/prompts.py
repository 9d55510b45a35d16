from __future__ import annotations

from typing import Iterable


# ---- Expert system prompt ---------------------------------------------------

EXPERT_SYSTEM_PROMPT = """
You are an expert in {expertise}. {description}

Your responsibilities:
1. Offer professional insight on the discussion topic from your field.
2. Keep your answer consistent with what has already been discussed.
3. Give concrete, actionable recommendations.
4. Question or complement the other experts' points where appropriate.
5. Bring the perspective that is unique to your field.

Remember that you are the {expertise} expert; every answer should show it.
""".strip()

TOOL_USAGE_HEADER = """
You may use the following tools to complete the task. When calling a tool,
provide the parameters exactly as specified:
""".strip()

TOOL_USAGE_FOOTER = """
Notes:
1. Always provide the complete set of parameters when calling a tool.
2. Parameters must match the declared types.
3. Required parameters cannot be omitted.
""".strip()


# ---- Round framing ----------------------------------------------------------

FIRST_ROUND_PROMPT = """
This is the first round of a multi-round discussion.

Discussion topic:
{topic}

Please give your opinion from your professional perspective.
""".strip()

FOLLOWUP_ROUND_PROMPT = """
This is round {round_number} of a multi-round discussion.

{context}

Based on the discussion above, contribute new insights or additions from your
professional perspective. In particular:
1. Avoid repeating points that have already been made.
2. Complete and refine the earlier discussion.
3. If you find problems in the earlier discussion, point them out and suggest improvements.
""".strip()


# ---- Transcript rendering ---------------------------------------------------

EARLIER_ROUNDS_HEADER = "Summary of the discussion so far:"
ROUND_HEADER = "Round {round_number}:"
CONTINUE_MARKER = "Building on the discussion above, please continue:"
CURRENT_ROUND_HEADER = "This round's discussion:"
ENTRY_LINE = "[{name}]: {content}"


# ---- Agent selection --------------------------------------------------------

SELECTOR_SYSTEM_PROMPT = (
    "You are an AI coordinator responsible for selecting the most suitable "
    "agent for handling user inputs."
)

SELECTOR_PROMPT = """
As an AI coordinator, analyze the user input and select the most suitable agent based on their expertise and capabilities.

User Input: {input}

Available Agents:
{agents}

Your task:
1. Analyze the input characteristics (language, content, requirements)
2. Review each agent's expertise and capabilities
3. Select the most suitable agent for handling this input
4. Return ONLY the index number (0-{max_index}) of the selected agent

Response format: Single number representing the selected agent's index
""".strip()

SELECTOR_AGENT_ENTRY = """
{index}. Name: {name}
   Expertise: {expertise}
   Description: {description}
""".strip()


# ---- Helpers ----------------------------------------------------------------


def get_expert_system_prompt(expertise: str, description: str) -> str:
    return EXPERT_SYSTEM_PROMPT.format(expertise=expertise, description=description)


def get_first_round_prompt(topic: str) -> str:
    return FIRST_ROUND_PROMPT.format(topic=topic)


def get_followup_round_prompt(round_index: int, context: str) -> str:
    """
    `round_index` is 0-based; the prompt shows the 1-based round number.
    """
    return FOLLOWUP_ROUND_PROMPT.format(round_number=round_index + 1, context=context)


def get_selector_prompt(text: str, entries: Iterable[str], count: int) -> str:
    return SELECTOR_PROMPT.format(
        input=text,
        agents="\n\n".join(entries),
        max_index=count - 1,
    )
