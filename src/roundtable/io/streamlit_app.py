from __future__ import annotations

from typing import Dict, List, Mapping, Sequence

import streamlit as st

from roundtable.agents.expert_agent import ExpertAgent
from roundtable.agents.panel_factory import create_panel
from roundtable.config.settings import get_settings
from roundtable.errors import RoundtableError
from roundtable.memory.store import TaskContext
from roundtable.orchestration.callbacks import OutputCallback
from roundtable.orchestration.context import RunContext
from roundtable.orchestration.group import Group
from roundtable.utils.tracing import configure_logging


# ---- Streamlit page setup ---------------------------------------------------


st.set_page_config(
    page_title="Roundtable: Expert Discussion",
    layout="wide",
)

st.title("🧠 Roundtable: Live Expert Discussion")

st.markdown(
    """
This interface runs a **multi-round expert discussion** on a topic of your choice.

- Round 1: every expert answers, strongest profile first.
- Later rounds: the top half of the panel (by capability score) builds on the full transcript.
- Each expert's answer streams live into their own panel.
"""
)

settings = get_settings()
configure_logging(settings.debug)


# ---- Sidebar: settings ------------------------------------------------------


with st.sidebar:
    st.header("Settings")

    max_rounds = st.slider(
        "Number of rounds",
        min_value=1,
        max_value=5,
        value=max(1, min(settings.max_rounds, 5)),
        help="Round 1 includes every expert; later rounds only the top-ranked half.",
    )

    pacing_delay = st.slider(
        "Pause between experts (seconds)",
        min_value=0.0,
        max_value=2.0,
        value=float(settings.pacing_delay),
        step=0.25,
    )

    st.caption(f"Provider: `{settings.provider}` · model: `{settings.default_model_alias}`")


# ---- Session state initialization ------------------------------------------


def _init_session_state() -> None:
    if "task" not in st.session_state:
        st.session_state.task = TaskContext()
    if "panel" not in st.session_state:
        st.session_state.panel: List[ExpertAgent] = create_panel(
            st.session_state.task,
            stream=True,
        )
    if "latest_transcript" not in st.session_state:
        st.session_state.latest_transcript = None


_init_session_state()
panel: List[ExpertAgent] = st.session_state.panel


# ---- Discussion topic -------------------------------------------------------


st.subheader("Discussion topic")

topic = st.text_area(
    "Enter the topic / question for the panel",
    placeholder=(
        "Example: Design an AI-driven personalised learning assistant. "
        "What should the first release include?"
    ),
    height=100,
)

start_button = st.button(
    "🔥 Start Discussion",
    type="primary",
    disabled=not bool(topic.strip()),
)


# ---- Layout for experts -----------------------------------------------------


def build_expert_layout(panel: Sequence[ExpertAgent]):
    """
    One boxed section per expert.

    Returns a dict[name -> placeholder] that the callback renders into.
    """
    placeholders: Dict[str, st.delta_generator.DeltaGenerator] = {}

    for agent in panel:
        with st.container(border=True):
            st.markdown(f"### {agent.name}")
            st.caption(f"Expertise: `{agent.expertise}` · {agent.description}")
            placeholders[agent.name] = st.empty()

    return placeholders


def _render_buffer_in_placeholder(placeholder, buffer: str) -> None:
    """Render a scrollable box with the expert's text."""
    placeholder.markdown(
        f"""
<div style="
    white-space: pre-wrap;
    font-family: monospace;
    font-size: 0.9rem;
    border: 1px solid #444;
    padding: 0.5rem;
    border-radius: 0.5rem;
    max-height: 260px;
    overflow-y: auto;
">
{buffer}
</div>
        """,
        unsafe_allow_html=True,
    )


class StreamlitCallback(OutputCallback):
    """
    Streams each expert's content into its panel.

    Streamlit widgets may only be touched from the script thread, so the
    UI always runs the group serially.
    """

    def __init__(self, placeholders: Mapping[str, object], status) -> None:
        self._placeholders = placeholders
        self._status = status
        self._buffers: Dict[str, str] = {}
        self._round = 0

    def on_start(self, agent_name: str) -> None:
        self._status.info(f"Round {self._round + 1}: {agent_name} is answering…")
        header = f"--- Round {self._round + 1} ---\n"
        self._buffers[agent_name] = self._buffers.get(agent_name, "") + header

    def on_content(self, agent_name: str, content: str) -> None:
        buffer = self._buffers.get(agent_name, "") + content
        self._buffers[agent_name] = buffer
        placeholder = self._placeholders.get(agent_name)
        if placeholder is not None:
            _render_buffer_in_placeholder(placeholder, buffer)

    def on_complete(self, agent_name: str) -> None:
        self._buffers[agent_name] = self._buffers.get(agent_name, "") + "\n\n"

    def on_round_complete(self, round_index: int, results: Mapping[str, str]) -> None:
        self._round = round_index + 1
        self._status.info(f"Round {round_index + 1} complete ({len(results)} experts).")


st.markdown("### Live Discussion")
expert_placeholders = build_expert_layout(panel)

status_placeholder = st.empty()
summary_placeholder = st.container()


def render_transcript_summary(transcript) -> None:
    with summary_placeholder:
        st.markdown("### 🧾 Discussion by round")
        for idx, results in enumerate(transcript):
            with st.expander(f"Round {idx + 1}", expanded=idx == len(transcript) - 1):
                for name, content in results.items():
                    st.markdown(f"**{name}**")
                    st.markdown(content)


# ---- Run discussion on button click -----------------------------------------


if start_button and topic.strip():
    callback = StreamlitCallback(expert_placeholders, status_placeholder)
    group = Group(
        max_rounds,
        parallel=False,
        callback=callback,
        task=st.session_state.task,
        pacing_delay=pacing_delay,
    )
    for agent in panel:
        group.add_agent(agent)

    try:
        with st.spinner("Running discussion..."):
            transcript = group.execute(RunContext.background(), topic.strip())
    except RoundtableError as exc:
        status_placeholder.error(f"Discussion failed: {exc}")
    else:
        st.session_state.latest_transcript = transcript
        status_placeholder.success("Discussion completed.")
        render_transcript_summary(transcript)

# If we already have a result from a previous run this session, show it
elif st.session_state.get("latest_transcript") is not None:
    render_transcript_summary(st.session_state.latest_transcript)
