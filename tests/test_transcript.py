from roundtable.config import prompts
from roundtable.orchestration.transcript import build_round_input, render_transcript


def test_single_round_is_rendered_as_current():
    text = render_transcript([{"a": "first idea", "b": "second idea"}])

    assert prompts.EARLIER_ROUNDS_HEADER not in text
    assert prompts.CURRENT_ROUND_HEADER in text
    assert "[a]: first idea" in text
    assert "[b]: second idea" in text


def test_all_earlier_rounds_are_kept():
    rounds = [{"a": "r1 from a"}, {"b": "r2 from b"}, {"a": "r3 from a"}]
    text = render_transcript(rounds)

    assert text.index(prompts.EARLIER_ROUNDS_HEADER) < text.index("Round 1:")
    assert text.index("[a]: r1 from a") < text.index("Round 2:") < text.index("[b]: r2 from b")
    assert text.index(prompts.CONTINUE_MARKER) < text.index(prompts.CURRENT_ROUND_HEADER)
    assert text.rstrip().endswith("[a]: r3 from a")
    assert "Round 3:" not in text


def test_round_input_starts_with_topic():
    combined = build_round_input("Topic?", [{"a": "answer"}])
    assert combined.startswith("Topic?\n\n")
    assert "[a]: answer" in combined


def test_empty_transcript_renders_nothing():
    assert render_transcript([]) == ""
