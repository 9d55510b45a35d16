import logging

import pytest

from roundtable.utils import (
    normalize_whitespace,
    preview,
    split_paragraphs,
    trace_block,
    traced,
    truncate_chars,
)


def test_normalize_whitespace():
    assert normalize_whitespace("  a\n\tb   c ") == "a b c"
    assert normalize_whitespace("") == ""


@pytest.mark.parametrize(
    "text, limit, expected",
    [
        ("short", 10, "short"),
        ("abcdefghij", 5, "abcd…"),
        ("abcdefghij", 0, ""),
        ("abcdefghij", 1, "…"),
    ],
)
def test_truncate_chars(text, limit, expected):
    assert truncate_chars(text, limit) == expected


def test_preview_is_single_line_and_bounded():
    text = "line one\n\nline two " * 20
    result = preview(text, 30)
    assert "\n" not in result
    assert len(result) == 30


def test_split_paragraphs_always_has_one_element():
    assert split_paragraphs("") == [""]
    assert split_paragraphs("a\n\nb") == ["a", "b"]


def test_trace_block_logs_start_end_and_failure(caplog):
    with caplog.at_level(logging.DEBUG, logger="roundtable.tracing"):
        with trace_block("ok.block", extra={"round": 2}):
            pass
        with pytest.raises(KeyError):
            with trace_block("bad.block"):
                raise KeyError("x")

    messages = [r.getMessage() for r in caplog.records]
    assert any(m.startswith("START ok.block round=2") for m in messages)
    assert any(m.startswith("END   ok.block") for m in messages)
    assert any(m.startswith("FAILED bad.block") and "KeyError" in m for m in messages)


def test_traced_keeps_the_return_value(caplog):
    @traced()
    def double(x):
        return x * 2

    with caplog.at_level(logging.DEBUG, logger="roundtable.tracing"):
        assert double(4) == 8
    assert "double" in caplog.text
