import pytest

from roundtable.errors import ExecutionCancelledError
from roundtable.orchestration.context import RunContext


def test_background_context_never_cancels():
    ctx = RunContext.background()
    ctx.raise_if_cancelled()
    assert not ctx.cancelled
    assert ctx.remaining() is None


def test_cancel_raises():
    ctx = RunContext()
    ctx.cancel()
    assert ctx.cancelled
    with pytest.raises(ExecutionCancelledError, match="cancelled"):
        ctx.raise_if_cancelled()


def test_expired_deadline_raises():
    ctx = RunContext(timeout=0)
    assert ctx.cancelled
    assert ctx.remaining() == 0.0
    with pytest.raises(ExecutionCancelledError, match="deadline"):
        ctx.raise_if_cancelled()


def test_remaining_counts_down_from_timeout():
    ctx = RunContext(timeout=60)
    remaining = ctx.remaining()
    assert remaining is not None
    assert 0 < remaining <= 60
