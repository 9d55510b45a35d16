from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from functools import wraps
from typing import Any, Callable, Generator, Mapping, Optional


logger = logging.getLogger("roundtable.tracing")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(debug: bool = False) -> None:
    """
    Install a basic stream handler for the application.

    Library code only creates loggers; entry points (the UI) call this once.
    """
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
    )


def _format_fields(fields: Mapping[str, Any]) -> str:
    return " ".join(f"{key}={value}" for key, value in fields.items())


@contextmanager
def trace_block(name: str, *, extra: Optional[Mapping[str, Any]] = None) -> Generator[None, None, None]:
    """
    Log entry and exit of a block at DEBUG, with its wall time.

        with trace_block("group.execute", extra={"rounds": 3}):
            ...

    A block left through an exception is logged as FAILED before the
    exception propagates.
    """
    fields = _format_fields(extra or {})
    started = time.perf_counter()
    logger.debug("START %s %s", name, fields)
    try:
        yield
    except BaseException as exc:
        logger.debug(
            "FAILED %s after %.3fs (%s) %s",
            name, time.perf_counter() - started, type(exc).__name__, fields,
        )
        raise
    logger.debug("END   %s in %.3fs %s", name, time.perf_counter() - started, fields)


def traced(name: Optional[str] = None) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator form of `trace_block`; defaults to the function's qualname."""

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        block_name = name or func.__qualname__

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            with trace_block(block_name):
                return func(*args, **kwargs)

        return wrapper

    return decorator
