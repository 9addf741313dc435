"""Observability helpers for instrumenting repository and oracle calls."""

from __future__ import annotations

import logging
import time
from functools import wraps
from typing import Callable, ParamSpec, TypeVar

from curator_app.logging_config import correlation_context, get_logger, log_event

LOGGER = get_logger(__name__)
P = ParamSpec("P")
R = TypeVar("R")


def instrument_call(name: str) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Wrap a callable to emit structured start/finish logs with durations."""

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            with correlation_context() as correlation_id:
                start = time.perf_counter()
                log_event(LOGGER, logging.DEBUG, "call_started", call=name, correlation_id=correlation_id)
                try:
                    result = func(*args, **kwargs)
                except Exception as exc:
                    duration_ms = round((time.perf_counter() - start) * 1000, 2)
                    log_event(
                        LOGGER,
                        logging.WARNING,
                        "call_failed",
                        call=name,
                        correlation_id=correlation_id,
                        duration_ms=duration_ms,
                        error_type=type(exc).__name__,
                    )
                    raise
                duration_ms = round((time.perf_counter() - start) * 1000, 2)
                log_event(
                    LOGGER,
                    logging.DEBUG,
                    "call_completed",
                    call=name,
                    correlation_id=correlation_id,
                    duration_ms=duration_ms,
                )
                return result

        return wrapper

    return decorator


__all__ = ["instrument_call"]
