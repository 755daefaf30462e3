"""
In-process telemetry helpers.

Nothing is shipped to an external metrics backend; events go to the log and
counters/latencies stay in memory so tests and /health can read them.
"""

from __future__ import annotations

import contextlib
import logging
import time
from collections.abc import Iterator
from typing import Any

logger = logging.getLogger("pagefeed.telemetry")

_COUNTERS: dict[str, int] = {}
_LATENCIES: dict[str, list[float]] = {}


def log_event(event_name: str, **fields: Any) -> None:
    """
    Structured log event. Callers pass ids and counts, never message bodies.

    Side Effects:
        - Writes to logger (info level)
    """
    logger.info("event=%s %s", event_name, fields)


def counter(name: str, increment: int = 1) -> int:
    """
    Increment an in-memory counter and emit a debug log.

    Side Effects:
        - Modifies _COUNTERS dict (in-memory state)
    """
    value = _COUNTERS.get(name, 0) + increment
    _COUNTERS[name] = value
    logger.debug("counter=%s value=%s", name, value)
    return value


def get_counter(name: str) -> int:
    return _COUNTERS.get(name, 0)


@contextlib.contextmanager
def time_block(metric_name: str) -> Iterator[None]:
    """
    Time a code block and record the latency under `metric_name`.

    Side Effects:
        - Appends to _LATENCIES dict (in-memory state)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        logger.debug("timing=%s seconds=%.6f", metric_name, elapsed)
        _LATENCIES.setdefault(metric_name, []).append(elapsed)


def get_latency_stats(metric_name: str) -> dict[str, float]:
    """Count, min, max and p95 for a recorded metric (zeros when unseen)."""
    samples = sorted(_LATENCIES.get(metric_name, []))
    if not samples:
        return {"count": 0, "min": 0.0, "max": 0.0, "p95": 0.0}

    idx = min(int(len(samples) * 0.95), len(samples) - 1)
    return {
        "count": len(samples),
        "min": samples[0],
        "max": samples[-1],
        "p95": samples[idx],
    }


def snapshot() -> dict[str, Any]:
    """Copy of all counters, for the health endpoint."""
    return {"counters": dict(_COUNTERS)}


def reset() -> None:
    """
    Clear counters and latencies (useful for tests).

    Side Effects:
        - Clears _COUNTERS and _LATENCIES
    """
    _COUNTERS.clear()
    _LATENCIES.clear()
