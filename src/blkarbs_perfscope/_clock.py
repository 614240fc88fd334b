"""Monotonic clock helpers."""

import time

from blkarbs_perfscope import _config

# Nanosecond ticks from the monotonic high-resolution counter
now = time.perf_counter_ns


def elapsed_ms(start: int) -> float:
    """Milliseconds elapsed since ``start`` (a value returned by ``now()``).

    Returns 0.0 without touching the clock when instrumentation is disabled.
    """
    if not _config.ENABLED:
        return 0.0
    return (now() - start) / 1_000_000
