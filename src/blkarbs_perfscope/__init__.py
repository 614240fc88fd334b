"""blkarbs-perfscope: Scoped timing and I/O byte-count diagnostics.

Provides:
- ScopedTimer: Prints the elapsed time of a block on exit
- StageTimer: Prints a stage header up front and a TOTAL line on done()
- IOScope: Reports bytes moved through one counter during a block
- MultiIOScope: Same, for a computed total (e.g. sum over per-worker counters)
- ByteDelta: Immutable (begin, end) counter reading pair
- ByteCounter / CountingIO / sum_reader / process_io_reader: counters to observe
- OutputSink / get_sink: Lock-protected output shared by all of the above

Set PERFSCOPE_ENABLE=0 before import to turn everything into a no-op.

Usage:
    from blkarbs_perfscope import ByteCounter, IOScope, ScopedTimer, StageTimer

    stage = StageTimer("Ingest", "[Phase]")
    counter = ByteCounter()
    with ScopedTimer("download"), IOScope(counter, "download"):
        for chunk in fetch():
            counter.add(len(chunk))
    stage.done()
"""

from blkarbs_perfscope._clock import elapsed_ms, now
from blkarbs_perfscope._config import resolve_enabled
from blkarbs_perfscope._core import (
    ByteDelta,
    IOScope,
    MultiIOScope,
    ScopedTimer,
    StageTimer,
)
from blkarbs_perfscope._counters import (
    ByteCounter,
    CounterLike,
    CountingIO,
    process_io_reader,
    sum_reader,
)
from blkarbs_perfscope._sink import OutputSink, get_sink

__all__ = [
    "ByteCounter",
    "ByteDelta",
    "CounterLike",
    "CountingIO",
    "IOScope",
    "MultiIOScope",
    "OutputSink",
    "ScopedTimer",
    "StageTimer",
    "elapsed_ms",
    "get_sink",
    "now",
    "process_io_reader",
    "resolve_enabled",
    "sum_reader",
]

__version__ = "0.1.0"
