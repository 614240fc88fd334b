"""Scoped byte-count observers and timers.

Every type here is a context manager whose measurement window is the
``with`` block. Exit handling runs on every path out of the block,
including exceptions, and never suppresses them.

When the build switch (``PERFSCOPE_ENABLE``) is off, construction reads
neither clock nor counters, nothing is printed, and every ``finish()``
returns a zero delta.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from beartype import beartype

from blkarbs_perfscope import _config
from blkarbs_perfscope._clock import elapsed_ms, now
from blkarbs_perfscope._counters import CounterLike
from blkarbs_perfscope._sink import OutputSink, get_sink

_U64_MASK = (1 << 64) - 1

LABEL_WIDTH = 28


@dataclass(frozen=True)
class ByteDelta:
    """Two readings of an unsigned 64-bit byte counter.

    ``bytes()`` is plain unsigned subtraction: a counter that went backwards
    during the window (e.g. it was reset) wraps around to a huge value
    rather than being clamped. Keeping ``end >= begin`` is the caller's job.
    """

    begin: int = 0
    end: int = 0

    def bytes(self) -> int:
        return (self.end - self.begin) & _U64_MASK

    def mebibytes(self) -> float:
        return self.bytes() / 1024 / 1024

    def __str__(self) -> str:
        return f"{self.bytes()} B ({self.mebibytes():g} MiB)"


_ZERO = ByteDelta()


class _ObserverScope(ABC):
    """Shared begin/finish/report logic for IOScope and MultiIOScope."""

    def __init__(self, label: str, sink: OutputSink | None) -> None:
        self._label = label
        self._sink = sink
        self._begin = 0
        self._finished = False
        self._last = _ZERO

    @abstractmethod
    def _has_source(self) -> bool:
        """True when a counter or reader is attached."""

    @abstractmethod
    def _read(self) -> int:
        """Current reading of the observed source."""

    def _capture_begin(self) -> None:
        if _config.ENABLED and self._has_source():
            self._begin = self._read()

    @property
    def label(self) -> str:
        return self._label

    @property
    def finished(self) -> bool:
        return self._finished

    def finish(self) -> ByteDelta:
        """Take the end reading once and return the delta. Never prints.

        Repeated calls return the cached delta without reading the source
        again, even if it has moved on since.
        """
        if not _config.ENABLED:
            self._finished = True
            return _ZERO
        if self._finished:
            return self._last
        end = self._read() if self._has_source() else self._begin
        self._last = ByteDelta(self._begin, end)
        self._finished = True
        return self._last

    def close(self) -> None:
        """Automatic finalization: report once unless finish() already ran."""
        if not _config.ENABLED or self._finished:
            return
        delta = self.finish()
        if self._has_source() and self._label:
            sink = self._sink if self._sink is not None else get_sink()
            sink.write(f"[io] {self._label}: {delta}\n", err=True)

    def __enter__(self) -> "_ObserverScope":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


class IOScope(_ObserverScope):
    """Observe one externally owned byte counter across a ``with`` block.

    Args:
        counter: Object with an integer ``value`` (e.g. ByteCounter), or None
            for "no observation" (always a zero delta). Not owned.
        label: Report label. Empty means never print on exit.
        sink: Output sink; defaults to the process-wide one.

    Example:
        counter = ByteCounter()
        with IOScope(counter, "write shards"):
            for shard in shards:
                counter.add(out.write(shard))
        # stderr: [io] write shards: 1048576 B (1 MiB)

        scope = IOScope(counter)
        ...
        delta = scope.finish()  # silent; caller reports
    """

    @beartype
    def __init__(
        self,
        counter: CounterLike | None = None,
        label: str = "",
        *,
        sink: OutputSink | None = None,
    ) -> None:
        super().__init__(label, sink)
        self._counter = counter
        self._capture_begin()

    def _has_source(self) -> bool:
        return self._counter is not None

    def _read(self) -> int:
        return self._counter.value

    def __enter__(self) -> "IOScope":
        return self


class MultiIOScope(_ObserverScope):
    """Observe a computed byte total (e.g. a sum over per-worker counters).

    Args:
        reader: Zero-argument callable returning the current total, or None
            for "no observation". Must be side-effect free.
        label: Report label. Empty means never print on exit.
        sink: Output sink; defaults to the process-wide one.

    Example:
        counters = [ByteCounter() for _ in range(n_workers)]
        with MultiIOScope(sum_reader(counters), "fan-out fetch"):
            run_workers(counters)
    """

    @beartype
    def __init__(
        self,
        reader: Callable[[], int] | None = None,
        label: str = "",
        *,
        sink: OutputSink | None = None,
    ) -> None:
        super().__init__(label, sink)
        self._reader = reader
        self._capture_begin()

    def _has_source(self) -> bool:
        return self._reader is not None

    def _read(self) -> int:
        return self._reader()

    def __enter__(self) -> "MultiIOScope":
        return self


class ScopedTimer:
    """Print the elapsed time of a ``with`` block to stdout, always.

    The printed line is the only output; there is no accessor for the value.

    Example:
        with ScopedTimer("tokenize"):
            tokens = tokenize(text)
        # stdout:   [time] tokenize                    3.2171 ms
    """

    @beartype
    def __init__(self, label: str | None, *, sink: OutputSink | None = None) -> None:
        self._label = label or ""
        self._sink = sink
        self._t0 = now() if _config.ENABLED else 0

    def __enter__(self) -> "ScopedTimer":
        return self

    def __exit__(self, *args: Any) -> None:
        if not _config.ENABLED:
            return
        sink = self._sink if self._sink is not None else get_sink()
        sink.write(f"  [time] {self._label:<{LABEL_WIDTH}}{elapsed_ms(self._t0):g} ms\n")


class StageTimer:
    """Named stage: header printed up front, TOTAL printed by ``done()``.

    Leaving a ``with`` block prints nothing; the total line only appears
    when ``done()`` is called, so sub-timers can report in between.

    Example:
        stage = StageTimer("Parse", "[Phase]")   # stdout: \\n[Phase] Parse
        with ScopedTimer("lex"):
            ...
        stage.done()                             #   [time] TOTAL ... ms
    """

    @beartype
    def __init__(self, name: str | None, prefix: str = "", *, sink: OutputSink | None = None) -> None:
        self.name = name or ""
        self.prefix = prefix
        self._sink = sink
        self._t0 = 0
        if _config.ENABLED:
            self._t0 = now()
            sep = " " if self.prefix else ""
            self._get_sink().write(f"\n{self.prefix}{sep}{self.name}\n")

    def _get_sink(self) -> OutputSink:
        return self._sink if self._sink is not None else get_sink()

    def done(self) -> None:
        """Print the TOTAL line, measured from construction. May repeat."""
        if not _config.ENABLED:
            return
        self._get_sink().write(f"  [time] {'TOTAL':<{LABEL_WIDTH}}{elapsed_ms(self._t0):g} ms\n")

    def __enter__(self) -> "StageTimer":
        return self

    def __exit__(self, *args: Any) -> None:
        return None
