"""Byte counters that feed IOScope and MultiIOScope.

None of these types synchronize access to their counts. A counter mutated
by one thread and observed from another needs the caller's own locking.
"""

from collections.abc import Callable, Iterable
from typing import Any, Protocol, runtime_checkable

import psutil
from beartype import beartype


@runtime_checkable
class CounterLike(Protocol):
    """Anything exposing a running byte total as an integer ``value``."""

    value: int


class ByteCounter:
    """Mutable running byte total.

    Example:
        counter = ByteCounter()
        with IOScope(counter, "upload"):
            counter.add(len(payload))
    """

    @beartype
    def __init__(self, value: int = 0) -> None:
        assert value >= 0, f"Counter must start non-negative: {value}"
        self.value: int = value

    @beartype
    def add(self, n: int) -> int:
        """Add ``n`` bytes and return the new total."""
        assert n >= 0, f"Byte amount must be non-negative: {n}"
        self.value += n
        return self.value

    def reset(self) -> None:
        self.value = 0

    def __repr__(self) -> str:
        return f"ByteCounter(value={self.value})"


class CountingIO:
    """Binary stream wrapper that adds every transferred byte to a counter.

    Reads and writes are forwarded to ``raw``; the number of bytes actually
    moved is added to ``counter``. Everything else delegates to ``raw``.

    Example:
        counter = ByteCounter()
        with CountingIO(open(path, "rb"), counter) as f, IOScope(counter, "load"):
            data = f.read()
    """

    @beartype
    def __init__(self, raw: Any, counter: CounterLike) -> None:
        self.raw = raw
        self.counter = counter

    def _count(self, n: int) -> None:
        self.counter.value += n

    def read(self, size: int = -1) -> bytes | None:
        data = self.raw.read(size)
        if data is not None:
            self._count(len(data))
        return data

    def readline(self, size: int = -1) -> bytes | None:
        data = self.raw.readline(size)
        if data is not None:
            self._count(len(data))
        return data

    def readinto(self, buffer: Any) -> int | None:
        n = self.raw.readinto(buffer)
        if n:
            self._count(n)
        return n

    def write(self, data: Any) -> int | None:
        n = self.raw.write(data)
        # None from a non-blocking raw stream means nothing was written.
        if n is not None:
            self._count(n)
        return n

    def __iter__(self):
        return self

    def __next__(self) -> bytes:
        line = self.readline()
        if not line:
            raise StopIteration
        return line

    def __getattr__(self, name: str) -> Any:
        if name == "raw":
            raise AttributeError(name)
        return getattr(self.raw, name)

    def __enter__(self) -> "CountingIO":
        return self

    def __exit__(self, *args: Any) -> None:
        self.raw.close()


@beartype
def sum_reader(counters: Iterable[CounterLike]) -> Callable[[], int]:
    """Build a reader returning the summed ``value`` of several counters.

    Typical use is one counter per worker thread observed by a single
    MultiIOScope.
    """
    pinned = tuple(counters)

    def read() -> int:
        return sum(c.value for c in pinned)

    return read


_IO_KINDS = ("read", "write", "total")


@beartype
def process_io_reader(kind: str = "total") -> Callable[[], int]:
    """Build a reader over this process's OS-level I/O byte counters (psutil).

    Args:
        kind: "read", "write" or "total" (read + write bytes)

    Raises:
        ValueError: unknown ``kind``

    Not every platform provides per-process I/O counters (macOS does not);
    psutil raises AttributeError there when the reader is first called.
    """
    if kind not in _IO_KINDS:
        raise ValueError(f"Unknown I/O counter kind {kind!r}, expected one of {_IO_KINDS}")

    process = psutil.Process()

    def read() -> int:
        io = process.io_counters()
        if kind == "read":
            return io.read_bytes
        if kind == "write":
            return io.write_bytes
        return io.read_bytes + io.write_bytes

    return read
