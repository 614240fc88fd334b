"""Shared, lock-protected output sink.

Lock discipline: the sink's lock is held only for one ``write()`` call
(one write plus flush of the target stream). Concurrent writers therefore
never interleave within a line, but no ordering is promised between lines
written by different threads.
"""

import sys
import threading
from typing import TextIO

from loguru import logger

from blkarbs_perfscope import _config


class OutputSink:
    """Serializes diagnostic text to stdout/stderr across threads.

    Args:
        stdout: Stream for timer lines. None resolves ``sys.stdout`` at write time.
        stderr: Stream for I/O scope lines. None resolves ``sys.stderr`` at write time.

    Example:
        sink = OutputSink(stdout=io.StringIO())
        with ScopedTimer("decode", sink=sink):
            decode()
    """

    def __init__(self, stdout: TextIO | None = None, stderr: TextIO | None = None) -> None:
        self._stdout = stdout
        self._stderr = stderr
        self._lock = threading.Lock()

    def _stream(self, err: bool) -> TextIO:
        if err:
            return self._stderr if self._stderr is not None else sys.stderr
        return self._stdout if self._stdout is not None else sys.stdout

    def write(self, text: str, *, err: bool = False) -> None:
        """Write ``text`` under the sink lock. Failures are logged, never raised."""
        if not _config.ENABLED:
            return
        with self._lock:
            stream = self._stream(err)
            try:
                stream.write(text)
                stream.flush()
            except (OSError, ValueError) as exc:
                logger.debug(f"perfscope: dropped diagnostic output ({exc!r})")


_default_sink: OutputSink | None = None
_default_lock = threading.Lock()


def get_sink() -> OutputSink:
    """Return the process-wide sink, creating it on first use."""
    global _default_sink
    if _default_sink is None:
        with _default_lock:
            if _default_sink is None:
                _default_sink = OutputSink()
                logger.debug("perfscope: process-wide output sink created")
    return _default_sink
