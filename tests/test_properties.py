"""Property-based tests for blkarbs_perfscope using Hypothesis.

These tests verify arithmetic invariants of ByteDelta across the whole
unsigned 64-bit range, idempotence of finish() under arbitrary counter
movement, and the output contract for arbitrary labels.
"""

import io
from contextlib import contextmanager

from hypothesis import given, settings
from hypothesis import strategies as st

from blkarbs_perfscope import (
    ByteCounter,
    ByteDelta,
    IOScope,
    MultiIOScope,
    OutputSink,
    ScopedTimer,
    StageTimer,
    elapsed_ms,
    now,
)
from blkarbs_perfscope import _config

# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

U64_MAX = 2**64 - 1

# Any unsigned 64-bit counter reading
u64 = st.integers(min_value=0, max_value=U64_MAX)

# Ordered (begin, end) pairs with end >= begin
ordered_pair = st.tuples(u64, u64).map(sorted)

# Forward movement of a counter during a scope
advance = st.integers(min_value=0, max_value=2**40)

# Labels that fit on one report line
line_label = st.text(
    alphabet=st.characters(exclude_categories=("Cc", "Cs", "Zl", "Zp")),
    min_size=1,
    max_size=60,
)


@contextmanager
def instrumentation(enabled: bool):
    """Flip the build switch for one example (function-scoped fixtures don't mix with @given)."""
    saved = _config.ENABLED
    _config.ENABLED = enabled
    try:
        yield
    finally:
        _config.ENABLED = saved


def fresh_sink() -> tuple[OutputSink, io.StringIO, io.StringIO]:
    out, err = io.StringIO(), io.StringIO()
    return OutputSink(stdout=out, stderr=err), out, err


# ---------------------------------------------------------------------------
# ByteDelta arithmetic
# ---------------------------------------------------------------------------

class TestByteDeltaProperties:
    @given(pair=ordered_pair)
    def test_bytes_is_end_minus_begin(self, pair):
        begin, end = pair
        assert ByteDelta(begin, end).bytes() == end - begin

    @given(pair=ordered_pair)
    def test_mebibytes_is_bytes_over_1048576(self, pair):
        begin, end = pair
        delta = ByteDelta(begin, end)
        assert delta.mebibytes() == delta.bytes() / 1048576.0

    @given(begin=u64, end=u64)
    def test_backwards_counter_wraps_like_unsigned_subtraction(self, begin, end):
        delta = ByteDelta(begin, end)
        assert 0 <= delta.bytes() <= U64_MAX
        if end < begin:
            assert delta.bytes() == 2**64 - (begin - end)


# ---------------------------------------------------------------------------
# Observers: finish() idempotence and null sources
# ---------------------------------------------------------------------------

class TestObserverProperties:
    @given(start=advance, first=advance, second=advance)
    def test_io_scope_finish_is_idempotent(self, start, first, second):
        counter = ByteCounter(start)
        scope = IOScope(counter, "prop")
        counter.add(first)
        a = scope.finish()
        counter.add(second)
        b = scope.finish()
        assert a == b
        assert a.bytes() == first

    @given(readings=st.lists(u64, min_size=3, max_size=10))
    def test_multi_io_scope_finish_ignores_later_readings(self, readings):
        source = iter(readings)
        scope = MultiIOScope(lambda: next(source))
        a = scope.finish()
        b = scope.finish()
        assert a == b == ByteDelta(readings[0], readings[1])

    @given(label=st.text(max_size=20))
    def test_null_sources_always_zero(self, label):
        sink, out, err = fresh_sink()
        with IOScope(None, label, sink=sink) as single, MultiIOScope(None, label, sink=sink) as multi:
            pass
        assert single.finish() == multi.finish() == ByteDelta()
        assert out.getvalue() == err.getvalue() == ""


# ---------------------------------------------------------------------------
# Output contract
# ---------------------------------------------------------------------------

class TestOutputProperties:
    @given(label=line_label, start=advance, moved=advance)
    def test_labelled_scope_prints_exactly_one_line(self, label, start, moved):
        sink, _, err = fresh_sink()
        counter = ByteCounter(start)
        with IOScope(counter, label, sink=sink):
            counter.add(moved)
        text = err.getvalue()
        assert text.count("\n") == 1
        assert text.startswith(f"[io] {label}: {moved} B (")
        assert text.endswith(" MiB)\n")

    @given(start=advance, moved=advance)
    def test_unlabelled_scope_prints_nothing(self, start, moved):
        sink, out, err = fresh_sink()
        counter = ByteCounter(start)
        with IOScope(counter, sink=sink), MultiIOScope(lambda: counter.value, sink=sink):
            counter.add(moved)
        assert out.getvalue() == err.getvalue() == ""

    @given(label=line_label)
    @settings(max_examples=50)
    def test_scoped_timer_pads_label_to_28(self, label):
        sink, out, _ = fresh_sink()
        with ScopedTimer(label, sink=sink):
            pass
        line = out.getvalue()
        assert line.startswith("  [time] " + label.ljust(28))
        assert line.endswith(" ms\n")
        value = line[len("  [time] " + label.ljust(28)):-len(" ms\n")]
        assert float(value) >= 0.0

    @given(name=line_label, prefix=st.one_of(st.just(""), line_label))
    @settings(max_examples=50)
    def test_stage_header_joins_prefix_with_single_space(self, name, prefix):
        sink, out, _ = fresh_sink()
        StageTimer(name, prefix, sink=sink)
        expected = f"\n{prefix} {name}\n" if prefix else f"\n{name}\n"
        assert out.getvalue() == expected


# ---------------------------------------------------------------------------
# Build switch off: nothing measured, nothing printed
# ---------------------------------------------------------------------------

class TestDisabledProperties:
    @given(label=st.text(max_size=30), start=advance, moved=advance)
    @settings(max_examples=50)
    def test_disabled_everything_is_silent_and_zero(self, label, start, moved):
        sink, out, err = fresh_sink()
        with instrumentation(False):
            counter = ByteCounter(start)
            with (
                IOScope(counter, label, sink=sink) as single,
                MultiIOScope(lambda: counter.value, label, sink=sink) as multi,
                ScopedTimer(label, sink=sink),
            ):
                counter.add(moved)
            stage = StageTimer(label, label, sink=sink)
            stage.done()
            assert single.finish() == multi.finish() == ByteDelta()
            assert elapsed_ms(now()) == 0.0
        assert out.getvalue() == err.getvalue() == ""
