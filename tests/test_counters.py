"""Tests for counters."""

import threading

import pytest

from wflambda.counters import Counter, CounterState


def test_delta_since_last_emission():
    """Deltas report only what happened since the previous one."""
    counter = Counter("requests")
    counter.increment()
    counter.increment(2)
    assert counter.value == 3
    assert counter.delta() == 3
    assert counter.delta() == 0
    counter.increment()
    assert counter.delta() == 1
    assert counter.value == 4


def test_counter_is_monotonic():
    """Counters cannot go down."""
    with pytest.raises(ValueError):
        Counter("requests").increment(-1)


def test_cold_start_recorded_once():
    """Only the first caller sees the cold start."""
    state = CounterState()
    assert state.cold_start
    assert state.record_cold_start() is True
    assert state.record_cold_start() is False
    assert not state.cold_start
    assert state.cold_starts.value == 1


def test_cold_start_recorded_once_across_threads():
    """The flag flips exactly once even with concurrent callers."""
    state = CounterState()
    results = []
    threads = [
        threading.Thread(target=lambda: results.append(state.record_cold_start()))
        for _ in range(8)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert results.count(True) == 1
    assert state.cold_starts.value == 1
