"""Process-lifetime counters."""

import threading
from dataclasses import dataclass, field

INVOCATIONS = "aws.lambda.wf.invocations"
ERRORS = "aws.lambda.wf.errors"
COLD_STARTS = "aws.lambda.wf.coldstarts"


@dataclass
class Counter:
    """Monotonic counter that reports the increment since its last emission."""

    name: str
    _value: int = 0
    _reported: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def value(self) -> int:
        """Cumulative value since the counter was created."""
        return self._value

    def increment(self, n: int = 1) -> int:
        """Add ``n`` to the counter and return the new value."""
        if n < 0:
            raise ValueError(f"counter {self.name!r} can only be incremented")
        with self._lock:
            self._value += n
            return self._value

    def delta(self) -> int:
        """Return the increment since the previous call and mark it reported."""
        with self._lock:
            delta = self._value - self._reported
            self._reported = self._value
            return delta


@dataclass
class CounterState:
    """Counters and cold start flag owned by one agent."""

    invocations: Counter = field(default_factory=lambda: Counter(INVOCATIONS))
    errors: Counter = field(default_factory=lambda: Counter(ERRORS))
    cold_starts: Counter = field(default_factory=lambda: Counter(COLD_STARTS))
    cold_start: bool = True
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def record_cold_start(self) -> bool:
        """Count the cold start once; return True only for the first caller."""
        with self._lock:
            if not self.cold_start:
                return False
            self.cold_start = False
        self.cold_starts.increment()
        return True
