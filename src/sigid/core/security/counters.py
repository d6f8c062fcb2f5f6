"""
Process-local monotonic counter.

Used for the counter metadata fragment and for the extra entropy fragment
mixed in when collision avoidance regenerates a payload. Each generator
context owns its own counter so independent instances and tests do not
share state.
"""

import threading


class MonotonicCounter:
    """
    Thread-safe, atomically incremented counter.

    Example:
        >>> counter = MonotonicCounter()
        >>> counter.next(), counter.next()
        (0, 1)
    """

    def __init__(self, start: int = 0) -> None:
        if start < 0:
            raise ValueError(f"Counter start must be non-negative, got {start}")
        self._lock = threading.Lock()
        self._value = start

    def next(self) -> int:
        """Return the current value and advance by one."""
        with self._lock:
            value = self._value
            self._value += 1
            return value

    @property
    def value(self) -> int:
        """The value the next call to next() will return."""
        with self._lock:
            return self._value

    def reset(self, value: int = 0) -> None:
        with self._lock:
            self._value = value
