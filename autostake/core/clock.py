"""
Time sources for the runtime.

The runtime reads the clock exactly once per operation. Production nodes use
``SystemClock``; tests drive ``ManualClock`` forward explicitly.
"""
import time
import logging

logger = logging.getLogger(__name__)


class Clock:
    """Supplies the current unix time in whole seconds."""

    def now(self) -> int:
        raise NotImplementedError


class SystemClock(Clock):
    def now(self) -> int:
        return int(time.time())


class ManualClock(Clock):
    """
    Externally advanced clock. Never moves backwards.

    Args:
        start: Initial unix time
    """

    def __init__(self, start: int = 0):
        if start < 0:
            raise ValueError("Clock cannot start before the epoch")
        self._now = start

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError(f"Cannot move clock backwards by {-seconds}s")
        before = self._now
        self._now += seconds
        logger.debug(f"Clock advanced {before} -> {self._now}")
        return self._now

    def set(self, timestamp: int) -> int:
        if timestamp < self._now:
            raise ValueError(f"Cannot move clock backwards: {timestamp} < {self._now}")
        self._now = timestamp
        return self._now
