import time
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Return a timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


class Stopwatch:
    """Measures guarded operations; restartable, never raises when idle."""

    def __init__(self) -> None:
        self._started: Optional[float] = None
        self.elapsed = 0.0

    def start(self) -> None:
        self._started = time.perf_counter()

    def stop(self) -> float:
        if self._started is not None:
            self.elapsed = time.perf_counter() - self._started
            self._started = None
        return self.elapsed
