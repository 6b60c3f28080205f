"""Escalation timer measured against the simulation clock."""
from typing import Callable, Optional


class Timer:
    """Measures elapsed clock time since ``start()`` against a duration.

    Attributes:
        duration_s: Configured duration in seconds.
        started_at: Clock value recorded by the last ``start()``, None when stopped.
    """

    def __init__(self, clock: Callable[[], float]) -> None:
        """Initialize a stopped timer.

        Args:
            clock: Zero-argument callable returning the current clock time in seconds.
        """
        self._clock = clock
        self.duration_s: float = 0.0
        self.started_at: Optional[float] = None

    def setup(self, duration_s: float) -> None:
        self.duration_s = float(duration_s)

    def start(self) -> None:
        """Start, or restart from now if already running."""
        self.started_at = self._clock()

    def stop(self) -> None:
        self.started_at = None

    @property
    def started(self) -> bool:
        return self.started_at is not None

    @property
    def triggered(self) -> bool:
        if self.started_at is None:
            return False
        return self._clock() - self.started_at >= self.duration_s

    @property
    def remaining_s(self) -> float:
        """Seconds left before the timer triggers (0 when stopped or triggered)."""
        if self.started_at is None:
            return 0.0
        return max(0.0, self.duration_s - (self._clock() - self.started_at))

    def __repr__(self) -> str:
        return (f"Timer(duration_s={self.duration_s}, "
                f"started={self.started}, triggered={self.triggered})")
