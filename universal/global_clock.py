# universal/global_clock.py
import datetime
import logging
from typing import Callable, List

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class GlobalClock:
    """Global simulation clock.

    Keeps a simulated datetime, advances by a time multiplier,
    and notifies registered listeners (e.g. the locomotive model) whenever it ticks.
    """

    def __init__(self, start_hour: int = 6, start_minute: int = 0,
                 tick_interval: float = 1.0):
        now = datetime.datetime.now()
        # Start from today's date but a fixed hour/minute (e.g., 06:00)
        self.start_time = now.replace(
            hour=start_hour, minute=start_minute, second=0, microsecond=0
        )
        self.current_time = self.start_time
        self.time_multiplier = 1.0
        self.tick_interval = tick_interval
        self._listeners: List[Callable[[datetime.datetime], None]] = []

    # ---- core time control ----
    def tick(self):
        """Advance simulated time by (tick interval × multiplier) and notify listeners."""
        delta = datetime.timedelta(seconds=self.tick_interval * self.time_multiplier)

        self.current_time += delta
        for cb in list(self._listeners):
            try:
                cb(self.current_time)
            except Exception:
                logger.exception("Clock listener raised")
        return self.current_time

    def set_speed(self, multiplier: float):
        """
        Set how fast simulation time advances.
        multiplier = 1.0 → one tick interval per tick
        multiplier = 0.0 → frozen
        """
        if multiplier < 0:
            multiplier = 0.0
        self.time_multiplier = multiplier
        logger.info("Clock speed set to %s×", multiplier)

    def reset(self):
        """Rewind simulated time to the start instant."""
        self.current_time = self.start_time

    # ---- info ----
    def get_time(self) -> datetime.datetime:
        return self.current_time

    def get_time_string(self) -> str:
        return self.current_time.strftime("%I:%M:%S %p")

    def get_clock_time(self) -> float:
        """Simulated seconds elapsed since the clock was started."""
        return (self.current_time - self.start_time).total_seconds()

    def register_listener(self, callback: Callable[[datetime.datetime], None]):
        """Module (like the locomotive model) calls once to receive time updates."""
        if callback not in self._listeners:
            self._listeners.append(callback)

    def unregister_listener(self, callback: Callable[[datetime.datetime], None]):
        if callback in self._listeners:
            self._listeners.remove(callback)

    def __repr__(self):
        return self.get_time_string()
