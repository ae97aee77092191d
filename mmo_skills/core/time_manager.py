"""Fixed-rate tick clock for the buff loop."""

from __future__ import annotations

import time
from typing import Callable


class TimeManager:
    """Pace a loop at ``tick_rate`` ticks per second.

    :meth:`sleep_until_next_tick` reports the wall time that actually passed
    since the previous tick, so buff durations stay accurate when the loop
    falls behind. ``clock`` and ``sleep`` are injectable for tests.
    """

    def __init__(
        self,
        tick_rate: float = 10.0,
        clock: Callable[[], float] = time.perf_counter,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if tick_rate <= 0:
            raise ValueError(f"tick_rate must be positive, got {tick_rate}")
        self.tick_rate = tick_rate
        self.tick_counter = 0
        self.game_time = 0.0
        self._clock = clock
        self._sleep = sleep
        self._previous_tick = clock()

    @property
    def interval(self) -> float:
        return 1.0 / self.tick_rate

    def sleep_until_next_tick(self) -> float:
        """Wait for the next tick boundary and return the elapsed seconds."""

        previous = self._previous_tick
        scheduled = previous + self.interval
        wait = scheduled - self._clock()
        if wait > 0:
            self._sleep(wait)
            self._previous_tick = scheduled
        else:
            # Late: pace the following ticks from now.
            self._previous_tick = self._clock()

        delta = self._previous_tick - previous
        self.tick_counter += 1
        self.game_time += delta
        return delta


__all__ = ["TimeManager"]
