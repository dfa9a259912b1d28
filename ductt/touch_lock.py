# ductt/touch_lock.py
"""
Touch sensor driven locking of the prismatic joints.

Each end (top, bottom) is UNPAUSED or PAUSED. An end is pushed towards
PAUSED while all of its own sensors touch, and back towards UNPAUSED while
all sensors on the other end touch. The push has to last longer than the
hysteresis window (counted in ticks) before the state flips, and the flip
itself only happens on a tick where the end's own sensors all touch.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence

from .params import DEFAULT_HYSTERESIS_SECONDS, TICKS_PER_SECOND
from .robot import TouchSensor


@dataclass
class LockState:
    paused: bool = False
    counter: int = 0


def should_pause(sensors: Sequence[TouchSensor]) -> bool:
    """True only if every sensor reports contact."""
    return all(s.is_touching() for s in sensors)


class TouchLock:

    def __init__(self,
                 hysteresis_seconds: float = DEFAULT_HYSTERESIS_SECONDS,
                 ticks_per_second: int = TICKS_PER_SECOND):
        if ticks_per_second <= 0:
            raise ValueError("ticks_per_second must be positive")
        self.hysteresis_seconds = hysteresis_seconds
        self.ticks_per_second = ticks_per_second
        self.top = LockState()
        self.bottom = LockState()

    @property
    def max_count(self) -> float:
        return self.hysteresis_seconds * self.ticks_per_second

    def is_paused(self, is_top: bool) -> bool:
        return (self.top if is_top else self.bottom).paused

    def update(self,
               top_sensors: Sequence[TouchSensor],
               bottom_sensors: Sequence[TouchSensor],
               is_top: bool) -> bool:
        """
        Advance one end by one tick.

        Returns True only on the tick the end becomes PAUSED. False means
        "no lock event this tick", not "unlocked"; use is_paused() for that.
        """
        if is_top:
            state = self.top
            pause = should_pause(top_sensors)
            unpause = should_pause(bottom_sensors)
        else:
            state = self.bottom
            pause = should_pause(bottom_sensors)
            unpause = should_pause(top_sensors)

        if (pause and not state.paused) or (unpause and state.paused):
            state.counter += 1

        locked = False
        if pause and state.counter > self.max_count:
            locked = not state.paused
            state.paused = not state.paused
            state.counter = 0

        return locked

    def reset(self) -> None:
        self.top = LockState()
        self.bottom = LockState()
