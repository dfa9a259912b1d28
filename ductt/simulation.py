# ductt/simulation.py
"""
Synchronous episode driver.

The physics engine owns the clock: every tick it advances the world
(robot.step) and then notifies the controller. No threads, no timeouts.
"""

from __future__ import annotations
from typing import Protocol

from . import console
from .controller import EpisodeController
from .params import TICKS_PER_SECOND
from .robot import RobotModel


class SimulatedRobot(RobotModel, Protocol):
    def step(self, dt: float) -> None: ...


def run_episode(controller: EpisodeController,
                robot: SimulatedRobot,
                seconds: float,
                dt: float = 1.0 / TICKS_PER_SECOND):
    """
    setup -> (physics step, controller step) * N -> teardown.

    An error raised by the controller aborts the episode: teardown is not
    called and nothing gets scored.
    """
    if dt <= 0.0:
        raise ValueError("dt is not positive")
    steps = max(1, int(round(seconds / dt)))

    controller.setup(robot)
    for _ in range(steps):
        robot.step(dt)
        controller.step(robot, dt)
    return controller.teardown(robot)


def run_trials(controller: EpisodeController,
               make_robot,
               n_episodes: int,
               seconds: float,
               dt: float = 1.0 / TICKS_PER_SECOND) -> list:
    """
    Run `n_episodes` episodes, each on a fresh robot from `make_robot()`.

    The controller is finished afterwards, also when an episode fails, so
    the scores of a partial last generation still reach disk.
    """
    results = []
    try:
        for episode in range(n_episodes):
            metrics = run_episode(controller, make_robot(), seconds, dt)
            results.append(metrics)
            console.log(f"episode {episode + 1:04d}/{n_episodes}  {metrics}")
    finally:
        controller.finish()
    return results
