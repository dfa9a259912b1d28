# ductt/controller.py
"""
Learning controller for DuCTT.

One episode = setup -> step(dt) per physics tick -> teardown.

- setup: relax the robot, ask the learning adapter for one action vector
  (stateless: the observation is empty) and turn it into sine waves
- step: first SETTLE_SECONDS only handle the bottom lock, then drive the
  string clusters (impedance control) and the prisms (gated by touch)
- teardown: score the episode [displacement, energy] and hand it back
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum, IntEnum
from pathlib import Path
from typing import Protocol, Sequence

import numpy as np

from . import console
from .adapters import EvolutionAdapter, LearningAdapter, NeuroAdapter
from .config import EvoConfig, resolve_resource_path
from .evolution import CMAEvolution, NeuroEvolution
from .params import (
    N_CLUSTERS,
    N_PRISMS,
    DEFAULT_IGNORE_TOUCH,
    DEFAULT_HYSTERESIS_SECONDS,
    TICKS_PER_SECOND,
    SETTLE_SECONDS,
    SETUP_DT,
    BAD_RUN_DISPLACEMENT,
)
from .robot import ImpedanceController, Muscle, Prismatic, RobotModel
from .sine_params import SineParams, action_len, read_manual_params, transform_actions
from .sine_waves import SineWaveBank
from .touch_lock import TouchLock


class Axis(IntEnum):
    X = 0
    Y = 1
    Z = 2
    DISTANCE = 3


class Phase(Enum):
    SETUP = "setup"
    RUNNING = "running"
    TORNDOWN = "torndown"


class ControllerStateError(RuntimeError):
    """Lifecycle method called in the wrong phase."""


class ActuatorHandleError(ValueError):
    """The robot returned a missing actuator."""


@dataclass
class EpisodeMetrics:
    displacement: float
    energy_spent: float

    def as_scores(self) -> list[float]:
        return [self.displacement, self.energy_spent]


class EpisodeController(Protocol):
    """What a physics driver needs from a controller."""

    def setup(self, robot: RobotModel) -> None: ...
    def step(self, robot: RobotModel, dt: float) -> None: ...
    def teardown(self, robot: RobotModel) -> None: ...
    def finish(self) -> None: ...


def displacement(init_position: np.ndarray, final_position: np.ndarray, axis: Axis = Axis.Y) -> float:
    """Distance moved by the COM, measured the way `axis` says."""
    old = np.asarray(init_position, dtype=float)
    new = np.asarray(final_position, dtype=float)
    delta = new - old

    if axis == Axis.X:
        return float(abs(delta[0]))
    if axis == Axis.Z:
        return float(abs(delta[2]))
    if axis == Axis.DISTANCE:
        return float(np.linalg.norm(delta))
    # Y is the climbing direction: keep the sign
    return float(delta[1])


def total_energy_spent(muscles: Sequence[Muscle]) -> float:
    """
    Rough motor work: previous tension times rest length change, counting
    only the samples where the rest length went down. Lengthening is free.

    Not a physically exact energy for a tensegrity, but it is the number
    the stored fitness values were computed with.
    """
    total = 0.0
    for muscle in muscles:
        hist = muscle.history()
        tension = np.asarray(hist.tension_history, dtype=float)
        rest = np.asarray(hist.rest_lengths, dtype=float)
        n = min(tension.size, rest.size)
        if n < 2:
            continue
        motor_speed = np.minimum(np.diff(rest[:n]), 0.0)
        total += float(np.sum(tension[:n - 1] * motor_speed))
    return total


class LearningController:
    """
    Evolution-trained sine wave controller.

    initial_length is the preferred length every string starts at
    (decimeters, like the robot model). axis picks the displacement used as
    fitness. neuro selects the neuro-evolution backend instead of CMA-ES.
    """

    def __init__(self,
                 initial_length: float,
                 *,
                 use_manual_params: bool = False,
                 manual_param_file: str | Path = "",
                 axis: Axis | int = Axis.Y,
                 neuro: bool = False,
                 resource_path: str = "",
                 suffix: str = "",
                 evo_config_filename: str = "Config.ini",
                 config: EvoConfig | None = None,
                 adapter: LearningAdapter | None = None,
                 engine: CMAEvolution | None = None,
                 n_clusters: int = N_CLUSTERS,
                 n_prisms: int = N_PRISMS,
                 ticks_per_second: int | None = None,
                 settle_seconds: float = SETTLE_SECONDS,
                 data_dir: Path | None = None,
                 seed: int | None = None):
        self.initial_length = initial_length
        self.use_manual_params = use_manual_params
        self.manual_param_file = manual_param_file
        self.axis = Axis(axis)
        self.use_neuro = neuro
        self.n_clusters = n_clusters
        self.n_prisms = n_prisms
        self.n_actions = n_clusters + n_prisms
        self.settle_seconds = settle_seconds

        if config is None:
            config = EvoConfig.from_file(resolve_resource_path(resource_path) / evo_config_filename)
        self.config = config
        self.is_learning = config.get_bool_value("learning", False)
        if ticks_per_second is None:
            ticks_per_second = config.get_int_value("ticksPerSecond", TICKS_PER_SECOND)

        if adapter is None:
            if neuro:
                adapter = NeuroAdapter()
                engine = engine or NeuroEvolution(suffix, config, data_dir=data_dir)
            else:
                adapter = EvolutionAdapter()
                engine = engine or CMAEvolution(suffix, config, data_dir=data_dir)
        self.adapter = adapter
        self.engine = engine

        self.impedance = ImpedanceController()
        self.lock = TouchLock(DEFAULT_HYSTERESIS_SECONDS, ticks_per_second)
        self.rng = np.random.default_rng(seed)

        # running defaults, overwritten by the trailing genes when present
        self.ignore_touch_sensors = DEFAULT_IGNORE_TOUCH
        self.hysteresis_seconds = DEFAULT_HYSTERESIS_SECONDS

        self.clusters: list[list[Muscle]] = []
        self.prisms: list[Prismatic] = []
        self.actions: np.ndarray | None = None
        self.sines: SineWaveBank | None = None

        self.phase = Phase.TORNDOWN
        self.episode = 1
        self.total_time = 0.0
        self.recorded_start = False
        self.init_position: np.ndarray | None = None
        self.bad_run = False
        self.last_metrics: EpisodeMetrics | None = None

    # ------------------------------------------------------------------ setup
    def setup(self, robot: RobotModel) -> None:
        if self.phase is not Phase.TORNDOWN:
            raise ControllerStateError(f"setup() while {self.phase.value}")
        self.phase = Phase.SETUP
        console.log("Setting up")
        try:
            self._setup(robot)
        except Exception:
            # a broken setup aborts the episode, the next setup starts clean
            self.phase = Phase.TORNDOWN
            raise
        self.phase = Phase.RUNNING

    def _setup(self, robot: RobotModel) -> None:
        dt = SETUP_DT

        for muscle in robot.all_muscles():
            if muscle is None:
                raise ActuatorHandleError("robot returned a missing muscle")
            muscle.set_control_input(self.initial_length, dt)

        for prism in (robot.bottom_prismatic(), robot.top_prismatic()):
            if prism is None:
                raise ActuatorHandleError("robot returned a missing prismatic joint")
            prism.set_preferred_length(prism.min_length())
            prism.move_motors(dt)

        self.populate_clusters(robot)

        if self.engine is not None:
            self.adapter.initialize(self.engine, self.is_learning, self.config)

        # Empty observation: every parameter is stateless, one ask per episode
        state: list[float] = []
        self.actions = np.asarray(self.adapter.step(dt, state), dtype=float)

        params = self.transform_actions(self.actions)
        self.apply_actions(params)

    def populate_clusters(self, robot: RobotModel) -> None:
        self.clusters = []
        for cluster in range(self.n_clusters):
            muscles = list(robot.find(f"string cluster{cluster + 1}"))
            if not muscles or any(m is None for m in muscles):
                raise ActuatorHandleError(f"string cluster{cluster + 1} has missing muscles")
            self.clusters.append(muscles)

        # prism 0 is the bottom joint, prism 1 the top one
        self.prisms = [robot.bottom_prismatic(), robot.top_prismatic()][:self.n_prisms]
        if len(self.prisms) != self.n_prisms:
            raise ActuatorHandleError(f"robot has 2 prismatic joints, {self.n_prisms} requested")

    def transform_actions(self, actions: np.ndarray) -> SineParams:
        if self.use_manual_params:
            console.log("Using manually set parameters")
            params = read_manual_params(self.episode, self.manual_param_file, self.rng,
                                        n_params=action_len(self.n_actions))
        else:
            params = actions

        sine_params = transform_actions(
            params,
            self.n_actions,
            ignore_touch_sensors=self.ignore_touch_sensors,
            hysteresis_seconds=self.hysteresis_seconds,
        )
        self.ignore_touch_sensors = sine_params.ignore_touch_sensors
        self.hysteresis_seconds = sine_params.hysteresis_seconds
        return sine_params

    def apply_actions(self, params: SineParams) -> None:
        self.sines = SineWaveBank(params, self.n_clusters, self.n_prisms)
        self.lock.hysteresis_seconds = self.hysteresis_seconds

    def print_sine_params(self) -> None:
        if self.sines is None:
            console.log("No sine waves yet")
            return
        for i, wave in enumerate(self.sines.describe()):
            console.log(f"[{i}] " + ", ".join(f"{k}={v:.4f}" for k, v in wave.items()))

    # ------------------------------------------------------------------- step
    def step(self, robot: RobotModel, dt: float) -> None:
        if dt <= 0.0:
            raise ValueError("dt is not positive")
        if self.phase is not Phase.RUNNING:
            raise ControllerStateError(f"step() while {self.phase.value}")

        self.total_time += dt

        if self.total_time < self.settle_seconds:
            if self.lock.update(robot.top_touch_sensors, robot.bottom_touch_sensors, is_top=False):
                bottom = robot.bottom_prismatic()
                bottom.set_preferred_length(bottom.actual_length())
            return

        if not self.recorded_start:
            self.init_position = np.array(robot.com(), dtype=float)
            self.recorded_start = True

        self.set_preferred_muscle_lengths(robot, dt)
        self.set_prismatic_lengths(robot, dt)
        self.move_motors(robot, dt)

    def set_preferred_muscle_lengths(self, robot: RobotModel, dt: float) -> None:
        velocities = self.sines.cluster_targets(self.total_time)
        for muscles, velocity in zip(self.clusters, velocities):
            for muscle in muscles:
                self.impedance.control(muscle, dt, self.initial_length, velocity)

    def set_prismatic_lengths(self, robot: RobotModel, dt: float) -> None:
        lengths = self.sines.prism_targets(self.total_time)
        top = robot.top_prismatic()
        for prism, length in zip(self.prisms, lengths):
            if self.ignore_touch_sensors:
                prism.set_preferred_length(length)
                continue

            is_top = prism is top
            self.lock.update(robot.top_touch_sensors, robot.bottom_touch_sensors, is_top)
            if not self.lock.is_paused(is_top):
                prism.set_preferred_length(length)

    def move_motors(self, robot: RobotModel, dt: float) -> None:
        for muscle in robot.all_muscles():
            muscle.move_motors(dt)
        robot.bottom_prismatic().move_motors(dt)
        robot.top_prismatic().move_motors(dt)

    # --------------------------------------------------------------- teardown
    def teardown(self, robot: RobotModel) -> EpisodeMetrics:
        if self.phase is not Phase.RUNNING:
            raise ControllerStateError(f"teardown() while {self.phase.value}")

        distance = self.displacement(robot)
        energy = self.total_energy_spent(robot)
        metrics = EpisodeMetrics(
            displacement=BAD_RUN_DISPLACEMENT if self.bad_run else distance,
            energy_spent=energy,
        )
        self.adapter.end_episode(metrics.as_scores())
        self.last_metrics = metrics

        self.sines = None
        self.actions = None
        self.total_time = 0.0
        self.recorded_start = False
        self.init_position = None
        self.bad_run = False
        self.lock.reset()
        self.episode += 1
        self.phase = Phase.TORNDOWN
        console.log("Torn down")
        return metrics

    def displacement(self, robot: RobotModel) -> float:
        if self.init_position is None:
            # episode ended before the settling phase did
            console.log("[yellow]No start position recorded, displacement is 0[/yellow]")
            return 0.0
        return displacement(self.init_position, robot.com(), self.axis)

    def total_energy_spent(self, robot: RobotModel) -> float:
        return total_energy_spent(robot.all_muscles())

    def finish(self) -> None:
        """End of the run: flush the episode table and close the W&B run."""
        if self.engine is not None:
            self.engine.finish()
