# ductt/robot.py
"""
What the controller needs from the simulated DuCTT robot.

The physics engine and the robot construction live outside this package;
anything that quacks like these protocols can be driven.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Protocol, Sequence

import numpy as np

from .params import IMPEDANCE_GAINS


@dataclass
class MuscleHistory:
    """Per-timestep samples recorded by a cable actuator."""
    tension_history: list[float] = field(default_factory=list)
    rest_lengths: list[float] = field(default_factory=list)


class Muscle(Protocol):
    name: str

    def set_control_input(self, target_length: float, dt: float) -> None: ...
    def set_tension(self, tension: float, dt: float) -> None: ...
    def move_motors(self, dt: float) -> None: ...
    def current_length(self) -> float: ...
    def velocity(self) -> float: ...
    def history(self) -> MuscleHistory: ...


class Prismatic(Protocol):
    def set_preferred_length(self, length: float) -> None: ...
    def min_length(self) -> float: ...
    def actual_length(self) -> float: ...
    def move_motors(self, dt: float) -> None: ...


class TouchSensor(Protocol):
    def is_touching(self) -> bool: ...


class RobotModel(Protocol):
    top_touch_sensors: Sequence[TouchSensor]
    bottom_touch_sensors: Sequence[TouchSensor]

    def all_muscles(self) -> Sequence[Muscle]: ...
    def find(self, pattern: str) -> Sequence[Muscle]: ...
    def top_prismatic(self) -> Prismatic: ...
    def bottom_prismatic(self) -> Prismatic: ...
    def com(self) -> np.ndarray: ...
    def tetra_com(self, is_bottom: bool = True) -> np.ndarray:
        """COM of the bottom (or top) tetrahedron. Nothing in this package reads it yet."""
        ...


class ImpedanceController:
    """
    Turns a (length, velocity) set point into a cable tension:

      T = offset + k_len * (L - L_set) + k_vel * (v - v_set),   T >= 0
    """

    def __init__(self,
                 offset_tension: float = IMPEDANCE_GAINS[0],
                 length_stiffness: float = IMPEDANCE_GAINS[1],
                 vel_stiffness: float = IMPEDANCE_GAINS[2]):
        self.offset_tension = offset_tension
        self.length_stiffness = length_stiffness
        self.vel_stiffness = vel_stiffness

    def tension(self, muscle: Muscle, set_length: float, set_velocity: float) -> float:
        t = (self.offset_tension
             + self.length_stiffness * (muscle.current_length() - set_length)
             + self.vel_stiffness * (muscle.velocity() - set_velocity))
        # cables can only pull
        return max(t, 0.0)

    def control(self, muscle: Muscle, dt: float, set_length: float, set_velocity: float = 0.0) -> float:
        t = self.tension(muscle, set_length, set_velocity)
        muscle.set_tension(t, dt)
        return t
