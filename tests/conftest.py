import numpy as np
import pytest

from ductt.config import EvoConfig
from ductt.robot import MuscleHistory


class FakeMuscle:
    def __init__(self, name, length=5.0):
        self.name = name
        self.length = length
        self.rest_length = length
        self.tension = 0.0
        self.vel = 0.0
        self.hist = MuscleHistory()
        self.control_inputs = []

    def set_control_input(self, target_length, dt):
        self.control_inputs.append(target_length)
        self.rest_length = target_length

    def set_tension(self, tension, dt):
        self.tension = tension

    def move_motors(self, dt):
        self.hist.tension_history.append(self.tension)
        self.hist.rest_lengths.append(self.rest_length)

    def current_length(self):
        return self.length

    def velocity(self):
        return self.vel

    def history(self):
        return self.hist


class FakePrism:
    def __init__(self, min_length=1.0, actual=2.5):
        self.min = min_length
        self.actual = actual
        self.preferred = None
        self.preferred_log = []
        self.motor_moves = 0

    def set_preferred_length(self, length):
        self.preferred = length
        self.preferred_log.append(length)

    def min_length(self):
        return self.min

    def actual_length(self):
        return self.actual

    def move_motors(self, dt):
        self.motor_moves += 1


class FakeSensor:
    def __init__(self, touching=False):
        self.touching = touching

    def is_touching(self):
        return self.touching


class FakeRobot:
    """Two clusters of four strings, two prisms, two sensors per end."""

    def __init__(self):
        self.muscles = [FakeMuscle(f"string cluster{c} {i}") for c in (1, 2) for i in range(4)]
        self.top = FakePrism()
        self.bottom = FakePrism()
        self.top_touch_sensors = [FakeSensor(), FakeSensor()]
        self.bottom_touch_sensors = [FakeSensor(), FakeSensor()]
        self.position = np.zeros(3)
        self.physics_steps = 0

    def all_muscles(self):
        return list(self.muscles)

    def find(self, pattern):
        return [m for m in self.muscles if m.name.startswith(pattern + " ")]

    def top_prismatic(self):
        return self.top

    def bottom_prismatic(self):
        return self.bottom

    def com(self):
        return self.position.copy()

    def tetra_com(self, is_bottom=True):
        return self.position.copy()

    def set_touch(self, top=None, bottom=None):
        if top is not None:
            for s in self.top_touch_sensors:
                s.touching = top
        if bottom is not None:
            for s in self.bottom_touch_sensors:
                s.touching = bottom

    def step(self, dt):
        self.physics_steps += 1
        self.position = self.position + np.array([0.0, 0.001, 0.0])


class ScriptedAdapter:
    """Returns a fixed action vector and remembers the scores it gets."""

    def __init__(self, actions):
        self.actions = np.asarray(actions, dtype=float)
        self.steps = []
        self.scores = []

    def initialize(self, engine, is_learning, config):
        pass

    def step(self, dt, state):
        self.steps.append(list(state))
        return self.actions.copy()

    def end_episode(self, scores):
        self.scores.append(list(scores))


@pytest.fixture
def robot():
    return FakeRobot()


@pytest.fixture
def config():
    return EvoConfig({"learning": "1", "populationSize": "4", "initialSigma": "0.2",
                      "seed": "7", "useWandb": "0"})


@pytest.fixture
def half_actions():
    return np.full(18, 0.5)
