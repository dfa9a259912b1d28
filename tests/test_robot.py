import pytest

from ductt.robot import ImpedanceController

from conftest import FakeMuscle


def test_impedance_tension_law():
    m = FakeMuscle("m", length=6.0)
    m.vel = 0.5
    ctrl = ImpedanceController(1000.0, 500.0, 10.0)

    t = ctrl.control(m, 0.001, set_length=5.0, set_velocity=2.0)
    # 1000 + 500 * (6 - 5) + 10 * (0.5 - 2)
    assert t == pytest.approx(1485.0)
    assert m.tension == pytest.approx(1485.0)


def test_impedance_never_pushes():
    m = FakeMuscle("m", length=1.0)
    ctrl = ImpedanceController(0.0, 500.0, 10.0)
    assert ctrl.control(m, 0.001, set_length=5.0, set_velocity=40.0) == 0.0
    assert m.tension == 0.0
