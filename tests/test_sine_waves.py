import math

import numpy as np
import pytest

from ductt.sine_params import SineParams
from ductt.sine_waves import SineWaveBank


def make_bank():
    table = np.array([
        # amplitude, angular frequency, phase change, dc offset
        [1.0, 2.0, 0.5, 0.0],
        [2.0, 1.0, 0.25, 1.0],
        [3.0, 0.5, 0.1, 5.0],
        [4.0, 3.0, 0.2, 6.0],
    ])
    return SineWaveBank(SineParams(table=table), n_clusters=2, n_prisms=2)


def test_cluster_phase_is_cumulative():
    bank = make_bank()
    t = 0.7
    expected = [
        1.0 * math.sin(2.0 * t + 0.0) + 0.0,
        2.0 * math.sin(1.0 * t + 0.5) + 1.0,
    ]
    np.testing.assert_allclose(bank.cluster_targets(t), expected)


def test_prisms_use_their_own_rows_and_accumulator():
    bank = make_bank()
    t = 1.3
    expected = [
        3.0 * math.sin(0.5 * t + 0.0) + 5.0,
        4.0 * math.sin(3.0 * t + 0.1) + 6.0,
    ]
    np.testing.assert_allclose(bank.prism_targets(t), expected)


def test_target_at_time_zero_is_offset_plus_phase_term():
    bank = make_bank()
    assert bank.target(1, 0.0, 0.0) == pytest.approx(1.0)
    assert bank.target(1, 0.0, math.pi / 2) == pytest.approx(3.0)


def test_bank_copies_parameters():
    table = np.ones((4, 4))
    bank = SineWaveBank(SineParams(table=table))
    table[:] = 0.0
    assert bank.amplitude[0] == 1.0


def test_group_count_must_match_layout():
    with pytest.raises(ValueError):
        SineWaveBank(SineParams(table=np.ones((3, 4))), n_clusters=2, n_prisms=2)


def test_describe_lists_every_group():
    waves = make_bank().describe()
    assert len(waves) == 4
    assert waves[3] == {"amplitude": 4.0, "angular_frequency": 3.0,
                        "phase_change": 0.2, "dc_offset": 6.0}
