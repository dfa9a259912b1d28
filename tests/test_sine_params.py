import math

import numpy as np
import pytest

from ductt.params import PARAM_MINS, PARAM_MAXES
from ductt.sine_params import (
    ActionSizeError,
    action_len,
    read_manual_params,
    transform_actions,
)


def test_half_vector_maps_to_midpoints(half_actions):
    params = transform_actions(half_actions, 4)

    assert params.n_actions == 4
    for amp, freq, phase, offset in params.rows():
        assert amp == pytest.approx(20.0)
        assert freq == pytest.approx(10.15)
        assert phase == pytest.approx(0.0)
        assert offset == pytest.approx(20.0)
    # 0.5 is not < 0.5
    assert params.ignore_touch_sensors is False
    assert params.hysteresis_seconds == pytest.approx(1.0)


@pytest.mark.parametrize("seed", [0, 1, 2, 3])
def test_random_vectors_stay_in_range(seed):
    rng = np.random.default_rng(seed)
    vec = rng.random(action_len(4))
    vec[:4] = [0.0, 1.0, 0.0, 1.0]
    table = transform_actions(vec, 4).table

    assert table.shape == (4, 4)
    assert np.all(table >= np.asarray(PARAM_MINS) - 1e-12)
    assert np.all(table <= np.asarray(PARAM_MAXES) + 1e-12)
    assert table[0, 0] == pytest.approx(0.0)
    assert table[0, 1] == pytest.approx(20.0)
    assert table[0, 2] == pytest.approx(-math.pi)
    assert table[0, 3] == pytest.approx(40.0)


def test_trailing_genes_decode():
    vec = np.full(18, 0.5)
    vec[-2] = 0.2
    vec[-1] = 0.25
    params = transform_actions(vec, 4)
    assert params.ignore_touch_sensors is True
    assert params.hysteresis_seconds == pytest.approx(0.5)


def test_without_trailing_genes_defaults_are_kept():
    params = transform_actions(np.full(16, 0.5), 4,
                               ignore_touch_sensors=False, hysteresis_seconds=1.7)
    assert params.ignore_touch_sensors is False
    assert params.hysteresis_seconds == 1.7


@pytest.mark.parametrize("size", [0, 15, 17, 19, 20])
def test_wrong_size_is_a_contract_error(size):
    with pytest.raises(ActionSizeError):
        transform_actions(np.full(size, 0.5), 4)


def test_manual_params_reads_requested_line(tmp_path):
    f = tmp_path / "params.csv"
    f.write_text(",".join(["0.1"] * 18) + "\n" + ",".join(["0.9"] * 18) + "\n")
    rng = np.random.default_rng(0)

    first = read_manual_params(1, f, rng, n_params=18)
    second = read_manual_params(2, f, rng, n_params=18)

    np.testing.assert_allclose(first, 0.1, atol=0.005)
    np.testing.assert_allclose(second, 0.9, atol=0.005)


def test_manual_params_noise_is_applied(tmp_path):
    f = tmp_path / "params.csv"
    f.write_text(",".join(["0.5"] * 18) + "\n")
    values = read_manual_params(1, f, np.random.default_rng(3), n_params=18)

    assert np.all(np.abs(values - 0.5) <= 0.005)
    assert not np.all(values == 0.5)


def test_manual_params_short_or_bad_lines_default_to_one(tmp_path):
    f = tmp_path / "params.csv"
    f.write_text("0.2,abc,0.3\n")
    values = read_manual_params(1, f, np.random.default_rng(1), n_params=6)

    np.testing.assert_allclose(values, [0.2, 1.0, 0.3, 1.0, 1.0, 1.0], atol=0.005)


def test_manual_params_missing_file_or_line(tmp_path):
    rng = np.random.default_rng(2)
    missing = read_manual_params(1, tmp_path / "nope.csv", rng, n_params=18)
    np.testing.assert_allclose(missing, 1.0, atol=0.005)

    f = tmp_path / "params.csv"
    f.write_text("0.1,0.1\n")
    past_end = read_manual_params(5, f, rng, n_params=18)
    np.testing.assert_allclose(past_end, 1.0, atol=0.005)


def test_manual_params_line_numbers_start_at_one(tmp_path):
    with pytest.raises(ValueError):
        read_manual_params(0, tmp_path / "params.csv", np.random.default_rng(0))
