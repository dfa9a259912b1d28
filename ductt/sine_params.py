# ductt/sine_params.py
"""
Flat action vector -> per-group sine wave parameters.

Vector layout (per actuator group i, values in [0,1]):
  A_i, w_i, dphi_i, b_i    # amplitude, angular frequency, phase change, dc offset
followed by two optional genes:
  ignore_touch, hysteresis

Flat length = 4 * n_actions (+ 2)

Each gene is mapped linearly into its channel range:
  value = gene * (max - min) + min
"""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from rich.markup import escape

from . import console
from .params import (
    N_PARAMS,
    N_ACTIONS,
    N_AUX_PARAMS,
    PARAM_MINS,
    PARAM_MAXES,
    IGNORE_TOUCH_THRESHOLD,
    HYSTERESIS_MIN,
    HYSTERESIS_MAX,
    DEFAULT_IGNORE_TOUCH,
    DEFAULT_HYSTERESIS_SECONDS,
    MANUAL_NOISE,
    MANUAL_DEFAULT,
)


class ActionSizeError(ValueError):
    """Action vector length does not match the actuator layout."""


@dataclass
class SineParams:
    """One row per actuator group: (amplitude, angular_frequency, phase_change, dc_offset)."""
    table: np.ndarray
    ignore_touch_sensors: bool = DEFAULT_IGNORE_TOUCH
    hysteresis_seconds: float = DEFAULT_HYSTERESIS_SECONDS

    @property
    def n_actions(self) -> int:
        return self.table.shape[0]

    @property
    def amplitude(self) -> np.ndarray:
        return self.table[:, 0]

    @property
    def angular_frequency(self) -> np.ndarray:
        return self.table[:, 1]

    @property
    def phase_change(self) -> np.ndarray:
        return self.table[:, 2]

    @property
    def dc_offset(self) -> np.ndarray:
        return self.table[:, 3]

    def rows(self) -> list[tuple[float, float, float, float]]:
        return [tuple(float(v) for v in row) for row in self.table]


def action_len(n_actions: int = N_ACTIONS, with_aux: bool = True) -> int:
    return N_PARAMS * int(n_actions) + (N_AUX_PARAMS if with_aux else 0)


def transform_actions(params: np.ndarray,
                      n_actions: int = N_ACTIONS,
                      *,
                      ignore_touch_sensors: bool = DEFAULT_IGNORE_TOUCH,
                      hysteresis_seconds: float = DEFAULT_HYSTERESIS_SECONDS) -> SineParams:
    """
    Scale a [0,1] parameter vector to the size of the structure.

    Going from 1x18 to 4x4 (+ touch flag, hysteresis).
    The two keyword arguments are the running defaults; they are overwritten
    only when the vector carries the trailing genes.
    """
    params = np.asarray(params, dtype=float).ravel()
    base = action_len(n_actions, with_aux=False)
    if params.size not in (base, base + N_AUX_PARAMS):
        raise ActionSizeError(
            f"expected {base} or {base + N_AUX_PARAMS} parameters for "
            f"{n_actions} actions, got {params.size}"
        )

    mins = np.asarray(PARAM_MINS)
    ranges = np.asarray(PARAM_MAXES) - mins
    table = params[:base].reshape(n_actions, N_PARAMS) * ranges + mins

    if params.size % N_PARAMS != 0:
        ignore_touch_sensors = bool(params[-2] < IGNORE_TOUCH_THRESHOLD)
        console.log(f"Ignoring touch sensors: {ignore_touch_sensors}")
        hysteresis_seconds = float(params[-1] * (HYSTERESIS_MAX - HYSTERESIS_MIN) + HYSTERESIS_MIN)

    return SineParams(
        table=table,
        ignore_touch_sensors=ignore_touch_sensors,
        hysteresis_seconds=hysteresis_seconds,
    )


def read_manual_params(line_number: int,
                       filename: str | Path,
                       rng: np.random.Generator,
                       n_params: int | None = None) -> np.ndarray:
    """
    Read starting parameters from line `line_number` (1-indexed) of a CSV-ish file.

    Missing or unreadable fields stay at 1.0. Every value, read or not, is
    then nudged by up to +/- 0.005 so repeated episodes do not collapse
    onto the exact same point.
    """
    if line_number < 1:
        raise ValueError(f"line numbers start at 1, got {line_number}")
    if n_params is None:
        n_params = action_len()

    result = np.full(n_params, MANUAL_DEFAULT, dtype=float)

    line = ""
    path = Path(filename)
    if path.is_file():
        with open(path, "r") as f:
            for i, raw in enumerate(f, start=1):
                if i == line_number:
                    line = raw.strip()
                    break
    else:
        console.log(f"[yellow]Manual parameter file {path} not found, using {MANUAL_DEFAULT}[/yellow]")

    cells = line.split(",") if line else []
    for i, cell in enumerate(cells[:n_params]):
        try:
            result[i] = float(cell)
        except ValueError:
            console.log(f"[yellow]Bad manual parameter {escape(repr(cell))} at line {line_number}, "
                        f"column {i + 1}; using {MANUAL_DEFAULT}[/yellow]")
    if len(cells) < n_params:
        console.log(f"[yellow]Line {line_number} of {path} has {len(cells)} of "
                    f"{n_params} parameters; padding with {MANUAL_DEFAULT}[/yellow]")

    result += rng.uniform(-MANUAL_NOISE, MANUAL_NOISE, size=n_params)
    return result
