# ductt/sine_waves.py
"""
Per-group sine waves for one episode.

u_g(t) = A_g * sin( w_g * t + phi_g ) + b_g

phi_g is cumulative: group 0 starts at 0 and every group adds its own
phase change after it is used, so phi_2 = dphi_0 + dphi_1.
Clusters and prisms each run their own accumulator.
"""

from __future__ import annotations
import math

import numpy as np

from .params import N_CLUSTERS, N_PRISMS
from .sine_params import SineParams


class SineWaveBank:
    """Sine wave parameters owned by a single episode."""

    def __init__(self, params: SineParams, n_clusters: int = N_CLUSTERS, n_prisms: int = N_PRISMS):
        if params.n_actions != n_clusters + n_prisms:
            raise ValueError(
                f"{params.n_actions} sine waves for {n_clusters} clusters + {n_prisms} prisms"
            )
        self.n_clusters = n_clusters
        self.n_prisms = n_prisms
        self.amplitude = params.amplitude.copy()
        self.angular_frequency = params.angular_frequency.copy()
        self.phase_change = params.phase_change.copy()
        self.dc_offset = params.dc_offset.copy()

    @property
    def n_actions(self) -> int:
        return self.amplitude.size

    def target(self, group: int, t: float, phase: float) -> float:
        return float(
            self.amplitude[group] * math.sin(self.angular_frequency[group] * t + phase)
            + self.dc_offset[group]
        )

    def _targets(self, groups: range, t: float) -> np.ndarray:
        out = np.empty(len(groups))
        phase = 0.0
        for k, g in enumerate(groups):
            out[k] = self.target(g, t, phase)
            phase += self.phase_change[g]
        return out

    def cluster_targets(self, t: float) -> np.ndarray:
        """Target velocity of every cluster at time t."""
        return self._targets(range(self.n_clusters), t)

    def prism_targets(self, t: float) -> np.ndarray:
        """Preferred length of every prism at time t (prism rows follow the clusters)."""
        return self._targets(range(self.n_clusters, self.n_clusters + self.n_prisms), t)

    def describe(self) -> list[dict[str, float]]:
        return [
            {
                "amplitude": float(self.amplitude[i]),
                "angular_frequency": float(self.angular_frequency[i]),
                "phase_change": float(self.phase_change[i]),
                "dc_offset": float(self.dc_offset[i]),
            }
            for i in range(self.n_actions)
        ]
