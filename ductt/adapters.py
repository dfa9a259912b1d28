# ductt/adapters.py
"""
The narrow boundary between the controller and the learning process.

initialize(engine, is_learning, config)
step(dt, state) -> action vector in [0,1]
end_episode([displacement, energy_spent])
"""

from __future__ import annotations
from typing import Protocol, Sequence

import numpy as np
import torch

from .config import EvoConfig
from .evolution import CMAEvolution, NeuroEvolution

N_SCORES = 2


class LearningAdapter(Protocol):
    def initialize(self, engine, is_learning: bool, config: EvoConfig) -> None: ...
    def step(self, dt: float, state: Sequence[float]) -> np.ndarray: ...
    def end_episode(self, scores: Sequence[float]) -> None: ...


def _check_scores(scores: Sequence[float]) -> list[float]:
    scores = [float(s) for s in scores]
    if len(scores) != N_SCORES:
        raise ValueError(f"end_episode expects [displacement, energy], got {len(scores)} scores")
    return scores


class EvolutionAdapter:
    """Hands out CMA-ES candidates directly as action vectors."""

    def __init__(self):
        self.engine: CMAEvolution | None = None

    def initialize(self, engine: CMAEvolution, is_learning: bool, config: EvoConfig) -> None:
        self.engine = engine
        engine.start(is_learning)

    def step(self, dt: float, state: Sequence[float]) -> np.ndarray:
        # the sine parameters are stateless: `state` is ignored here
        if self.engine is None:
            raise RuntimeError("adapter used before initialize()")
        return np.clip(self.engine.next_candidate(), 0.0, 1.0)

    def end_episode(self, scores: Sequence[float]) -> None:
        if self.engine is None:
            raise RuntimeError("adapter used before initialize()")
        self.engine.report(_check_scores(scores))


class NeuroAdapter:
    """Runs the candidate network on the observation to get the action vector."""

    def __init__(self):
        self.engine: NeuroEvolution | None = None

    def initialize(self, engine: NeuroEvolution, is_learning: bool, config: EvoConfig) -> None:
        self.engine = engine
        engine.start(is_learning)

    def step(self, dt: float, state: Sequence[float]) -> np.ndarray:
        if self.engine is None:
            raise RuntimeError("adapter used before initialize()")
        net = self.engine.next_network()
        obs = torch.as_tensor(np.asarray(state, dtype=np.float32).ravel())
        if obs.numel() != net.input_size:
            raise ValueError(f"network expects {net.input_size} state values, got {obs.numel()}")
        with torch.no_grad():
            out = net(obs)
        return out.squeeze(0).numpy().astype(float)

    def end_episode(self, scores: Sequence[float]) -> None:
        if self.engine is None:
            raise RuntimeError("adapter used before initialize()")
        self.engine.report(_check_scores(scores))
