# ductt/evolution.py
"""
Evolution engines that sit behind the learning adapters.

Both engines run CMA-ES in ask/tell form, but one episode scores one
candidate: the population is handed out one candidate per episode and
`tell()` is called once every candidate of the generation has a score.

- CMAEvolution: the candidate IS the action vector (bounded to [0,1])
- NeuroEvolution: the candidate is the flat weight vector of a small MLP
  whose sigmoid output is the action vector
"""

from __future__ import annotations
import time
from pathlib import Path
from typing import Any, Sequence

import cma
import numpy as np
import pandas as pd
import torch
import torch.nn as nn
import wandb

from . import console
from .config import EvoConfig
from .params import (
    N_TOTAL_PARAMS,
    POP_SIZE,
    SIGMA_INIT,
    HIDDEN_SIZE,
    SEED,
    ENTITY,
    PROJECT,
    CONFIG,
)

CWD = Path.cwd()
DATA = CWD / "__data__"


# --- parquet if available, else CSV ---
def save_table(df: pd.DataFrame, out_path: Path) -> str:
    try:
        df.to_parquet(out_path, index=False)
        return str(out_path)
    except (ImportError, ValueError):
        csv_path = out_path.with_suffix(".csv")
        df.to_csv(csv_path, index=False)
        return str(csv_path)


class CMAEvolution:
    """
    CMA-ES over the [0,1] action vector, one candidate per episode.

    Config keys: populationSize, initialSigma, numberOfActions, seed, useWandb
    """

    bounds: tuple[float, float] | None = (0.0, 1.0)
    kind = "cma"

    def __init__(self, suffix: str, config: EvoConfig, *, data_dir: Path | None = None):
        self.suffix = suffix
        self.data_dir = Path(data_dir) if data_dir is not None else DATA
        self.pop_size = config.get_int_value("populationSize", POP_SIZE)
        self.sigma = config.get_double_value("initialSigma", SIGMA_INIT)
        self.seed = config.get_int_value("seed", SEED)
        self.n_actions = config.get_int_value("numberOfActions", N_TOTAL_PARAMS)
        self.is_learning = True

        self.es: cma.CMAEvolutionStrategy | None = None
        self.population: list[np.ndarray] = []
        self.losses: list[float] = []
        self.current: np.ndarray | None = None
        self.generation = 0
        self.episode = 0
        self.best_f_overall = -np.inf
        self.best_x: np.ndarray | None = None
        self.rows: list[dict[str, Any]] = []

        now = time.strftime("%Y%m%dT%H%M%S")
        self.run_name = f"{self.kind}{suffix}_{now}"
        self.run = None
        self.use_wandb = config.get_bool_value("useWandb", False)

    # -- things subclasses change --
    @property
    def dimension(self) -> int:
        return self.n_actions

    def initial_mean(self) -> np.ndarray:
        return np.full(self.dimension, 0.5)

    @property
    def best_path(self) -> Path:
        return self.data_dir / f"best_params{self.suffix}.npy"

    def save_best(self, x: np.ndarray) -> None:
        np.save(self.best_path, x)

    def load_best(self) -> np.ndarray | None:
        if self.best_path.exists():
            return np.load(self.best_path)
        return None

    # -- lifecycle --
    def start(self, is_learning: bool) -> None:
        """Called on every episode setup; the search itself is only built once."""
        self.is_learning = is_learning
        if self.es is not None:
            return

        opts: dict[str, Any] = {"popsize": self.pop_size, "seed": self.seed, "verbose": -9}
        if self.bounds is not None:
            opts["bounds"] = list(self.bounds)
        self.es = cma.CMAEvolutionStrategy(self.initial_mean(), self.sigma, opts)

        if self.use_wandb and self.run is None:
            self.run = wandb.init(
                entity=ENTITY,
                project=PROJECT,
                name=self.run_name,
                config={**CONFIG, "Population Size": self.pop_size,
                        "Initial Sigma": self.sigma, "Engine": self.kind},
            )
        console.log(f"{self.kind} engine ready: dim={self.dimension} "
                    f"pop={self.pop_size} sigma={self.sigma} learning={is_learning}")

    def next_candidate(self) -> np.ndarray:
        """Candidate for the coming episode."""
        if self.es is None:
            raise RuntimeError("engine used before start()")

        if not self.is_learning:
            best = self.load_best()
            self.current = best if best is not None else np.asarray(self.es.mean, dtype=float)
            return self.current

        if len(self.losses) == len(self.population):
            # whole generation scored (or nothing asked yet): sample a new one
            self.population = [np.asarray(x, dtype=float) for x in self.es.ask()]
            self.losses = []
        self.current = self.population[len(self.losses)]
        return self.current

    def report(self, scores: Sequence[float]) -> None:
        """Score of the candidate handed out last. scores = [displacement, energy]."""
        if self.current is None:
            raise RuntimeError("report() without a candidate")
        displacement, energy = float(scores[0]), float(scores[1])
        self.episode += 1

        row = {
            "episode": self.episode,
            "generation": self.generation,
            "displacement": displacement,
            "energy": energy,
        }
        self.rows.append(row)
        if self.run is not None:
            self.run.log(row, step=self.episode)

        if displacement > self.best_f_overall:
            self.best_f_overall = displacement
            self.best_x = self.current.copy()

        if not self.is_learning:
            # replay: nothing to tell, keep the table current per episode
            self.current = None
            self.save_scores()
            return

        # CMA-ES minimizes, so we negate the displacement
        self.losses.append(-displacement)
        self.current = None
        if len(self.losses) == len(self.population):
            self._end_generation()

    def _end_generation(self) -> None:
        self.es.tell(self.population, self.losses)
        gen_best = -min(self.losses)
        console.log(f"[{self.kind}{self.suffix}] gen {self.generation + 1:03d}  "
                    f"best={gen_best:.4f}  best overall={self.best_f_overall:.4f}")
        if self.run is not None:
            self.run.log({"gen": self.generation, "best_f_in_gen": gen_best,
                          "best_f_overall": self.best_f_overall}, step=self.episode)

        self.data_dir.mkdir(parents=True, exist_ok=True)
        if self.best_x is not None:
            self.save_best(self.best_x)
        self.save_scores()
        self.generation += 1

    def save_scores(self) -> str | None:
        if not self.rows:
            return None
        self.data_dir.mkdir(parents=True, exist_ok=True)
        return save_table(pd.DataFrame(self.rows), self.data_dir / f"scores{self.suffix}.parquet")

    def finish(self) -> None:
        path = self.save_scores()
        if self.run is not None:
            if path is not None:
                artifact = wandb.Artifact(
                    name=f"{self.run_name}-raw-data",
                    type="raw_data",
                    metadata={"episodes": self.episode, "generations": self.generation},
                )
                artifact.add_file(path)
                self.run.log_artifact(artifact)
            self.run.finish()
            self.run = None


class Policy(nn.Module):
    """MLP from the (possibly empty) observation plus a bias input to [0,1] actions."""

    def __init__(self, input_size: int, output_size: int, hidden_size: int = HIDDEN_SIZE):
        super().__init__()
        self.input_size = input_size
        self.net = nn.Sequential(
            nn.Linear(input_size + 1, hidden_size),
            nn.Tanh(),
            nn.Linear(hidden_size, output_size),
            nn.Sigmoid(),
        )

    def forward(self, x):
        if x.dim() == 1:
            x = x.unsqueeze(0)
        bias = torch.ones(x.shape[0], 1, dtype=x.dtype)
        return self.net(torch.cat([x, bias], dim=1))


class NeuroEvolution(CMAEvolution):
    """
    CMA-ES over MLP weights.

    Extra config keys: numberOfStates, numberOfHidden
    """

    bounds = None
    kind = "neuro"

    def __init__(self, suffix: str, config: EvoConfig, *, data_dir: Path | None = None):
        super().__init__(suffix, config, data_dir=data_dir)
        self.n_states = config.get_int_value("numberOfStates", 0)
        self.hidden = config.get_int_value("numberOfHidden", HIDDEN_SIZE)
        torch.manual_seed(self.seed)
        self.policy = Policy(self.n_states, self.n_actions, self.hidden)

    @property
    def dimension(self) -> int:
        return sum(p.numel() for p in self.policy.parameters())

    def initial_mean(self) -> np.ndarray:
        return nn.utils.parameters_to_vector(self.policy.parameters()).detach().numpy().astype(float)

    @property
    def best_path(self) -> Path:
        return self.data_dir / f"best_policy{self.suffix}.pth"

    def save_best(self, x: np.ndarray) -> None:
        net = Policy(self.n_states, self.n_actions, self.hidden)
        nn.utils.vector_to_parameters(torch.as_tensor(x, dtype=torch.float32), net.parameters())
        torch.save(net.state_dict(), self.best_path)

    def load_best(self) -> np.ndarray | None:
        if not self.best_path.exists():
            return None
        net = Policy(self.n_states, self.n_actions, self.hidden)
        net.load_state_dict(torch.load(self.best_path))
        return nn.utils.parameters_to_vector(net.parameters()).detach().numpy().astype(float)

    def next_network(self) -> Policy:
        """Policy loaded with the weights of the next candidate."""
        weights = self.next_candidate()
        nn.utils.vector_to_parameters(torch.as_tensor(weights, dtype=torch.float32),
                                      self.policy.parameters())
        return self.policy
