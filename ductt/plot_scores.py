# ductt/plot_scores.py
## LEARNING CURVE FROM THE EPISODE SCORE TABLES ##

from __future__ import annotations
import argparse
from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd


def load_scores(path: str | Path) -> pd.DataFrame:
    """Episode table written by the evolution engines (parquet or CSV)."""
    path = Path(path)
    if path.suffix == ".parquet":
        return pd.read_parquet(path)
    return pd.read_csv(path)


def best_per_generation(df: pd.DataFrame) -> pd.DataFrame:
    """Best and mean displacement per generation."""
    grouped = df.groupby("generation")["displacement"]
    return pd.DataFrame({
        "best": grouped.max(),
        "mean": grouped.mean(),
    }).reset_index()


def moving_average(x, w=5):
    """Moving average with window w."""
    return np.convolve(x, np.ones(w)/w, mode="valid")


def plot_scores(df: pd.DataFrame, out_path: str | Path, title: str = "DuCTT sine controller") -> Path:
    per_gen = best_per_generation(df)
    xs = per_gen["generation"].to_numpy() + 1

    plt.figure(figsize=(9, 5.5))
    plt.plot(xs, per_gen["best"], label="best of generation")
    plt.plot(xs, per_gen["mean"], label="mean of generation", alpha=0.6)

    if len(per_gen) >= 5:
        smoothed = moving_average(per_gen["best"].to_numpy(), w=5)
        plt.plot(xs[:len(smoothed)], smoothed, linewidth=2, label="best (moving avg w=5)")

    plt.xlabel("Generation")
    plt.ylabel("Fitness = displacement")
    plt.title(title)
    plt.grid(True, linestyle="--", alpha=0.6)
    plt.legend(loc="lower right")
    plt.tight_layout()

    out_path = Path(out_path)
    plt.savefig(out_path, dpi=160)
    plt.close()
    return out_path


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("scores", type=str, help="Path to a scores .parquet/.csv file")
    ap.add_argument("--out", type=str, default=None, help="Output PNG (default: next to the scores)")
    args = ap.parse_args()

    scores = Path(args.scores)
    out = Path(args.out) if args.out else scores.with_suffix(".png")
    plot_scores(load_scores(scores), out)
    print(f"Saved {out}")


if __name__ == "__main__":
    main()
