import pandas as pd
import pytest

from ductt.plot_scores import best_per_generation, load_scores, plot_scores


@pytest.fixture
def scores():
    rows = []
    for g in range(6):
        for e in range(3):
            rows.append({"episode": 3 * g + e + 1, "generation": g,
                         "displacement": g + 0.1 * e, "energy": -1.0})
    return pd.DataFrame(rows)


def test_best_per_generation(scores):
    per_gen = best_per_generation(scores)
    assert list(per_gen["generation"]) == list(range(6))
    assert per_gen["best"].iloc[2] == pytest.approx(2.2)
    assert per_gen["mean"].iloc[2] == pytest.approx(2.1)


def test_plot_and_reload(tmp_path, scores):
    csv = tmp_path / "scores.csv"
    scores.to_csv(csv, index=False)
    out = plot_scores(load_scores(csv), tmp_path / "scores.png")
    assert out.exists()
