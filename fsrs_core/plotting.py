from __future__ import annotations

import matplotlib.pyplot as plt

from fsrs_core.evaluate import Evaluation


def plot_calibration(evaluation: Evaluation, ax=None):
    """Predicted against observed recall per calibration bin."""
    if ax is None:
        _, ax = plt.subplots(figsize=(6, 6))
    predicted = [b.predicted for b in evaluation.bins]
    observed = [b.observed for b in evaluation.bins]
    counts = [b.count for b in evaluation.bins]
    largest = max(counts) if counts else 1

    ax.plot([0, 1], [0, 1], color="tab:gray", linestyle="--", label="Perfect calibration")
    ax.plot(predicted, observed, color="tab:blue", label="Observed")
    ax.scatter(
        predicted,
        observed,
        s=[20 + 180 * c / largest for c in counts],
        color="tab:blue",
        alpha=0.6,
    )
    ax.set_xlim(0, 1.0)
    ax.set_ylim(0, 1.05)
    ax.set_xlabel("Predicted recall")
    ax.set_ylabel("Observed recall")
    ax.set_title(
        f"Log loss={evaluation.log_loss:.4f}  RMSE(bins)={evaluation.calibration_error:.4f}"
    )
    ax.legend(loc="upper left")
    return ax


__all__ = ["plot_calibration"]
