from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np
import torch

from fsrs_core.dataset import TrainingSet
from fsrs_core.defaults import resolve_parameters
from fsrs_core.errors import EmptyHistory, NumericalDivergence
from fsrs_core.math.fsrs import Bounds
from fsrs_core.math.fsrs_batch import forgetting_curve, forward
from fsrs_core.types import TrainingItem

EPS = 1e-7
CALIBRATION_BINS = 20


@dataclass(frozen=True)
class CalibrationBin:
    predicted: float
    observed: float
    count: int


@dataclass(frozen=True)
class Evaluation:
    log_loss: float
    calibration_error: float
    bins: tuple[CalibrationBin, ...]
    size: int

    def to_dict(self) -> dict[str, float]:
        return {
            "log_loss": self.log_loss,
            "calibration_error": self.calibration_error,
        }


def predict(
    weights: torch.Tensor,
    training_set: TrainingSet,
    bounds: Bounds = Bounds(),
    *,
    short_term: bool = True,
) -> tuple[torch.Tensor, torch.Tensor]:
    """Predicted recall probability and observed label for every item."""
    predictions: list[torch.Tensor] = []
    labels: list[torch.Tensor] = []
    for batch in training_set.full_batches():
        s, _ = forward(
            weights, batch.t_history, batch.r_history, bounds, short_term=short_term
        )
        predictions.append(forgetting_curve(weights, batch.delta_t, s, bounds.s_min))
        labels.append(batch.labels)
    return torch.cat(predictions), torch.cat(labels)


def binary_log_loss(predictions: torch.Tensor, labels: torch.Tensor) -> torch.Tensor:
    p = torch.clamp(predictions, EPS, 1.0 - EPS)
    return -(labels * torch.log(p) + (1.0 - labels) * torch.log(1.0 - p)).mean()


def calibration_bins(
    predictions: np.ndarray, labels: np.ndarray, n_bins: int = CALIBRATION_BINS
) -> tuple[CalibrationBin, ...]:
    idx = np.round(predictions * n_bins).astype(np.int64)
    bins = []
    for value in np.unique(idx):
        mask = idx == value
        bins.append(
            CalibrationBin(
                predicted=float(predictions[mask].mean()),
                observed=float(labels[mask].mean()),
                count=int(mask.sum()),
            )
        )
    return tuple(bins)


def calibration_rmse(bins: Sequence[CalibrationBin]) -> float:
    total = sum(b.count for b in bins)
    if total == 0:
        return math.nan
    weighted = sum((b.predicted - b.observed) ** 2 * b.count for b in bins)
    return math.sqrt(weighted / total)


def evaluate(
    items: Sequence[TrainingItem],
    parameters: Sequence[float] | None = None,
    *,
    short_term: bool = True,
    bounds: Bounds = Bounds(),
) -> Evaluation:
    if not items:
        raise EmptyHistory("No training items to evaluate.")
    weights = torch.tensor(resolve_parameters(parameters), dtype=torch.float32)
    training_set = TrainingSet(items)
    with torch.no_grad():
        predictions, labels = predict(
            weights, training_set, bounds, short_term=short_term
        )
        loss = float(binary_log_loss(predictions, labels))
    if not math.isfinite(loss):
        raise NumericalDivergence("Evaluation produced a non-finite log loss.")
    bins = calibration_bins(
        predictions.numpy().astype(np.float64), labels.numpy().astype(np.float64)
    )
    return Evaluation(
        log_loss=loss,
        calibration_error=calibration_rmse(bins),
        bins=bins,
        size=len(training_set),
    )


__all__ = [
    "CALIBRATION_BINS",
    "CalibrationBin",
    "Evaluation",
    "binary_log_loss",
    "calibration_bins",
    "calibration_rmse",
    "evaluate",
    "predict",
]
