"""
Flat operations for host-language bindings.

Everything takes and returns plain numbers, lists and dicts. `optimize`
and `evaluate` never raise on bad data; they report `success=False`.
"""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence, TypedDict

import numpy as np

from fsrs_core import history, optimizer, sm2
from fsrs_core.defaults import DEFAULT_PARAMETERS, MODEL_VERSION
from fsrs_core.errors import FSRSError
from fsrs_core.evaluate import evaluate as _evaluate_items
from fsrs_core.math.fsrs import retrievability as _retrievability
from fsrs_core.model import FSRS
from fsrs_core.scheduler import next_interval as _next_interval
from fsrs_core.types import MemoryState


class OptimizeResult(TypedDict):
    parameters: list[float]
    success: bool
    error: Optional[str]


class EvaluateResult(TypedDict):
    log_loss: float
    calibration_error: float
    success: bool


def model_version() -> str:
    return MODEL_VERSION


def default_parameters() -> list[float]:
    return list(DEFAULT_PARAMETERS)


def next_interval(
    stability: float,
    desired_retention: float,
    params: Sequence[float] | None = None,
) -> float:
    # params only validated: intervals follow the reference curve
    FSRS(params)
    return _next_interval(stability, desired_retention)


def initial_state(rating: int, params: Sequence[float] | None = None) -> dict:
    return FSRS(params).initial_state(rating).to_dict()


def next_state(
    stability: float,
    difficulty: float,
    elapsed_days: float,
    rating: int,
    params: Sequence[float] | None = None,
) -> dict:
    prior = MemoryState(float(stability), float(difficulty))
    return FSRS(params).next_state(prior, elapsed_days, rating).to_dict()


def repeat(
    stability: float | None,
    difficulty: float | None,
    elapsed_days: float,
    desired_retention: float,
    params: Sequence[float] | None = None,
) -> dict:
    prior = None
    if stability is not None and difficulty is not None:
        prior = MemoryState(float(stability), float(difficulty))
    return FSRS(params).repeat(prior, elapsed_days, desired_retention).to_dict()


def retrievability(stability: float, elapsed_days: float) -> float:
    return _retrievability(float(stability), float(elapsed_days))


# Element-wise over the scalar formula so both forms agree bit for bit.
_retrievability_ufunc = np.vectorize(retrievability, otypes=[np.float64])


def retrievability_vec(
    stability: Sequence[float], elapsed_days: Sequence[float]
) -> list[float]:
    s = np.asarray(stability, dtype=np.float64)
    t = np.asarray(elapsed_days, dtype=np.float64)
    if s.shape != t.shape:
        raise ValueError(
            f"stability and elapsed_days must have equal length ({s.size} != {t.size})."
        )
    return _retrievability_ufunc(s, t).tolist()


def from_sm2(
    ease_factor: float,
    interval: float,
    sm2_retention: float,
    params: Sequence[float] | None = None,
) -> dict:
    return sm2.from_sm2(
        ease_factor, interval, sm2_retention, model=FSRS(params)
    ).to_dict()


def simulate(
    ratings: Sequence[int],
    params: Sequence[float] | None = None,
    desired_retention: float = 0.9,
) -> list[dict]:
    """One row per review of a new card reviewed on each scheduled day."""
    return [row.to_dict() for row in FSRS(params).simulate(ratings, desired_retention)]


def memory_state(
    ratings: Sequence[int],
    delta_ts: Sequence[int],
    initial_stability: float | None = None,
    initial_difficulty: float | None = None,
    params: Sequence[float] | None = None,
) -> dict:
    reviews = history.build_reviews(ratings, delta_ts)
    initial = None
    if initial_stability is not None and initial_difficulty is not None:
        initial = MemoryState(float(initial_stability), float(initial_difficulty))
    return history.memory_state(reviews, initial, model=FSRS(params)).to_dict()


def optimize(
    ratings: Sequence[int],
    delta_ts: Sequence[int],
    card_boundaries: Sequence[int],
    enable_short_term: bool = True,
    config: optimizer.OptimizerConfig | None = None,
) -> OptimizeResult:
    try:
        cards = history.split_cards(ratings, delta_ts, card_boundaries)
        result = optimizer.optimize(cards, enable_short_term, config)
    except (FSRSError, ValueError) as exc:
        logging.warning("Optimization failed: %s", exc)
        return {
            "parameters": [],
            "success": False,
            "error": f"{type(exc).__name__}: {exc}",
        }
    return {"parameters": list(result.parameters), "success": True, "error": None}


def evaluate(
    ratings: Sequence[int],
    delta_ts: Sequence[int],
    card_boundaries: Sequence[int],
    params: Sequence[float],
) -> EvaluateResult:
    try:
        cards = history.split_cards(ratings, delta_ts, card_boundaries)
        result = _evaluate_items(history.training_items(cards), params)
    except (FSRSError, ValueError) as exc:
        logging.warning("Evaluation failed: %s", exc)
        return {"log_loss": math.nan, "calibration_error": math.nan, "success": False}
    return {
        "log_loss": result.log_loss,
        "calibration_error": result.calibration_error,
        "success": True,
    }


__all__ = [
    "default_parameters",
    "evaluate",
    "from_sm2",
    "initial_state",
    "memory_state",
    "model_version",
    "next_interval",
    "next_state",
    "optimize",
    "repeat",
    "retrievability",
    "retrievability_vec",
    "simulate",
]
