from __future__ import annotations

import math

from fsrs_core.errors import InvalidRetention
from fsrs_core.math.fsrs import _clamp_d, _clamp_s, stability_for_interval
from fsrs_core.model import FSRS
from fsrs_core.types import MemoryState


def from_sm2(
    ease_factor: float,
    interval_days: float,
    assumed_retention: float,
    *,
    model: FSRS | None = None,
) -> MemoryState:
    """
    Initial memory state for a card migrated from SM-2.

    Stability is chosen so that scheduling it at `assumed_retention` gives
    back `interval_days`. Difficulty inverts the success stability update,
    treating the SM-2 ease factor as the growth factor of one review.
    """
    ease_factor = float(ease_factor)
    if not (math.isfinite(ease_factor) and ease_factor > 0):
        raise ValueError(f"ease_factor must be positive, got {ease_factor}.")
    retention = float(assumed_retention)
    if not (0.0 < retention < 1.0):
        raise InvalidRetention(
            f"sm2_retention must be in (0, 1), got {assumed_retention}."
        )
    model = model or FSRS()
    w = model.params.weights
    bounds = model.params.bounds

    stability = _clamp_s(
        bounds, stability_for_interval(max(float(interval_days), bounds.s_min), retention)
    )
    growth = (
        math.exp(w[8])
        * stability ** (-w[9])
        * math.expm1((1.0 - retention) * w[10])
    )
    if growth > 0:
        difficulty = 11.0 - (ease_factor - 1.0) / growth
    else:
        difficulty = bounds.d_max
    return MemoryState(stability, _clamp_d(bounds, difficulty))


__all__ = ["from_sm2"]
