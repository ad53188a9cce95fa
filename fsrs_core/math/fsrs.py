from __future__ import annotations

import dataclasses
import math
from typing import Tuple

from fsrs_core.types import Rating

# Reference power curve: R(S, S) = 0.9.
DECAY = -0.5
FACTOR = 19.0 / 81.0


@dataclasses.dataclass(frozen=True)
class Bounds:
    s_min: float = 0.001
    s_max: float = 36500.0
    d_min: float = 1.0
    d_max: float = 10.0


@dataclasses.dataclass(frozen=True)
class FSRSParams:
    weights: Tuple[float, ...]
    bounds: Bounds = Bounds()

    def __post_init__(self) -> None:
        if len(self.weights) != 21:
            raise ValueError("FSRSParams expects 21 weights.")

    @property
    def decay(self) -> float:
        return -self.weights[20]


def retrievability(stability: float, elapsed_days: float) -> float:
    if elapsed_days < 0:
        raise ValueError(f"elapsed_days must be non-negative, got {elapsed_days}.")
    if stability <= 0:
        return 1.0
    return (1.0 + FACTOR * elapsed_days / stability) ** DECAY


def interval_for_retention(stability: float, desired_retention: float) -> float:
    """Unrounded inverse of `retrievability`."""
    return stability / FACTOR * (desired_retention ** (1.0 / DECAY) - 1.0)


def stability_for_interval(interval: float, retention: float) -> float:
    return interval * FACTOR / (retention ** (1.0 / DECAY) - 1.0)


# --------------------------- model helpers --------------------------- #


def init_stability(p: FSRSParams, rating: Rating) -> float:
    return _clamp_s(p.bounds, p.weights[rating - 1])


def init_difficulty(p: FSRSParams, rating: Rating) -> float:
    return p.weights[4] - math.exp(p.weights[5] * (rating - 1)) + 1.0


def init_state(p: FSRSParams, rating: Rating) -> Tuple[float, float]:
    return init_stability(p, rating), _clamp_d(p.bounds, init_difficulty(p, rating))


def forgetting_curve(p: FSRSParams, t: float, s: float) -> float:
    decay = p.decay
    if decay == 0.0:
        return 1.0
    factor = 0.9 ** (1.0 / decay) - 1.0
    return (1.0 + factor * t / max(s, p.bounds.s_min)) ** decay


def next_d(p: FSRSParams, d: float, rating: Rating) -> float:
    delta_d = -p.weights[6] * (rating - 3.0)
    new_d = d + _linear_damping(delta_d, d)
    new_d = _mean_reversion(p.weights[7], init_difficulty(p, Rating.EASY), new_d)
    return _clamp_d(p.bounds, new_d)


def stability_short_term(p: FSRSParams, s: float, rating: Rating) -> float:
    sinc = math.exp(p.weights[17] * (rating - 3 + p.weights[18])) * (
        s ** (-p.weights[19])
    )
    return s * (max(1.0, sinc) if rating >= Rating.GOOD else sinc)


def stability_after_success(
    p: FSRSParams, s: float, r: float, d: float, rating: Rating
) -> float:
    inc = (
        math.exp(p.weights[8])
        * (11.0 - d)
        * (s ** (-p.weights[9]))
        * (math.exp((1.0 - r) * p.weights[10]) - 1.0)
    )
    return s * (1.0 + inc * rating.success_multiplier(p.weights))


def stability_after_failure(p: FSRSParams, s: float, r: float, d: float) -> float:
    new_s = (
        p.weights[11]
        * (d ** (-p.weights[12]))
        * ((s + 1.0) ** p.weights[13] - 1.0)
        * math.exp((1.0 - r) * p.weights[14])
    )
    new_min = s / math.exp(p.weights[17] * p.weights[18])
    return min(new_s, new_min)


def step(
    p: FSRSParams,
    s: float,
    d: float,
    elapsed: float,
    rating: Rating,
    *,
    short_term: bool = True,
) -> Tuple[float, float]:
    r = forgetting_curve(p, elapsed, s)
    if elapsed == 0:
        if short_term:
            s = stability_short_term(p, s, rating)
    elif rating.is_recall:
        s = stability_after_success(p, s, r, d, rating)
    else:
        s = stability_after_failure(p, s, r, d)
    d = next_d(p, d, rating)
    return _clamp_s(p.bounds, s), d


# --------------------------- shared helpers --------------------------- #


def _linear_damping(delta_d: float, old_d: float) -> float:
    return delta_d * (10.0 - old_d) / 9.0


def _mean_reversion(weight: float, init: float, current: float) -> float:
    return weight * init + (1.0 - weight) * current


def _clamp_s(bounds: Bounds, s: float) -> float:
    return max(bounds.s_min, min(s, bounds.s_max))


def _clamp_d(bounds: Bounds, d: float) -> float:
    return max(bounds.d_min, min(d, bounds.d_max))
