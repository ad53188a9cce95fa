from __future__ import annotations

import math

from fsrs_core.errors import InvalidRetention
from fsrs_core.math.fsrs import interval_for_retention

# (start, end, share of the span added to the fuzz radius)
FUZZ_RANGES: list[tuple[float, float, float]] = [
    (2.5, 7.0, 0.15),
    (7.0, 20.0, 0.1),
    (20.0, float("inf"), 0.05),
]


def validate_retention(desired_retention: float) -> float:
    value = float(desired_retention)
    if not (0.0 < value <= 1.0):
        raise InvalidRetention(
            f"desired_retention must be in (0, 1], got {desired_retention}."
        )
    return value


def next_interval(
    stability: float,
    desired_retention: float,
    *,
    maximum_interval: int | None = None,
    fuzz_factor: float | None = None,
) -> float:
    """
    Days until recall probability falls to `desired_retention`, rounded to
    whole days, at least 1 and at most `maximum_interval` when one is given.

    `fuzz_factor` in [0, 1) picks a day from the fuzz range around the
    interval instead of the interval itself.
    """
    retention = validate_retention(desired_retention)
    if not math.isfinite(stability):
        raise ValueError(f"stability must be finite, got {stability}.")
    maximum = math.inf if maximum_interval is None else max(1, int(maximum_interval))
    interval = interval_for_retention(max(0.0, float(stability)), retention)
    return float(with_review_fuzz(fuzz_factor, interval, 1, maximum))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def fuzz_delta(interval: float) -> float:
    if interval < 2.5:
        return 0.0
    delta = 1.0
    for start, end, factor in FUZZ_RANGES:
        delta += factor * max(0.0, min(interval, end) - start)
    return delta


def fuzz_bounds(interval: float, minimum: int, maximum: float) -> tuple[int, int]:
    interval = max(float(minimum), min(float(maximum), interval))
    delta = fuzz_delta(interval)
    lower = max(minimum, min(maximum, _round_half_up(interval - delta)))
    upper = max(minimum, min(maximum, _round_half_up(interval + delta)))
    if upper == lower and 2 < upper < maximum:
        upper = lower + 1
    return lower, upper


def with_review_fuzz(
    fuzz_factor: float | None, interval: float, minimum: int, maximum: float
) -> int:
    if fuzz_factor is None:
        return max(minimum, min(maximum, _round_half_up(interval)))
    if not (0.0 <= fuzz_factor < 1.0):
        raise ValueError(f"fuzz_factor must be in [0, 1), got {fuzz_factor}.")
    lower, upper = fuzz_bounds(interval, minimum, maximum)
    return min(upper, int(math.floor(lower + fuzz_factor * (1 + upper - lower))))


__all__ = [
    "FUZZ_RANGES",
    "fuzz_bounds",
    "next_interval",
    "validate_retention",
    "with_review_fuzz",
]
