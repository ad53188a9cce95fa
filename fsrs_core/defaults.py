from __future__ import annotations

import math
from typing import Sequence

from fsrs_core.errors import InvalidParameterVector

MODEL_VERSION = "FSRS-6"

DEFAULT_PARAMETERS: tuple[float, ...] = (
    0.212,
    1.2931,
    2.3065,
    8.2956,
    6.4133,
    0.8334,
    3.0194,
    0.001,
    1.8722,
    0.1666,
    0.796,
    1.4835,
    0.0614,
    0.2629,
    1.6483,
    0.6014,
    1.8729,
    0.5425,
    0.0912,
    0.0658,
    0.1542,
)

# Spread of fitted parameters across the benchmark population.
DEFAULT_PARAMETERS_STDDEV: tuple[float, ...] = (
    6.43,
    9.66,
    17.58,
    27.85,
    0.57,
    0.28,
    0.6,
    0.12,
    0.39,
    0.18,
    0.33,
    0.3,
    0.09,
    0.16,
    0.57,
    0.25,
    1.03,
    0.31,
    0.32,
    0.14,
    0.27,
)

PARAMETER_COUNT = len(DEFAULT_PARAMETERS)

# FSRS-5 vectors stop at w18; w19 and w20 default to the fixed power curve.
_FSRS5_TAIL: tuple[float, ...] = (0.0, 0.5)


def resolve_parameters(parameters: Sequence[float] | None) -> tuple[float, ...]:
    if parameters is None:
        return DEFAULT_PARAMETERS
    try:
        vector = tuple(float(x) for x in parameters)
    except (TypeError, ValueError) as exc:
        raise InvalidParameterVector(f"Parameters must be numbers: {exc}") from exc
    missing = PARAMETER_COUNT - len(vector)
    if missing in (1, 2):
        vector = vector + _FSRS5_TAIL[-missing:]
    elif missing != 0:
        raise InvalidParameterVector(
            f"Expected 19 to {PARAMETER_COUNT} parameters, got {len(vector)}."
        )
    bad = [idx for idx, value in enumerate(vector) if not math.isfinite(value)]
    if bad:
        raise InvalidParameterVector(f"Non-finite parameters at positions {bad}.")
    return vector


__all__ = [
    "DEFAULT_PARAMETERS",
    "DEFAULT_PARAMETERS_STDDEV",
    "MODEL_VERSION",
    "PARAMETER_COUNT",
    "resolve_parameters",
]
