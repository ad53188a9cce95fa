from __future__ import annotations

import torch

from fsrs_core.math.fsrs import Bounds
from fsrs_core.types import Rating


def forgetting_curve(
    weights: torch.Tensor, t: torch.Tensor, s: torch.Tensor, s_min: float
) -> torch.Tensor:
    decay = -weights[20]
    factor = torch.pow(0.9, 1.0 / decay) - 1.0
    r = torch.pow(1.0 + factor * t / torch.clamp(s, min=s_min), decay)
    # decay == 0 is the flat limit of the curve
    return torch.where(decay == 0, torch.ones_like(r), r)


def success_multipliers(weights: torch.Tensor) -> torch.Tensor:
    one = torch.ones((), dtype=weights.dtype, device=weights.device)
    return torch.stack([one * rating.success_multiplier(weights) for rating in Rating])


def init_state(
    weights: torch.Tensor, rating: torch.Tensor, bounds: Bounds
) -> tuple[torch.Tensor, torch.Tensor]:
    rating_f = rating.to(dtype=weights.dtype)
    idx = torch.clamp(rating - 1, min=0, max=3)
    s = torch.clamp(weights[idx], bounds.s_min, bounds.s_max)
    d = weights[4] - torch.exp(weights[5] * (rating_f - 1.0)) + 1.0
    d = torch.clamp(d, bounds.d_min, bounds.d_max)
    return s, d


def next_d(
    weights: torch.Tensor, d: torch.Tensor, rating: torch.Tensor, bounds: Bounds
) -> torch.Tensor:
    rating_f = rating.to(dtype=weights.dtype)
    init_easy = weights[4] - torch.exp(weights[5] * 3.0) + 1.0
    delta_d = -weights[6] * (rating_f - 3.0)
    new_d = d + delta_d * (10.0 - d) / 9.0
    new_d = weights[7] * init_easy + (1.0 - weights[7]) * new_d
    return torch.clamp(new_d, bounds.d_min, bounds.d_max)


def stability_short_term(
    weights: torch.Tensor, s: torch.Tensor, rating: torch.Tensor
) -> torch.Tensor:
    rating_f = rating.to(dtype=weights.dtype)
    sinc = torch.exp(weights[17] * (rating_f - 3.0 + weights[18])) * torch.pow(
        s, -weights[19]
    )
    scale = torch.where(rating >= int(Rating.GOOD), torch.clamp(sinc, min=1.0), sinc)
    return s * scale


def stability_after_success(
    weights: torch.Tensor,
    s: torch.Tensor,
    r: torch.Tensor,
    d: torch.Tensor,
    rating: torch.Tensor,
) -> torch.Tensor:
    multiplier = success_multipliers(weights)[torch.clamp(rating - 1, 0, 3)]
    inc = (
        torch.exp(weights[8])
        * (11.0 - d)
        * torch.pow(s, -weights[9])
        * (torch.exp((1.0 - r) * weights[10]) - 1.0)
    )
    return s * (1.0 + inc * multiplier)


def stability_after_failure(
    weights: torch.Tensor, s: torch.Tensor, r: torch.Tensor, d: torch.Tensor
) -> torch.Tensor:
    new_s = (
        weights[11]
        * torch.pow(d, -weights[12])
        * (torch.pow(s + 1.0, weights[13]) - 1.0)
        * torch.exp((1.0 - r) * weights[14])
    )
    new_min = s / torch.exp(weights[17] * weights[18])
    return torch.minimum(new_s, new_min)


def step(
    weights: torch.Tensor,
    s: torch.Tensor,
    d: torch.Tensor,
    t: torch.Tensor,
    rating: torch.Tensor,
    bounds: Bounds,
    *,
    short_term: bool = True,
) -> tuple[torch.Tensor, torch.Tensor]:
    r = forgetting_curve(weights, t, s, bounds.s_min)
    new_s = torch.where(
        rating > int(Rating.AGAIN),
        stability_after_success(weights, s, r, d, rating),
        stability_after_failure(weights, s, r, d),
    )
    same_day = t == 0
    if short_term:
        new_s = torch.where(same_day, stability_short_term(weights, s, rating), new_s)
    else:
        new_s = torch.where(same_day, s, new_s)
    new_d = next_d(weights, d, rating, bounds)
    return torch.clamp(new_s, bounds.s_min, bounds.s_max), new_d


def forward(
    weights: torch.Tensor,
    t_history: torch.Tensor,
    r_history: torch.Tensor,
    bounds: Bounds,
    *,
    short_term: bool = True,
) -> tuple[torch.Tensor, torch.Tensor]:
    """
    Replay `[seq_len, batch]` histories and return the final stability and
    difficulty per column.
    """
    s, d = init_state(weights, r_history[0], bounds)
    for i in range(1, t_history.shape[0]):
        s, d = step(
            weights, s, d, t_history[i], r_history[i], bounds, short_term=short_term
        )
    return s, d
