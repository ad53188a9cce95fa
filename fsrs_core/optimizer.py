from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Sequence

import torch
from tqdm import tqdm

from fsrs_core.dataset import ItemBatch, TrainingSet
from fsrs_core.defaults import DEFAULT_PARAMETERS, DEFAULT_PARAMETERS_STDDEV
from fsrs_core.errors import NoTrainableData, NumericalDivergence
from fsrs_core.evaluate import binary_log_loss, predict
from fsrs_core.history import training_items
from fsrs_core.math.fsrs import Bounds
from fsrs_core.math.fsrs_batch import forgetting_curve, forward
from fsrs_core.types import Rating, Review, TrainingItem

INIT_S_MAX = 100.0

# Valid range of every weight; steps are projected back into it.
PARAMETER_RANGES: tuple[tuple[float, float], ...] = (
    (0.001, INIT_S_MAX),
    (0.001, INIT_S_MAX),
    (0.001, INIT_S_MAX),
    (0.001, INIT_S_MAX),
    (1.0, 10.0),
    (0.001, 4.0),
    (0.001, 4.0),
    (0.001, 0.75),
    (0.0, 4.5),
    (0.0, 0.8),
    (0.001, 3.5),
    (0.001, 5.0),
    (0.001, 0.25),
    (0.001, 0.9),
    (0.0, 4.0),
    (0.0, 1.0),
    (1.0, 6.0),
    (0.0, 2.0),
    (0.0, 2.0),
    (0.0, 0.8),
    (0.1, 0.8),
)

SHORT_TERM_WEIGHTS = (17, 18, 19)


@dataclass(frozen=True)
class OptimizerConfig:
    learning_rate: float = 4e-2
    epochs: int = 5
    batch_size: int = 512
    seed: int = 2023
    tolerance: float = 1e-5
    regularization: float = 1.0
    pretrain: bool = True
    pretrain_min_count: int = 8
    progress: bool = False
    device: str = "cpu"

    def __post_init__(self) -> None:
        if self.epochs < 1:
            raise ValueError("epochs must be >= 1.")
        if self.batch_size < 1:
            raise ValueError("batch_size must be >= 1.")
        if not self.learning_rate > 0:
            raise ValueError("learning_rate must be > 0.")


class OptimizerStatus(Enum):
    INITIALIZED = "initialized"
    ITERATING = "iterating"
    CONVERGED = "converged"
    BUDGET_EXHAUSTED = "budget_exhausted"
    FAILED = "failed"


@dataclass(frozen=True)
class OptimizationResult:
    parameters: tuple[float, ...]
    status: OptimizerStatus
    epochs: int
    loss_history: tuple[float, ...] = field(default_factory=tuple)


def clip_parameters(weights: torch.Tensor) -> None:
    lower = weights.new_tensor([low for low, _ in PARAMETER_RANGES])
    upper = weights.new_tensor([high for _, high in PARAMETER_RANGES])
    with torch.no_grad():
        weights.copy_(torch.maximum(torch.minimum(weights, upper), lower))


def pretrain_initial_stability(
    items: Iterable[TrainingItem],
    parameters: Sequence[float] = DEFAULT_PARAMETERS,
    *,
    min_count: int = 8,
    bounds: Bounds = Bounds(),
) -> list[float]:
    """
    Fit w0..w3 from cards whose first follow-up review is spaced. Each
    first rating with enough data gets the grid stability with the lowest
    cross-entropy; the result is forced to be non-decreasing in rating.
    """
    weights = torch.tensor(parameters, dtype=torch.float64)
    grid = torch.logspace(
        math.log10(PARAMETER_RANGES[0][0]), math.log10(INIT_S_MAX), 400,
        dtype=torch.float64,
    )
    observations: dict[Rating, list[tuple[int, float]]] = {r: [] for r in Rating}
    for item in items:
        if len(item) != 2 or item.target.elapsed_days <= 0:
            continue
        observations[item.history[0].rating].append(
            (item.target.elapsed_days, item.label)
        )

    fitted = [float(x) for x in parameters[:4]]
    for rating, rows in observations.items():
        if len(rows) < min_count:
            continue
        t = torch.tensor([row[0] for row in rows], dtype=torch.float64)
        y = torch.tensor([row[1] for row in rows], dtype=torch.float64)
        r = forgetting_curve(weights, t[None, :], grid[:, None], bounds.s_min)
        r = torch.clamp(r, 1e-7, 1.0 - 1e-7)
        loss = -(y * torch.log(r) + (1.0 - y) * torch.log(1.0 - r)).sum(dim=1)
        fitted[rating - 1] = float(grid[int(torch.argmin(loss))])
        logging.debug(
            "Pretrained initial stability for %s: %.4f from %d cards.",
            rating.name,
            fitted[rating - 1],
            len(rows),
        )
    for idx in range(1, 4):
        fitted[idx] = max(fitted[idx], fitted[idx - 1])
    return fitted


class Optimizer:
    """
    Fits an FSRS parameter vector with Adam.

    Moves through `OptimizerStatus`: INITIALIZED, ITERATING, then one of
    CONVERGED, BUDGET_EXHAUSTED or FAILED.
    """

    def __init__(
        self, config: OptimizerConfig | None = None, bounds: Bounds = Bounds()
    ) -> None:
        self.config = config or OptimizerConfig()
        self.bounds = bounds
        self.status = OptimizerStatus.INITIALIZED

    def fit(
        self,
        histories: Iterable[Sequence[Review]],
        *,
        enable_short_term: bool = True,
    ) -> OptimizationResult:
        histories = list(histories)
        items = training_items(histories)
        if not items:
            self.status = OptimizerStatus.FAILED
            raise NoTrainableData(
                "No trainable review data: every card needs at least two "
                "reviews and some spacing between them."
            )
        try:
            return self._train(items, len(histories), enable_short_term)
        except NumericalDivergence:
            self.status = OptimizerStatus.FAILED
            raise

    def _train(
        self, items: list[TrainingItem], n_cards: int, enable_short_term: bool
    ) -> OptimizationResult:
        config = self.config
        device = torch.device(config.device)
        torch.manual_seed(config.seed)
        generator = torch.Generator().manual_seed(config.seed)

        initial = list(DEFAULT_PARAMETERS)
        if config.pretrain:
            initial[:4] = pretrain_initial_stability(
                items, initial, min_count=config.pretrain_min_count, bounds=self.bounds
            )
        init_w = torch.tensor(initial, dtype=torch.float32, device=device)
        clip_parameters(init_w)
        weights = init_w.clone().requires_grad_(True)
        stddev = torch.tensor(
            DEFAULT_PARAMETERS_STDDEV, dtype=torch.float32, device=device
        )
        frozen = torch.zeros(len(initial), dtype=torch.bool, device=device)
        if not enable_short_term:
            frozen[list(SHORT_TERM_WEIGHTS)] = True

        training_set = TrainingSet(items, device=device)
        optimizer = torch.optim.Adam([weights], lr=config.learning_rate)
        total_steps = config.epochs * training_set.batch_count(config.batch_size)
        lr_schedule = torch.optim.lr_scheduler.CosineAnnealingLR(
            optimizer, T_max=max(1, total_steps)
        )

        logging.info(
            "Optimizing FSRS parameters on %d items from %d cards.",
            len(training_set),
            n_cards,
        )
        self.status = OptimizerStatus.ITERATING
        previous = self._full_loss(weights, training_set, enable_short_term)
        loss_history: list[float] = []
        progress_bar = (
            tqdm(total=config.epochs, desc="Optimizing", unit="epoch", leave=False)
            if config.progress
            else None
        )
        try:
            for epoch in range(1, config.epochs + 1):
                for batch in training_set.batches(config.batch_size, generator=generator):
                    optimizer.zero_grad()
                    loss = self._batch_loss(
                        weights, init_w, stddev, batch, len(training_set), enable_short_term
                    )
                    if not torch.isfinite(loss):
                        raise NumericalDivergence(
                            f"Loss became non-finite in epoch {epoch}."
                        )
                    loss.backward()
                    if not torch.isfinite(weights.grad).all():
                        raise NumericalDivergence(
                            f"Gradient became non-finite in epoch {epoch}."
                        )
                    weights.grad.masked_fill_(frozen, 0.0)
                    optimizer.step()
                    lr_schedule.step()
                    clip_parameters(weights)

                epoch_loss = self._full_loss(weights, training_set, enable_short_term)
                loss_history.append(epoch_loss)
                logging.debug("Epoch %d: log loss %.6f", epoch, epoch_loss)
                if progress_bar is not None:
                    progress_bar.update(1)
                    progress_bar.set_postfix(loss=f"{epoch_loss:.4f}")
                if abs(previous - epoch_loss) < config.tolerance:
                    self.status = OptimizerStatus.CONVERGED
                    break
                previous = epoch_loss
        finally:
            if progress_bar is not None:
                progress_bar.close()

        if self.status is OptimizerStatus.ITERATING:
            self.status = OptimizerStatus.BUDGET_EXHAUSTED
        logging.info(
            "Optimization %s after %d epochs, log loss %.6f.",
            self.status.value,
            len(loss_history),
            loss_history[-1],
        )
        parameters = tuple(
            round(float(x), 4) for x in weights.detach().cpu().tolist()
        )
        return OptimizationResult(
            parameters=parameters,
            status=self.status,
            epochs=len(loss_history),
            loss_history=tuple(loss_history),
        )

    def _batch_loss(
        self,
        weights: torch.Tensor,
        init_w: torch.Tensor,
        stddev: torch.Tensor,
        batch: ItemBatch,
        total: int,
        short_term: bool,
    ) -> torch.Tensor:
        s, _ = forward(
            weights, batch.t_history, batch.r_history, self.bounds, short_term=short_term
        )
        r = forgetting_curve(weights, batch.delta_t, s, self.bounds.s_min)
        penalty = torch.sum(((weights - init_w) / stddev) ** 2)
        return binary_log_loss(r, batch.labels) + (
            self.config.regularization * penalty / total
        )

    def _full_loss(
        self, weights: torch.Tensor, training_set: TrainingSet, short_term: bool
    ) -> float:
        with torch.no_grad():
            predictions, labels = predict(
                weights, training_set, self.bounds, short_term=short_term
            )
            loss = float(binary_log_loss(predictions, labels))
        if not math.isfinite(loss):
            raise NumericalDivergence("Training loss is non-finite.")
        return loss


def optimize(
    histories: Iterable[Sequence[Review]],
    enable_short_term: bool = True,
    config: Optional[OptimizerConfig] = None,
) -> OptimizationResult:
    return Optimizer(config).fit(histories, enable_short_term=enable_short_term)


__all__ = [
    "OptimizationResult",
    "Optimizer",
    "OptimizerConfig",
    "OptimizerStatus",
    "PARAMETER_RANGES",
    "clip_parameters",
    "optimize",
    "pretrain_initial_stability",
]
