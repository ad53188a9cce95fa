from __future__ import annotations

from typing import Iterable, Optional, Sequence

from fsrs_core.defaults import resolve_parameters
from fsrs_core.math.fsrs import (
    Bounds,
    FSRSParams,
    forgetting_curve,
    init_state,
    step,
    _clamp_d,
    _clamp_s,
)
from fsrs_core.scheduler import next_interval, validate_retention
from fsrs_core.types import MemoryState, Outcome, OutcomeSet, Rating, TracedReview


class FSRS:
    """
    FSRS-6 memory model bound to one parameter vector.

    `short_term=False` selects the variant without the same-day stability
    term: reviews with zero elapsed days leave stability unchanged.
    """

    def __init__(
        self,
        parameters: Sequence[float] | None = None,
        *,
        short_term: bool = True,
        bounds: Bounds = Bounds(),
    ):
        self.params = FSRSParams(resolve_parameters(parameters), bounds)
        self.short_term = short_term

    @property
    def parameters(self) -> tuple[float, ...]:
        return self.params.weights

    def initial_state(self, rating: Rating | int) -> MemoryState:
        s, d = init_state(self.params, Rating.clamp(rating))
        return MemoryState(s, d)

    def retrievability(self, state: Optional[MemoryState], elapsed_days: float) -> float:
        """Recall probability under this vector's own forgetting curve."""
        if state is None or state.stability <= 0:
            return 1.0
        return forgetting_curve(self.params, elapsed_days, state.stability)

    def next_state(
        self,
        prior: Optional[MemoryState],
        elapsed_days: float,
        rating: Rating | int,
    ) -> MemoryState:
        rating = Rating.clamp(rating)
        prior = self._coerce_prior(prior)
        if prior is None:
            return self.initial_state(rating)
        s, d = step(
            self.params,
            prior.stability,
            prior.difficulty,
            max(0.0, float(elapsed_days)),
            rating,
            short_term=self.short_term,
        )
        return MemoryState(s, d)

    def next_states(
        self, prior: Optional[MemoryState], elapsed_days: float
    ) -> OutcomeSet:
        return OutcomeSet(
            *(self.next_state(prior, elapsed_days, rating) for rating in Rating)
        )

    def repeat(
        self,
        prior: Optional[MemoryState],
        elapsed_days: float,
        desired_retention: float,
        *,
        maximum_interval: int | None = None,
        fuzz_factor: float | None = None,
    ) -> OutcomeSet:
        """Preview every rating with the interval each one would schedule."""
        outcomes = []
        for state in self.next_states(prior, elapsed_days):
            interval = next_interval(
                state.stability,
                desired_retention,
                maximum_interval=maximum_interval,
                fuzz_factor=fuzz_factor,
            )
            outcomes.append(Outcome(state.stability, state.difficulty, interval))
        return OutcomeSet(*outcomes)

    def simulate(
        self,
        ratings: Iterable[Rating | int],
        desired_retention: float = 0.9,
        *,
        maximum_interval: int | None = None,
    ) -> list[TracedReview]:
        """
        Review a new card with `ratings` in turn, each review arriving on
        the day the previous one was scheduled for.
        """
        validate_retention(desired_retention)
        trace: list[TracedReview] = []
        state = None
        elapsed = 0.0
        for number, rating in enumerate(ratings, 1):
            rating = Rating.clamp(rating)
            state = self.next_state(state, elapsed, rating)
            interval = next_interval(
                state.stability, desired_retention, maximum_interval=maximum_interval
            )
            trace.append(
                TracedReview(number, rating, state.stability, state.difficulty, interval)
            )
            elapsed = interval
        return trace

    def _coerce_prior(self, prior: Optional[MemoryState]) -> Optional[MemoryState]:
        # stability <= 0 marks a card with no memory yet
        if prior is None or not prior.stability > 0:
            return None
        bounds = self.params.bounds
        return MemoryState(
            _clamp_s(bounds, float(prior.stability)),
            _clamp_d(bounds, float(prior.difficulty)),
        )


__all__ = ["FSRS"]
