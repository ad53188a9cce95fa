from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Iterator, Sequence


class Rating(IntEnum):
    AGAIN = 1
    HARD = 2
    GOOD = 3
    EASY = 4

    @classmethod
    def clamp(cls, value: Any) -> "Rating":
        """Saturate any integer-like value into Again..Easy."""
        return cls(max(1, min(4, int(value))))

    @property
    def is_recall(self) -> bool:
        return self is not Rating.AGAIN

    def success_multiplier(self, weights: Sequence[Any]) -> Any:
        """Factor applied to the stability increase of a successful review."""
        if self is Rating.HARD:
            return weights[15]
        if self is Rating.EASY:
            return weights[16]
        return 1.0


@dataclass(frozen=True, slots=True)
class Review:
    """Single review of a card, `elapsed_days` after the previous one."""

    rating: Rating
    elapsed_days: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "rating", Rating.clamp(self.rating))
        elapsed = int(self.elapsed_days)
        if elapsed < 0:
            raise ValueError(f"elapsed_days must be non-negative, got {elapsed}.")
        object.__setattr__(self, "elapsed_days", elapsed)


@dataclass(frozen=True, slots=True)
class MemoryState:
    stability: float
    difficulty: float

    def to_dict(self) -> dict[str, float]:
        return {"stability": self.stability, "difficulty": self.difficulty}


@dataclass(frozen=True, slots=True)
class Outcome:
    stability: float
    difficulty: float
    interval: float

    @property
    def memory(self) -> MemoryState:
        return MemoryState(self.stability, self.difficulty)

    def to_dict(self) -> dict[str, float]:
        return {
            "stability": self.stability,
            "difficulty": self.difficulty,
            "interval": self.interval,
        }


@dataclass(frozen=True, slots=True)
class OutcomeSet:
    """
    Result of every possible rating applied to the same prior state:
    `MemoryState` entries from `FSRS.next_states`, `Outcome` entries from
    `FSRS.repeat`.
    """

    again: MemoryState | Outcome
    hard: MemoryState | Outcome
    good: MemoryState | Outcome
    easy: MemoryState | Outcome

    def __getitem__(self, rating: Rating | int) -> MemoryState | Outcome:
        return getattr(self, Rating.clamp(rating).name.lower())

    def __iter__(self) -> Iterator[MemoryState | Outcome]:
        return iter((self.again, self.hard, self.good, self.easy))

    def to_dict(self) -> dict[str, Any]:
        return {
            rating.name.lower(): self[rating].to_dict() for rating in Rating
        }


@dataclass(frozen=True, slots=True)
class TracedReview:
    """One row of a simulated review sequence."""

    review: int
    rating: Rating
    stability: float
    difficulty: float
    interval: float

    def to_dict(self) -> dict[str, float]:
        return {
            "review": self.review,
            "rating": int(self.rating),
            "stability": self.stability,
            "difficulty": self.difficulty,
            "interval": self.interval,
        }


@dataclass(frozen=True, slots=True)
class TrainingItem:
    """
    Prefix of a card's history. The last review is the labelled
    observation; the reviews before it are replayed to predict it.
    """

    reviews: tuple[Review, ...]

    def __post_init__(self) -> None:
        if len(self.reviews) < 2:
            raise ValueError("TrainingItem needs at least two reviews.")

    def __len__(self) -> int:
        return len(self.reviews)

    @property
    def history(self) -> tuple[Review, ...]:
        return self.reviews[:-1]

    @property
    def target(self) -> Review:
        return self.reviews[-1]

    @property
    def label(self) -> float:
        return 1.0 if self.target.rating.is_recall else 0.0


__all__ = [
    "Rating",
    "Review",
    "MemoryState",
    "Outcome",
    "OutcomeSet",
    "TracedReview",
    "TrainingItem",
]
