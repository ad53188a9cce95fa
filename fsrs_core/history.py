from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Iterable, Optional, Sequence

from fsrs_core.errors import EmptyHistory
from fsrs_core.model import FSRS
from fsrs_core.types import MemoryState, Rating, Review, TrainingItem

MS_PER_DAY = 1000 * 60 * 60 * 24


def memory_state(
    history: Sequence[Review],
    initial: Optional[MemoryState] = None,
    *,
    model: FSRS | None = None,
) -> MemoryState:
    """
    Fold a chronological history into its final memory state.

    With `initial`, every review is applied on top of it. Without it the
    first review initialises the card and its `elapsed_days` is ignored.
    """
    if not history:
        raise EmptyHistory("Cannot compute a memory state from an empty history.")
    model = model or FSRS()
    reviews = iter(history)
    state = initial
    if state is None:
        state = model.initial_state(next(reviews).rating)
    for review in reviews:
        state = model.next_state(state, review.elapsed_days, review.rating)
    return state


def build_reviews(
    ratings: Sequence[int], delta_ts: Sequence[int]
) -> list[Review]:
    if len(ratings) != len(delta_ts):
        raise ValueError(
            f"ratings and delta_ts must have equal length "
            f"({len(ratings)} != {len(delta_ts)})."
        )
    return [Review(Rating.clamp(r), int(t)) for r, t in zip(ratings, delta_ts)]


def split_cards(
    ratings: Sequence[int],
    delta_ts: Sequence[int],
    card_boundaries: Sequence[int],
) -> list[list[Review]]:
    """
    Split flat per-review sequences into per-card histories. Each entry
    of `card_boundaries` is the 1-based index of a card's first review.
    """
    reviews = build_reviews(ratings, delta_ts)
    starts = [int(x) - 1 for x in card_boundaries]
    starts.append(len(reviews))
    histories: list[list[Review]] = []
    skipped = 0
    for start, end in zip(starts, starts[1:]):
        if start < 0 or start >= end or end > len(reviews):
            skipped += 1
            continue
        histories.append(reviews[start:end])
    if skipped:
        logging.warning("Skipping %d empty or out-of-range card windows.", skipped)
    return histories


def training_items(histories: Iterable[Sequence[Review]]) -> list[TrainingItem]:
    """
    Every prefix of length >= 2 of every history. Prefixes made only of
    same-day reviews carry no spacing signal and are dropped.
    """
    items: list[TrainingItem] = []
    for history in histories:
        reviews = tuple(history)
        for end in range(2, len(reviews) + 1):
            prefix = reviews[:end]
            if not any(review.elapsed_days > 0 for review in prefix):
                continue
            items.append(TrainingItem(prefix))
    return items


def card_boundaries(card_ids: Sequence[Any]) -> list[int]:
    """1-based start index of every run of equal card ids."""
    starts: list[int] = []
    previous = object()
    for idx, card_id in enumerate(card_ids, 1):
        if card_id != previous:
            starts.append(idx)
            previous = card_id
    return starts


def reviews_from_revlog(
    entries: Iterable[tuple[Any, int, float]], *, min_reviews: int = 2
) -> dict[Any, list[Review]]:
    """
    Convert `(card_id, rating, timestamp_ms)` review log rows into
    per-card histories ordered by card id and time.
    """
    by_card: dict[Any, list[tuple[float, int]]] = defaultdict(list)
    dropped = 0
    for card_id, rating, timestamp_ms in entries:
        if not 1 <= int(rating) <= 4:
            dropped += 1
            continue
        by_card[card_id].append((float(timestamp_ms), int(rating)))
    if dropped:
        logging.warning("Dropped %d review log rows with invalid ratings.", dropped)

    histories: dict[Any, list[Review]] = {}
    for card_id in sorted(by_card):
        rows = sorted(by_card[card_id])
        if len(rows) < min_reviews:
            continue
        reviews = []
        last_ms = rows[0][0]
        for timestamp_ms, rating in rows:
            delta = round((timestamp_ms - last_ms) / MS_PER_DAY)
            reviews.append(Review(Rating(rating), max(0, delta)))
            last_ms = timestamp_ms
        histories[card_id] = reviews
    return histories


__all__ = [
    "build_reviews",
    "card_boundaries",
    "memory_state",
    "reviews_from_revlog",
    "split_cards",
    "training_items",
]
