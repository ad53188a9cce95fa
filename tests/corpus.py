import random

from fsrs_core.model import FSRS
from fsrs_core.scheduler import next_interval
from fsrs_core.types import Rating, Review


def synthetic_histories(n_cards=60, reviews_per_card=6, seed=7, parameters=None):
    """Review histories sampled from the model itself at 90% retention."""
    rng = random.Random(seed)
    model = FSRS(parameters)
    histories = []
    for _ in range(n_cards):
        first = rng.choice([Rating.AGAIN, Rating.HARD, Rating.GOOD, Rating.GOOD, Rating.EASY])
        state = model.initial_state(first)
        reviews = [Review(first, 0)]
        for _ in range(reviews_per_card - 1):
            interval = int(next_interval(state.stability, 0.9)) + rng.randint(0, 2)
            recalled = rng.random() < model.retrievability(state, interval)
            if recalled:
                rating = rng.choice([Rating.HARD, Rating.GOOD, Rating.GOOD, Rating.EASY])
            else:
                rating = Rating.AGAIN
            reviews.append(Review(rating, interval))
            state = model.next_state(state, interval, rating)
        histories.append(reviews)
    return histories


def flatten(histories):
    """Flat ratings, delta_ts and 1-based card starts for the api layer."""
    ratings, delta_ts, boundaries = [], [], []
    for history in histories:
        boundaries.append(len(ratings) + 1)
        for review in history:
            ratings.append(int(review.rating))
            delta_ts.append(review.elapsed_days)
    return ratings, delta_ts, boundaries
