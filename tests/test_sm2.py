import unittest

from fsrs_core.errors import InvalidRetention
from fsrs_core.scheduler import next_interval
from fsrs_core.sm2 import from_sm2


class TestFromSM2(unittest.TestCase):
    def test_interval_is_recovered_at_assumed_retention(self):
        for interval in (3, 10, 45, 300):
            state = from_sm2(2.5, interval, 0.9)
            self.assertEqual(next_interval(state.stability, 0.9), float(interval))

    def test_stability_equals_interval_at_ninety_percent(self):
        self.assertAlmostEqual(from_sm2(2.5, 10, 0.9).stability, 10.0)

    def test_higher_ease_means_lower_difficulty(self):
        hard = from_sm2(2.0, 20, 0.9)
        easy = from_sm2(3.0, 20, 0.9)
        self.assertLess(easy.difficulty, hard.difficulty)
        for state in (hard, easy):
            self.assertGreaterEqual(state.difficulty, 1.0)
            self.assertLessEqual(state.difficulty, 10.0)

    def test_lowest_ease_hits_difficulty_ceiling(self):
        self.assertEqual(from_sm2(1.3, 10, 0.9).difficulty, 10.0)

    def test_validation(self):
        with self.assertRaises(ValueError):
            from_sm2(0.0, 10, 0.9)
        with self.assertRaises(InvalidRetention):
            from_sm2(2.5, 10, 1.0)
        with self.assertRaises(InvalidRetention):
            from_sm2(2.5, 10, 0.0)


if __name__ == "__main__":
    unittest.main()
