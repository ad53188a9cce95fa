import unittest

from fsrs_core.errors import InvalidRetention
from fsrs_core.math.fsrs import retrievability
from fsrs_core.scheduler import fuzz_bounds, next_interval, with_review_fuzz


class TestNextInterval(unittest.TestCase):
    def test_ninety_percent_interval_equals_stability(self):
        self.assertEqual(next_interval(10.0, 0.9), 10.0)
        self.assertEqual(next_interval(123.0, 0.9), 123.0)

    def test_interval_lands_on_requested_retention(self):
        for stability in (10.0, 35.0, 200.0):
            for retention in (0.7, 0.8, 0.9, 0.95):
                interval = next_interval(stability, retention)
                self.assertAlmostEqual(
                    retrievability(stability, interval), retention, delta=0.01
                )

    def test_grows_with_stability(self):
        intervals = [next_interval(s, 0.9) for s in (1.0, 5.0, 25.0, 125.0)]
        self.assertEqual(intervals, sorted(intervals))
        self.assertLess(intervals[0], intervals[-1])

    def test_shrinks_with_higher_retention(self):
        intervals = [next_interval(50.0, r) for r in (0.7, 0.8, 0.9, 0.97)]
        self.assertEqual(intervals, sorted(intervals, reverse=True))

    def test_minimum_and_explicit_maximum(self):
        self.assertEqual(next_interval(0.01, 0.9), 1.0)
        self.assertEqual(next_interval(50.0, 1.0), 1.0)
        self.assertEqual(next_interval(500.0, 0.9, maximum_interval=100), 100.0)

    def test_no_cap_by_default(self):
        interval = next_interval(36500.0, 0.5)
        self.assertEqual(interval, 466816.0)
        self.assertAlmostEqual(retrievability(36500.0, interval), 0.5, places=6)
        self.assertAlmostEqual(
            retrievability(20000.0, next_interval(20000.0, 0.3)), 0.3, places=4
        )

    def test_invalid_retention_rejected(self):
        for retention in (0.0, -0.1, 1.5, float("nan")):
            with self.assertRaises(InvalidRetention):
                next_interval(10.0, retention)

    def test_fuzz_stays_in_range(self):
        lower, upper = fuzz_bounds(100.0, 1, 36500)
        self.assertEqual((lower, upper), (93, 107))
        for factor in (0.0, 0.25, 0.5, 0.999):
            interval = next_interval(100.0, 0.9, fuzz_factor=factor)
            self.assertGreaterEqual(interval, lower)
            self.assertLessEqual(interval, upper)
        self.assertEqual(next_interval(100.0, 0.9, fuzz_factor=0.0), 93.0)

    def test_short_intervals_are_not_fuzzed(self):
        self.assertEqual(with_review_fuzz(0.9, 2.0, 1, 36500), 2)

    def test_fuzz_factor_must_be_fraction(self):
        with self.assertRaises(ValueError):
            with_review_fuzz(1.0, 50.0, 1, 36500)


if __name__ == "__main__":
    unittest.main()
