import math
import unittest

from corpus import flatten, synthetic_histories
from fsrs_core import api
from fsrs_core.errors import InvalidParameterVector, InvalidRetention
from fsrs_core.optimizer import OptimizerConfig


class TestScalarOperations(unittest.TestCase):
    def test_model_version(self):
        self.assertEqual(api.model_version(), "FSRS-6")

    def test_default_parameters_are_fresh_copies(self):
        first = api.default_parameters()
        self.assertEqual(len(first), 21)
        first[0] = 99.0
        self.assertEqual(api.default_parameters()[0], 0.212)

    def test_retrievability_examples(self):
        self.assertEqual(api.retrievability(10.0, 0), 1.0)
        self.assertAlmostEqual(api.retrievability(10.0, 10.0), 0.9)
        self.assertEqual(api.retrievability(0.0, 100), 1.0)

    def test_next_interval(self):
        self.assertEqual(api.next_interval(10.0, 0.9), 10.0)
        with self.assertRaises(InvalidRetention):
            api.next_interval(10.0, 0.0)
        with self.assertRaises(InvalidParameterVector):
            api.next_interval(10.0, 0.9, [1.0, 2.0])

    def test_state_operations_return_plain_dicts(self):
        init = api.initial_state(3)
        self.assertEqual(set(init), {"stability", "difficulty"})
        after = api.next_state(init["stability"], init["difficulty"], 3, 3)
        self.assertGreater(after["stability"], init["stability"])
        preview = api.repeat(None, None, 0, 0.9)
        self.assertEqual(preview["good"]["stability"], init["stability"])
        self.assertGreaterEqual(preview["again"]["interval"], 1.0)

    def test_next_interval_is_not_capped(self):
        interval = api.next_interval(36500.0, 0.5)
        self.assertGreater(interval, 36500.0)
        self.assertAlmostEqual(api.retrievability(36500.0, interval), 0.5, places=6)

    def test_simulate_advances_the_clock(self):
        rows = api.simulate([3, 3, 4, 3])
        self.assertEqual([row["review"] for row in rows], [1, 2, 3, 4])
        self.assertEqual([row["rating"] for row in rows], [3, 3, 4, 3])
        for row in rows:
            self.assertGreaterEqual(row["interval"], 1.0)
            self.assertGreater(row["stability"], 0.0)
            self.assertGreaterEqual(row["difficulty"], 1.0)
            self.assertLessEqual(row["difficulty"], 10.0)
        intervals = [row["interval"] for row in rows]
        self.assertEqual(intervals, sorted(intervals))

    def test_simulate_validates_retention(self):
        with self.assertRaises(InvalidRetention):
            api.simulate([3, 3], desired_retention=1.5)

    def test_memory_state_and_sm2(self):
        state = api.memory_state([3, 3, 4], [0, 2, 5])
        self.assertGreater(state["stability"], 0.0)
        migrated = api.from_sm2(2.5, 10, 0.9)
        self.assertAlmostEqual(migrated["stability"], 10.0)


class TestRetrievabilityVec(unittest.TestCase):
    def test_empty_input(self):
        self.assertEqual(api.retrievability_vec([], []), [])

    def test_matches_scalar_exactly(self):
        stability = [0.0, 1.0, 3.5, 10.0, 250.0]
        elapsed = [5.0, 0.0, 7.0, 10.0, 1000.0]
        expected = [api.retrievability(s, t) for s, t in zip(stability, elapsed)]
        self.assertEqual(api.retrievability_vec(stability, elapsed), expected)

    def test_length_mismatch(self):
        with self.assertRaises(ValueError):
            api.retrievability_vec([1.0, 2.0], [1.0])


class TestBatchOperations(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.ratings, cls.delta_ts, cls.boundaries = flatten(
            synthetic_histories(n_cards=40, reviews_per_card=5, seed=19)
        )

    def test_optimize_reports_untrainable_data(self):
        result = api.optimize([3, 3, 3], [0, 0, 0], [1])
        self.assertFalse(result["success"])
        self.assertEqual(result["parameters"], [])
        self.assertIn("NoTrainableData", result["error"])

    def test_optimize_success(self):
        result = api.optimize(
            self.ratings,
            self.delta_ts,
            self.boundaries,
            config=OptimizerConfig(epochs=2, batch_size=128),
        )
        self.assertTrue(result["success"])
        self.assertIsNone(result["error"])
        self.assertEqual(len(result["parameters"]), 21)

    def test_evaluate_success(self):
        result = api.evaluate(
            self.ratings, self.delta_ts, self.boundaries, api.default_parameters()
        )
        self.assertTrue(result["success"])
        self.assertTrue(math.isfinite(result["log_loss"]))

    def test_evaluate_single_card(self):
        result = api.evaluate([3, 3, 4], [0, 2, 5], [1], api.default_parameters())
        self.assertEqual(set(result), {"log_loss", "calibration_error", "success"})
        self.assertTrue(result["success"])
        self.assertGreater(result["log_loss"], 0.0)

    def test_evaluate_failure_reports_nan(self):
        result = api.evaluate(self.ratings, self.delta_ts, self.boundaries, [1.0])
        self.assertFalse(result["success"])
        self.assertTrue(math.isnan(result["log_loss"]))
        self.assertTrue(math.isnan(result["calibration_error"]))


if __name__ == "__main__":
    unittest.main()
