import unittest

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

from fsrs_core.evaluate import CalibrationBin, Evaluation  # noqa: E402
from fsrs_core.plotting import plot_calibration  # noqa: E402


class TestPlotCalibration(unittest.TestCase):
    def test_draws_bins_and_metrics(self):
        evaluation = Evaluation(
            log_loss=0.3412,
            calibration_error=0.0251,
            bins=(CalibrationBin(0.55, 0.5, 4), CalibrationBin(0.9, 0.88, 40)),
            size=44,
        )
        fig, ax = plt.subplots()
        try:
            returned = plot_calibration(evaluation, ax=ax)
            self.assertIs(returned, ax)
            self.assertIn("0.3412", ax.get_title())
            self.assertEqual(len(ax.lines), 2)
        finally:
            plt.close(fig)


if __name__ == "__main__":
    unittest.main()
