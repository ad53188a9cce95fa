import json
import tempfile
import unittest
from pathlib import Path

from fsrs_core.config_loader import load_optimizer_config, load_parameters
from fsrs_core.defaults import DEFAULT_PARAMETERS
from fsrs_core.errors import InvalidParameterVector


class TestConfigLoader(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def _write(self, name, text):
        path = self.root / name
        path.write_text(text, encoding="utf-8")
        return path

    def test_load_parameters_object(self):
        path = self._write("params.json", json.dumps({"parameters": list(DEFAULT_PARAMETERS)}))
        self.assertEqual(load_parameters(path), DEFAULT_PARAMETERS)

    def test_load_fsrs5_parameters_extends_tail(self):
        path = self._write("params.json", json.dumps({"parameters": list(DEFAULT_PARAMETERS[:19])}))
        self.assertEqual(load_parameters(path)[19:], (0.0, 0.5))

    def test_load_parameters_for_user(self):
        lines = [
            json.dumps({"user": 1, "parameters": [0.5] * 21}),
            "",
            json.dumps({"user": 2, "parameters": list(DEFAULT_PARAMETERS)}),
        ]
        path = self._write("users.jsonl", "\n".join(lines))
        self.assertEqual(load_parameters(path, user_id=2), DEFAULT_PARAMETERS)
        with self.assertRaises(ValueError):
            load_parameters(path, user_id=3)

    def test_bad_parameter_files(self):
        with self.assertRaises(ValueError):
            load_parameters(self._write("a.json", json.dumps([1, 2, 3])))
        with self.assertRaises(ValueError):
            load_parameters(self._write("b.json", json.dumps({"weights": [1.0]})))
        with self.assertRaises(InvalidParameterVector):
            load_parameters(self._write("c.json", json.dumps({"parameters": [1.0] * 7})))

    def test_load_optimizer_config(self):
        path = self._write("opt.json", json.dumps({"epochs": 2, "learning_rate": 0.01}))
        config = load_optimizer_config(path)
        self.assertEqual(config.epochs, 2)
        self.assertEqual(config.learning_rate, 0.01)
        self.assertEqual(config.batch_size, 512)

    def test_unknown_optimizer_option_rejected(self):
        path = self._write("opt.json", json.dumps({"epoch": 2}))
        with self.assertRaises(ValueError):
            load_optimizer_config(path)


if __name__ == "__main__":
    unittest.main()
