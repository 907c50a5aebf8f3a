import contextlib
import importlib.util
import io
import os
import struct
import tempfile
import unittest

import numpy as np

SCRIPT = os.path.join(
    os.path.dirname(os.path.abspath(__file__)), "..", "..", "scripts", "train.py"
)


def load_script():
    spec = importlib.util.spec_from_file_location("train_script", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestTrainScript(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.script = load_script()

        rng = np.random.default_rng(0)
        images = rng.integers(0, 256, size=(4, 8, 8), dtype=np.uint8)
        labels = bytes([0, 3, 7, 9])
        with open(os.path.join(self.tmp.name, "train-images-idx3-ubyte"), "wb") as f:
            f.write(struct.pack(">IIII", 2051, 4, 8, 8) + images.tobytes())
        with open(os.path.join(self.tmp.name, "train-labels-idx1-ubyte"), "wb") as f:
            f.write(struct.pack(">II", 2049, 4) + labels)

    def test_parse_args_defaults(self):
        args = self.script.parse_args([])
        self.assertEqual(args.dataset, "cifar10")
        self.assertEqual(args.epochs, 8)
        self.assertAlmostEqual(args.lr, 0.006)
        self.assertEqual(args.limit, 5000)
        self.assertEqual(args.visual_interval, 100)

    def test_trains_on_idx_files(self):
        buf = io.StringIO()
        with contextlib.redirect_stdout(buf):
            code = self.script.main(
                [
                    "--dataset", "fashion-mnist",
                    "--data-dir", self.tmp.name,
                    "--epochs", "1",
                    "--seed", "0",
                    "--visual-interval", "0",
                ]
            )
        self.assertEqual(code, 0)
        self.assertIn("Loaded 4 training images", buf.getvalue())
        self.assertIn("Epoch 1/1 - loss: ", buf.getvalue())

    def test_missing_data_returns_error_code(self):
        missing = os.path.join(self.tmp.name, "missing")
        with contextlib.redirect_stdout(io.StringIO()), \
                contextlib.redirect_stderr(io.StringIO()):
            code = self.script.main(["--data-dir", missing, "--epochs", "1"])
        self.assertEqual(code, 1)


if __name__ == "__main__":
    unittest.main()
