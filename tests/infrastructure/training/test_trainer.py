import contextlib
import io
import unittest

import numpy as np

from src.scratchcnn.infrastructure.models import CNNModel
from src.scratchcnn.infrastructure.training import (
    evaluate,
    fit,
    image_to_tensor,
    one_hot,
    show_random_predictions,
    train_one_epoch,
)
from src.scratchcnn.infrastructure.viewer import ConsoleDisplay


def make_dataset(n: int = 6, seed: int = 0):
    rng = np.random.default_rng(seed)
    images = rng.integers(0, 256, size=(n, 8, 8, 1), dtype=np.uint8)
    labels = rng.integers(0, 10, size=(n,), dtype=np.uint8)
    return images, labels


class TestHelpers(unittest.TestCase):
    def test_one_hot(self):
        v = one_hot(3, 5)
        self.assertEqual(v.tolist(), [0.0, 0.0, 0.0, 1.0, 0.0])
        self.assertEqual(v.dtype, np.float32)
        with self.assertRaises(ValueError):
            one_hot(5, 5)

    def test_image_to_tensor_normalizes(self):
        px = np.array([[[0, 255, 51]]], dtype=np.uint8)
        t = image_to_tensor(px)
        self.assertEqual(t.shape, (1, 1, 3))
        self.assertTrue(np.allclose(t.to_numpy().reshape(-1), [0.0, 1.0, 0.2]))

    def test_image_to_tensor_adds_channel_for_grayscale(self):
        t = image_to_tensor(np.full((4, 5), 255, dtype=np.uint8))
        self.assertEqual(t.shape, (4, 5, 1))
        self.assertTrue(np.all(t.to_numpy() == 1.0))


class TestTrainOneEpoch(unittest.TestCase):
    def setUp(self) -> None:
        self.images, self.labels = make_dataset()
        self.model = CNNModel((8, 8, 1), rng=np.random.default_rng(0))

    def test_returns_mean_loss_and_percent_accuracy(self):
        logs = train_one_epoch(
            self.model, self.images, self.labels, learning_rate=0.01, rng=0
        )
        self.assertEqual(set(logs), {"loss", "accuracy"})
        self.assertGreater(logs["loss"], 0.0)
        self.assertTrue(0.0 <= logs["accuracy"] <= 100.0)

    def test_step_callbacks_and_progress(self):
        steps, fractions = [], []
        train_one_epoch(
            self.model,
            self.images,
            self.labels,
            learning_rate=0.01,
            rng=0,
            on_step=steps.append,
            step_interval=2,
            on_progress=fractions.append,
            epoch_index=1,
            total_epochs=2,
        )
        self.assertEqual(steps, [0, 2, 4])
        self.assertAlmostEqual(fractions[0], 0.5)
        self.assertAlmostEqual(fractions[-1], 1.0)
        self.assertEqual(fractions, sorted(fractions))

    def test_limit_caps_samples(self):
        steps = []
        train_one_epoch(
            self.model,
            self.images,
            self.labels,
            learning_rate=0.01,
            rng=0,
            limit=4,
            on_step=steps.append,
            step_interval=1,
        )
        self.assertEqual(steps, [0, 1, 2, 3])

    def test_mismatched_lengths_rejected(self):
        with self.assertRaises(ValueError):
            train_one_epoch(
                self.model, self.images, self.labels[:3], learning_rate=0.01
            )

    def test_evaluate_does_not_update(self):
        w0 = self.model.fc2.weight
        logs = evaluate(self.model, self.images, self.labels, limit=3)
        self.assertTrue(np.array_equal(self.model.fc2.weight, w0))
        self.assertGreater(logs["loss"], 0.0)


class TestFit(unittest.TestCase):
    def setUp(self) -> None:
        self.images, self.labels = make_dataset(n=5)

    def test_history_has_one_entry_per_epoch(self):
        model = CNNModel((8, 8, 1), rng=0)
        history = fit(
            model, self.images, self.labels, epochs=2, learning_rate=0.01,
            rng=1, verbose=0,
        )
        self.assertEqual(history.epoch, [0, 1])
        self.assertEqual(len(history.history["loss"]), 2)
        self.assertEqual(len(history.history["accuracy"]), 2)

    def test_seeded_runs_are_reproducible(self):
        runs = []
        for _ in range(2):
            model = CNNModel((8, 8, 1), rng=np.random.default_rng(4))
            h = fit(
                model, self.images, self.labels, epochs=2, learning_rate=0.01,
                rng=np.random.default_rng(9), verbose=0,
            )
            runs.append(h.history["loss"])
        self.assertEqual(runs[0], runs[1])

    def test_verbose_prints_epoch_summary(self):
        buf = io.StringIO()
        with contextlib.redirect_stdout(buf):
            fit(
                CNNModel((8, 8, 1), rng=0), self.images, self.labels,
                epochs=1, learning_rate=0.01, rng=0, verbose=1,
            )
        self.assertIn("Epoch 1/1 - loss: ", buf.getvalue())
        self.assertIn(" - accuracy: ", buf.getvalue())

    def test_display_is_driven(self):
        out = io.StringIO()
        display = ConsoleDisplay(out)
        fit(
            CNNModel((8, 8, 1), rng=0), self.images, self.labels,
            epochs=1, learning_rate=0.01, rng=0, verbose=0,
            display=display, visual_interval=2,
        )
        text = out.getvalue()
        self.assertIn("correct:", text)
        self.assertIn("progress [", text)
        self.assertAlmostEqual(display.progress, 1.0)

    def test_rejects_non_positive_epochs(self):
        with self.assertRaises(ValueError):
            fit(CNNModel((8, 8, 1), rng=0), self.images, self.labels, epochs=0)


class TestShowRandomPredictions(unittest.TestCase):
    def test_renders_grid_and_detail(self):
        images, labels = make_dataset(n=4)
        model = CNNModel((8, 8, 1), rng=0)
        out = io.StringIO()
        display = ConsoleDisplay(out)
        names = [f"c{i}" for i in range(10)]

        truth, preds = show_random_predictions(
            model, images, labels, display, rng=0, count=100, class_names=names
        )

        self.assertEqual(len(truth), 4)
        self.assertEqual(len(preds), 4)
        n_ok = sum(t == p for t, p in zip(truth, preds))
        self.assertEqual(display.last_grid[-1], f"correct: {n_ok}/4")
        # thumbnail rows followed by one bar per class
        self.assertEqual(len(display.last_detail), 8 + 10)


if __name__ == "__main__":
    unittest.main()
