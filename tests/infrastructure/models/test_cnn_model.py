import unittest

import numpy as np

from src.scratchcnn.domain._errors import ShapeMismatchError
from src.scratchcnn.infrastructure.tensor import Tensor3D
from src.scratchcnn.infrastructure.models import CNNModel
from src.scratchcnn.infrastructure._losses import CROSS_ENTROPY_EPS


def one_hot(label: int, n: int = 10) -> np.ndarray:
    return np.eye(n, dtype=np.float32)[label]


class TestCNNModelConstruction(unittest.TestCase):
    def test_default_topology(self):
        model = CNNModel(rng=0)
        self.assertEqual(model.input_shape, (28, 28, 1))
        self.assertEqual(model.conv1.output_shape, (28, 28, 8))
        self.assertEqual(model.conv2.input_shape, (14, 14, 8))
        self.assertEqual(model.conv2.output_shape, (14, 14, 16))
        self.assertEqual(model.flat_features, 7 * 7 * 16)
        self.assertEqual(model.fc1.weight.shape, (128, 7 * 7 * 16))
        self.assertEqual(model.fc2.weight.shape, (10, 128))

    def test_cifar_shaped_input(self):
        model = CNNModel((32, 32, 3), rng=0)
        self.assertEqual(model.flat_features, 8 * 8 * 16)
        probs = model.forward(Tensor3D(32, 32, 3))
        self.assertEqual(probs.shape, (10,))
        self.assertAlmostEqual(float(probs.sum()), 1.0, places=6)
        self.assertTrue(np.allclose(probs, 0.1, atol=1e-6))

    def test_too_small_input_rejected(self):
        with self.assertRaises(ValueError):
            CNNModel((3, 3, 1))

    def test_same_seed_gives_same_parameters(self):
        a = CNNModel((8, 8, 1), rng=np.random.default_rng(5))
        b = CNNModel((8, 8, 1), rng=np.random.default_rng(5))
        c = CNNModel((8, 8, 1), rng=np.random.default_rng(6))
        self.assertTrue(np.array_equal(a.conv1.weight, b.conv1.weight))
        self.assertTrue(np.array_equal(a.fc2.weight, b.fc2.weight))
        self.assertFalse(np.array_equal(a.fc2.weight, c.fc2.weight))

    def test_layers_get_independent_streams(self):
        model = CNNModel((8, 8, 1), conv1_channels=4, conv2_channels=4, rng=0)
        w1 = model.conv1.weight.reshape(-1)[:9]
        w2 = model.conv2.weight.reshape(-1)[:9]
        self.assertFalse(np.allclose(w1, w2))

    def test_config_round_trip(self):
        model = CNNModel((12, 12, 2), num_classes=4, hidden_units=16, rng=0)
        clone = CNNModel.from_config(model.get_config(), rng=1)
        self.assertEqual(clone.get_config(), model.get_config())

    def test_config_lists_every_layer(self):
        model = CNNModel((12, 12, 2), num_classes=4, hidden_units=16, rng=0)
        layers = model.get_config()["layers"]
        self.assertEqual(tuple(layers), CNNModel.LAYER_NAMES)
        self.assertEqual(layers["conv1"]["out_channels"], 8)
        self.assertEqual(layers["conv2"]["in_channels"], 8)
        self.assertEqual(layers["relu1"], {})
        self.assertEqual(layers["flatten"], {})
        self.assertEqual(layers["fc1"]["out_features"], 16)
        self.assertEqual(layers["fc2"]["out_features"], 4)


class TestCNNModelForward(unittest.TestCase):
    def setUp(self) -> None:
        self.model = CNNModel((8, 8, 1), rng=np.random.default_rng(0))

    def test_zero_input_gives_uniform_distribution(self):
        # all biases start at zero, so every activation is zero
        probs = self.model.forward(Tensor3D(8, 8, 1))
        self.assertTrue(np.allclose(probs, 0.1, atol=1e-6))

    def test_output_is_distribution(self):
        x = np.random.default_rng(1).random((8, 8, 1))
        probs = self.model.forward(Tensor3D.from_numpy(x))
        self.assertEqual(probs.shape, (10,))
        self.assertTrue(np.all(probs >= 0.0))
        self.assertAlmostEqual(float(probs.sum()), 1.0, places=5)

    def test_wrong_input_shape_raises(self):
        with self.assertRaises(ShapeMismatchError):
            self.model.forward(Tensor3D(8, 8, 3))

    def test_forward_caches_activations(self):
        self.model.forward(Tensor3D.from_numpy(np.full((8, 8, 1), 0.5)))
        acts = self.model.cached_activations()
        self.assertEqual(acts["conv1"].shape, (8, 8, 8))
        self.assertEqual(acts["pool1"].shape, (4, 4, 8))
        self.assertEqual(acts["conv2"].shape, (4, 4, 16))
        self.assertEqual(acts["pool2"].shape, (2, 2, 16))
        self.assertEqual(acts["flat"].shape, (64,))
        self.assertEqual(acts["hidden"].shape, (128,))
        self.assertTrue(np.all(acts["hidden"] >= 0.0))
        self.assertTrue(np.array_equal(acts["flat"], acts["pool2"].reshape(-1)))


class TestCNNModelTraining(unittest.TestCase):
    def setUp(self) -> None:
        self.model = CNNModel((8, 8, 1), rng=np.random.default_rng(0))
        self.x = Tensor3D.from_numpy(np.full((8, 8, 1), 0.5))

    def test_compute_loss_is_cross_entropy_of_last_forward(self):
        probs = self.model.forward(self.x)
        loss = self.model.compute_loss(one_hot(3))
        self.assertAlmostEqual(loss, -np.log(probs[3] + CROSS_ENTROPY_EPS), places=5)

    def test_backward_without_target_raises(self):
        self.model.forward(self.x)
        with self.assertRaises(RuntimeError):
            self.model.backward(0.01)

    def test_set_target_rejects_wrong_length(self):
        with self.assertRaises(ShapeMismatchError):
            self.model.set_target(np.zeros(9))

    def test_zero_learning_rate_changes_nothing(self):
        before = (self.model.conv1.weight, self.model.fc1.weight, self.model.fc2.bias)
        self.model.forward(self.x)
        self.model.set_target(one_hot(0))
        self.model.backward(0.0)
        after = (self.model.conv1.weight, self.model.fc1.weight, self.model.fc2.bias)
        for b, a in zip(before, after):
            self.assertTrue(np.array_equal(b, a))

    def test_backward_updates_output_layer(self):
        self.model.forward(self.x)
        self.model.set_target(one_hot(0))
        b0 = self.model.fc2.bias
        probs = self.model.cached_activations()["probs"]
        self.model.backward(0.1)
        expected = b0 - 0.1 * (probs - one_hot(0))
        self.assertTrue(np.allclose(self.model.fc2.bias, expected, atol=1e-6))

    def test_repeated_sgd_on_one_sample_reduces_loss(self):
        target = one_hot(0)
        first, _ = self.model.train_on_sample(self.x, target, 0.01)
        self.model.forward(self.x)
        self.assertLessEqual(self.model.compute_loss(target), first)
        for _ in range(15):
            last, _ = self.model.train_on_sample(self.x, target, 0.01)
        self.model.forward(self.x)
        final = self.model.compute_loss(target)
        self.assertLess(final, first)
        self.assertLess(last, first)


class TestCNNModelFullSizeScenarios(unittest.TestCase):
    SHAPES = ((28, 28, 1), (32, 32, 3))

    def test_zero_input_gives_uniform_distribution(self):
        for shape in self.SHAPES:
            with self.subTest(shape=shape):
                probs = CNNModel(shape, rng=0).forward(Tensor3D(*shape))
                self.assertAlmostEqual(float(probs.sum()), 1.0, places=6)
                self.assertTrue(np.all((probs >= 0.0) & (probs <= 1.0)))
                self.assertTrue(np.allclose(probs, 0.1, atol=1e-6))

    def test_second_cycle_loss_not_higher(self):
        target = one_hot(0)
        for shape in self.SHAPES:
            with self.subTest(shape=shape):
                model = CNNModel(shape, rng=0)
                x = Tensor3D.from_numpy(np.full(shape, 0.5))
                losses = []
                for _ in range(2):
                    model.forward(x)
                    model.set_target(target)
                    losses.append(model.compute_loss(target))
                    model.backward(0.006)
                self.assertLessEqual(losses[1], losses[0])


class TestCNNModelQueries(unittest.TestCase):
    def setUp(self) -> None:
        self.model = CNNModel((8, 8, 1), rng=np.random.default_rng(2))
        self.x = Tensor3D.from_numpy(np.random.default_rng(3).random((8, 8, 1)))

    def test_predict_is_argmax_of_proba(self):
        probs = self.model.predict_proba(self.x)
        self.assertEqual(self.model.predict(self.x), int(np.argmax(probs)))

    def test_top_k_sorted_descending(self):
        ranking = self.model.get_top_k(self.x)
        self.assertEqual(len(ranking), 10)
        self.assertEqual(sorted(i for i, _ in ranking), list(range(10)))
        values = [p for _, p in ranking]
        self.assertEqual(values, sorted(values, reverse=True))
        self.assertEqual(ranking[0][0], self.model.predict(self.x))

    def test_top_k_truncates(self):
        ranking = self.model.get_top_k(self.x, k=3)
        self.assertEqual(ranking, self.model.get_top_k(self.x)[:3])
        with self.assertRaises(ValueError):
            self.model.get_top_k(self.x, k=0)

    def test_ties_keep_ascending_class_order(self):
        ranking = self.model.get_top_k(Tensor3D(8, 8, 1))
        self.assertEqual([i for i, _ in ranking], list(range(10)))

    def test_top_k_names(self):
        names = [f"class{i}" for i in range(10)]
        ranking = [(4, 0.5), (1, 0.3), (12, 0.2)]
        self.assertEqual(
            CNNModel.top_k_names(ranking, names), ["class4", "class1", "unknown"]
        )


if __name__ == "__main__":
    unittest.main()
