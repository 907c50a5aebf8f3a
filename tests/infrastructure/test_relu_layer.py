import unittest

import numpy as np

from src.scratchcnn.domain._errors import ShapeMismatchError
from src.scratchcnn.infrastructure.tensor import Tensor3D
from src.scratchcnn.infrastructure._activations import (
    ReLU,
    relu_vector,
    relu_vector_backward,
)


class TestReLU(unittest.TestCase):
    def setUp(self) -> None:
        x = np.array([-2.0, -0.5, 0.0, 0.5, 3.0, -1.0], dtype=np.float32)
        self.x = x.reshape(1, 2, 3)

    def test_forward_clamps_negatives(self):
        y = ReLU().forward(Tensor3D.from_numpy(self.x)).to_numpy()
        self.assertTrue(np.array_equal(y.reshape(-1), [0, 0, 0, 0.5, 3.0, 0]))

    def test_backward_masks_non_positive_inputs(self):
        relu = ReLU()
        relu.forward(Tensor3D.from_numpy(self.x))
        g = relu.backward(Tensor3D.from_numpy(np.ones((1, 2, 3)))).to_numpy()
        # zero input counts as inactive
        self.assertTrue(np.array_equal(g.reshape(-1), [0, 0, 0, 1, 1, 0]))

    def test_backward_shape_mismatch_raises(self):
        relu = ReLU()
        relu.forward(Tensor3D.from_numpy(self.x))
        with self.assertRaises(ShapeMismatchError):
            relu.backward(Tensor3D(2, 1, 3))

    def test_vector_helpers(self):
        v = np.array([-1.0, 2.0, 0.0], dtype=np.float32)
        self.assertTrue(np.array_equal(relu_vector(v), [0.0, 2.0, 0.0]))
        g = relu_vector_backward(np.array([5.0, 5.0, 5.0], dtype=np.float32), v)
        self.assertTrue(np.array_equal(g, [0.0, 5.0, 0.0]))

    def test_stateless_config(self):
        self.assertEqual(ReLU().get_config(), {})
        self.assertIsInstance(ReLU.from_config({}), ReLU)


if __name__ == "__main__":
    unittest.main()
