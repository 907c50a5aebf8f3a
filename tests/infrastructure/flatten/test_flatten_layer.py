import unittest

import numpy as np

from src.scratchcnn.domain._errors import ShapeMismatchError
from src.scratchcnn.infrastructure.tensor import Tensor3D
from src.scratchcnn.infrastructure.flatten._flatten_layer import Flatten


class TestFlatten(unittest.TestCase):
    def setUp(self) -> None:
        self.x = np.arange(2 * 3 * 4, dtype=np.float32).reshape(2, 3, 4)

    def test_forward_orders_row_column_channel(self):
        flat = Flatten()
        y = flat.forward(Tensor3D.from_numpy(self.x))
        self.assertEqual(y.shape, (1, 1, 24))
        self.assertTrue(np.array_equal(flat.flat_output, np.arange(24)))
        # element (r, c, ch) lands at (r * W + c) * C + ch
        self.assertEqual(y.read(0, 0, (1 * 3 + 2) * 4 + 3), self.x[1, 2, 3])

    def test_backward_restores_positions(self):
        flat = Flatten()
        flat.forward(Tensor3D.from_numpy(self.x))
        g = flat.backward(Tensor3D.from_vector(np.arange(24) * 2.0))
        self.assertEqual(g.shape, (2, 3, 4))
        self.assertTrue(np.array_equal(g.to_numpy(), self.x * 2.0))

    def test_backward_rejects_wrong_length(self):
        flat = Flatten()
        flat.forward(Tensor3D.from_numpy(self.x))
        with self.assertRaises(ShapeMismatchError):
            flat.backward(Tensor3D.from_vector(np.zeros(23)))

    def test_backward_rejects_non_flat_gradient(self):
        flat = Flatten()
        flat.forward(Tensor3D.from_numpy(self.x))
        with self.assertRaises(ShapeMismatchError):
            flat.backward(Tensor3D(2, 3, 4))


if __name__ == "__main__":
    unittest.main()
