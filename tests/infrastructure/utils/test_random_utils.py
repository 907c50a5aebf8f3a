import unittest

import numpy as np

from src.scratchcnn.infrastructure.utils._random import resolve_rng, spawn_rngs


class TestRandomUtils(unittest.TestCase):
    def test_generator_passes_through(self):
        gen = np.random.default_rng(0)
        self.assertIs(resolve_rng(gen), gen)

    def test_seed_is_reproducible(self):
        a = resolve_rng(7).standard_normal(3)
        b = resolve_rng(7).standard_normal(3)
        self.assertTrue(np.array_equal(a, b))

    def test_spawned_streams_are_independent_and_reproducible(self):
        a1, a2 = spawn_rngs(11, 2)
        b1, _ = spawn_rngs(11, 2)
        x1 = a1.standard_normal(4)
        self.assertTrue(np.array_equal(x1, b1.standard_normal(4)))
        self.assertFalse(np.array_equal(x1, a2.standard_normal(4)))


if __name__ == "__main__":
    unittest.main()
