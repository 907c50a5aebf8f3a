"""
Constant weight initializers.

Provided initializers
---------------------
- ``zeros``:
    Set every element to zero. Used for biases.
"""

import numpy as np

from ._base import WeightInitializer


@WeightInitializer.register_initializer("zeros")
def zeros(array: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """
    Initialize an array with all elements set to zero.

    The random source is accepted for signature uniformity and ignored.
    """
    array.fill(0.0)
    return array
