"""
Kaiming (He) weight initializers.

This module provides Kaiming (He) normal initialization and registers it
into the global `WeightInitializer` registry.

Implemented variants
--------------------
- ``kaiming``:
    Standard Kaiming normal initialization using ``std = sqrt(2 / fan_in)``.

Notes
-----
- Fan-in is computed from the parameter shape via ``_calculate_fan_in``:
  ``in_features`` for dense weights ``(out, in)`` and
  ``in_channels * k_h * k_w`` for convolution weights ``(out, in, k_h, k_w)``.
- Samples are drawn from the caller's generator; nothing touches the global
  NumPy random state.
"""

import math

import numpy as np

from ._base import WeightInitializer
from ....domain.utils._weight_initialization import _calculate_fan_in


@WeightInitializer.register_initializer("kaiming")
def kaiming(array: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """
    Apply standard Kaiming (He) normal initialization.

    Parameters
    ----------
    array:
        The parameter array to initialize in-place.
    rng:
        Random source.

    Returns
    -------
    np.ndarray
        The initialized array (same object).
    """
    fan_in = _calculate_fan_in(tuple(array.shape))
    fan_in = max(1, int(fan_in))

    std = math.sqrt(2.0 / float(fan_in))

    array[...] = rng.standard_normal(array.shape).astype(array.dtype, copy=False) * std
    return array
