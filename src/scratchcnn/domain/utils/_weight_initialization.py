"""
Weight-initialization contract and fan-in arithmetic.

Layers never draw random numbers themselves: they allocate a parameter array
and hand it, together with their `numpy.random.Generator`, to a named
initializer. This module holds the abstract dispatcher and the fan-in rule
shared by the scaled initializers; the registry and the concrete strategies
are in ``infrastructure.utils.weight_initializer``.
"""

from abc import ABC, abstractmethod
from typing import Callable, ClassVar, Dict, Tuple

import numpy as np

InitializerFn = Callable[[np.ndarray, np.random.Generator], np.ndarray]


class _WeightInitializer(ABC):
    """
    Abstract dispatcher selecting an initialization strategy by name.

    A strategy fills the given array in place using the supplied generator
    and returns that same array.
    """

    INITIALIZERS: ClassVar[Dict[str, InitializerFn]] = {}

    @abstractmethod
    def __call__(self, array: np.ndarray, rng: np.random.Generator) -> np.ndarray:
        ...


def _calculate_fan_in(shape: Tuple[int, ...]) -> int:
    """
    Number of inputs feeding one output unit of a parameter of `shape`.

    Dense weights are (out_features, in_features); convolution filters are
    (out_channels, in_channels, K, K), whose fan-in also counts the K*K
    receptive field. Vectors report their length and scalars 1.
    """
    if len(shape) == 0:
        return 1
    if len(shape) == 1:
        return int(shape[0])
    receptive_field = int(np.prod(shape[2:], dtype=np.int64)) if len(shape) > 2 else 1
    return int(shape[1]) * receptive_field
