"""
Weight initialization public API.

This module aggregates the supported weight initialization strategies
(Kaiming normal, zeros) and registers them into the global
`WeightInitializer` registry via import side effects.

Exports
-------
- WeightInitializer:
    The registry-backed initializer dispatcher used by layers to fill their
    parameter arrays.
"""

from ._kaiming import *
from ._constants import *
from ._base import WeightInitializer

__all__ = [
    WeightInitializer.__name__,
]
