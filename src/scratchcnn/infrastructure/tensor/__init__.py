"""
Tensor package public API.

Exports
-------
- Tensor3D:
    Dense (height, width, channel) float32 container used by every layer.
"""

from ._tensor import Tensor3D

__all__ = [
    Tensor3D.__name__,
]
