"""
Flatten layer for scratchcnn.

`Flatten` bridges the convolutional stage and the dense stage by linearizing
an (H, W, C) tensor.

Shape semantics
---------------
Forward:
    x: (H, W, C)
    y: (1, 1, H*W*C)

Backward:
    grad_out: (1, 1, H*W*C)
    grad_x:   (H, W, C)

Ordering
--------
Elements are emitted row by row, then column, then channel, which is exactly
the storage order of `Tensor3D`. The backward pass de-linearizes with the
identical ordering; the two directions must stay in lock-step or gradients
would be silently scattered to the wrong positions.

Design notes
------------
- The layer has no trainable parameters.
- Besides the 1x1xN tensor, the forward result is also available as a plain
  1-D feature vector (`flat_output`) for consumption by `Dense`.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np

from ...domain.model._stateless_mixin import StatelessConfigMixin
from ...domain._errors import ShapeMismatchError
from ..tensor._tensor import Tensor3D


class Flatten(StatelessConfigMixin):
    """
    Flatten layer: (H, W, C) <-> (1, 1, H*W*C).
    """

    def __init__(self) -> None:
        self._in_shape: Tuple[int, int, int] = (0, 0, 0)
        self._flat_output = np.zeros((0,), dtype=Tensor3D.dtype)

    @property
    def input_shape(self) -> Tuple[int, int, int]:
        """Shape cached by the most recent forward call."""
        return self._in_shape

    @property
    def flat_output(self) -> np.ndarray:
        """Copy of the most recent forward result as a 1-D vector."""
        return self._flat_output.copy()

    def forward(self, x: Tensor3D) -> Tensor3D:
        """
        Linearize `x` in (row, column, channel) order.

        Parameters
        ----------
        x : Tensor3D
            Input of shape (H, W, C).

        Returns
        -------
        Tensor3D
            Tensor of shape (1, 1, H*W*C).
        """
        self._in_shape = x.shape
        self._flat_output = x.to_numpy().reshape(-1).copy()
        return Tensor3D.from_vector(self._flat_output)

    def backward(self, grad_out: Tensor3D, learning_rate: float = 0.0) -> Tensor3D:
        """
        Restore `grad_out` to the cached input shape.

        Parameters
        ----------
        grad_out : Tensor3D
            Gradient of shape (1, 1, H*W*C).
        learning_rate : float, optional
            Ignored.

        Returns
        -------
        Tensor3D
            Gradient of shape (H, W, C).

        Raises
        ------
        ShapeMismatchError
            If `grad_out` is not 1x1xN with N equal to H*W*C of the cached shape.
        """
        H, W, C = self._in_shape
        expected = (1, 1, H * W * C)
        if grad_out.shape != expected:
            raise ShapeMismatchError("Flatten.backward", expected, grad_out.shape)

        return Tensor3D.from_numpy(grad_out.to_numpy().reshape(H, W, C))


__all__ = [
    Flatten.__name__,
]
