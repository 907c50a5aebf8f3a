"""
Activation layers.

Currently provides `ReLU`, the elementwise rectifier used after every
convolution. The rectifier between the two dense layers of `CNNModel` works
on plain vectors and is applied by the model itself via `relu_vector` /
`relu_vector_backward`, which share the same masking rule.

Masking rule
------------
The backward pass lets the gradient through only where the cached forward
input was strictly positive; positions with input <= 0 get zero.
"""

from __future__ import annotations

import numpy as np

from ..domain.model._stateless_mixin import StatelessConfigMixin
from ..domain._errors import ShapeMismatchError
from .tensor._tensor import Tensor3D


def relu_vector(x: np.ndarray) -> np.ndarray:
    """Return ``max(0, x)`` elementwise as a new array."""
    return np.maximum(x, 0.0).astype(x.dtype, copy=False)


def relu_vector_backward(grad_out: np.ndarray, cached: np.ndarray) -> np.ndarray:
    """
    Mask `grad_out` with the positivity of `cached`.

    `cached` may be the rectifier's input or its output: both are positive at
    exactly the same positions.
    """
    return np.where(cached > 0.0, grad_out, 0.0).astype(grad_out.dtype, copy=False)


class ReLU(StatelessConfigMixin):
    """
    ReLU activation layer.

    This layer applies the rectified linear unit elementwise:

        relu(x) = max(0, x)

    Notes
    -----
    The layer has no parameters; `learning_rate` is accepted by `backward` for
    interface uniformity and ignored.
    """

    def __init__(self) -> None:
        self._last_input = Tensor3D()

    def forward(self, x: Tensor3D) -> Tensor3D:
        """
        Apply the rectifier and cache the input.

        Parameters
        ----------
        x : Tensor3D
            Input tensor.

        Returns
        -------
        Tensor3D
            Tensor of the same shape containing ``max(0, x)``.
        """
        self._last_input = x.copy()
        return Tensor3D.from_numpy(relu_vector(self._last_input.to_numpy()))

    def backward(self, grad_out: Tensor3D, learning_rate: float = 0.0) -> Tensor3D:
        """
        Pass `grad_out` through where the cached input was positive.

        Parameters
        ----------
        grad_out : Tensor3D
            Gradient with respect to the output.
        learning_rate : float, optional
            Ignored.

        Returns
        -------
        Tensor3D
            Gradient with respect to the input.
        """
        if grad_out.shape != self._last_input.shape:
            raise ShapeMismatchError(
                "ReLU.backward", self._last_input.shape, grad_out.shape
            )
        g = relu_vector_backward(grad_out.to_numpy(), self._last_input.to_numpy())
        return Tensor3D.from_numpy(g)


__all__ = [
    ReLU.__name__,
    "relu_vector",
    "relu_vector_backward",
]
