"""
Layer interface definitions.

This module defines the domain-level contracts for network layers using
structural subtyping via `typing.Protocol`.

A layer consumes a tensor on `forward` and produces a tensor; on `backward` it
consumes the gradient of the loss with respect to its output plus a step size,
updates its own parameters in place (if it has any), and returns the gradient
with respect to its input.

Design notes
------------
- There is no autograd graph. Each layer caches whatever its next `backward`
  call needs (a single slot, overwritten by every `forward`).
- Two flavours exist: `ILayer` for (height, width, channel) tensors and
  `IVectorLayer` for 1-D feature vectors (the dense stage).
- Models hold concrete layer instances as named attributes; these protocols
  exist for typing and `isinstance` checks, not for dynamic dispatch.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import numpy as np

from ._tensor import ITensor3D


@runtime_checkable
class ILayer(Protocol):
    """
    Tensor-to-tensor layer contract (convolution, pooling, activation, flatten).
    """

    def forward(self, x: ITensor3D) -> ITensor3D:
        """
        Compute the layer output and cache what `backward` requires.

        Parameters
        ----------
        x : ITensor3D
            Input tensor.

        Returns
        -------
        ITensor3D
            Output tensor.
        """
        ...

    def backward(self, grad_out: ITensor3D, learning_rate: float) -> ITensor3D:
        """
        Propagate the output gradient to the input and update parameters.

        Parameters
        ----------
        grad_out : ITensor3D
            Gradient of the loss with respect to this layer's output.
        learning_rate : float
            SGD step size. Parameter-free layers ignore it.

        Returns
        -------
        ITensor3D
            Gradient of the loss with respect to this layer's input.
        """
        ...


@runtime_checkable
class IVectorLayer(Protocol):
    """
    Vector-to-vector layer contract (fully-connected stage).
    """

    def forward(self, x: np.ndarray) -> np.ndarray:
        """
        Compute the layer output for a 1-D input vector.
        """
        ...

    def backward(self, grad_out: np.ndarray, learning_rate: float) -> np.ndarray:
        """
        Propagate a 1-D output gradient and update parameters in place.
        """
        ...
