"""
Dense (fully-connected) layer for scratchcnn.

`Dense` applies an affine map to a 1-D feature vector:

    y = W @ x + b

with ``W`` of shape ``(out_features, in_features)`` and ``b`` of shape
``(out_features,)``.

Training
--------
`backward` performs one SGD step. The input gradient ``W^T @ g`` is computed
from a snapshot of the weights taken before any update in the call, so every
output neuron's contribution uses the same (pre-update) weights.
"""

from __future__ import annotations

from typing import Any, Dict

import numpy as np

from ...domain._errors import ShapeMismatchError
from ..tensor._tensor import Tensor3D
from ..utils._random import RandomLike, resolve_rng
from ..utils.weight_initializer import WeightInitializer


class Dense:
    """
    Fully-connected layer on 1-D vectors.

    Parameters
    ----------
    in_features : int
        Length of the input vector.
    out_features : int
        Length of the output vector.
    rng : None, int, or numpy.random.Generator, optional
        Random source for weight initialization.
    weight_init : str, optional
        Registered initializer name for the weights. Defaults to "kaiming".
    """

    def __init__(
        self,
        in_features: int,
        out_features: int,
        *,
        rng: RandomLike = None,
        weight_init: str = "kaiming",
    ) -> None:
        if int(in_features) <= 0:
            raise ValueError("in_features must be a positive integer")
        if int(out_features) <= 0:
            raise ValueError("out_features must be a positive integer")

        self.in_features = int(in_features)
        self.out_features = int(out_features)
        self._weight_init = weight_init

        gen = resolve_rng(rng)
        self._weight = np.empty(
            (self.out_features, self.in_features), dtype=Tensor3D.dtype
        )
        self._bias = np.empty((self.out_features,), dtype=Tensor3D.dtype)
        WeightInitializer(weight_init)(self._weight, gen)
        WeightInitializer("zeros")(self._bias, gen)

        self._last_input = np.zeros((self.in_features,), dtype=Tensor3D.dtype)

    @property
    def weight(self) -> np.ndarray:
        """Copy of the weight matrix, shape (out_features, in_features)."""
        return self._weight.copy()

    @property
    def bias(self) -> np.ndarray:
        """Copy of the bias vector, shape (out_features,)."""
        return self._bias.copy()

    def forward(self, x: np.ndarray) -> np.ndarray:
        """
        Compute ``W @ x + b`` and cache `x`.

        Parameters
        ----------
        x : np.ndarray
            Input vector of length `in_features`.

        Returns
        -------
        np.ndarray
            Output vector of length `out_features`.
        """
        x = np.asarray(x, dtype=Tensor3D.dtype)
        if x.shape != (self.in_features,):
            raise ShapeMismatchError("Dense.forward", (self.in_features,), x.shape)

        self._last_input = x.copy()
        return self._weight @ self._last_input + self._bias

    def backward(self, grad_out: np.ndarray, learning_rate: float) -> np.ndarray:
        """
        Backpropagate a gradient vector and apply one SGD step.

        Parameters
        ----------
        grad_out : np.ndarray
            Gradient with respect to the output, length `out_features`.
        learning_rate : float
            SGD step size.

        Returns
        -------
        np.ndarray
            Gradient with respect to the input, length `in_features`,
            computed with the pre-update weights.
        """
        g = np.asarray(grad_out, dtype=Tensor3D.dtype)
        if g.shape != (self.out_features,):
            raise ShapeMismatchError("Dense.backward", (self.out_features,), g.shape)

        old_weight = self._weight.copy()
        grad_x = old_weight.T @ g

        lr = self._weight.dtype.type(learning_rate)
        self._bias -= lr * g
        self._weight -= lr * np.outer(g, self._last_input)

        return grad_x

    def get_config(self) -> Dict[str, Any]:
        return {
            "in_features": self.in_features,
            "out_features": self.out_features,
            "weight_init": self._weight_init,
        }

    @classmethod
    def from_config(cls, cfg: Dict[str, Any], *, rng: RandomLike = None) -> "Dense":
        """
        Build a freshly initialized layer with the configuration `cfg`.
        """
        return cls(
            in_features=int(cfg["in_features"]),
            out_features=int(cfg["out_features"]),
            weight_init=str(cfg.get("weight_init", "kaiming")),
            rng=rng,
        )


__all__ = [
    Dense.__name__,
]
