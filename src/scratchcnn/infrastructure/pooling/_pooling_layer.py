"""
Max pooling layer for scratchcnn.

`MaxPool2d` downsamples each channel independently with square,
non-overlapping windows. It has no trainable parameters.

Shape semantics
---------------
Input:
    (H, W, C)

Output:
    (H // p, W // p, C)

Backward routing
----------------
The layer caches both its forward input and forward output. Instead of
remembering a single argmax per window, `backward` re-identifies the maximum
by comparing each window element against the cached output within a small
tolerance, and routes the gradient to every matching position. With exact
ties every tied position receives the full output gradient.
"""

from __future__ import annotations

from typing import Any, Dict

from ...domain._errors import ShapeMismatchError
from ..tensor._tensor import Tensor3D
from ..ops.pool2d_cpu import (
    MAXPOOL_TIE_ATOL,
    maxpool2d_forward_cpu,
    maxpool2d_backward_cpu,
)


class MaxPool2d:
    """
    Non-overlapping 2D max pooling.

    Parameters
    ----------
    pool_size : int
        Window size, also used as the stride. Must be positive.
    tie_atol : float, optional
        Tolerance used by `backward` to match window values against the max.
    """

    def __init__(
        self, pool_size: int = 2, *, tie_atol: float = MAXPOOL_TIE_ATOL
    ) -> None:
        if int(pool_size) <= 0:
            raise ValueError(f"pool_size must be a positive integer, got {pool_size}")
        self.pool_size = int(pool_size)
        self.tie_atol = float(tie_atol)

        self._last_input = Tensor3D()
        self._last_output = Tensor3D()

    def output_shape_for(self, shape: tuple[int, int, int]) -> tuple[int, int, int]:
        """Return the output shape produced for an input of `shape`."""
        H, W, C = shape
        return (H // self.pool_size, W // self.pool_size, C)

    def forward(self, x: Tensor3D) -> Tensor3D:
        """
        Take the maximum over each pool window.

        Parameters
        ----------
        x : Tensor3D
            Input of shape (H, W, C).

        Returns
        -------
        Tensor3D
            Output of shape (H // p, W // p, C).
        """
        self._last_input = x.copy()
        y = maxpool2d_forward_cpu(
            self._last_input.to_numpy(), pool_size=self.pool_size
        )
        self._last_output = Tensor3D.from_numpy(y)
        return self._last_output.copy()

    def backward(self, grad_out: Tensor3D, learning_rate: float = 0.0) -> Tensor3D:
        """
        Route the output gradient to the max position(s) of each window.

        Parameters
        ----------
        grad_out : Tensor3D
            Gradient with respect to the output, shape (H // p, W // p, C).
        learning_rate : float, optional
            Ignored; pooling has no parameters.

        Returns
        -------
        Tensor3D
            Gradient with respect to the input, shape (H, W, C).
        """
        if grad_out.shape != self._last_output.shape:
            raise ShapeMismatchError(
                "MaxPool2d.backward", self._last_output.shape, grad_out.shape
            )
        grad_x = maxpool2d_backward_cpu(
            grad_out.to_numpy(),
            self._last_input.to_numpy(),
            self._last_output.to_numpy(),
            pool_size=self.pool_size,
            atol=self.tie_atol,
        )
        return Tensor3D.from_numpy(grad_x)

    def get_config(self) -> Dict[str, Any]:
        return {"pool_size": self.pool_size, "tie_atol": self.tie_atol}

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "MaxPool2d":
        return cls(
            pool_size=int(cfg.get("pool_size", 2)),
            tie_atol=float(cfg.get("tie_atol", MAXPOOL_TIE_ATOL)),
        )


__all__ = [
    MaxPool2d.__name__,
]
