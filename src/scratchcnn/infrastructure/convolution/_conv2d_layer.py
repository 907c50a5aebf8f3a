"""
Conv2d layer for scratchcnn.

This module defines `Conv2d`, a stride-1 convolution whose output has the same
spatial size as its input. The implicit zero padding is ``(K - 1) // 2`` on
each side, so only odd kernel sizes are accepted.

Shape semantics
---------------
Input:
    (H, W, C_in)      -- fixed at construction

Output:
    (H, W, C_out)

Parameters
----------
- weight: (C_out, C_in, K, K), Kaiming-normal with fan_in = C_in * K * K
- bias:   (C_out,), zeros

Training
--------
`backward` first accumulates the complete bias, weight and input gradients
against the *current* weights and only then applies the SGD update, so the
returned input gradient never mixes old and new weights.
"""

from __future__ import annotations

from typing import Any, Dict

import numpy as np

from ...domain._errors import ShapeMismatchError
from ..tensor._tensor import Tensor3D
from ..ops.conv2d_cpu import conv2d_forward_cpu, conv2d_backward_cpu
from ..utils._random import RandomLike, resolve_rng
from ..utils.weight_initializer import WeightInitializer


class Conv2d:
    """
    Same-size 2D convolution layer with learned filters and per-channel bias.

    Parameters
    ----------
    in_height, in_width : int
        Spatial size of the input (and output).
    in_channels : int
        Number of input channels.
    kernel_size : int
        Square kernel size. Must be a positive odd integer.
    out_channels : int
        Number of filters / output channels.
    rng : None, int, or numpy.random.Generator, optional
        Random source for weight initialization.
    weight_init : str, optional
        Registered initializer name for the weights. Defaults to "kaiming".

    Raises
    ------
    ValueError
        If any size is not positive or the kernel size is even.
    """

    def __init__(
        self,
        in_height: int,
        in_width: int,
        in_channels: int,
        kernel_size: int,
        out_channels: int,
        *,
        rng: RandomLike = None,
        weight_init: str = "kaiming",
    ) -> None:
        for name, v in (
            ("in_height", in_height),
            ("in_width", in_width),
            ("in_channels", in_channels),
            ("kernel_size", kernel_size),
            ("out_channels", out_channels),
        ):
            if int(v) <= 0:
                raise ValueError(f"{name} must be a positive integer, got {v}")
        if int(kernel_size) % 2 == 0:
            raise ValueError(
                f"kernel_size must be odd for same-size output, got {kernel_size}"
            )

        self.in_height = int(in_height)
        self.in_width = int(in_width)
        self.in_channels = int(in_channels)
        self.kernel_size = int(kernel_size)
        self.out_channels = int(out_channels)
        self.padding = (self.kernel_size - 1) // 2
        self.stride = 1
        self._weight_init = weight_init

        gen = resolve_rng(rng)
        self._weight = np.empty(
            (self.out_channels, self.in_channels, self.kernel_size, self.kernel_size),
            dtype=Tensor3D.dtype,
        )
        self._bias = np.empty((self.out_channels,), dtype=Tensor3D.dtype)
        WeightInitializer(weight_init)(self._weight, gen)
        WeightInitializer("zeros")(self._bias, gen)

        self._last_input: Tensor3D = Tensor3D(
            self.in_height, self.in_width, self.in_channels
        )

    @property
    def input_shape(self) -> tuple[int, int, int]:
        return (self.in_height, self.in_width, self.in_channels)

    @property
    def output_shape(self) -> tuple[int, int, int]:
        return (self.in_height, self.in_width, self.out_channels)

    @property
    def weight(self) -> np.ndarray:
        """Copy of the filters, shape (C_out, C_in, K, K)."""
        return self._weight.copy()

    @property
    def bias(self) -> np.ndarray:
        """Copy of the per-channel bias, shape (C_out,)."""
        return self._bias.copy()

    def forward(self, x: Tensor3D) -> Tensor3D:
        """
        Convolve `x` with the layer's filters.

        Parameters
        ----------
        x : Tensor3D
            Input of shape (in_height, in_width, in_channels).

        Returns
        -------
        Tensor3D
            Output of shape (in_height, in_width, out_channels).

        Raises
        ------
        ShapeMismatchError
            If `x` does not have the configured input shape.
        """
        if x.shape != self.input_shape:
            raise ShapeMismatchError("Conv2d.forward", self.input_shape, x.shape)

        self._last_input = x.copy()
        y = conv2d_forward_cpu(
            self._last_input.to_numpy(), self._weight, self._bias, self.padding
        )
        return Tensor3D.from_numpy(y)

    def backward(self, grad_out: Tensor3D, learning_rate: float) -> Tensor3D:
        """
        Backpropagate through the convolution and apply one SGD step.

        Parameters
        ----------
        grad_out : Tensor3D
            Gradient with respect to the output, shape (H, W, out_channels).
        learning_rate : float
            SGD step size.

        Returns
        -------
        Tensor3D
            Gradient with respect to the input, shape (H, W, in_channels).
        """
        if grad_out.shape != self.output_shape:
            raise ShapeMismatchError(
                "Conv2d.backward", self.output_shape, grad_out.shape
            )

        grad_x, grad_w, grad_b = conv2d_backward_cpu(
            self._last_input.to_numpy(),
            self._weight,
            grad_out.to_numpy(),
            self.padding,
        )

        lr = self._weight.dtype.type(learning_rate)
        self._weight -= lr * grad_w
        self._bias -= lr * grad_b

        return Tensor3D.from_numpy(grad_x)

    def get_config(self) -> Dict[str, Any]:
        return {
            "in_height": self.in_height,
            "in_width": self.in_width,
            "in_channels": self.in_channels,
            "kernel_size": self.kernel_size,
            "out_channels": self.out_channels,
            "weight_init": self._weight_init,
        }

    @classmethod
    def from_config(
        cls, cfg: Dict[str, Any], *, rng: RandomLike = None
    ) -> "Conv2d":
        """
        Build a freshly initialized layer with the configuration `cfg`.
        """
        return cls(
            in_height=int(cfg["in_height"]),
            in_width=int(cfg["in_width"]),
            in_channels=int(cfg["in_channels"]),
            kernel_size=int(cfg["kernel_size"]),
            out_channels=int(cfg["out_channels"]),
            weight_init=str(cfg.get("weight_init", "kaiming")),
            rng=rng,
        )


__all__ = [
    Conv2d.__name__,
]
