"""
Fixed-topology convolutional classifier.

This module defines `CNNModel`, the composition of every core layer into a
single trainable network:

    Conv(C1, KxK) -> ReLU -> MaxPool(p)
    -> Conv(C2, KxK) -> ReLU -> MaxPool(p)
    -> Flatten -> Dense(hidden) -> ReLU -> Dense(num_classes) -> Softmax

with defaults C1=8, C2=16, K=3, p=2, hidden=128, num_classes=10. The input
shape is configurable: (28, 28, 1) for grayscale IDX datasets and
(32, 32, 3) for CIFAR-10.

Call protocol
-------------
The model trains one sample at a time (online SGD):

    probs = model.forward(x)
    model.set_target(one_hot)
    loss = model.compute_loss(one_hot)
    model.backward(learning_rate)

`forward` caches every intermediate activation in single-slot buffers that
the next `backward` consumes. A second `forward` before `backward` replaces
those buffers; `backward` without a fresh `forward` silently reuses stale
activations. This is a caller contract, not an enforced invariant.

Backward chaining
-----------------
Softmax is always paired with cross-entropy, so the gradient at the logits is
taken in closed form as ``probs - target``. It is then threaded manually
through fc2, the hidden ReLU (masked by the cached post-ReLU activation),
fc1, flatten, pool2, relu2, conv2, pool1, relu1 and conv1; each stage
consumes the previous stage's input gradient as its output gradient.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from ...domain._errors import ShapeMismatchError
from ..tensor._tensor import Tensor3D
from ..convolution._conv2d_layer import Conv2d
from ..pooling._pooling_layer import MaxPool2d
from ..flatten._flatten_layer import Flatten
from ..fully_connected._dense import Dense
from .._activations import ReLU, relu_vector, relu_vector_backward
from .._losses import (
    softmax,
    categorical_cross_entropy,
    softmax_cross_entropy_grad,
)
from ..datasets._class_names import class_name
from ..utils._random import RandomLike, spawn_rngs


class CNNModel:
    """
    Two-block convolutional classifier with a two-layer dense head.

    Parameters
    ----------
    input_shape : tuple[int, int, int], optional
        (height, width, channels) of every input sample. Default (28, 28, 1).
    num_classes : int, optional
        Number of output classes. Default 10.
    conv1_channels, conv2_channels : int, optional
        Filters in the first and second convolution. Defaults 8 and 16.
    kernel_size : int, optional
        Odd convolution kernel size. Default 3.
    pool_size : int, optional
        Max-pool window (and stride). Default 2.
    hidden_units : int, optional
        Width of the first dense layer. Default 128.
    rng : None, int, or numpy.random.Generator, optional
        Random source. Each parameterized layer receives an independent
        stream spawned from it, so a fixed seed gives a reproducible model.

    Raises
    ------
    ValueError
        If the input is too small to survive two pooling stages, or any
        layer rejects its configuration.
    """

    LAYER_NAMES = (
        "conv1",
        "relu1",
        "pool1",
        "conv2",
        "relu2",
        "pool2",
        "flatten",
        "fc1",
        "fc2",
    )

    def __init__(
        self,
        input_shape: Tuple[int, int, int] = (28, 28, 1),
        *,
        num_classes: int = 10,
        conv1_channels: int = 8,
        conv2_channels: int = 16,
        kernel_size: int = 3,
        pool_size: int = 2,
        hidden_units: int = 128,
        rng: RandomLike = None,
    ) -> None:
        if len(input_shape) != 3:
            raise ValueError(f"input_shape must be (H, W, C), got {input_shape}")
        H, W, C = (int(d) for d in input_shape)
        if num_classes <= 0:
            raise ValueError("num_classes must be a positive integer")
        if pool_size <= 0:
            raise ValueError("pool_size must be a positive integer")

        H1, W1 = H // pool_size, W // pool_size
        H2, W2 = H1 // pool_size, W1 // pool_size
        if H2 <= 0 or W2 <= 0:
            raise ValueError(
                f"input_shape {input_shape} is too small for two {pool_size}x"
                f"{pool_size} pooling stages"
            )

        self.input_shape: Tuple[int, int, int] = (H, W, C)
        self.num_classes = int(num_classes)
        self.conv1_channels = int(conv1_channels)
        self.conv2_channels = int(conv2_channels)
        self.kernel_size = int(kernel_size)
        self.pool_size = int(pool_size)
        self.hidden_units = int(hidden_units)
        self.flat_features = H2 * W2 * self.conv2_channels

        rng_conv1, rng_conv2, rng_fc1, rng_fc2 = spawn_rngs(rng, 4)

        self.conv1 = Conv2d(
            H, W, C, self.kernel_size, self.conv1_channels, rng=rng_conv1
        )
        self.relu1 = ReLU()
        self.pool1 = MaxPool2d(self.pool_size)
        self.conv2 = Conv2d(
            H1, W1, self.conv1_channels, self.kernel_size, self.conv2_channels,
            rng=rng_conv2,
        )
        self.relu2 = ReLU()
        self.pool2 = MaxPool2d(self.pool_size)
        self.flatten = Flatten()
        self.fc1 = Dense(self.flat_features, self.hidden_units, rng=rng_fc1)
        self.fc2 = Dense(self.hidden_units, self.num_classes, rng=rng_fc2)

        # single-slot activation caches
        self._input = Tensor3D(H, W, C)
        self._conv1_output = Tensor3D(H, W, self.conv1_channels)
        self._pool1_output = Tensor3D(H1, W1, self.conv1_channels)
        self._conv2_output = Tensor3D(H1, W1, self.conv2_channels)
        self._pool2_output = Tensor3D(H2, W2, self.conv2_channels)
        self._flat = np.zeros((self.flat_features,), dtype=Tensor3D.dtype)
        self._hidden = np.zeros((self.hidden_units,), dtype=Tensor3D.dtype)
        self._logits = np.zeros((self.num_classes,), dtype=Tensor3D.dtype)
        self._probs = np.zeros((self.num_classes,), dtype=Tensor3D.dtype)
        self._target: Optional[np.ndarray] = None

    # ------------------------------------------------------------------
    # Training API
    # ------------------------------------------------------------------
    def forward(self, x: Tensor3D) -> np.ndarray:
        """
        Run the full network on one sample.

        Parameters
        ----------
        x : Tensor3D
            Input of shape `input_shape`, values normalized to [0, 1].

        Returns
        -------
        np.ndarray
            Probability vector of length `num_classes`.
        """
        self._input = x.copy()
        self._conv1_output = self.conv1.forward(self._input)
        relu1_out = self.relu1.forward(self._conv1_output)
        self._pool1_output = self.pool1.forward(relu1_out)

        self._conv2_output = self.conv2.forward(self._pool1_output)
        relu2_out = self.relu2.forward(self._conv2_output)
        self._pool2_output = self.pool2.forward(relu2_out)

        self.flatten.forward(self._pool2_output)
        self._flat = self.flatten.flat_output

        self._hidden = relu_vector(self.fc1.forward(self._flat))
        self._logits = self.fc2.forward(self._hidden)
        self._probs = softmax(self._logits)
        return self._probs.copy()

    def set_target(self, target: Sequence[float]) -> None:
        """
        Store the one-hot target consumed by the next `backward`.

        Raises
        ------
        ShapeMismatchError
            If the vector length differs from `num_classes`.
        """
        t = np.asarray(target, dtype=Tensor3D.dtype).reshape(-1)
        if t.shape != (self.num_classes,):
            raise ShapeMismatchError(
                "CNNModel.set_target", (self.num_classes,), t.shape
            )
        self._target = t.copy()

    @property
    def target(self) -> Optional[np.ndarray]:
        return None if self._target is None else self._target.copy()

    def compute_loss(self, target: Sequence[float]) -> float:
        """
        Cross-entropy between the last forward output and `target`.
        """
        return categorical_cross_entropy(self._probs, np.asarray(target))

    def backward(self, learning_rate: float) -> None:
        """
        Backpropagate the last forward pass against the stored target and
        update every parameterized layer with one SGD step.

        Parameters
        ----------
        learning_rate : float
            SGD step size.

        Raises
        ------
        RuntimeError
            If no target has been set.
        """
        if self._target is None:
            raise RuntimeError("CNNModel.backward called before set_target")

        d_logits = softmax_cross_entropy_grad(self._probs, self._target)

        d_hidden = self.fc2.backward(d_logits, learning_rate)
        d_hidden = relu_vector_backward(d_hidden, self._hidden)
        d_flat = self.fc1.backward(d_hidden, learning_rate)

        d_pool2 = self.flatten.backward(Tensor3D.from_vector(d_flat), learning_rate)
        d_relu2 = self.pool2.backward(d_pool2, learning_rate)
        d_conv2 = self.relu2.backward(d_relu2, learning_rate)
        d_pool1 = self.conv2.backward(d_conv2, learning_rate)
        d_relu1 = self.pool1.backward(d_pool1, learning_rate)
        d_conv1 = self.relu1.backward(d_relu1, learning_rate)
        self.conv1.backward(d_conv1, learning_rate)

    def train_on_sample(
        self, x: Tensor3D, target: Sequence[float], learning_rate: float
    ) -> Tuple[float, np.ndarray]:
        """
        One full SGD cycle: forward, set_target, compute_loss, backward.

        Returns
        -------
        tuple[float, np.ndarray]
            The loss measured before the update and the forward probabilities.
        """
        probs = self.forward(x)
        self.set_target(target)
        loss = self.compute_loss(target)
        self.backward(learning_rate)
        return loss, probs

    # ------------------------------------------------------------------
    # Inference API
    # ------------------------------------------------------------------
    def predict(self, x: Tensor3D) -> int:
        """Return the index of the most probable class."""
        return int(np.argmax(self.forward(x)))

    def predict_proba(self, x: Tensor3D) -> np.ndarray:
        """Return the full probability vector."""
        return self.forward(x)

    def get_top_k(
        self, x: Tensor3D, k: Optional[int] = None
    ) -> List[Tuple[int, float]]:
        """
        Rank classes by predicted probability.

        Parameters
        ----------
        x : Tensor3D
            Input sample.
        k : int, optional
            Number of entries to return. Defaults to all classes.

        Returns
        -------
        list[tuple[int, float]]
            (class_index, probability) pairs sorted by descending probability.
            The sort is stable: equal probabilities keep ascending class order.
        """
        if k is not None and k <= 0:
            raise ValueError(f"k must be a positive integer, got {k}")
        probs = self.forward(x)
        ranking = sorted(
            ((i, float(p)) for i, p in enumerate(probs)),
            key=lambda item: item[1],
            reverse=True,
        )
        return ranking if k is None else ranking[:k]

    @staticmethod
    def top_k_names(
        ranking: Sequence[Tuple[int, float]], class_names: Sequence[str]
    ) -> List[str]:
        """Map a ranking from `get_top_k` to class names."""
        return [class_name(class_names, cid) for cid, _ in ranking]

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    def cached_activations(self) -> Dict[str, np.ndarray]:
        """
        Return copies of every activation cached by the last forward pass.
        """
        return {
            "input": self._input.to_numpy().copy(),
            "conv1": self._conv1_output.to_numpy().copy(),
            "pool1": self._pool1_output.to_numpy().copy(),
            "conv2": self._conv2_output.to_numpy().copy(),
            "pool2": self._pool2_output.to_numpy().copy(),
            "flat": self._flat.copy(),
            "hidden": self._hidden.copy(),
            "logits": np.asarray(self._logits).copy(),
            "probs": self._probs.copy(),
        }

    def get_config(self) -> Dict[str, Any]:
        """
        Model hyperparameters plus the configuration reported by each layer
        under ``"layers"``. `from_config` reads only the hyperparameters.
        """
        return {
            "input_shape": list(self.input_shape),
            "num_classes": self.num_classes,
            "conv1_channels": self.conv1_channels,
            "conv2_channels": self.conv2_channels,
            "kernel_size": self.kernel_size,
            "pool_size": self.pool_size,
            "hidden_units": self.hidden_units,
            "layers": {
                name: getattr(self, name).get_config() for name in self.LAYER_NAMES
            },
        }

    @classmethod
    def from_config(cls, cfg: Dict[str, Any], *, rng: RandomLike = None) -> "CNNModel":
        """
        Build a freshly initialized model with the configuration `cfg`.
        """
        return cls(
            tuple(int(d) for d in cfg.get("input_shape", (28, 28, 1))),
            num_classes=int(cfg.get("num_classes", 10)),
            conv1_channels=int(cfg.get("conv1_channels", 8)),
            conv2_channels=int(cfg.get("conv2_channels", 16)),
            kernel_size=int(cfg.get("kernel_size", 3)),
            pool_size=int(cfg.get("pool_size", 2)),
            hidden_units=int(cfg.get("hidden_units", 128)),
            rng=rng,
        )


__all__ = [
    CNNModel.__name__,
]
