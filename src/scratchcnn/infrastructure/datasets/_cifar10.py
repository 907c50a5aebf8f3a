"""
CIFAR-10 binary-batch reader.

Each record of a CIFAR-10 ``.bin`` batch is 3073 bytes: one label byte
followed by 3072 pixel bytes stored planar (1024 red, 1024 green, 1024 blue,
each plane row-major 32x32). Records are converted to interleaved HWC so
they can be fed to `image_to_tensor` directly.
"""

from __future__ import annotations

import os
import warnings
from typing import Tuple

import numpy as np

CIFAR10_HEIGHT = 32
CIFAR10_WIDTH = 32
CIFAR10_CHANNELS = 3
CIFAR10_RECORD_BYTES = 1 + CIFAR10_HEIGHT * CIFAR10_WIDTH * CIFAR10_CHANNELS
CIFAR10_TRAIN_FILES = tuple(f"data_batch_{i}.bin" for i in range(1, 6))
CIFAR10_TEST_FILE = "test_batch.bin"


def load_cifar10_batch(path: str) -> Tuple[np.ndarray, np.ndarray]:
    """
    Read one CIFAR-10 binary batch.

    Parameters
    ----------
    path : str
        Path to a ``data_batch_*.bin`` or ``test_batch.bin`` file.

    Returns
    -------
    tuple[np.ndarray, np.ndarray]
        ``images`` of shape (N, 32, 32, 3) and ``labels`` of shape (N,),
        both uint8.

    Raises
    ------
    FileNotFoundError
        If `path` does not exist.

    Notes
    -----
    A trailing partial record is ignored with a warning.
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(f"CIFAR-10 batch not found: {path}")

    with open(path, "rb") as f:
        raw = np.frombuffer(f.read(), dtype=np.uint8)

    n, rest = divmod(raw.size, CIFAR10_RECORD_BYTES)
    if rest:
        warnings.warn(
            f"{path}: ignoring {rest} trailing bytes (not a whole record)",
            RuntimeWarning,
        )

    records = raw[: n * CIFAR10_RECORD_BYTES].reshape(n, CIFAR10_RECORD_BYTES)
    labels = records[:, 0].copy()
    planes = records[:, 1:].reshape(
        n, CIFAR10_CHANNELS, CIFAR10_HEIGHT, CIFAR10_WIDTH
    )
    images = np.ascontiguousarray(planes.transpose(0, 2, 3, 1))
    return images, labels


def _load_files(base_dir: str, names) -> Tuple[np.ndarray, np.ndarray]:
    parts = [load_cifar10_batch(os.path.join(base_dir, name)) for name in names]
    images = np.concatenate([p[0] for p in parts], axis=0)
    labels = np.concatenate([p[1] for p in parts], axis=0)
    return images, labels


def load_cifar10_train(base_dir: str) -> Tuple[np.ndarray, np.ndarray]:
    """Load and concatenate ``data_batch_1.bin`` .. ``data_batch_5.bin``."""
    return _load_files(base_dir, CIFAR10_TRAIN_FILES)


def load_cifar10_test(base_dir: str) -> Tuple[np.ndarray, np.ndarray]:
    """Load ``test_batch.bin``."""
    return _load_files(base_dir, (CIFAR10_TEST_FILE,))


__all__ = [
    "load_cifar10_batch",
    "load_cifar10_train",
    "load_cifar10_test",
]
