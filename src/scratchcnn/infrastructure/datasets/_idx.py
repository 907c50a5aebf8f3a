"""
IDX file reader (MNIST / Fashion-MNIST format).

An IDX file begins with a big-endian header: a 32-bit magic number, the
item count, and for image files the row and column counts. The payload is
one unsigned byte per pixel (images) or per label.

    images : magic 2051, count, rows, cols, then count*rows*cols bytes
    labels : magic 2049, count, then count bytes
"""

from __future__ import annotations

import os
from typing import Tuple

import numpy as np

IDX_IMAGES_MAGIC = 2051
IDX_LABELS_MAGIC = 2049

FASHION_MNIST_FILES = {
    "train": ("train-images-idx3-ubyte", "train-labels-idx1-ubyte"),
    "test": ("t10k-images-idx3-ubyte", "t10k-labels-idx1-ubyte"),
}

_HEADER_DTYPE = np.dtype(">u4")


def _read_header(raw: bytes, count: int, path: str) -> np.ndarray:
    nbytes = count * _HEADER_DTYPE.itemsize
    if len(raw) < nbytes:
        raise ValueError(f"{path}: truncated IDX header")
    return np.frombuffer(raw, dtype=_HEADER_DTYPE, count=count).astype(np.int64)


def _read_file(path: str) -> bytes:
    if not os.path.isfile(path):
        raise FileNotFoundError(f"IDX file not found: {path}")
    with open(path, "rb") as f:
        return f.read()


def read_idx_images(path: str) -> np.ndarray:
    """
    Read an IDX image file.

    Returns
    -------
    np.ndarray
        uint8 array of shape (N, rows, cols, 1).

    Raises
    ------
    ValueError
        If the magic number is not 2051 or the payload is shorter than the
        header announces.
    """
    raw = _read_file(path)
    magic, n, rows, cols = _read_header(raw, 4, path)
    if magic != IDX_IMAGES_MAGIC:
        raise ValueError(
            f"{path}: bad IDX image magic {magic} (expected {IDX_IMAGES_MAGIC})"
        )

    offset = 4 * _HEADER_DTYPE.itemsize
    expected = int(n * rows * cols)
    payload = np.frombuffer(raw, dtype=np.uint8, offset=offset)
    if payload.size < expected:
        raise ValueError(
            f"{path}: truncated IDX image payload ({payload.size} < {expected} bytes)"
        )
    return payload[:expected].reshape(int(n), int(rows), int(cols), 1).copy()


def read_idx_labels(path: str) -> np.ndarray:
    """
    Read an IDX label file into a uint8 array of shape (N,).

    Raises ``ValueError`` on a wrong magic number or a truncated payload.
    """
    raw = _read_file(path)
    magic, n = _read_header(raw, 2, path)
    if magic != IDX_LABELS_MAGIC:
        raise ValueError(
            f"{path}: bad IDX label magic {magic} (expected {IDX_LABELS_MAGIC})"
        )

    payload = np.frombuffer(raw, dtype=np.uint8, offset=2 * _HEADER_DTYPE.itemsize)
    if payload.size < n:
        raise ValueError(
            f"{path}: truncated IDX label payload ({payload.size} < {n} bytes)"
        )
    return payload[: int(n)].copy()


def load_idx_dataset(
    images_path: str, labels_path: str
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Read a matching pair of IDX image and label files.

    Raises
    ------
    ValueError
        If the two files disagree on the number of items.
    """
    images = read_idx_images(images_path)
    labels = read_idx_labels(labels_path)
    if images.shape[0] != labels.shape[0]:
        raise ValueError(
            f"image/label count mismatch: {images.shape[0]} images, "
            f"{labels.shape[0]} labels"
        )
    return images, labels


def load_fashion_mnist(
    base_dir: str, *, split: str = "train"
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Load the Fashion-MNIST `split` ("train" or "test") from `base_dir` using
    the standard uncompressed file names.
    """
    if split not in FASHION_MNIST_FILES:
        raise ValueError(f"split must be 'train' or 'test', got {split!r}")
    images_name, labels_name = FASHION_MNIST_FILES[split]
    return load_idx_dataset(
        os.path.join(base_dir, images_name), os.path.join(base_dir, labels_name)
    )


__all__ = [
    "read_idx_images",
    "read_idx_labels",
    "load_idx_dataset",
    "load_fashion_mnist",
]
