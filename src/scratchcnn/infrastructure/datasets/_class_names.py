"""
Class-name tables for the supported datasets.
"""

from __future__ import annotations

from typing import Sequence

CIFAR10_CLASS_NAMES: tuple[str, ...] = (
    "airplane",
    "automobile",
    "bird",
    "cat",
    "deer",
    "dog",
    "frog",
    "horse",
    "ship",
    "truck",
)

FASHION_MNIST_CLASS_NAMES: tuple[str, ...] = (
    "T-shirt/top",
    "Trouser",
    "Pullover",
    "Dress",
    "Coat",
    "Sandal",
    "Shirt",
    "Sneaker",
    "Bag",
    "Ankle boot",
)


def class_name(names: Sequence[str], class_id: int) -> str:
    """
    Return ``names[class_id]``, or ``"unknown"`` when the id is out of range.
    """
    if 0 <= int(class_id) < len(names):
        return names[int(class_id)]
    return "unknown"
