"""
Dataset readers and class-name tables.
"""

from ._class_names import CIFAR10_CLASS_NAMES, FASHION_MNIST_CLASS_NAMES, class_name
from ._cifar10 import load_cifar10_batch, load_cifar10_train, load_cifar10_test
from ._idx import read_idx_images, read_idx_labels, load_idx_dataset, load_fashion_mnist

__all__ = [
    "CIFAR10_CLASS_NAMES",
    "FASHION_MNIST_CLASS_NAMES",
    "class_name",
    "load_cifar10_batch",
    "load_cifar10_train",
    "load_cifar10_test",
    "read_idx_images",
    "read_idx_labels",
    "load_idx_dataset",
    "load_fashion_mnist",
]
