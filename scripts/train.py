"""
scripts/train.py

Train the scratchcnn classifier on CIFAR-10 or Fashion-MNIST and watch it
learn in the terminal.

The run shows a grid of random predictions before training and every
`--visual-interval` steps, the ranked class probabilities of one sample, and
an overall progress bar. One summary line is printed per epoch.

Usage examples
--------------
# CIFAR-10 binary batches (data_batch_1.bin .. data_batch_5.bin)
python scripts/train.py --dataset cifar10 --data-dir cifar-10-batches-bin

# Fashion-MNIST IDX files (train-images-idx3-ubyte, train-labels-idx1-ubyte)
python scripts/train.py --dataset fashion-mnist --data-dir fashion-mnist --epochs 3

# Quieter, reproducible run on fewer samples
python scripts/train.py --limit 1000 --seed 7 --visual-interval 0
"""

from __future__ import annotations

import os
import sys

# Ensure repo_root/src is importable when running this file directly:
# repo_root/
#   src/scratchcnn/...
#   scripts/train.py
THIS_DIR = os.path.dirname(os.path.abspath(__file__))
ROOT_DIR = os.path.abspath(os.path.join(THIS_DIR, ".."))
SRC_DIR = os.path.join(ROOT_DIR, "src")

if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

import argparse

import numpy as np

from scratchcnn.infrastructure.datasets import (
    CIFAR10_CLASS_NAMES,
    FASHION_MNIST_CLASS_NAMES,
    load_cifar10_train,
    load_cifar10_test,
    load_fashion_mnist,
)
from scratchcnn.infrastructure.models import CNNModel
from scratchcnn.infrastructure.training import evaluate, fit
from scratchcnn.infrastructure.viewer import ConsoleDisplay


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Train the scratchcnn classifier.")
    p.add_argument(
        "--dataset",
        choices=("cifar10", "fashion-mnist"),
        default="cifar10",
        help="Dataset format to load.",
    )
    p.add_argument(
        "--data-dir",
        default=None,
        help="Directory holding the dataset files "
        "(default: cifar-10-batches-bin or fashion-mnist).",
    )
    p.add_argument("--epochs", type=int, default=8)
    p.add_argument("--lr", type=float, default=0.006, help="SGD learning rate.")
    p.add_argument(
        "--limit",
        type=int,
        default=5000,
        help="Training samples used per epoch (<= 0 uses all).",
    )
    p.add_argument("--seed", type=int, default=None)
    p.add_argument(
        "--visual-interval",
        type=int,
        default=100,
        help="Steps between viewer refreshes (<= 0 disables the viewer).",
    )
    p.add_argument(
        "--eval",
        action="store_true",
        help="Evaluate on the test split after training.",
    )
    p.add_argument("--verbose", type=int, default=1)
    return p.parse_args(argv)


def load_dataset(name: str, data_dir: str, split: str):
    if name == "cifar10":
        loader = load_cifar10_train if split == "train" else load_cifar10_test
        images, labels = loader(data_dir)
        return images, labels, CIFAR10_CLASS_NAMES
    images, labels = load_fashion_mnist(data_dir, split=split)
    return images, labels, FASHION_MNIST_CLASS_NAMES


def main(argv=None) -> int:
    args = parse_args(argv)
    data_dir = args.data_dir or (
        "cifar-10-batches-bin" if args.dataset == "cifar10" else "fashion-mnist"
    )

    print(f"Loading {args.dataset} training data from {data_dir}...")
    try:
        images, labels, class_names = load_dataset(args.dataset, data_dir, "train")
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: training data load failed: {e}", file=sys.stderr)
        return 1
    print(f"Loaded {len(images)} training images")

    rng = np.random.default_rng(args.seed)
    model_rng, train_rng = rng.spawn(2)

    model = CNNModel(
        tuple(images.shape[1:]), num_classes=len(class_names), rng=model_rng
    )
    display = ConsoleDisplay() if args.visual_interval > 0 else None

    history = fit(
        model,
        images,
        labels,
        epochs=args.epochs,
        learning_rate=args.lr,
        rng=train_rng,
        limit=args.limit if args.limit > 0 else None,
        verbose=args.verbose,
        display=display,
        class_names=class_names,
        visual_interval=max(args.visual_interval, 1),
    )
    print(f"Final: {history.last()}")

    if args.eval:
        test_images, test_labels, _ = load_dataset(args.dataset, data_dir, "test")
        logs = evaluate(model, test_images, test_labels)
        print(f"Test - loss: {logs['loss']:.6f} - accuracy: {logs['accuracy']:.2f}%")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
