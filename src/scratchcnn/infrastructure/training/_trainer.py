"""
Online-SGD training loop for `CNNModel`.

The loop trains one sample at a time: every sample runs
forward -> set_target -> compute_loss -> backward, so parameters change
after each image. Epoch metrics are the mean loss and the percentage of
samples whose forward prediction (taken before that sample's update)
matched the label.

Randomness (epoch shuffling, the samples shown by the viewer) always comes
from an injected `numpy.random.Generator` so runs are reproducible.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..tensor._tensor import Tensor3D
from ..models._cnn_model import CNNModel
from ..models._history import History
from ..utils._random import RandomLike, resolve_rng, spawn_rngs
from ..viewer._console import ConsoleDisplay

DEFAULT_TRAIN_LIMIT = 5000
DEFAULT_VISUAL_INTERVAL = 100
DEFAULT_GRID_COUNT = 100


def one_hot(label: int, num_classes: int = 10) -> np.ndarray:
    """
    Return a float32 vector of length `num_classes` with 1.0 at `label`.

    Raises
    ------
    ValueError
        If `label` is outside ``[0, num_classes)``.
    """
    label = int(label)
    if not 0 <= label < num_classes:
        raise ValueError(f"label {label} out of range for {num_classes} classes")
    vec = np.zeros((num_classes,), dtype=Tensor3D.dtype)
    vec[label] = 1.0
    return vec


def image_to_tensor(pixels: np.ndarray) -> Tensor3D:
    """
    Convert uint8 pixels, (H, W, C) or (H, W), to a Tensor3D scaled to [0, 1].
    """
    arr = np.asarray(pixels)
    if arr.ndim == 2:
        arr = arr[:, :, None]
    return Tensor3D.from_numpy(arr.astype(np.float32) / 255.0)


def _sample_count(images: np.ndarray, labels: np.ndarray, limit: Optional[int]) -> int:
    if len(images) != len(labels):
        raise ValueError(
            f"images and labels differ in length: {len(images)} vs {len(labels)}"
        )
    count = len(images) if limit is None else min(int(limit), len(images))
    if count <= 0:
        raise ValueError("no samples to process")
    return count


def train_one_epoch(
    model: CNNModel,
    images: np.ndarray,
    labels: np.ndarray,
    *,
    learning_rate: float,
    rng: RandomLike = None,
    limit: Optional[int] = None,
    on_step: Optional[Callable[[int], None]] = None,
    step_interval: int = DEFAULT_VISUAL_INTERVAL,
    on_progress: Optional[Callable[[float], None]] = None,
    epoch_index: int = 0,
    total_epochs: int = 1,
) -> Dict[str, float]:
    """
    Run one shuffled pass of per-sample SGD.

    Parameters
    ----------
    model : CNNModel
        Model to train in place.
    images : np.ndarray
        uint8 images, (N, H, W, C).
    labels : np.ndarray
        Integer labels, (N,).
    learning_rate : float
        SGD step size.
    rng : None, int, or numpy.random.Generator, optional
        Source of the epoch permutation.
    limit : int, optional
        Use only the first `limit` samples (then shuffle them).
    on_step : callable, optional
        Called as ``on_step(step)`` at every step that is a multiple of
        `step_interval`, step 0 included.
    step_interval : int, optional
        Spacing of `on_step` and `on_progress` calls.
    on_progress : callable, optional
        Called with the overall training fraction
        ``(epoch_index + step / count) / total_epochs`` alongside `on_step`,
        and once more with the end-of-epoch fraction.
    epoch_index, total_epochs : int, optional
        Position of this epoch in the run, used for progress only.

    Returns
    -------
    dict
        ``{"loss": mean loss, "accuracy": percent correct}``.
    """
    if step_interval <= 0:
        raise ValueError("step_interval must be a positive integer")
    if total_epochs <= 0:
        raise ValueError("total_epochs must be a positive integer")

    count = _sample_count(images, labels, limit)
    order = resolve_rng(rng).permutation(count)

    total_loss = 0.0
    correct = 0
    for step, idx in enumerate(order):
        label = int(labels[idx])
        target = one_hot(label, model.num_classes)
        loss, probs = model.train_on_sample(
            image_to_tensor(images[idx]), target, learning_rate
        )
        total_loss += loss
        if int(np.argmax(probs)) == label:
            correct += 1

        if step % step_interval == 0:
            if on_step is not None:
                on_step(step)
            if on_progress is not None:
                on_progress((epoch_index + step / count) / total_epochs)

    if on_progress is not None:
        on_progress((epoch_index + 1) / total_epochs)

    return {"loss": total_loss / count, "accuracy": correct * 100.0 / count}


def evaluate(
    model: CNNModel,
    images: np.ndarray,
    labels: np.ndarray,
    *,
    limit: Optional[int] = None,
) -> Dict[str, float]:
    """
    Mean loss and accuracy (percent) over the first `limit` samples,
    without touching the parameters.
    """
    count = _sample_count(images, labels, limit)
    total_loss = 0.0
    correct = 0
    for idx in range(count):
        label = int(labels[idx])
        probs = model.forward(image_to_tensor(images[idx]))
        total_loss += model.compute_loss(one_hot(label, model.num_classes))
        if int(np.argmax(probs)) == label:
            correct += 1
    return {"loss": total_loss / count, "accuracy": correct * 100.0 / count}


def show_random_predictions(
    model: CNNModel,
    images: np.ndarray,
    labels: np.ndarray,
    display: ConsoleDisplay,
    *,
    rng: RandomLike = None,
    count: int = DEFAULT_GRID_COUNT,
    class_names: Optional[Sequence[str]] = None,
    columns: int = 10,
) -> Tuple[List[int], List[int]]:
    """
    Predict up to `count` randomly drawn samples and render them.

    The grid view shows every drawn sample; the detail view shows the full
    class ranking of the first one.

    Returns
    -------
    tuple[list[int], list[int]]
        Ground-truth and predicted labels of the drawn samples.
    """
    if len(images) == 0:
        raise ValueError("no samples to show")
    gen = resolve_rng(rng)
    n = min(int(count), len(images))
    picks = gen.integers(0, len(images), size=n)

    ground_truth = [int(labels[i]) for i in picks]
    predictions = [model.predict(image_to_tensor(images[i])) for i in picks]
    correct = [t == p for t, p in zip(ground_truth, predictions)]
    display.update_grid(ground_truth, predictions, correct, columns)

    if class_names is None:
        class_names = [str(i) for i in range(model.num_classes)]
    first = images[picks[0]]
    ranking = model.get_top_k(image_to_tensor(first))
    display.update_detail(ranking, model.top_k_names(ranking, class_names), first)
    return ground_truth, predictions


def fit(
    model: CNNModel,
    images: np.ndarray,
    labels: np.ndarray,
    *,
    epochs: int = 8,
    learning_rate: float = 0.006,
    rng: RandomLike = None,
    limit: Optional[int] = DEFAULT_TRAIN_LIMIT,
    verbose: int = 1,
    display: Optional[ConsoleDisplay] = None,
    class_names: Optional[Sequence[str]] = None,
    visual_interval: int = DEFAULT_VISUAL_INTERVAL,
) -> History:
    """
    Train `model` for `epochs` epochs of online SGD.

    Parameters
    ----------
    epochs : int, optional
        Number of passes. Default 8.
    learning_rate : float, optional
        SGD step size. Default 0.006.
    limit : int, optional
        Samples used per epoch. Default 5000; None uses the whole set.
    verbose : int, optional
        If non-zero, prints one summary line per epoch.
    display : ConsoleDisplay, optional
        When given, random predictions are rendered before training and every
        `visual_interval` steps, and the progress bar is kept current.
    class_names : sequence of str, optional
        Names used by the detail view.

    Returns
    -------
    History
        Per-epoch ``loss`` and ``accuracy``.
    """
    if epochs <= 0:
        raise ValueError("epochs must be a positive integer")

    shuffle_rng, view_rng = spawn_rngs(rng, 2)
    history = History()

    def show() -> None:
        show_random_predictions(
            model, images, labels, display, rng=view_rng, class_names=class_names
        )

    if display is not None:
        show()

    for epoch_idx in range(epochs):
        on_step = None
        on_progress = None
        if display is not None:

            def on_step(step: int, _epoch: int = epoch_idx) -> None:
                if verbose:
                    print(f"[Epoch {_epoch + 1}] update at step {step}")
                show()

            on_progress = display.set_progress

        logs = train_one_epoch(
            model,
            images,
            labels,
            learning_rate=learning_rate,
            rng=shuffle_rng,
            limit=limit,
            on_step=on_step,
            step_interval=visual_interval,
            on_progress=on_progress,
            epoch_index=epoch_idx,
            total_epochs=epochs,
        )
        history.append_epoch(epoch_idx, logs)

        if verbose:
            parts = [f"Epoch {epoch_idx + 1}/{epochs}"]
            parts.append(f"loss: {logs['loss']:.6f}")
            parts.append(f"accuracy: {logs['accuracy']:.2f}%")
            print(" - ".join(parts))

    return history


__all__ = [
    "one_hot",
    "image_to_tensor",
    "train_one_epoch",
    "evaluate",
    "show_random_predictions",
    "fit",
]
