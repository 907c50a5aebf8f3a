"""
Softmax and categorical cross-entropy for scratchcnn.

This module implements the classifier head math used by `CNNModel`:

- `softmax`                     : numerically stable softmax over a logit vector
- `categorical_cross_entropy`   : -sum(t * log(p + eps)) against a one-hot target
- `softmax_cross_entropy_grad`  : closed-form gradient at the logits, p - t

Design notes
------------
- Softmax subtracts the maximum logit before exponentiating, so large logits
  (e.g. 1000) never overflow.
- Cross-entropy adds a small epsilon inside the logarithm so a predicted
  probability of exactly 0 yields a large but finite loss.
- Because softmax is always paired with cross-entropy, the gradient with
  respect to the logits is taken directly as ``p - t`` instead of chaining
  the softmax Jacobian with the loss derivative.
- All functions work on 1-D vectors (single-sample engine).
"""

from __future__ import annotations

import numpy as np

from ..domain._errors import ShapeMismatchError

CROSS_ENTROPY_EPS = 1e-9


def softmax(logits: np.ndarray) -> np.ndarray:
    """
    Compute a numerically stable softmax.

    Parameters
    ----------
    logits : np.ndarray
        1-D vector of finite raw class scores.

    Returns
    -------
    np.ndarray
        Probability vector of the same length, entries in [0, 1] summing to 1.
    """
    z = np.asarray(logits, dtype=np.float64)
    exps = np.exp(z - np.max(z))
    probs = exps / np.sum(exps)
    return probs.astype(np.float32)


def categorical_cross_entropy(
    probs: np.ndarray, target: np.ndarray, *, eps: float = CROSS_ENTROPY_EPS
) -> float:
    """
    Compute ``-sum(target * log(probs + eps))``.

    Parameters
    ----------
    probs : np.ndarray
        Predicted probability vector.
    target : np.ndarray
        Target distribution (one-hot), same length as `probs`.
    eps : float, optional
        Guard added inside the logarithm.

    Returns
    -------
    float
        Scalar loss.

    Raises
    ------
    ShapeMismatchError
        If the two vectors differ in length.
    """
    p = np.asarray(probs, dtype=np.float64).reshape(-1)
    t = np.asarray(target, dtype=np.float64).reshape(-1)
    if p.shape != t.shape:
        raise ShapeMismatchError("categorical_cross_entropy", p.shape, t.shape)
    return float(-np.sum(t * np.log(p + eps)))


def softmax_cross_entropy_grad(probs: np.ndarray, target: np.ndarray) -> np.ndarray:
    """
    Gradient of softmax + cross-entropy with respect to the logits.

    Returns
    -------
    np.ndarray
        ``probs - target`` as float32.
    """
    p = np.asarray(probs, dtype=np.float32).reshape(-1)
    t = np.asarray(target, dtype=np.float32).reshape(-1)
    if p.shape != t.shape:
        raise ShapeMismatchError("softmax_cross_entropy_grad", p.shape, t.shape)
    return p - t
