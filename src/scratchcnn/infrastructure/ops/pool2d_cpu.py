"""
CPU reference implementation of 2D max pooling (NumPy backend).

Pooling operates on single samples in **HWC** layout with square,
non-overlapping windows (the window size doubles as the stride, no padding):

- x: (H, W, C)
- y: (H // p, W // p, C)

Rows and columns left over when H or W is not a multiple of ``p`` are
dropped by the forward pass and receive zero gradient.

Gradient routing
----------------
The backward pass does not store argmax indices. It re-scans every window
and routes the output gradient to *every* input position whose value equals
the cached window maximum within ``atol``. When several positions tie, each
of them receives the full output gradient.
"""

from __future__ import annotations

import numpy as np

MAXPOOL_TIE_ATOL = 1e-6


def _windows(x: np.ndarray, pool_size: int) -> np.ndarray:
    """
    Return a (H_out, p, W_out, p, C) view of the pooled region of `x`.
    """
    H, W, C = x.shape
    H_out, W_out = H // pool_size, W // pool_size
    cropped = x[: H_out * pool_size, : W_out * pool_size, :]
    return cropped.reshape(H_out, pool_size, W_out, pool_size, C)


def maxpool2d_forward_cpu(x: np.ndarray, *, pool_size: int) -> np.ndarray:
    """
    MaxPool2D forward pass (CPU, NumPy), HWC.

    Parameters
    ----------
    x : np.ndarray
        Input of shape (H, W, C).
    pool_size : int
        Window size and stride.

    Returns
    -------
    np.ndarray
        Output of shape (H // pool_size, W // pool_size, C) holding the
        maximum of each window.
    """
    H, W, C = x.shape
    if H // pool_size == 0 or W // pool_size == 0:
        return np.zeros((H // pool_size, W // pool_size, C), dtype=x.dtype)
    return _windows(x, pool_size).max(axis=(1, 3))


def maxpool2d_backward_cpu(
    grad_out: np.ndarray,
    x: np.ndarray,
    y: np.ndarray,
    *,
    pool_size: int,
    atol: float = MAXPOOL_TIE_ATOL,
) -> np.ndarray:
    """
    MaxPool2D backward pass (CPU, NumPy), HWC.

    Parameters
    ----------
    grad_out : np.ndarray
        Gradient with respect to the output, shape (H_out, W_out, C).
    x : np.ndarray
        Input cached from the forward pass, shape (H, W, C).
    y : np.ndarray
        Output cached from the forward pass, shape (H_out, W_out, C).
    pool_size : int
        Window size and stride used in the forward pass.
    atol : float, optional
        Absolute tolerance for matching an input value against the window max.

    Returns
    -------
    np.ndarray
        Gradient with respect to the input, shape (H, W, C).
    """
    H, W, C = x.shape
    H_out, W_out = H // pool_size, W // pool_size
    if grad_out.shape != (H_out, W_out, C):
        raise ValueError(
            f"grad_out shape mismatch: expected {(H_out, W_out, C)}, "
            f"got {grad_out.shape}"
        )

    grad_x = np.zeros_like(x)
    if H_out == 0 or W_out == 0:
        return grad_x

    win = _windows(x, pool_size)
    # broadcast (H_out, W_out, C) against (H_out, p, W_out, p, C)
    y_b = y[:, None, :, None, :]
    g_b = grad_out[:, None, :, None, :]
    mask = np.abs(win - y_b) < atol

    routed = np.where(mask, g_b, 0.0).astype(x.dtype, copy=False)
    grad_x[: H_out * pool_size, : W_out * pool_size, :] = routed.reshape(
        H_out * pool_size, W_out * pool_size, C
    )
    return grad_x
