"""
CPU Conv2D kernels for scratchcnn (NumPy backend).

This module provides the forward and backward passes of a stride-1,
"same"-size 2D convolution over single samples in **HWC** layout:

- x:      (H, W, C_in)
- weight: (C_out, C_in, K, K)
- bias:   (C_out,)
- y:      (H, W, C_out)

Padding policy
--------------
Padding is ``(K - 1) // 2`` on every side but is never materialized: a kernel
tap that would read outside the input is skipped. This is mathematically
identical to zero padding in both directions (forward sum and backward
scatter).

Implementation
--------------
The kernels loop over the K*K kernel taps in Python. For each tap
``(kh, kw)`` the set of output pixels whose tap lands inside the input is a
rectangle, so the contribution is a single (pixels x C_in) @ (C_in x C_out)
product over that rectangle. This keeps the per-pixel index arithmetic out
of Python while preserving the exact summation the naive six-loop version
performs.
"""

from __future__ import annotations

from typing import Iterator, Tuple

import numpy as np


def _tap_windows(
    H: int, W: int, K: int, padding: int
) -> Iterator[Tuple[int, int, slice, slice, slice, slice]]:
    """
    Enumerate kernel taps together with their valid output/input rectangles.

    For tap ``(kh, kw)`` an output pixel ``(h, w)`` reads input pixel
    ``(h + kh - padding, w + kw - padding)``. Only output pixels for which
    that coordinate lies inside ``[0, H) x [0, W)`` are included.

    Parameters
    ----------
    H, W : int
        Spatial extents of both input and output.
    K : int
        Kernel size.
    padding : int
        Implicit zero padding on each side.

    Yields
    ------
    tuple
        ``(kh, kw, out_rows, out_cols, in_rows, in_cols)`` where the four
        slices select matching rectangles of the output and input. Taps with
        an empty rectangle are not yielded.
    """
    for kh in range(K):
        dy = kh - padding
        h0, h1 = max(0, -dy), min(H, H - dy)
        if h0 >= h1:
            continue
        for kw in range(K):
            dx = kw - padding
            w0, w1 = max(0, -dx), min(W, W - dx)
            if w0 >= w1:
                continue
            yield (
                kh,
                kw,
                slice(h0, h1),
                slice(w0, w1),
                slice(h0 + dy, h1 + dy),
                slice(w0 + dx, w1 + dx),
            )


def conv2d_forward_cpu(
    x: np.ndarray, w: np.ndarray, b: np.ndarray, padding: int
) -> np.ndarray:
    """
    Compute the forward pass of a same-size 2D convolution (CPU, NumPy).

    Parameters
    ----------
    x : np.ndarray
        Input of shape (H, W, C_in).
    w : np.ndarray
        Kernel weights of shape (C_out, C_in, K, K).
    b : np.ndarray
        Bias of shape (C_out,).
    padding : int
        Implicit zero padding; taps outside the input are skipped.

    Returns
    -------
    np.ndarray
        Output of shape (H, W, C_out).

    Raises
    ------
    ValueError
        If the channel count of `x` does not match the kernel.
    """
    H, W, C_in = x.shape
    C_out, C_in2, K, _ = w.shape
    if C_in != C_in2:
        raise ValueError(f"in_channels mismatch: x has {C_in}, weight has {C_in2}")

    y = np.empty((H, W, C_out), dtype=x.dtype)
    y[...] = b.reshape(1, 1, C_out)

    for kh, kw, out_r, out_c, in_r, in_c in _tap_windows(H, W, K, padding):
        # (h', w', C_in) @ (C_in, C_out) -> (h', w', C_out)
        y[out_r, out_c, :] += x[in_r, in_c, :] @ w[:, :, kh, kw].T

    return y


def conv2d_backward_cpu(
    x: np.ndarray,
    w: np.ndarray,
    grad_out: np.ndarray,
    padding: int,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Compute gradients of a same-size 2D convolution (CPU, NumPy).

    Parameters
    ----------
    x : np.ndarray
        Input cached from the forward pass, shape (H, W, C_in).
    w : np.ndarray
        Kernel weights used in the forward pass, shape (C_out, C_in, K, K).
    grad_out : np.ndarray
        Gradient with respect to the output, shape (H, W, C_out).
    padding : int
        Implicit zero padding used in the forward pass.

    Returns
    -------
    tuple[np.ndarray, np.ndarray, np.ndarray]
        grad_x :
            Gradient with respect to the input, shape (H, W, C_in).
            Contributions from overlapping windows are accumulated.
        grad_w :
            Gradient with respect to the weights, shape (C_out, C_in, K, K).
        grad_b :
            Gradient with respect to the bias, shape (C_out,).

    Notes
    -----
    This function is pure: it does not modify `w`. Callers apply the update
    only after all three gradients have been computed.
    """
    H, W, C_in = x.shape
    C_out, _, K, _ = w.shape
    if grad_out.shape != (H, W, C_out):
        raise ValueError(
            f"grad_out shape mismatch: expected {(H, W, C_out)}, got {grad_out.shape}"
        )

    grad_x = np.zeros_like(x)
    grad_w = np.zeros_like(w)
    grad_b = grad_out.sum(axis=(0, 1)).astype(w.dtype, copy=False)

    for kh, kw, out_r, out_c, in_r, in_c in _tap_windows(H, W, K, padding):
        g = grad_out[out_r, out_c, :].reshape(-1, C_out)
        xs = x[in_r, in_c, :].reshape(-1, C_in)
        # dW[o, i] = sum_pixels g[p, o] * x[p, i]
        grad_w[:, :, kh, kw] += g.T @ xs
        # dX[p, i] += sum_o g[p, o] * W[o, i]
        grad_x[in_r, in_c, :] += (g @ w[:, :, kh, kw]).reshape(
            grad_x[in_r, in_c, :].shape
        )

    return grad_x, grad_w, grad_b
