"""
NumPy-backed three-axis tensor.

This module defines `Tensor3D`, the dense (height, width, channel) container
passed between every layer of the engine.

Storage layout
--------------
Elements live in one contiguous float32 buffer, addressed row-major by
channel:

    index = (row * width + col) * channels + channel

so that a (row, col) pixel's channels are adjacent. `to_numpy()` exposes the
same buffer as an (H, W, C) array view, which is how layer kernels perform
bulk work without per-element Python calls.

Design notes
------------
- The shape is fixed at construction. Reshaping means building a new tensor
  and copying data into it.
- `read` / `write` bounds-check every coordinate and raise `TensorIndexError`
  (an `IndexError`) on violation. Negative coordinates are *not* interpreted
  as "from the end".
- No arithmetic operators are defined on the tensor.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np

from ...domain._errors import TensorIndexError


class Tensor3D:
    """
    Dense (height, width, channel) float32 tensor.

    Parameters
    ----------
    height : int
        Number of rows. Must be non-negative.
    width : int
        Number of columns. Must be non-negative.
    channels : int
        Number of channels. Must be non-negative.

    Notes
    -----
    A freshly constructed tensor is zero-filled.
    """

    dtype = np.float32

    def __init__(self, height: int = 0, width: int = 0, channels: int = 0) -> None:
        height, width, channels = int(height), int(width), int(channels)
        if height < 0 or width < 0 or channels < 0:
            raise ValueError(
                f"Tensor3D extents must be non-negative, got "
                f"({height}, {width}, {channels})"
            )
        self._height = height
        self._width = width
        self._channels = channels
        self._data = np.zeros(height * width * channels, dtype=self.dtype)

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------
    @classmethod
    def from_numpy(cls, arr: np.ndarray) -> "Tensor3D":
        """
        Build a tensor by copying a 3-D array laid out as (H, W, C).

        Parameters
        ----------
        arr : np.ndarray
            Source array with exactly three dimensions.

        Returns
        -------
        Tensor3D
            A new tensor owning a float32 copy of `arr`.

        Raises
        ------
        ValueError
            If `arr` is not three-dimensional.
        """
        arr = np.asarray(arr)
        if arr.ndim != 3:
            raise ValueError(f"Tensor3D.from_numpy expects a 3D array, got {arr.shape}")
        t = cls(*arr.shape)
        t._data[...] = arr.astype(cls.dtype, copy=False).reshape(-1)
        return t

    @classmethod
    def from_vector(cls, vec: np.ndarray) -> "Tensor3D":
        """
        Build a 1x1xN tensor from a 1-D vector (the flattened-feature layout).
        """
        vec = np.asarray(vec).reshape(-1)
        t = cls(1, 1, vec.shape[0])
        t._data[...] = vec.astype(cls.dtype, copy=False)
        return t

    # ------------------------------------------------------------------
    # Shape
    # ------------------------------------------------------------------
    @property
    def height(self) -> int:
        return self._height

    @property
    def width(self) -> int:
        return self._width

    @property
    def channels(self) -> int:
        return self._channels

    @property
    def shape(self) -> Tuple[int, int, int]:
        """Return (height, width, channels)."""
        return (self._height, self._width, self._channels)

    @property
    def size(self) -> int:
        """Return the total number of elements."""
        return int(self._data.shape[0])

    # ------------------------------------------------------------------
    # Element access
    # ------------------------------------------------------------------
    def _offset(self, row: int, col: int, channel: int) -> int:
        if not (
            0 <= row < self._height
            and 0 <= col < self._width
            and 0 <= channel < self._channels
        ):
            raise TensorIndexError((row, col, channel), self.shape)
        return (row * self._width + col) * self._channels + channel

    def read(self, row: int, col: int, channel: int) -> float:
        """
        Return the element at (row, col, channel).

        Raises
        ------
        TensorIndexError
            If any coordinate lies outside the tensor.
        """
        return float(self._data[self._offset(row, col, channel)])

    def write(self, row: int, col: int, channel: int, value: float) -> None:
        """
        Store `value` at (row, col, channel).

        Raises
        ------
        TensorIndexError
            If any coordinate lies outside the tensor.
        """
        self._data[self._offset(row, col, channel)] = value

    def zero(self) -> None:
        """Reset every element to 0 in place."""
        self._data.fill(0.0)

    # ------------------------------------------------------------------
    # Bulk access
    # ------------------------------------------------------------------
    def to_numpy(self) -> np.ndarray:
        """
        Return an (H, W, C) view of the underlying buffer.

        Writes through the view mutate the tensor.
        """
        return self._data.reshape(self.shape)

    def copy(self) -> "Tensor3D":
        """Return a deep copy of this tensor."""
        t = Tensor3D(*self.shape)
        t._data[...] = self._data
        return t

    def __repr__(self) -> str:
        return f"Tensor3D(shape={self.shape})"
