"""
Engine-level exceptions for scratchcnn.

This module defines the custom errors raised by the tensor and layer code when
a caller violates an indexing or shape contract. None of these conditions are
recoverable inside the engine: they signal a programming error in the caller
(typically the training-loop driver) and always propagate.

Each error carries the offending coordinates or shapes as attributes in
addition to a readable message.
"""

from __future__ import annotations

from typing import Tuple


class TensorIndexError(IndexError):
    """
    Raised when a tensor element is addressed with an out-of-range coordinate.

    This is a subclass of the builtin `IndexError`, so callers may catch either.

    Attributes
    ----------
    coords : tuple[int, int, int]
        The (row, column, channel) coordinate that was requested.
    shape : tuple[int, int, int]
        The (height, width, channels) extents of the tensor.
    """

    def __init__(
        self, coords: Tuple[int, int, int], shape: Tuple[int, int, int]
    ) -> None:
        """
        Initialize the TensorIndexError.

        Parameters
        ----------
        coords : tuple[int, int, int]
            Requested (row, column, channel) coordinate.
        shape : tuple[int, int, int]
            Tensor extents as (height, width, channels).
        """
        super().__init__(
            f"Tensor3D index {tuple(coords)} out of range for shape {tuple(shape)}"
        )
        self.coords = tuple(coords)
        self.shape = tuple(shape)


class ShapeMismatchError(AssertionError):
    """
    Raised when a layer receives a tensor or vector of the wrong shape.

    Shape disagreements between a forward pass and its paired backward pass
    (most notably in `Flatten.backward`) are contract violations rather than
    runtime conditions, so this error derives from `AssertionError`.

    Attributes
    ----------
    where : str
        Name of the operation that detected the mismatch.
    expected : tuple[int, ...]
        The shape the operation required.
    actual : tuple[int, ...]
        The shape the operation received.
    """

    def __init__(
        self, where: str, expected: Tuple[int, ...], actual: Tuple[int, ...]
    ) -> None:
        """
        Initialize the ShapeMismatchError.

        Parameters
        ----------
        where : str
            Operation name (e.g., "Flatten.backward").
        expected : tuple[int, ...]
            Required shape.
        actual : tuple[int, ...]
            Received shape.
        """
        super().__init__(
            f"{where}: expected shape {tuple(expected)}, got {tuple(actual)}"
        )
        self.where = where
        self.expected = tuple(expected)
        self.actual = tuple(actual)
