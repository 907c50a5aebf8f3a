"""
Tensor interface definitions.

This module defines the domain-level interface for the engine's sole data
container: a dense three-axis (height, width, channel) buffer. Structural
typing is used so that layer contracts can be expressed without binding to
the NumPy-backed implementation in the infrastructure layer.

Notes
-----
The interface deliberately exposes no arithmetic. All math is carried out by
layers, which address elements by explicit coordinates (or, for bulk work,
through the implementation's array view).
"""

from __future__ import annotations

from typing import Protocol, Tuple, runtime_checkable


@runtime_checkable
class ITensor3D(Protocol):
    """
    Three-axis tensor interface.

    Elements are addressed by (row, column, channel). Implementations must
    bounds-check every coordinate on `read` and `write`.
    """

    @property
    def shape(self) -> Tuple[int, int, int]:
        """
        Return the tensor extents.

        Returns
        -------
        tuple[int, int, int]
            (height, width, channels).
        """
        ...

    @property
    def size(self) -> int:
        """Return the total number of elements."""
        ...

    def read(self, row: int, col: int, channel: int) -> float:
        """
        Return the element at (row, col, channel).

        Raises
        ------
        IndexError
            If any coordinate is out of range.
        """
        ...

    def write(self, row: int, col: int, channel: int, value: float) -> None:
        """
        Store `value` at (row, col, channel).

        Raises
        ------
        IndexError
            If any coordinate is out of range.
        """
        ...

    def zero(self) -> None:
        """Reset every element to 0 in place."""
        ...
