"""
Text-mode training viewer.

`ConsoleDisplay` renders the three views a training run reports:

- a prediction grid: ground truth vs. predicted label for a sample of images,
  with a correctness marker per cell
- a detail view: an optional ASCII thumbnail of one image followed by a
  horizontal bar chart of its ranked class probabilities
- a progress bar for the overall training fraction

The display is an ordinary object owning its output stream and last-rendered
state; several displays can coexist (e.g. one per test).
"""

from __future__ import annotations

import sys
from typing import List, Optional, Sequence, TextIO, Tuple

import numpy as np

_SHADES = " .:-=+*#%@"


class ConsoleDisplay:
    """
    Render training views as plain text.

    Parameters
    ----------
    stream : TextIO, optional
        Destination of all output. Defaults to ``sys.stdout``.
    bar_width : int, optional
        Width in characters of the progress and probability bars.
    """

    def __init__(self, stream: Optional[TextIO] = None, *, bar_width: int = 40) -> None:
        if bar_width <= 0:
            raise ValueError("bar_width must be a positive integer")
        self.stream = stream if stream is not None else sys.stdout
        self.bar_width = int(bar_width)
        self.progress = 0.0
        self.last_grid: List[str] = []
        self.last_detail: List[str] = []

    def _emit(self, lines: Sequence[str]) -> None:
        for line in lines:
            self.stream.write(line + "\n")
        self.stream.flush()

    def _bar(self, fraction: float) -> str:
        filled = int(round(fraction * self.bar_width))
        return "#" * filled + "." * (self.bar_width - filled)

    def update_grid(
        self,
        ground_truth: Sequence[int],
        predictions: Sequence[int],
        correct: Sequence[bool],
        columns: int = 10,
    ) -> List[str]:
        """
        Render one cell ``truth>pred`` per sample, marked ``+`` when correct
        and ``x`` otherwise, `columns` cells per row.

        Returns
        -------
        list[str]
            The rendered lines.
        """
        if not (len(ground_truth) == len(predictions) == len(correct)):
            raise ValueError(
                "ground_truth, predictions and correct must have equal lengths"
            )
        if columns <= 0:
            raise ValueError("columns must be a positive integer")

        cells = [
            f"{int(t)}>{int(p)}{'+' if ok else 'x'}"
            for t, p, ok in zip(ground_truth, predictions, correct)
        ]
        width = max((len(c) for c in cells), default=0)
        lines = [
            " ".join(c.ljust(width) for c in cells[i : i + columns]).rstrip()
            for i in range(0, len(cells), columns)
        ]
        n_ok = sum(1 for ok in correct if ok)
        lines.append(f"correct: {n_ok}/{len(cells)}")

        self.last_grid = lines
        self._emit(lines)
        return lines

    def update_detail(
        self,
        ranking: Sequence[Tuple[int, float]],
        names: Sequence[str],
        image: Optional[np.ndarray] = None,
    ) -> List[str]:
        """
        Render a ranked probability bar chart, preceded by an ASCII thumbnail
        of `image` (uint8 HWC) when one is given.
        """
        if len(ranking) != len(names):
            raise ValueError("ranking and names must have equal lengths")

        lines: List[str] = []
        if image is not None:
            lines.extend(self._thumbnail(image))

        label_width = max((len(n) for n in names), default=0)
        for (cid, p), name in zip(ranking, names):
            frac = min(max(float(p), 0.0), 1.0)
            lines.append(
                f"{name.ljust(label_width)} [{cid}] "
                f"{self._bar(frac)} {frac * 100:5.1f}%"
            )

        self.last_detail = lines
        self._emit(lines)
        return lines

    @staticmethod
    def _thumbnail(image: np.ndarray) -> List[str]:
        arr = np.asarray(image, dtype=np.float32)
        if arr.ndim == 3:
            arr = arr.mean(axis=2)
        if arr.ndim != 2:
            raise ValueError(f"image must be (H, W) or (H, W, C), got {image.shape}")
        levels = np.clip(arr / 255.0, 0.0, 1.0) * (len(_SHADES) - 1)
        idx = np.rint(levels).astype(np.int64)
        return ["".join(_SHADES[v] for v in row) for row in idx]

    def set_progress(self, fraction: float) -> str:
        """
        Update the training progress bar; `fraction` is clamped to [0, 1].
        """
        self.progress = min(max(float(fraction), 0.0), 1.0)
        line = f"progress [{self._bar(self.progress)}] {self.progress * 100:5.1f}%"
        self._emit([line])
        return line


__all__ = [
    ConsoleDisplay.__name__,
]
