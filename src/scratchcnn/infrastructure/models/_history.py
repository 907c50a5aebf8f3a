"""
Per-epoch training record.

`History` is what `fit` returns: one entry per completed epoch holding the
mean loss and accuracy measured over the samples seen in that epoch.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Union


Number = Union[int, float]


@dataclass
class History:
    """
    Metric curves collected during training.

    Attributes
    ----------
    history : Dict[str, List[float]]
        Metric name -> values ordered by epoch.
    epoch : List[int]
        Zero-based epoch indices, aligned with every list in `history`.
    """

    history: Dict[str, List[float]] = field(default_factory=dict)
    epoch: List[int] = field(default_factory=list)

    def append_epoch(self, epoch_idx: int, logs: Mapping[str, Number]) -> None:
        """
        Record the aggregated metrics of one finished epoch.

        Values are stored as Python floats.
        """
        self.epoch.append(int(epoch_idx))
        for k, v in logs.items():
            self.history.setdefault(k, []).append(float(v))

    def last(self) -> Dict[str, float]:
        """Metrics of the most recent epoch; empty if nothing was recorded."""
        return {k: float(vs[-1]) for k, vs in self.history.items() if vs}

    def best(self, metric: str, *, mode: str = "min") -> Optional[float]:
        """
        Best recorded value of `metric` (``mode`` is "min" or "max").

        Returns None when the metric was never recorded.
        """
        if mode not in ("min", "max"):
            raise ValueError(f"mode must be 'min' or 'max', got {mode!r}")
        values = self.history.get(metric)
        if not values:
            return None
        return float(min(values) if mode == "min" else max(values))
