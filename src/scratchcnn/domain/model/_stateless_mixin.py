"""
Configuration hooks for layers without hyperparameters.

`ReLU` and `Flatten` carry no settings, yet `CNNModel.get_config` lists the
configuration of every layer under its ``"layers"`` entry. Mixing in
`StatelessConfigMixin` gives them the same `get_config` / `from_config` pair
as `Conv2d`, `Dense` and `MaxPool2d`.
"""

from typing import Any, Dict
from typing_extensions import Self


class StatelessConfigMixin:
    """
    `get_config` returns an empty mapping; `from_config` ignores its
    argument and builds a default instance.
    """

    def get_config(self) -> Dict[str, Any]:
        return {}

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> Self:
        return cls()
