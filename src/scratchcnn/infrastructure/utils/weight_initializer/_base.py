"""
Name-based registry of parameter initializers.

Strategies register themselves at import time with a decorator:

    @WeightInitializer.register_initializer("kaiming")
    def kaiming(array, rng): ...

and layers look them up by the name they were configured with:

    WeightInitializer(weight_init)(self._weight, rng)

Every strategy mutates the array in place and draws only from the generator
it is given, so a seeded generator reproduces the same parameters.
"""

from __future__ import annotations

from typing import Callable, TypeVar

import numpy as np

from ....domain.utils._weight_initialization import InitializerFn, _WeightInitializer

F = TypeVar("F", bound=InitializerFn)


class WeightInitializer(_WeightInitializer):
    """
    Look up a registered strategy by name and apply it.

    Raises
    ------
    ValueError
        If no strategy is registered under `initializer_name`.
    """

    INITIALIZERS = {}

    def __init__(self, initializer_name: str) -> None:
        fn = self.INITIALIZERS.get(initializer_name)
        if fn is None:
            known = ", ".join(self.available()) or "<none>"
            raise ValueError(
                f"Unknown weight initializer {initializer_name!r} (known: {known})"
            )
        self.name = initializer_name
        self._fn = fn

    @classmethod
    def register_initializer(
        cls, name: str, *, overwrite: bool = False
    ) -> Callable[[F], F]:
        """
        Decorator adding a strategy under `name`.

        Registering an existing name raises ``ValueError`` unless
        `overwrite` is set.
        """
        if not name or not isinstance(name, str):
            raise ValueError("initializer name must be a non-empty string")

        def decorator(fn: F) -> F:
            if name in cls.INITIALIZERS and not overwrite:
                raise ValueError(f"weight initializer {name!r} is already registered")
            cls.INITIALIZERS[name] = fn
            return fn

        return decorator

    @classmethod
    def available(cls) -> tuple[str, ...]:
        """Sorted names of every registered strategy."""
        return tuple(sorted(cls.INITIALIZERS))

    def __call__(self, array: np.ndarray, rng: np.random.Generator) -> np.ndarray:
        return self._fn(array, rng)
