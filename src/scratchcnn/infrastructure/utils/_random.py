"""
Random source helpers.

Every stochastic step in the engine (parameter initialization, sample
shuffling) draws from an explicitly passed `numpy.random.Generator`. This
module normalizes the accepted forms of that argument.
"""

from __future__ import annotations

from typing import Union

import numpy as np

RandomLike = Union[None, int, np.random.Generator]


def resolve_rng(rng: RandomLike = None) -> np.random.Generator:
    """
    Return a `numpy.random.Generator` for `rng`.

    Parameters
    ----------
    rng : None, int, or numpy.random.Generator
        - None: a freshly OS-seeded generator.
        - int: a generator seeded with that value.
        - Generator: returned unchanged (shared, not copied).

    Returns
    -------
    numpy.random.Generator
    """
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(rng)


def spawn_rngs(rng: RandomLike, n: int) -> list[np.random.Generator]:
    """
    Derive `n` independent generators from `rng`.

    Used by composite models so each layer receives its own stream while the
    whole model stays reproducible from a single seed.
    """
    return list(resolve_rng(rng).spawn(n))
