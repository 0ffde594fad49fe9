from __future__ import annotations

import random
from typing import Sequence, TypeVar

T = TypeVar("T")


class BoundedSampler:
    """Uniform sampling without replacement backed by a private RNG.

    ``seed=None`` seeds from OS entropy. The RNG lives as long as the sampler,
    so repeated calls continue one random stream instead of reseeding.
    """

    def __init__(self, seed: int | None = None):
        self.seed = seed
        self._rng = random.Random(seed)

    def sample(self, candidates: Sequence[T], n: int) -> list[T]:
        pool = list(candidates)
        if n <= 0 or n >= len(pool):
            return pool

        while len(pool) > n:
            index = self._rng.randrange(len(pool))
            pool[index], pool[-1] = pool[-1], pool[index]
            pool.pop()

        return pool
