"""Seeded source of uniform random variates.

A :class:`UniformVariateSource` is the only source of randomness in the
engine. It is passed explicitly to every component that draws samples; there
is no module-level generator.
"""

from typing import List, Optional, Union

import numpy as np

from .config import DEFAULT_BLOCK_SIZE
from .errors import ConfigurationError

SeedLike = Union[None, int, np.random.SeedSequence]


class UniformVariateSource:
    """Stream of independent uniform variates backed by one numpy Generator.

    The generator is seeded once on construction and never reseeded. Variates
    are pulled from it in blocks of ``block_size`` and handed out one at a
    time, so :meth:`next` is a list lookup and does not allocate.

    Instances are not thread-safe. Parallel workers must each use their own
    source, obtained with :meth:`spawn`.

    Example:
        >>> source = UniformVariateSource(seed=42)
        >>> u = source.next()          # in [0, 1)
        >>> x = source.uniform(0.0, 3.0)  # in [0, 3)
    """

    def __init__(self, seed: SeedLike = None, block_size: int = DEFAULT_BLOCK_SIZE):
        """Create a source.

        Args:
            seed: Integer seed, an existing ``numpy.random.SeedSequence``, or
                None to draw fresh entropy from the operating system.
            block_size: Number of variates generated per refill.
        """
        if isinstance(block_size, bool) or not isinstance(block_size, int) or block_size <= 0:
            raise ConfigurationError(f"block_size must be a positive integer, got {block_size!r}")

        if isinstance(seed, np.random.SeedSequence):
            self._seed_sequence = seed
        else:
            self._seed_sequence = np.random.SeedSequence(seed)
        self._generator = np.random.default_rng(self._seed_sequence)
        self._block_size = block_size
        self._block: List[float] = []
        self._cursor = 0

    @property
    def seed_sequence(self) -> np.random.SeedSequence:
        """SeedSequence the generator was built from (for reproducibility)."""
        return self._seed_sequence

    @property
    def block_size(self) -> int:
        return self._block_size

    def _refill(self) -> None:
        self._block = self._generator.random(self._block_size).tolist()
        self._cursor = 0

    def next(self) -> float:
        """Return the next variate, uniform on ``[0, 1)``."""
        if self._cursor >= len(self._block):
            self._refill()
        value = self._block[self._cursor]
        self._cursor += 1
        return value

    def uniform(self, low: float, high: float) -> float:
        """Return the next variate scaled to ``[low, high)``."""
        return low + (high - low) * self.next()

    def spawn(self, n_children: int) -> List["UniformVariateSource"]:
        """Create ``n_children`` independent sources for parallel workers.

        Children are derived from this source's SeedSequence, so the whole
        family is reproducible from one seed. Spawning does not consume
        variates from this source.
        """
        if n_children <= 0:
            raise ConfigurationError(f"n_children must be positive, got {n_children}")
        return [
            UniformVariateSource(child, block_size=self._block_size)
            for child in self._seed_sequence.spawn(n_children)
        ]

    def __repr__(self):
        return (
            f"UniformVariateSource(entropy={self._seed_sequence.entropy}, "
            f"spawn_key={self._seed_sequence.spawn_key}, block_size={self._block_size})"
        )
