"""Uniform random selection of reviewers.

Selection draws from a cryptographically secure generator by default. If the
generator cannot produce randomness the selection fails with
EntropyUnavailableError; it never falls back to a fixed slice of the pool.

Example:
    >>> source = RandomSource()
    >>> source.sample(["u2", "u3", "u4"], 2)
    ['u4', 'u2']
"""

from __future__ import annotations

import random
import secrets
from collections.abc import Sequence

from reviewpool.errors import EntropyUnavailableError


class RandomSource:
    """Uniform sampling without replacement over candidate pools.

    Attributes:
        generator: A ``random.Random`` compatible generator. Tests inject a
            seeded ``random.Random`` for reproducible picks.
    """

    def __init__(self, generator: random.Random | None = None) -> None:
        self.generator = generator if generator is not None else secrets.SystemRandom()

    def sample(self, pool: Sequence[str], k: int) -> list[str]:
        """Pick up to ``k`` distinct members of ``pool`` uniformly at random.

        Args:
            pool: Candidate ids. Callers pass them in a stable order.
            k: Number of members wanted; clipped to the pool size.

        Returns:
            The picked ids (empty when the pool is empty or ``k`` <= 0).

        Raises:
            EntropyUnavailableError: If the generator fails.
        """
        count = min(k, len(pool))
        if count <= 0:
            return []
        try:
            return self.generator.sample(list(pool), count)
        except (OSError, NotImplementedError) as e:
            raise EntropyUnavailableError(f"random source unavailable: {e}") from e

    def choice(self, pool: Sequence[str]) -> str | None:
        """Pick one member of ``pool`` uniformly at random, or None if empty."""
        picked = self.sample(pool, 1)
        return picked[0] if picked else None
