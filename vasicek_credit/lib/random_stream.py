"""Explicit random sources for portfolio generation and simulation.

Every stochastic routine takes a RandomStream instead of relying on global
random state, so results are reproducible and the source can be swapped
for a fixed sequence in tests.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Union
import numpy as np

# Floor applied to the first Box-Muller uniform so log(u1) stays finite
BOX_MULLER_FLOOR = 1e-9


class RandomStream(ABC):
    """Abstract source of uniform draws in [0, 1)."""

    @abstractmethod
    def uniform(self, size: int) -> np.ndarray:
        """Draw `size` independent uniforms in [0, 1).

        Args:
            size: Number of draws

        Returns:
            Array of shape (size,)
        """
        pass

    def standard_normal(self, size: int) -> np.ndarray:
        """Draw `size` standard normals using the Box-Muller transform.

        Each draw consumes two consecutive uniforms (u1, u2):
            Z = √(-2 ln u1) · cos(2π u2)
        """
        draws = self.uniform(2 * size).reshape(size, 2)
        u1 = np.maximum(draws[:, 0], BOX_MULLER_FLOOR)
        u2 = draws[:, 1]
        return np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)


class GeneratorStream(RandomStream):
    """Stream backed by a numpy Generator (PCG64 by default)."""

    def __init__(self, random_state: Union[None, int, np.random.SeedSequence,
                                           np.random.Generator] = None):
        """Initialize the stream.

        Args:
            random_state: Seed, SeedSequence or existing Generator. None seeds
                          from fresh OS entropy.
        """
        if isinstance(random_state, np.random.Generator):
            self._rng = random_state
        else:
            self._rng = np.random.default_rng(random_state)

    def uniform(self, size: int) -> np.ndarray:
        return self._rng.random(size)

    def spawn(self, n_children: int) -> List["GeneratorStream"]:
        """Create independent child streams for parallel units.

        Children come from SeedSequence spawning, so their draws never
        overlap with each other or with this stream.
        """
        return [GeneratorStream(child) for child in self._rng.spawn(n_children)]


class SequenceStream(RandomStream):
    """Deterministic stream replaying a fixed sequence of uniforms cyclically."""

    def __init__(self, values: Sequence[float]):
        values = np.asarray(values, dtype=float)
        if values.ndim != 1 or values.size == 0:
            raise ValueError("SequenceStream needs a non-empty 1-D sequence")
        if np.any(values < 0) or np.any(values >= 1):
            raise ValueError("SequenceStream values must lie in [0, 1)")
        self._values = values
        self._position = 0

    def uniform(self, size: int) -> np.ndarray:
        idx = (self._position + np.arange(size)) % self._values.size
        self._position = (self._position + size) % self._values.size
        return self._values[idx]

    def __repr__(self) -> str:
        return f"SequenceStream(n={self._values.size}, position={self._position})"


def as_stream(source: Optional[object] = None) -> RandomStream:
    """Coerce None, a seed, a Generator or a RandomStream into a RandomStream."""
    if isinstance(source, RandomStream):
        return source
    return GeneratorStream(source)
