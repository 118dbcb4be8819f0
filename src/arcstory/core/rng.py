"""Seedable RNG wrapper used by the random() and roll() script functions."""
from __future__ import annotations

from random import Random
from typing import Any, Dict, List

RNGStatePayload = Dict[str, Any]


class RNG:
    """Wrapper around random.Random that supports save/restore."""

    def __init__(self, seed: int | None = None) -> None:
        self._seed = seed
        self._random = Random(seed)

    @property
    def seed(self) -> int | None:
        return self._seed

    def randint(self, a: int, b: int) -> int:
        """Return a random integer N such that a <= N <= b."""
        return self._random.randint(a, b)

    def random(self) -> float:
        """Return the next random floating point number in the range [0.0, 1.0)."""
        return self._random.random()

    def export_state(self) -> RNGStatePayload:
        """Return a JSON-safe snapshot of the generator state."""
        version, internal, gauss_next = self._random.getstate()
        return {
            "seed": self._seed,
            "version": version,
            "internal": list(internal),
            "gauss_next": gauss_next,
        }

    @classmethod
    def from_state(cls, payload: RNGStatePayload) -> "RNG":
        """Rebuild an RNG from a payload produced by export_state()."""
        seed = payload.get("seed")
        if seed is not None and not isinstance(seed, int):
            raise ValueError("rng.seed must be an integer or null.")
        internal = payload.get("internal")
        version = payload.get("version")
        if not isinstance(internal, list) or not isinstance(version, int):
            raise ValueError("rng state is missing the generator internals.")
        rng = cls(seed)
        internal_state: List[int] = [int(entry) for entry in internal]
        rng._random.setstate((version, tuple(internal_state), payload.get("gauss_next")))
        return rng
