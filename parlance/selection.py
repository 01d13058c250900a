from __future__ import annotations

import bisect
import random
from itertools import accumulate
from typing import List, Optional, Protocol, Sequence, runtime_checkable

NO_SELECTION = -1


@runtime_checkable
class CandidateSelector(Protocol):
    """Anything that can choose a candidate index for a rule."""

    def pick(self, count: int) -> int:  # pragma: no cover - protocol
        ...


class PickFirstSelector:
    """Stateless selector that always returns the first candidate."""

    _shared: Optional["PickFirstSelector"] = None

    @classmethod
    def shared(cls) -> "PickFirstSelector":
        if cls._shared is None:
            cls._shared = cls()
        return cls._shared

    def pick(self, count: int) -> int:
        if count <= 0:
            return NO_SELECTION
        return 0


class ShuffledSelector:
    """Cycles through a random permutation, reshuffling once it is used up.

    Every index is returned exactly once per pass, so no candidate repeats
    until all of them have been shown.
    """

    def __init__(self, count: int, rng: Optional[random.Random] = None, seed: Optional[int] = None) -> None:
        if count <= 0:
            raise ValueError("ShuffledSelector needs at least one candidate")
        self._count = count
        self._rng = rng if rng is not None else random.Random(seed)
        self._indices: List[int] = list(range(count))
        self._rng.shuffle(self._indices)
        self._cursor = 0

    @property
    def count(self) -> int:
        return self._count

    def pick(self, count: int) -> int:
        if count != self._count:
            raise ValueError(f"selector built for {self._count} candidates asked to pick from {count}")
        if self._cursor >= self._count:
            self._rng.shuffle(self._indices)
            self._cursor = 0
        index = self._indices[self._cursor]
        self._cursor += 1
        return index

    def remaining(self) -> tuple[int, ...]:
        """Indices still to be returned in the current pass."""

        return tuple(self._indices[self._cursor :])


class WeightedSelector:
    """Picks an index with probability proportional to its weight."""

    def __init__(self, weights: Sequence[int], rng: Optional[random.Random] = None, seed: Optional[int] = None) -> None:
        if not weights:
            raise ValueError("WeightedSelector needs at least one weight")
        for weight in weights:
            if isinstance(weight, bool) or not isinstance(weight, int) or weight <= 0:
                raise ValueError(f"weights must be positive integers, got {weight!r}")
        self._weights = tuple(weights)
        self._cumulative = list(accumulate(self._weights))
        self._rng = rng if rng is not None else random.Random(seed)

    @property
    def weights(self) -> tuple[int, ...]:
        return self._weights

    @property
    def total(self) -> int:
        return self._cumulative[-1]

    def pick(self, count: int) -> int:
        if count <= 0:
            return NO_SELECTION
        if count != len(self._weights):
            raise ValueError(f"selector built for {len(self._weights)} candidates asked to pick from {count}")
        point = self._rng.randrange(self.total)
        return bisect.bisect_right(self._cumulative, point)
