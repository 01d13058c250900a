from __future__ import annotations

import sys
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Optional

DEFAULT_MAX_DEPTH = 256

# Interpreter frames one expansion level costs (evaluate, _reference, _resolve),
# rounded up for modifiers and nested expand calls.
FRAMES_PER_LEVEL = 4
RECURSION_HEADROOM = 200


class StackOverflowError(RuntimeError):
    """Raised when nested expansion goes deeper than the configured maximum."""

    def __init__(self, depth: int, frame: Optional["Frame"] = None):
        super().__init__("stack overflow")
        self.depth = depth
        self.frame = frame


@dataclass(frozen=True)
class Frame:
    kind: str
    name: str


class ContextStack:
    """Chain of in-progress rule and tag evaluations."""

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        if max_depth <= 0:
            raise ValueError("max_depth must be positive")
        self.max_depth = max_depth
        self._frames: List[Frame] = []

    @property
    def depth(self) -> int:
        return len(self._frames)

    @property
    def frames(self) -> tuple[Frame, ...]:
        return tuple(self._frames)

    def enter(self, frame: Frame) -> None:
        if len(self._frames) + 1 > self.max_depth:
            raise StackOverflowError(len(self._frames) + 1, frame)
        self._frames.append(frame)

    def leave(self) -> None:
        if self._frames:
            self._frames.pop()

    def clear(self) -> None:
        self._frames.clear()

    @contextmanager
    def frame(self, kind: str, name: str) -> Iterator[Frame]:
        """Hold one frame for the duration of a ``with`` block."""

        entry = Frame(kind=kind, name=name)
        self.enter(entry)
        try:
            yield entry
        finally:
            self.leave()

    def __len__(self) -> int:  # pragma: no cover - trivial
        return len(self._frames)


@contextmanager
def recursion_limit(max_depth: int) -> Iterator[int]:
    """Make sure the interpreter can nest ``max_depth`` expansion levels.

    The limit is only ever raised, and the previous value comes back on exit.
    """

    previous = sys.getrecursionlimit()
    needed = max_depth * FRAMES_PER_LEVEL + RECURSION_HEADROOM
    if needed > previous:
        sys.setrecursionlimit(needed)
    try:
        yield max(needed, previous)
    finally:
        sys.setrecursionlimit(previous)
