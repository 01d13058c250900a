from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, List, Optional


class TagStorage(ABC):
    """Key/value store for tags bound while a grammar expands."""

    @abstractmethod
    def bind(self, name: str, value: str) -> None:
        ...

    @abstractmethod
    def lookup(self, name: str) -> Optional[str]:
        ...

    @abstractmethod
    def remove_all(self) -> None:
        ...

    def enter_scope(self) -> None:
        pass

    def exit_scope(self) -> None:
        pass

    @abstractmethod
    def snapshot(self) -> Dict[str, str]:
        ...

    def __contains__(self, name: str) -> bool:
        return self.lookup(name) is not None


class FlatTagStorage(TagStorage):
    """Single global namespace; scope hooks are no-ops."""

    def __init__(self) -> None:
        self._tags: Dict[str, str] = {}

    def bind(self, name: str, value: str) -> None:
        self._tags[name] = value

    def lookup(self, name: str) -> Optional[str]:
        return self._tags.get(name)

    def remove_all(self) -> None:
        self._tags.clear()

    def snapshot(self) -> Dict[str, str]:
        return dict(self._tags)

    def __len__(self) -> int:  # pragma: no cover - trivial
        return len(self._tags)


class ScopedTagStorage(TagStorage):
    """Hierarchical tag frames.

    Bindings go to the innermost frame and shadow outer bindings of the same
    name. ``exit_scope`` drops the innermost frame together with everything
    bound in it; the root frame is never dropped.
    """

    def __init__(self) -> None:
        self._frames: List[Dict[str, str]] = [{}]

    @property
    def depth(self) -> int:
        return len(self._frames)

    def bind(self, name: str, value: str) -> None:
        self._frames[-1][name] = value

    def lookup(self, name: str) -> Optional[str]:
        for frame in reversed(self._frames):
            if name in frame:
                return frame[name]
        return None

    def remove_all(self) -> None:
        self._frames = [{}]

    def enter_scope(self) -> None:
        self._frames.append({})

    def exit_scope(self) -> None:
        if len(self._frames) > 1:
            self._frames.pop()

    def snapshot(self) -> Dict[str, str]:
        """Visible bindings, inner frames winning over outer ones."""

        merged: Dict[str, str] = {}
        for frame in self._frames:
            merged.update(frame)
        return merged

    def __len__(self) -> int:  # pragma: no cover - trivial
        return len(self.snapshot())


class TaggingPolicy(str, Enum):
    FLAT = "flat"
    SCOPED = "scoped"

    def storage(self) -> TagStorage:
        if self is TaggingPolicy.SCOPED:
            return ScopedTagStorage()
        return FlatTagStorage()
