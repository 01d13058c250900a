from __future__ import annotations

from typing import Callable, Dict, Sequence

from tracery.modifiers import base_english

Transform = Callable[[str, Sequence[str]], str]


def modifier(fn: Callable[[str], str]) -> Transform:
    """Adapt a plain ``text -> text`` function; arguments are ignored."""

    def _apply(text: str, _args: Sequence[str]) -> str:
        return fn(text)

    _apply.__name__ = getattr(fn, "__name__", "modifier")
    return _apply


def call(fn: Callable[[], object]) -> Transform:
    """Adapt a zero-argument side effect; the text passes through unchanged."""

    def _apply(text: str, _args: Sequence[str]) -> str:
        fn()
        return text

    _apply.__name__ = getattr(fn, "__name__", "call")
    return _apply


def method(fn: Callable[[str, Sequence[str]], str]) -> Transform:
    def _apply(text: str, args: Sequence[str]) -> str:
        return fn(text, list(args))

    _apply.__name__ = getattr(fn, "__name__", "method")
    return _apply


def tracery_modifier(fn: Callable[..., str]) -> Transform:
    """Adapt a ``tracery`` modifier, which takes its arguments positionally.

    The tracery functions index into the text, so empty text passes through.
    """

    def _apply(text: str, args: Sequence[str]) -> str:
        if not text:
            return text
        return fn(text, *args)

    _apply.__name__ = getattr(fn, "__name__", "tracery_modifier")
    return _apply


def possessive(text: str) -> str:
    if text.endswith("s"):
        return f"{text}'"
    return f"{text}'s"


def in_quotes(text: str) -> str:
    return f'"{text}"'


def comma(text: str) -> str:
    if text and text[-1] in ",.?!":
        return text
    return f"{text},"


def repeat(text: str, args: Sequence[str]) -> str:
    if len(args) != 1 or not args[0].strip().isdigit():
        raise ValueError("repeat expects one non-negative integer argument")
    return text * int(args[0])


# base_english covers articles, plurals, past tense, case and replace.
ENGLISH_MODIFIERS: Dict[str, Transform] = {
    **{name: tracery_modifier(fn) for name, fn in base_english.items()},
    "possessive": modifier(possessive),
    "inQuotes": modifier(in_quotes),
    "comma": modifier(comma),
    "repeat": method(repeat),
}
