from __future__ import annotations

from dataclasses import dataclass
from typing import List

HASH = "#"
LEFT_BRACKET = "["
RIGHT_BRACKET = "]"
COLON = ":"
COMMA = ","
DOT = "."
LEFT_PAREN = "("
RIGHT_PAREN = ")"
TEXT = "text"

STRUCTURAL = frozenset({HASH, LEFT_BRACKET, RIGHT_BRACKET, COLON, COMMA, DOT, LEFT_PAREN, RIGHT_PAREN})
ESCAPE = "\\"


@dataclass(frozen=True)
class Token:
    kind: str
    text: str

    @property
    def is_text(self) -> bool:
        return self.kind == TEXT


def tokenize(src: str) -> List[Token]:
    """Split rule text into structural tokens and runs of plain text.

    A backslash escapes the character that follows it, so ``\\#`` yields a
    literal ``#`` inside a text token. A trailing lone backslash is kept as text.
    """

    tokens: List[Token] = []
    buffer: List[str] = []

    def flush() -> None:
        if buffer:
            tokens.append(Token(TEXT, "".join(buffer)))
            buffer.clear()

    i = 0
    while i < len(src):
        ch = src[i]
        if ch == ESCAPE and i + 1 < len(src):
            buffer.append(src[i + 1])
            i += 2
            continue
        if ch in STRUCTURAL:
            flush()
            tokens.append(Token(ch, ch))
        else:
            buffer.append(ch)
        i += 1

    flush()
    return tokens


def is_plain_name(src: str) -> bool:
    """True when ``src`` lexes to exactly one text token."""

    tokens = tokenize(src)
    return len(tokens) == 1 and tokens[0].is_text
