from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Sequence, Tuple, Union

from parlance.lexer import (
    COLON,
    COMMA,
    DOT,
    HASH,
    LEFT_BRACKET,
    LEFT_PAREN,
    RIGHT_BRACKET,
    RIGHT_PAREN,
    Token,
    tokenize,
)


class ParseError(ValueError):
    """Raised when rule or input text is not well formed."""


@dataclass(frozen=True)
class Text:
    text: str


@dataclass(frozen=True)
class ModifierCall:
    name: str
    args: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TagAssignment:
    """``[name:value]`` binds ``name`` to the expansion of ``value``."""

    name: str
    value: Tuple["Node", ...] = ()


@dataclass(frozen=True)
class Reference:
    """``#[actions]name.mod1.mod2#`` resolved as a tag first, then as a rule."""

    name: str
    modifiers: Tuple[ModifierCall, ...] = ()
    actions: Tuple[TagAssignment, ...] = ()


@dataclass(frozen=True)
class Weight:
    value: int


Node = Union[Text, Reference, TagAssignment, Weight]

def _weight_suffix(tokens: Sequence[Token]) -> int | None:
    """Return the trailing ``,N`` weight of a candidate, if any."""

    if len(tokens) < 3:
        return None
    sep, value = tokens[-2], tokens[-1]
    if sep.kind != COMMA or not value.is_text:
        return None
    if not value.text.isdigit() or int(value.text) <= 0:
        return None
    return int(value.text)


class _Reader:
    """Recursive-descent reader over a flat token list."""

    def __init__(self, tokens: Sequence[Token]):
        self.tokens = list(tokens)
        self.pos = 0

    def peek(self) -> Token | None:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def next(self) -> Token:
        tok = self.tokens[self.pos]
        self.pos += 1
        return tok

    def at(self, kind: str) -> bool:
        tok = self.peek()
        return tok is not None and tok.kind == kind

    def sequence(self, *, nested: bool = False) -> List[Node]:
        nodes: List[Node] = []
        while True:
            tok = self.peek()
            if tok is None:
                if nested:
                    raise ParseError("unterminated tag assignment, missing ']'")
                break
            if tok.kind == RIGHT_BRACKET:
                if not nested:
                    raise ParseError("unexpected ']' without matching '['")
                break
            if tok.kind == HASH:
                self.next()
                nodes.append(self.reference())
            elif tok.kind == LEFT_BRACKET:
                self.next()
                nodes.append(self.assignment())
            else:
                self.next()
                _append_text(nodes, tok.text)
        return nodes

    def assignment(self) -> TagAssignment:
        name_parts: List[str] = []
        while not self.at(COLON):
            tok = self.peek()
            if tok is None or tok.kind == RIGHT_BRACKET:
                raise ParseError("tag assignment is missing ':'")
            if not tok.is_text:
                raise ParseError(f"unexpected '{tok.text}' in tag name")
            name_parts.append(self.next().text)
        self.next()  # consume ':'

        name = "".join(name_parts).strip()
        if not name:
            raise ParseError("tag assignment has an empty name")

        value = self.sequence(nested=True)
        self.next()  # consume ']'
        return TagAssignment(name=name, value=tuple(value))

    def reference(self) -> Reference:
        actions: List[TagAssignment] = []
        while self.at(LEFT_BRACKET):
            self.next()
            actions.append(self.assignment())

        name_parts: List[str] = []
        while True:
            tok = self.peek()
            if tok is None:
                raise ParseError("unterminated reference, missing closing '#'")
            if tok.kind in (HASH, DOT):
                break
            if not tok.is_text:
                raise ParseError(f"unexpected '{tok.text}' in reference")
            name_parts.append(self.next().text)

        modifiers: List[ModifierCall] = []
        while self.at(DOT):
            self.next()
            modifiers.append(self.modifier())

        if self.peek() is None:
            raise ParseError("unterminated reference, missing closing '#'")
        self.next()  # consume '#'

        name = "".join(name_parts)
        if not name and not modifiers and not actions:
            raise ParseError("empty reference '##'")
        return Reference(name=name, modifiers=tuple(modifiers), actions=tuple(actions))

    def modifier(self) -> ModifierCall:
        tok = self.peek()
        if tok is None or not tok.is_text or not tok.text.strip():
            raise ParseError("modifier name is empty")
        name = self.next().text.strip()

        if not self.at(LEFT_PAREN):
            return ModifierCall(name=name)

        self.next()  # consume '('
        args: List[str] = []
        current: List[str] = []
        while True:
            tok = self.peek()
            if tok is None:
                raise ParseError(f"unterminated argument list for modifier '{name}'")
            self.next()
            if tok.kind == RIGHT_PAREN:
                break
            if tok.kind == COMMA:
                args.append("".join(current))
                current = []
            else:
                current.append(tok.text)
        if current or args:
            args.append("".join(current))
        return ModifierCall(name=name, args=tuple(args))


def _append_text(nodes: List[Node], text: str) -> None:
    if nodes and isinstance(nodes[-1], Text):
        nodes[-1] = Text(nodes[-1].text + text)
    else:
        nodes.append(Text(text))


def parse(tokens: Sequence[Token], *, allow_weight: bool = True) -> List[Node]:
    """Build the node sequence for one candidate (or one ``expand`` input).

    With ``allow_weight`` a trailing ``,N`` becomes a ``Weight`` node,
    always the last node of the returned list.
    """

    weight = _weight_suffix(tokens) if allow_weight else None
    body = tokens[:-2] if weight is not None else tokens

    nodes = _Reader(body).sequence()
    if weight is not None:
        nodes.append(Weight(weight))
    return nodes


def parse_text(src: str, *, allow_weight: bool = True) -> List[Node]:
    return parse(tokenize(src), allow_weight=allow_weight)


def walk(nodes: Sequence[Node]) -> Iterator[Node]:
    """Yield every node depth-first, including assignment values and actions."""

    for node in nodes:
        yield node
        if isinstance(node, Reference):
            yield from walk(node.actions)
        elif isinstance(node, TagAssignment):
            yield from walk(node.value)
