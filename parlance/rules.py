from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Protocol, Tuple, runtime_checkable

from parlance.ast import Node, ParseError, Weight, parse_text
from parlance.lexer import is_plain_name
from parlance.selection import CandidateSelector, PickFirstSelector, ShuffledSelector, WeightedSelector

logger = logging.getLogger(__name__)


@runtime_checkable
class CandidatesProvider(Protocol):
    """Object that synthesizes the candidate texts of a rule."""

    @property
    def candidates(self) -> Iterable[str]:  # pragma: no cover - protocol
        ...


@dataclass(frozen=True)
class RuleCandidate:
    text: str
    nodes: Tuple[Node, ...]

    @property
    def weight(self) -> Optional[int]:
        if self.nodes and isinstance(self.nodes[-1], Weight):
            return self.nodes[-1].value
        return None

    def without_weight(self) -> "RuleCandidate":
        if self.weight is None:
            return self
        return RuleCandidate(text=self.text, nodes=self.nodes[:-1])


@dataclass
class RuleMapping:
    candidates: Tuple[RuleCandidate, ...]
    selector: CandidateSelector

    def select(self) -> Optional[Tuple[int, RuleCandidate]]:
        index = self.selector.pick(len(self.candidates))
        if not isinstance(index, int) or not 0 <= index < len(self.candidates):
            return None
        return index, self.candidates[index]


class InvalidRuleName(ValueError):
    pass


def validate_rule_name(name: object) -> str:
    if not isinstance(name, str) or not is_plain_name(name):
        raise InvalidRuleName(f"rule '{name}' ignored - names must be plaintext")
    if "#" in name or "[" in name:
        raise InvalidRuleName(f"rule '{name}' ignored - names cannot contain # or [")
    return name


def normalize_definition(value: Any) -> Tuple[List[str], Optional[CandidateSelector]]:
    """Reduce a raw rule definition to candidate texts and an optional selector.

    Accepts a string, a candidates provider, an iterable of strings or other
    values (stringified), or any other value (stringified). An object that
    also answers ``pick`` is returned as the explicit selector.
    """

    selector = value if isinstance(value, CandidateSelector) else None

    if isinstance(value, str):
        texts = [value]
    elif isinstance(value, CandidatesProvider):
        texts = [str(text) for text in value.candidates]
    elif isinstance(value, (list, tuple)):
        texts = [item if isinstance(item, str) else str(item) for item in value]
    else:
        texts = [str(value)]

    return texts, selector


def make_candidate(rule: str, text: str) -> Optional[RuleCandidate]:
    logger.debug("checking rule '%s' - %s", rule, text)
    try:
        return RuleCandidate(text=text, nodes=tuple(parse_text(text)))
    except ParseError as exc:
        logger.error("rule '%s' parse error - %s in definition - %s", rule, exc, text)
        return None


def infer_selector(candidates: List[RuleCandidate], rng: random.Random) -> CandidateSelector:
    if len(candidates) == 1:
        return PickFirstSelector.shared()
    if any(candidate.weight is not None for candidate in candidates):
        weights = [candidate.weight or 1 for candidate in candidates]
        return WeightedSelector(weights, rng=rng)
    return ShuffledSelector(len(candidates), rng=rng)


def build_mapping(rule: str, value: Any, rng: random.Random) -> Optional[RuleMapping]:
    """Parse a definition into a ``RuleMapping``; ``None`` if nothing survives."""

    texts, selector = normalize_definition(value)
    parsed = [make_candidate(rule, text) for text in texts]
    candidates = [candidate for candidate in parsed if candidate is not None]
    if not candidates:
        logger.warning("rule '%s' does not have any definitions, will be ignored", rule)
        return None

    if selector is None:
        selector = infer_selector(candidates, rng)

    # weight markers never reach evaluation, whichever selector is installed
    stripped = tuple(candidate.without_weight() for candidate in candidates)
    return RuleMapping(candidates=stripped, selector=selector)
