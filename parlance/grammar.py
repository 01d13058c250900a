from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from parlance.analysis import Finding, analyze_rule_book
from parlance.ast import parse_text
from parlance.context import DEFAULT_MAX_DEPTH, ContextStack, StackOverflowError, recursion_limit
from parlance.modifiers import ENGLISH_MODIFIERS, Transform, call, method, modifier
from parlance.rules import InvalidRuleName, RuleMapping, build_mapping, validate_rule_name
from parlance.runtime import Evaluator, ExpansionEvent
from parlance.selection import CandidateSelector
from parlance.tag_storage import TaggingPolicy

logger = logging.getLogger(__name__)

RuleBook = Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]

ERROR_PREFIX = "error: "


@dataclass
class GrammarOptions:
    """Engine-wide settings, fixed once a ``Grammar`` is built."""

    tagging_policy: TaggingPolicy = TaggingPolicy.FLAT
    rule_analysis: bool = True
    seed: Optional[int] = None
    max_depth: Optional[int] = None


class Grammar:
    """Rule registry, modifier table and expansion entry point."""

    max_stack_depth: int = DEFAULT_MAX_DEPTH

    def __init__(
        self,
        rules: RuleBook | Callable[[], RuleBook] | None = None,
        options: Optional[GrammarOptions] = None,
        *,
        event_hooks: Optional[List[Callable[[ExpansionEvent], None]]] = None,
    ):
        self.options = options if options is not None else GrammarOptions()
        self.tagging_policy = TaggingPolicy(self.options.tagging_policy)
        self.rng = random.Random(self.options.seed)
        self.rule_set: Dict[str, RuleMapping] = {}
        self.mods: Dict[str, Transform] = {}
        self.tag_storage = self.tagging_policy.storage()
        max_depth = self.options.max_depth if self.options.max_depth is not None else type(self).max_stack_depth
        self.context_stack = ContextStack(max_depth=max_depth)
        self.evaluator = Evaluator(
            self.rule_set,
            self.mods,
            self.tag_storage,
            self.context_stack,
            event_hooks=event_hooks,
        )

        book = rules() if callable(rules) else rules
        if book:
            items = book.items() if isinstance(book, Mapping) else book
            for name, value in items:
                self.add_rule(name, value)

        self.findings: List[Finding] = self.analyze() if self.options.rule_analysis else []
        logger.info("grammar ready (%d rules, %s tagging)", len(self.rule_set), self.tagging_policy.value)

    @property
    def rule_names(self) -> List[str]:
        return list(self.rule_set)

    @property
    def event_hooks(self) -> List[Callable[[ExpansionEvent], None]]:
        return self.evaluator.event_hooks

    def add_rule(self, rule: str, definition: Any) -> bool:
        """Register (or replace) a rule; returns False when it was dropped."""

        try:
            name = validate_rule_name(rule)
        except InvalidRuleName as exc:
            logger.error("%s", exc)
            return False

        if name in self.rule_set:
            logger.warning("duplicate rule '%s', using latest definition", name)

        mapping = build_mapping(name, definition, self.rng)
        if mapping is None:
            return False
        self.rule_set[name] = mapping
        return True

    def add_modifier(self, name: str, transform: Callable[[str], str]) -> None:
        self._register(name, modifier(transform), "modifier")

    def add_call(self, name: str, transform: Callable[[], object]) -> None:
        self._register(name, call(transform), "call")

    def add_method(self, name: str, transform: Callable[[str, Sequence[str]], str]) -> None:
        self._register(name, method(transform), "method")

    def add_modifiers(self, transforms: Mapping[str, Transform]) -> None:
        """Install ready-made ``(text, args) -> text`` transforms in bulk."""

        for name, transform in transforms.items():
            self._register(name, transform, "modifier")

    def use_english_modifiers(self) -> None:
        self.add_modifiers(ENGLISH_MODIFIERS)

    def _register(self, name: str, transform: Transform, kind: str) -> None:
        if name in self.mods:
            logger.warning("overwriting %s '%s'", kind, name)
        self.mods[name] = transform

    def set_candidate_selector(self, rule: str, selector: CandidateSelector) -> None:
        mapping = self.rule_set.get(rule)
        if mapping is None:
            logger.warning("rule '%s' not found to set selector", rule)
            return
        mapping.selector = selector

    def analyze(self) -> List[Finding]:
        return analyze_rule_book(self.rule_set)

    def expand(self, text: str, reset_tags: bool = True) -> str:
        """Expand ``text``; failures come back as an ``error: ...`` string."""

        try:
            if reset_tags:
                self.evaluator.reset()
            nodes = parse_text(text, allow_weight=False)
            with recursion_limit(self.context_stack.max_depth):
                return self.evaluator.evaluate(nodes)
        except (StackOverflowError, RecursionError):
            logger.error("stack overflow while expanding %r", text)
            return f"{ERROR_PREFIX}stack overflow"
        except Exception as exc:
            logger.error("expansion of %r failed: %s", text, exc)
            return f"{ERROR_PREFIX}{exc}"

    def tags(self) -> Dict[str, str]:
        """Tags visible after the last expansion."""

        return self.tag_storage.snapshot()

    def stats(self) -> Dict[str, object]:
        return {
            "rules": len(self.rule_set),
            "modifiers": sorted(self.mods),
            "tagging": self.tagging_policy.value,
            "max_depth": self.context_stack.max_depth,
            **self.evaluator.stats(),
        }
