from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from parlance.ast import ModifierCall, Node, Reference, TagAssignment, Text, Weight
from parlance.context import ContextStack
from parlance.modifiers import Transform
from parlance.rules import RuleMapping
from parlance.tag_storage import TagStorage

logger = logging.getLogger(__name__)

UNRESOLVED_TEMPLATE = "(({name}))"


class EvaluationError(RuntimeError):
    """Raised for failures that abort a whole expansion."""


@dataclass
class ExpansionEvent:
    rule: str
    candidate: int
    depth: int
    text: str

    def to_record(self) -> Dict[str, object]:
        """JSON-ready event representation for tracing."""

        return {
            "rule": self.rule,
            "candidate": self.candidate,
            "depth": self.depth,
            "text": self.text,
        }


def unresolved(name: str) -> str:
    return UNRESOLVED_TEMPLATE.format(name=name)


class Evaluator:
    """Walks parsed nodes and assembles the expanded text."""

    def __init__(
        self,
        rule_set: Mapping[str, RuleMapping],
        mods: Mapping[str, Transform],
        tag_storage: TagStorage,
        context_stack: ContextStack,
        event_hooks: Optional[List[Callable[[ExpansionEvent], None]]] = None,
    ):
        self.rule_set = rule_set
        self.mods = mods
        self.tag_storage = tag_storage
        self.context_stack = context_stack
        self.event_hooks: List[Callable[[ExpansionEvent], None]] = event_hooks if event_hooks is not None else []
        self.events: List[ExpansionEvent] = []
        self.rule_counts: Dict[str, int] = {}
        self.unresolved: List[str] = []

    def reset(self) -> None:
        self.tag_storage.remove_all()
        self.context_stack.clear()
        self.events.clear()
        self.rule_counts.clear()
        self.unresolved.clear()

    def evaluate(self, nodes: Sequence[Node]) -> str:
        parts: List[str] = []
        for node in nodes:
            if isinstance(node, Text):
                parts.append(node.text)
            elif isinstance(node, Reference):
                parts.append(self._reference(node))
            elif isinstance(node, TagAssignment):
                self._assign(node)
            elif isinstance(node, Weight):
                continue
            else:  # pragma: no cover - exhaustive over Node
                raise EvaluationError(f"unexpected node {node!r}")
        return "".join(parts)

    def _assign(self, node: TagAssignment) -> None:
        with self.context_stack.frame("tag", node.name):
            value = self.evaluate(node.value)
        self.tag_storage.bind(node.name, value)

    def _reference(self, node: Reference) -> str:
        with self.context_stack.frame("rule", node.name):
            self.tag_storage.enter_scope()
            try:
                for action in node.actions:
                    self._assign(action)
                text = self._resolve(node.name)
            finally:
                self.tag_storage.exit_scope()
        return self._apply_modifiers(text, node.modifiers)

    def _resolve(self, name: str) -> str:
        if not name:
            return ""

        value = self.tag_storage.lookup(name)
        if value is not None:
            return value

        mapping = self.rule_set.get(name)
        if mapping is None:
            logger.warning("no rule or tag named '%s'", name)
            self.unresolved.append(name)
            return unresolved(name)

        picked = mapping.select()
        if picked is None:
            raise EvaluationError(f"selector for rule '{name}' returned no candidate")
        index, candidate = picked

        text = self.evaluate(candidate.nodes)
        self.rule_counts[name] = self.rule_counts.get(name, 0) + 1
        event = ExpansionEvent(rule=name, candidate=index, depth=self.context_stack.depth, text=text)
        self.events.append(event)
        for hook in self.event_hooks:
            hook(event)
        return text

    def _apply_modifiers(self, text: str, modifiers: Sequence[ModifierCall]) -> str:
        for call in modifiers:
            transform = self.mods.get(call.name)
            if transform is None:
                raise EvaluationError(f"unknown modifier '{call.name}'")
            text = transform(text, list(call.args))
        return text

    def stats(self) -> Dict[str, object]:
        return {
            "events": len(self.events),
            "rule_counts": dict(self.rule_counts),
            "unresolved": sorted(set(self.unresolved)),
            "depth": self.context_stack.depth,
        }
