from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Mapping, Set

from parlance.ast import Reference, TagAssignment, walk
from parlance.rules import RuleMapping

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Finding:
    rule: str
    kind: str
    detail: str


def assigned_tags(rule_set: Mapping[str, RuleMapping]) -> Set[str]:
    """Every tag name assigned somewhere in the rule book."""

    names: Set[str] = set()
    for mapping in rule_set.values():
        for candidate in mapping.candidates:
            names.update(node.name for node in walk(candidate.nodes) if isinstance(node, TagAssignment))
    return names


def _references(nodes) -> List[str]:
    return [node.name for node in walk(nodes) if isinstance(node, Reference) and node.name]


def analyze_rule_book(rule_set: Mapping[str, RuleMapping]) -> List[Finding]:
    """Static checks over a registered rule book.

    Reports references that name neither a rule nor a tag assigned in the
    book, and rules whose every candidate refers back to the rule itself,
    which can only end in a stack overflow. Findings are advisory.
    """

    tags = assigned_tags(rule_set)
    findings: List[Finding] = []

    for rule in sorted(rule_set):
        mapping = rule_set[rule]
        seen: Set[str] = set()
        always_recursive = True
        for candidate in mapping.candidates:
            names = _references(candidate.nodes)
            if rule not in names:
                always_recursive = False
            for name in names:
                if name in rule_set or name in tags or name in seen:
                    continue
                seen.add(name)
                findings.append(
                    Finding(rule, "unknown-reference", f"'{name}' is not a rule or a tag assigned in the rule book")
                )

        if always_recursive and rule not in tags:
            findings.append(Finding(rule, "self-recursive", "every candidate references the rule itself"))

    for finding in findings:
        logger.warning("rule '%s': %s", finding.rule, finding.detail)
    return findings
