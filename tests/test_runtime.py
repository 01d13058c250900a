import random

import pytest

from parlance.ast import parse_text
from parlance.context import ContextStack, StackOverflowError
from parlance.modifiers import modifier
from parlance.rules import build_mapping
from parlance.runtime import EvaluationError, Evaluator, unresolved
from parlance.tag_storage import FlatTagStorage, ScopedTagStorage


def make_evaluator(rules, storage=None, max_depth=16, mods=None):
    rng = random.Random(0)
    rule_set = {name: build_mapping(name, value, rng) for name, value in rules.items()}
    return Evaluator(rule_set, mods or {}, storage or FlatTagStorage(), ContextStack(max_depth=max_depth))


def test_evaluator_walks_text_references_and_assignments():
    evaluator = make_evaluator({"name": "Ada"})

    text = evaluator.evaluate(parse_text("[hero:#name#]Hello #hero#!"))

    assert text == "Hello Ada!"
    assert evaluator.tag_storage.lookup("hero") == "Ada"
    assert evaluator.rule_counts == {"name": 1}


def test_evaluator_leaves_context_and_scopes_balanced():
    storage = ScopedTagStorage()
    evaluator = make_evaluator({"a": "[t:1]#b#", "b": "#t#"}, storage=storage)

    assert evaluator.evaluate(parse_text("#a#")) == "1"
    assert evaluator.context_stack.depth == 0
    assert storage.depth == 1


def test_evaluator_raises_overflow_and_unwinds():
    storage = ScopedTagStorage()
    evaluator = make_evaluator({"loop": "#loop#"}, storage=storage, max_depth=8)

    with pytest.raises(StackOverflowError):
        evaluator.evaluate(parse_text("#loop#"))

    assert evaluator.context_stack.depth == 0
    assert storage.depth == 1


def test_evaluator_unknown_modifier_raises():
    evaluator = make_evaluator({"a": "x"})
    with pytest.raises(EvaluationError, match="unknown modifier 'up'"):
        evaluator.evaluate(parse_text("#a.up#"))


def test_evaluator_applies_modifiers_and_placeholders():
    evaluator = make_evaluator({"a": "x"}, mods={"up": modifier(str.upper)})

    assert evaluator.evaluate(parse_text("#a.up# #b.up#")) == f"X {unresolved('b').upper()}"
    assert evaluator.unresolved == ["b"]


def test_reset_clears_tags_frames_and_counters():
    evaluator = make_evaluator({"a": "x"})
    evaluator.evaluate(parse_text("[t:1]#a#"))

    evaluator.reset()

    assert evaluator.tag_storage.snapshot() == {}
    assert evaluator.events == []
    assert evaluator.rule_counts == {}
    assert evaluator.stats()["depth"] == 0
