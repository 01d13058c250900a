import io
import json

from parlance.grammar import Grammar
from parlance.trace import JSONLTracer, dump_events

RULES = {"origin": "#a# #b#", "a": "x", "b": "y"}


def test_jsonl_tracer_captures_expansion_events():
    sink = io.StringIO()
    tracer = JSONLTracer(sink)

    grammar = Grammar(RULES, event_hooks=[tracer])
    assert grammar.expand("#origin#") == "x y"

    lines = [l for l in sink.getvalue().splitlines() if l]
    assert len(lines) == 3

    records = [json.loads(line) for line in lines]
    assert [r["rule"] for r in records] == ["a", "b", "origin"]
    assert [r["seq"] for r in records] == [0, 1, 2]
    assert records[0]["depth"] == 2
    assert records[2] == {"seq": 2, "rule": "origin", "candidate": 0, "depth": 1, "text": "x y"}


def test_tracer_can_filter_rules():
    sink = io.StringIO()
    grammar = Grammar(RULES)
    grammar.event_hooks.append(JSONLTracer(sink, rules={"origin"}))

    grammar.expand("#origin#")

    lines = sink.getvalue().splitlines()
    assert len(lines) == 1
    assert json.loads(lines[0])["rule"] == "origin"


def test_dump_events_serializes_last_expansion():
    grammar = Grammar(RULES)
    grammar.expand("#a#")
    grammar.expand("#b#")

    records = dump_events(grammar.evaluator.events)
    assert records == [{"rule": "b", "candidate": 0, "depth": 1, "text": "y"}]
