from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Iterable, List, Tuple

from parlance.grammar import ERROR_PREFIX, Grammar, GrammarOptions
from parlance.tag_storage import TaggingPolicy
from parlance.trace import JSONLTracer

DEFAULT_ORIGIN = "#origin#"


class _ObjectPairs(list):
    """JSON object kept as ordered (key, value) pairs, repeated keys included."""


def _plain(value: Any) -> Any:
    if isinstance(value, _ObjectPairs):
        return {key: _plain(item) for key, item in value}
    if isinstance(value, list):
        return [_plain(item) for item in value]
    return value


def _read_rule_book(path: str) -> List[Tuple[str, Any]]:
    """Load a JSON rule book from a file path or stdin.

    Passing ``-`` reads from stdin to support piping rule books into the CLI.
    Entries come back in file order so a repeated rule name reaches
    ``Grammar.add_rule`` twice instead of being collapsed by the decoder.
    """

    if path == "-":
        raw = sys.stdin.read()
    else:
        target = Path(path)
        if not target.exists():
            raise FileNotFoundError(path)
        raw = target.read_text(encoding="utf-8")

    book = json.loads(raw, object_pairs_hook=_ObjectPairs)
    if not isinstance(book, _ObjectPairs):
        raise ValueError("rule book must be a JSON object mapping rule names to definitions")
    return [(name, _plain(value)) for name, value in book]


def _add_tracer(grammar: Grammar, destination: str):
    sink = open(destination, "w", encoding="utf-8")
    grammar.event_hooks.append(JSONLTracer(sink))
    return sink


def run_cli(argv: Iterable[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Expand text from a JSON rule book.")
    parser.add_argument("rules", help="Path to the rule book (JSON object), or - for stdin")
    parser.add_argument("--origin", default=DEFAULT_ORIGIN, help="Text to expand (default: #origin#)")
    parser.add_argument("--count", type=int, default=1, help="Number of expansions to produce")
    parser.add_argument("--seed", type=int, default=None, help="Seed the selectors for reproducible output")
    parser.add_argument(
        "--tagging",
        choices=[policy.value for policy in TaggingPolicy],
        default=TaggingPolicy.FLAT.value,
        help="Tag visibility policy (flat or scoped)",
    )
    parser.add_argument("--max-depth", dest="max_depth", type=int, help="Override the recursion depth limit")
    parser.add_argument("--english", action="store_true", help="Install the standard English modifiers")
    parser.add_argument(
        "--analyze",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Run rule-book analysis after registration",
    )
    parser.add_argument("--trace-jsonl", dest="trace_jsonl", help="Write expansion events to a JSONL file")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Register and analyse the rule book without expanding anything",
    )
    parser.add_argument("--log-level", dest="log_level", default="WARNING", help="Logging level for diagnostics")

    args = parser.parse_args(list(argv) if argv is not None else None)
    logging.basicConfig(level=args.log_level.upper(), stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s")

    sink = None

    try:
        if args.count <= 0:
            raise ValueError("--count must be positive")
        book = _read_rule_book(args.rules)
        options = GrammarOptions(
            tagging_policy=TaggingPolicy(args.tagging),
            rule_analysis=args.analyze,
            seed=args.seed,
            max_depth=args.max_depth,
        )
        grammar = Grammar(book, options)
        if args.english:
            grammar.use_english_modifiers()

        if args.dry_run:
            summary = {
                "rules": sorted(grammar.rule_names),
                "dropped": sorted({name for name, _ in book} - set(grammar.rule_names)),
                "findings": [
                    {"rule": f.rule, "kind": f.kind, "detail": f.detail} for f in grammar.findings
                ],
            }
        else:
            sink = _add_tracer(grammar, args.trace_jsonl) if args.trace_jsonl else None
            results = []
            fired: dict[str, int] = {}
            for _ in range(args.count):
                results.append(grammar.expand(args.origin))
                for rule, n in grammar.evaluator.rule_counts.items():
                    fired[rule] = fired.get(rule, 0) + n
            summary = {
                "origin": args.origin,
                "tagging": grammar.tagging_policy.value,
                "seed": args.seed,
                "results": results,
                "rule_counts": fired,
                "errors": sum(1 for r in results if r.startswith(ERROR_PREFIX)),
            }

        print(json.dumps(summary, indent=2))
        return 0
    except Exception as exc:  # pragma: no cover - defensive shell entry
        print(f"parlance: {exc}", file=sys.stderr)
        return 1
    finally:
        if sink is not None:
            sink.close()


def main() -> int:  # pragma: no cover - thin wrapper
    return run_cli()


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    sys.exit(main())
