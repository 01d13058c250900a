from __future__ import annotations

import io
import json
from typing import Collection, Iterable, List, Optional

from parlance.runtime import ExpansionEvent


class JSONLTracer:
    """Writes one numbered JSON line per rule expansion to a text sink.

    ``rules`` limits tracing to the named rules; everything is traced when it
    is omitted.
    """

    def __init__(self, sink: io.TextIOBase, rules: Optional[Collection[str]] = None):
        self.sink = sink
        self.rules = frozenset(rules) if rules is not None else None
        self.written = 0

    def __call__(self, event: ExpansionEvent) -> None:
        if self.rules is not None and event.rule not in self.rules:
            return
        record = {"seq": self.written, **event.to_record()}
        self.sink.write(json.dumps(record))
        self.sink.write("\n")
        self.sink.flush()
        self.written += 1


def dump_events(events: Iterable[ExpansionEvent]) -> List[dict]:
    """Convert an event stream to JSON-serializable dicts."""

    return [ev.to_record() for ev in events]
