from parlance.analysis import Finding, analyze_rule_book  # noqa: F401
from parlance.ast import (  # noqa: F401
    ModifierCall,
    ParseError,
    Reference,
    TagAssignment,
    Text,
    Weight,
    parse,
    parse_text,
)
from parlance.context import DEFAULT_MAX_DEPTH, ContextStack, StackOverflowError  # noqa: F401
from parlance.grammar import Grammar, GrammarOptions  # noqa: F401
from parlance.lexer import Token, tokenize  # noqa: F401
from parlance.modifiers import ENGLISH_MODIFIERS  # noqa: F401
from parlance.rules import CandidatesProvider, RuleCandidate, RuleMapping  # noqa: F401
from parlance.runtime import EvaluationError, Evaluator, ExpansionEvent  # noqa: F401
from parlance.selection import (  # noqa: F401
    NO_SELECTION,
    CandidateSelector,
    PickFirstSelector,
    ShuffledSelector,
    WeightedSelector,
)
from parlance.tag_storage import FlatTagStorage, ScopedTagStorage, TaggingPolicy  # noqa: F401
from parlance.trace import JSONLTracer, dump_events  # noqa: F401
