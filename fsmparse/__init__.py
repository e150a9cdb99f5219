"""
fsmparse - Template-driven FSM parser for CLI output

Compiles declarative templates (states, ordered regex patterns, named
capture groups, variable actions and transitions) and replays them line by
line over unstructured command output to produce structured records.

Usage:
    engine = FsmEngine()
    result = engine.parse(cli_output, template, EngineOptions(coerce_types=True))
    result.records, result.meta
"""

__version__ = "1.0.0"

from .errors import (
    FsmParseError,
    TemplateError,
    InvalidPatternError,
    UnknownStateError,
)

from .models import (
    Template,
    Variable,
    State,
    Pattern,
    Transition,
    Emit,
    Set,
    Clear,
    Append,
    EngineOptions,
    ParseResult,
    ParseMeta,
    TraceEntry,
)

from .coercion import coerce_value

from .compiler import (
    CompiledTemplate,
    compile_template,
)

from .cache import CompiledTemplateCache

from .engine import (
    FsmEngine,
    parse,
    split_lines,
)

from .validator import (
    ValidationResult,
    validate_template,
)

from .builder import build_line_template

from .textfsm_import import (
    from_textfsm,
    filldown_values,
)

from .matcher import (
    MatchResult,
    find_best_template,
    score_records,
)

__all__ = [
    # Errors
    "FsmParseError",
    "TemplateError",
    "InvalidPatternError",
    "UnknownStateError",
    # Data model
    "Template",
    "Variable",
    "State",
    "Pattern",
    "Transition",
    "Emit",
    "Set",
    "Clear",
    "Append",
    "EngineOptions",
    "ParseResult",
    "ParseMeta",
    "TraceEntry",
    "coerce_value",
    # Compiler & engine
    "CompiledTemplate",
    "compile_template",
    "CompiledTemplateCache",
    "FsmEngine",
    "parse",
    "split_lines",
    # Authoring helpers
    "ValidationResult",
    "validate_template",
    "build_line_template",
    "from_textfsm",
    "filldown_values",
    # Auto-match
    "MatchResult",
    "find_best_template",
    "score_records",
]
