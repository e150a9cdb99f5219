"""
Template Compiler

Turns a Template into a CompiledTemplate: a state table keyed by name whose
patterns hold pre-built regex objects. Compiling is pure; caching belongs to
the engine.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import regex

from .errors import InvalidPatternError
from .logs import get_logger
from .models import Action, Pattern, Template, Transition

logger = get_logger(__name__)

# JavaScript-style flag letters used by existing template documents.
# 'g' and 'y' only change stateful matching, which a per-line search never uses.
FLAG_MAP = {
    'i': regex.IGNORECASE,
    'm': regex.MULTILINE,
    's': regex.DOTALL,
    'x': regex.VERBOSE,
    'u': regex.UNICODE,
    'g': 0,
    'y': 0,
}


@dataclass(frozen=True)
class CompiledPattern:
    index: int
    regex: 'regex.Pattern'
    map: Optional[Dict[str, str]] = None
    actions: List[Action] = field(default_factory=list)
    transition: Optional[Transition] = None


@dataclass(frozen=True)
class CompiledState:
    name: str
    patterns: List[CompiledPattern]


@dataclass(frozen=True)
class CompiledTemplate:
    template: Template
    states: Dict[str, CompiledState]
    start_state: str
    variable_types: Dict[str, str] = field(default_factory=dict)

    @property
    def id(self) -> str:
        return self.template.id


def translate_flags(flags: Optional[str]) -> int:
    """Map a flag string such as ``"im"`` onto regex module flags."""
    value = 0
    for letter in flags or '':
        try:
            value |= FLAG_MAP[letter]
        except KeyError:
            raise ValueError(f"Unsupported regex flag '{letter}'")
    return value


def compile_pattern(state_name: str, index: int, pattern: Pattern) -> CompiledPattern:
    try:
        compiled = regex.compile(pattern.regex, translate_flags(pattern.flags))
    except (regex.error, ValueError, TypeError) as e:
        raise InvalidPatternError(state_name, index, str(e))

    return CompiledPattern(
        index=index,
        regex=compiled,
        map=pattern.map,
        actions=list(pattern.actions),
        transition=pattern.transition,
    )


def compile_template(template: Template) -> CompiledTemplate:
    """
    Compile every pattern of every state.

    Raises InvalidPatternError for the first pattern that does not compile.
    Transition targets are not checked; a template without states fails with
    IndexError, run ``validate_template`` first for readable errors.
    """
    states = {}
    for state in template.states:
        patterns = [compile_pattern(state.name, i, p) for i, p in enumerate(state.patterns)]
        states[state.name] = CompiledState(name=state.name, patterns=patterns)

    variable_types = {v.name: v.type for v in template.variables}

    compiled = CompiledTemplate(
        template=template,
        states=states,
        start_state=template.states[0].name,
        variable_types=variable_types,
    )

    logger.debug(
        "template_compiled",
        template_id=template.id,
        states=len(states),
        patterns=sum(len(s.patterns) for s in states.values()),
    )
    return compiled
