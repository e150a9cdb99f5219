"""
Data Model

Author-facing template types, engine options and parse results.

Template documents use the JSON field names of existing template files
(``deviceOs``, ``fromGroup``, ...). The Python objects use snake_case and
convert with ``from_dict()`` / ``to_dict()``.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from .errors import TemplateError

TRANSITION_SELF = 'self'
TRANSITION_END = 'end'

VARIABLE_TYPES = ('string', 'number', 'ip', 'mac', 'vlan', 'list', 'boolean')


def _require(doc: Mapping, key: str, what: str):
    try:
        return doc[key]
    except KeyError:
        raise TemplateError(f"{what} is missing required field '{key}'")
    except TypeError:
        raise TemplateError(f"{what} must be a mapping, got {type(doc).__name__}")


# =============================================================================
# ACTIONS
# =============================================================================

@dataclass(frozen=True)
class Emit:
    """Snapshot the working variable set into the output records."""
    type = 'emit'


@dataclass(frozen=True)
class Set:
    """Assign a captured group value (``from_group``) or a literal value."""
    variable: str
    from_group: Optional[str] = None
    value: Any = None
    type = 'set'


@dataclass(frozen=True)
class Clear:
    """Remove a variable from the working set."""
    variable: str
    type = 'clear'


@dataclass(frozen=True)
class Append:
    """Add a value to a list variable, upgrading scalars to lists."""
    variable: str
    from_group: Optional[str] = None
    value: Any = None
    type = 'append'


Action = Union[Emit, Set, Clear, Append]

_ACTION_TYPES = {
    'emit': Emit,
    'set': Set,
    'clear': Clear,
    'append': Append,
}


def action_from_dict(doc: Mapping) -> Action:
    """Build the action variant named by ``doc['type']``."""
    action_type = _require(doc, 'type', 'Action')
    cls = _ACTION_TYPES.get(action_type)
    if cls is None:
        raise TemplateError(f"Unknown action type: {action_type!r}")

    if cls is Emit:
        return Emit()

    variable = _require(doc, 'variable', f"Action '{action_type}'")
    if cls is Clear:
        return Clear(variable=variable)

    return cls(variable=variable, from_group=doc.get('fromGroup') or None, value=doc.get('value'))


def action_to_dict(action: Action) -> Dict[str, Any]:
    out = {'type': action.type}
    if isinstance(action, Emit):
        return out
    out['variable'] = action.variable
    if isinstance(action, (Set, Append)):
        if action.from_group:
            out['fromGroup'] = action.from_group
        if action.value is not None:
            out['value'] = action.value
    return out


# =============================================================================
# TEMPLATE
# =============================================================================

@dataclass(frozen=True)
class Transition:
    to: str
    when: str = 'match'

    @classmethod
    def from_dict(cls, doc: Mapping) -> 'Transition':
        return cls(to=_require(doc, 'to', 'Transition'), when=doc.get('when') or 'match')

    def to_dict(self) -> Dict[str, Any]:
        return {'to': self.to, 'when': self.when}


@dataclass(frozen=True)
class Pattern:
    regex: str
    flags: Optional[str] = None
    map: Optional[Dict[str, str]] = None
    actions: List[Action] = field(default_factory=list)
    transition: Optional[Transition] = None

    @classmethod
    def from_dict(cls, doc: Mapping) -> 'Pattern':
        transition = doc.get('transition')
        return cls(
            regex=_require(doc, 'regex', 'Pattern'),
            flags=doc.get('flags') or None,
            map=dict(doc['map']) if doc.get('map') else None,
            actions=[action_from_dict(a) for a in doc.get('actions') or []],
            transition=Transition.from_dict(transition) if transition else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        out = {'regex': self.regex}
        if self.flags:
            out['flags'] = self.flags
        if self.map:
            out['map'] = dict(self.map)
        out['actions'] = [action_to_dict(a) for a in self.actions]
        if self.transition:
            out['transition'] = self.transition.to_dict()
        return out


@dataclass(frozen=True)
class State:
    name: str
    patterns: List[Pattern] = field(default_factory=list)

    @classmethod
    def from_dict(cls, doc: Mapping) -> 'State':
        return cls(
            name=_require(doc, 'name', 'State'),
            patterns=[Pattern.from_dict(p) for p in doc.get('patterns') or []],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'patterns': [p.to_dict() for p in self.patterns]}


@dataclass(frozen=True)
class Variable:
    name: str
    type: str = 'string'
    validation: Optional[Dict[str, Any]] = None
    description: str = ''

    @classmethod
    def from_dict(cls, doc: Mapping) -> 'Variable':
        return cls(
            name=_require(doc, 'name', 'Variable'),
            type=doc.get('type') or 'string',
            validation=doc.get('validation'),
            description=doc.get('description') or '',
        )

    def to_dict(self) -> Dict[str, Any]:
        out = {'name': self.name, 'type': self.type}
        if self.validation:
            out['validation'] = self.validation
        if self.description:
            out['description'] = self.description
        return out


@dataclass(frozen=True)
class Template:
    """
    Declarative description of how to parse one kind of command output.

    ``states[0]`` is the start state. Structural correctness (unique state
    names, known transition targets) is checked by ``validate_template``,
    not here.
    """
    id: str
    name: str
    states: List[State]
    vendor: str = 'generic'
    device_os: Optional[str] = None
    command: Optional[str] = None
    description: str = ''
    variables: List[Variable] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, doc: Mapping) -> 'Template':
        return cls(
            id=_require(doc, 'id', 'Template'),
            name=doc.get('name') or '',
            states=[State.from_dict(s) for s in doc.get('states') or []],
            vendor=doc.get('vendor') or 'generic',
            device_os=doc.get('deviceOs'),
            command=doc.get('command'),
            description=doc.get('description') or '',
            variables=[Variable.from_dict(v) for v in doc.get('variables') or []],
            metadata=dict(doc.get('metadata') or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        out = {
            'id': self.id,
            'name': self.name,
            'vendor': self.vendor,
        }
        if self.device_os:
            out['deviceOs'] = self.device_os
        if self.command:
            out['command'] = self.command
        if self.description:
            out['description'] = self.description
        if self.variables:
            out['variables'] = [v.to_dict() for v in self.variables]
        out['states'] = [s.to_dict() for s in self.states]
        if self.metadata:
            out['metadata'] = dict(self.metadata)
        return out


def as_template(template: Union[Template, Mapping]) -> Template:
    """Accept either a Template or its JSON document."""
    if isinstance(template, Template):
        return template
    return Template.from_dict(template)


# =============================================================================
# ENGINE OPTIONS & RESULTS
# =============================================================================

@dataclass(frozen=True)
class EngineOptions:
    debug: bool = False
    reset_on_emit: bool = False
    coerce_types: bool = False

    @classmethod
    def from_dict(cls, doc: Optional[Mapping]) -> 'EngineOptions':
        """Read camelCase (``resetOnEmit``) or snake_case option keys."""
        doc = doc or {}
        return cls(
            debug=bool(doc.get('debug', False)),
            reset_on_emit=bool(doc.get('resetOnEmit', doc.get('reset_on_emit', False))),
            coerce_types=bool(doc.get('coerceTypes', doc.get('coerce_types', False))),
        )


@dataclass
class TraceEntry:
    line_number: int
    line: str
    state: str
    matched: bool
    matched_pattern_index: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'lineNumber': self.line_number,
            'line': self.line,
            'state': self.state,
            'matched': self.matched,
            'matchedPatternIndex': self.matched_pattern_index,
        }


@dataclass
class ParseMeta:
    lines_processed: int = 0
    matches: int = 0
    errors: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        out = {'linesProcessed': self.lines_processed, 'matches': self.matches}
        if self.errors:
            out['errors'] = list(self.errors)
        return out


@dataclass
class ParseResult:
    template_id: str
    template_name: str
    records: List[Dict[str, Any]]
    meta: ParseMeta
    trace: Optional[List[TraceEntry]] = None

    def to_dict(self) -> Dict[str, Any]:
        out = {
            'templateId': self.template_id,
            'templateName': self.template_name,
            'records': [dict(r) for r in self.records],
            'meta': self.meta.to_dict(),
        }
        if self.trace is not None:
            out['trace'] = [t.to_dict() for t in self.trace]
        return out
