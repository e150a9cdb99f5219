"""
Template Validation

Authoring-time checks for template documents. The engine does not repeat
these checks, so run them before handing a template to ``FsmEngine``.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Union

import regex

from .compiler import translate_flags
from .models import TRANSITION_END, TRANSITION_SELF, VARIABLE_TYPES, Template

ACTION_TYPES = ('emit', 'set', 'clear', 'append')


@dataclass
class ValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        if self.valid:
            return {'valid': True}
        return {'valid': False, 'errors': list(self.errors)}

    def __bool__(self):
        return self.valid


def _check_pattern(state_name: str, index: int, pattern: Any, state_names, errors: List[str]):
    if not isinstance(pattern, Mapping):
        errors.append(f"Pattern {index} in state {state_name} is not an object")
        return

    source = pattern.get('regex')
    if not isinstance(source, str) or not source:
        errors.append(f"Pattern {index} in state {state_name} has no regex")
    else:
        try:
            regex.compile(source, translate_flags(pattern.get('flags')))
        except (regex.error, ValueError) as e:
            errors.append(f"Invalid regex in state {state_name}: {e}")

    for action in pattern.get('actions') or []:
        action_type = action.get('type') if isinstance(action, Mapping) else None
        if action_type not in ACTION_TYPES:
            errors.append(f"Unknown action type {action_type!r} in state {state_name}")
        elif action_type != 'emit' and not action.get('variable'):
            errors.append(f"Action '{action_type}' in state {state_name} has no variable")

    transition = pattern.get('transition')
    if transition:
        target = transition.get('to') if isinstance(transition, Mapping) else None
        if not target:
            errors.append(f"Transition in state {state_name} has no target")
        elif target not in (TRANSITION_SELF, TRANSITION_END) and target not in state_names:
            errors.append(f"Transition from {state_name} to unknown state {target}")


def validate_template(template: Union[Template, Mapping]) -> ValidationResult:
    """
    Check a template document.

    Returns ``ValidationResult(valid=True)`` or a result listing every
    problem found: missing id/name/vendor, unknown variable types, no
    states, unnamed or duplicate states, states without patterns, regexes
    that do not compile, malformed actions and transitions to states that
    do not exist.
    """
    doc = template.to_dict() if isinstance(template, Template) else template
    errors = []

    if not isinstance(doc, Mapping):
        return ValidationResult(False, ['Template must be an object'])

    if not doc.get('id'):
        errors.append('Missing template id')
    if not doc.get('name'):
        errors.append('Missing template name')
    if not doc.get('vendor'):
        errors.append('Missing vendor')

    states = doc.get('states') or []
    if not states:
        errors.append('Template must define at least one state')

    for variable in doc.get('variables') or []:
        var_type = variable.get('type') if isinstance(variable, Mapping) else None
        if not isinstance(variable, Mapping) or not variable.get('name'):
            errors.append('Variable without a name')
        elif var_type and var_type not in VARIABLE_TYPES:
            errors.append(f"Variable {variable['name']} has unknown type {var_type}")

    state_names = set()
    for state in states:
        name = state.get('name') if isinstance(state, Mapping) else None
        if name in state_names:
            errors.append(f"Duplicate state name {name}")
        if name:
            state_names.add(name)

    for state in states:
        if not isinstance(state, Mapping):
            errors.append('State must be an object')
            continue
        if not state.get('name'):
            errors.append('State without a name')

        patterns = state.get('patterns')
        if not patterns:
            errors.append(f"State {state.get('name')} has no patterns")
            continue
        for index, pattern in enumerate(patterns):
            _check_pattern(state.get('name'), index, pattern, state_names, errors)

    if errors:
        return ValidationResult(False, errors)
    return ValidationResult(True)
