"""
TextFSM Import

Converts TextFSM templates into fsmparse templates using the textfsm
library to read the template.

Mapping:
- Values -> string variables
- States (declaration order, Start first) -> states
- Rules -> patterns using the expanded rule regex (named groups)
- Record -> emit, then clear every non-Filldown value
- Clear / Clearall -> clear non-Filldown / all values
- -> End / -> EOF -> end transition

Continue, Required, List, Fillup, Key and the implicit record at EOF have
no counterpart and are reported as warnings.
"""

from io import StringIO
from typing import List, Optional, Tuple

import textfsm

from .errors import TemplateError
from .logs import get_logger
from .models import (
    TRANSITION_END,
    Clear,
    Emit,
    Pattern,
    State,
    Template,
    Transition,
    Variable,
)

logger = get_logger(__name__)

END_STATES = ('End', 'EOF')
UNSUPPORTED_OPTIONS = ('Required', 'List', 'Fillup', 'Key')


def read_textfsm(template_content: str) -> textfsm.TextFSM:
    """Parse a TextFSM template, raising TemplateError when it is invalid."""
    try:
        return textfsm.TextFSM(StringIO(template_content))
    except textfsm.TextFSMTemplateError as e:
        raise TemplateError(f"Invalid TextFSM template: {e}")


def filldown_values(template_content: str) -> Tuple[List[str], List[str]]:
    """
    Split TextFSM values into Filldown and regular values.
    Returns (filldown_vars, regular_vars)
    """
    fsm = read_textfsm(template_content)
    filldown_vars = []
    regular_vars = []
    for value in fsm.values:
        if 'Filldown' in value.OptionNames():
            filldown_vars.append(value.name)
        else:
            regular_vars.append(value.name)
    return filldown_vars, regular_vars


def _record_actions(record_op: str, filldown_vars: List[str], all_vars: List[str]) -> list:
    transient = [v for v in all_vars if v not in filldown_vars]
    if record_op == 'Record':
        return [Emit()] + [Clear(variable=v) for v in transient]
    if record_op == 'Clear':
        return [Clear(variable=v) for v in transient]
    if record_op == 'Clearall':
        return [Clear(variable=v) for v in all_vars]
    return []


def _transition(new_state: str) -> Optional[Transition]:
    if not new_state:
        return None
    if new_state in END_STATES:
        return Transition(to=TRANSITION_END)
    return Transition(to=new_state)


def from_textfsm(template_content: str, template_id: str, name: Optional[str] = None,
                 vendor: str = 'generic', command: Optional[str] = None) -> Template:
    """Build a Template from TextFSM template text."""
    fsm = read_textfsm(template_content)

    all_vars = [value.name for value in fsm.values]
    filldown_vars = []
    for value in fsm.values:
        options = value.OptionNames()
        if 'Filldown' in options:
            filldown_vars.append(value.name)
        unsupported = [o for o in options if o in UNSUPPORTED_OPTIONS]
        if unsupported:
            logger.warning("textfsm_feature_unsupported", template_id=template_id,
                           value=value.name, options=unsupported)

    states = []
    for state_name in fsm.state_list:
        if state_name in END_STATES:
            continue

        patterns = []
        for rule in fsm.states[state_name]:
            if rule.line_op == 'Continue':
                logger.warning("textfsm_feature_unsupported", template_id=template_id,
                               state=state_name, rule=rule.match, line_op=rule.line_op)
            patterns.append(Pattern(
                regex=rule.regex,
                actions=_record_actions(rule.record_op, filldown_vars, all_vars),
                transition=_transition(rule.new_state),
            ))

        if patterns:
            states.append(State(name=state_name, patterns=patterns))

    return Template(
        id=template_id,
        name=name or template_id,
        vendor=vendor,
        command=command,
        variables=[Variable(name=v) for v in all_vars],
        states=states,
        metadata={'source': 'textfsm', 'filldown': filldown_vars},
    )
