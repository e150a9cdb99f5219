"""Starter templates built from a few descriptive fields."""

import time
from typing import Optional

from .models import Pattern, Set, State, Template, Transition


def build_line_template(template_id: Optional[str] = None, name: Optional[str] = None,
                        vendor: str = 'generic', command: Optional[str] = None,
                        device_os: Optional[str] = None) -> Template:
    """
    Build a one-state template that captures every line as ``line``.

    Useful as a starting point when authoring a new template. The id falls
    back to the name, then to ``tpl_<epoch millis>``.
    """
    template_id = template_id or name or f"tpl_{int(time.time() * 1000)}"

    return Template(
        id=template_id,
        name=name or template_id,
        vendor=vendor or 'generic',
        command=command,
        device_os=device_os,
        states=[
            State(
                name='start',
                patterns=[
                    Pattern(
                        regex='^(?<line>.*)$',
                        actions=[Set(variable='line', from_group='line')],
                        transition=Transition(to='self'),
                    ),
                ],
            ),
        ],
    )
