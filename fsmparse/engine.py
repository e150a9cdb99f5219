"""
FSM Execution Engine

Runs a compiled template over text, one line at a time:

1. Patterns of the current state are tried in order; the first match wins.
2. Named groups are bound into the working variable set (after ``map``).
3. The pattern's actions run in order (set / clear / append / emit).
4. The transition, if any, moves to another state or ends the parse.

Lines that match nothing leave the machine where it is.
"""

from typing import Any, Dict, List, Mapping, Optional, Union

import regex

from .cache import CompiledTemplateCache
from .coercion import coerce_value
from .compiler import CompiledPattern, CompiledTemplate, compile_template
from .errors import UnknownStateError
from .logs import get_logger
from .models import (
    TRANSITION_END,
    TRANSITION_SELF,
    Append,
    Clear,
    Emit,
    EngineOptions,
    ParseMeta,
    ParseResult,
    Set,
    Template,
    TraceEntry,
    as_template,
)

logger = get_logger(__name__)

LINE_BREAK_RE = regex.compile(r'\r?\n')


def split_lines(text: str) -> List[str]:
    """
    Split on ``\\r\\n`` or ``\\n``.

    One trailing empty segment left by a final line terminator is dropped,
    so ``"a\\n"`` is one line, ``"a\\n\\n"`` is two and ``""`` is none.
    """
    lines = LINE_BREAK_RE.split(text)
    if lines and lines[-1] == '':
        lines.pop()
    return lines


class _Run:
    """Mutable state of a single parse call."""

    def __init__(self, compiled: CompiledTemplate, options: EngineOptions):
        self.compiled = compiled
        self.options = options
        self.working: Dict[str, Any] = {}
        self.records: List[Dict[str, Any]] = []

    def coerce(self, variable: str, value: Any) -> Any:
        if not self.options.coerce_types:
            return value
        return coerce_value(value, self.compiled.variable_types.get(variable))

    def bind_groups(self, pattern: CompiledPattern, groups: Dict[str, Optional[str]]):
        rename = pattern.map or {}
        for group_name, value in groups.items():
            variable = rename.get(group_name) or group_name
            self.working[variable] = self.coerce(variable, value)

    def append(self, variable: str, value: Any):
        if (self.options.coerce_types and isinstance(value, list)
                and self.compiled.variable_types.get(variable) == 'list'):
            new_items = value
        else:
            new_items = [value]

        # Lists are replaced, not extended in place: emitted records hold
        # shallow copies and must not change after the emit.
        current = self.working.get(variable)
        if variable not in self.working:
            self.working[variable] = list(new_items)
        elif isinstance(current, list):
            self.working[variable] = current + new_items
        else:
            self.working[variable] = [current] + new_items

    def emit(self):
        self.records.append(dict(self.working))
        if self.options.reset_on_emit:
            self.working.clear()

    def run_actions(self, pattern: CompiledPattern, groups: Dict[str, Optional[str]]):
        for action in pattern.actions:
            if isinstance(action, Emit):
                self.emit()
            elif isinstance(action, Set):
                value = groups.get(action.from_group) if action.from_group else action.value
                self.working[action.variable] = self.coerce(action.variable, value)
            elif isinstance(action, Clear):
                self.working.pop(action.variable, None)
            elif isinstance(action, Append):
                value = groups.get(action.from_group) if action.from_group else action.value
                self.append(action.variable, self.coerce(action.variable, value))
            else:
                raise TypeError(f"Unhandled action: {action!r}")


class FsmEngine:
    """
    Template-driven line parser.

    Each engine owns a compiled template cache; pass one in to share it
    between engines, or leave it out for an isolated cache.
    """

    def __init__(self, cache: Optional[CompiledTemplateCache] = None):
        self.cache = cache if cache is not None else CompiledTemplateCache()

    def compile(self, template: Union[Template, Mapping]) -> CompiledTemplate:
        """Compile (or fetch from cache) a template."""
        template = as_template(template)
        return self.cache.get_or_compile(template.id, lambda: compile_template(template))

    def invalidate(self, template_id: str) -> bool:
        return self.cache.invalidate(template_id)

    def clear_cache(self) -> None:
        self.cache.clear()

    def parse(
            self,
            text: str,
            template: Union[Template, Mapping],
            options: Optional[Union[EngineOptions, Mapping]] = None
    ) -> ParseResult:
        """
        Parse text with a template.

        Raises InvalidPatternError when the template does not compile. A
        transition to an unknown state does not raise: parsing stops and the
        error is reported in ``result.meta.errors`` alongside the records
        emitted so far.
        """
        template = as_template(template)
        if not isinstance(options, EngineOptions):
            options = EngineOptions.from_dict(options)

        compiled = self.compile(template)
        lines = split_lines(text)
        run = _Run(compiled, options)
        trace: Optional[List[TraceEntry]] = [] if options.debug else None

        current_state = compiled.start_state
        lines_processed = 0
        matches = 0
        errors: List[str] = []

        for line_number, line in enumerate(lines, 1):
            lines_processed += 1

            state = compiled.states.get(current_state)
            if state is None:
                error = UnknownStateError(current_state)
                logger.warning("unknown_state", template_id=template.id, state=current_state,
                               line_number=line_number)
                errors.append(str(error))
                if trace is not None:
                    trace.append(TraceEntry(line_number, line, current_state, False))
                break

            matched = None
            for pattern in state.patterns:
                m = pattern.regex.search(line)
                if m is None:
                    continue

                matched = pattern
                matches += 1
                groups = m.groupdict()
                run.bind_groups(pattern, groups)
                run.run_actions(pattern, groups)
                break

            if trace is not None:
                trace.append(TraceEntry(
                    line_number, line, state.name, matched is not None,
                    matched.index if matched is not None else None,
                ))

            if matched is None or matched.transition is None:
                continue

            transition = matched.transition
            if transition.when not in ('match', 'always'):
                continue
            if transition.to == TRANSITION_SELF:
                continue
            if transition.to == TRANSITION_END:
                lines_processed = len(lines)
                break
            current_state = transition.to

        result = ParseResult(
            template_id=template.id,
            template_name=template.name,
            records=run.records,
            meta=ParseMeta(
                lines_processed=lines_processed,
                matches=matches,
                errors=errors or None,
            ),
            trace=trace,
        )

        logger.debug(
            "parse_completed",
            template_id=template.id,
            records=len(run.records),
            lines_processed=lines_processed,
            matches=matches,
            final_state=current_state,
        )
        return result


_default_engine = FsmEngine()


def parse(
        text: str,
        template: Union[Template, Mapping],
        options: Optional[Union[EngineOptions, Mapping]] = None
) -> ParseResult:
    """Parse with the process-wide default engine."""
    return _default_engine.parse(text, template, options)


def default_engine() -> FsmEngine:
    return _default_engine
