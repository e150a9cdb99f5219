"""
Errors

Exception types raised while loading, compiling and running templates.
"""


class FsmParseError(Exception):
    """Base class for every error raised by fsmparse."""


class TemplateError(FsmParseError):
    """A template document could not be turned into a usable template."""


class InvalidPatternError(TemplateError):
    """A pattern's regex source (or flags) does not compile."""

    def __init__(self, state_name: str, pattern_index: int, message: str):
        self.state_name = state_name
        self.pattern_index = pattern_index
        self.message = message
        super().__init__(
            f"Invalid regex in state {state_name} (pattern {pattern_index}): {message}"
        )


class UnknownStateError(FsmParseError):
    """A transition named a state that is not in the compiled state table.

    Never raised out of a parse; the engine records ``str(error)`` in the
    result's ``meta.errors`` instead.
    """

    def __init__(self, state_name: str):
        self.state_name = state_name
        super().__init__(f"Unknown state: {state_name}")

    def __str__(self):
        return f"{type(self).__name__}: {self.args[0]}"
