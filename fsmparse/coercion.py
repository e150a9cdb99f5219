"""
Type Coercion

Converts captured strings according to a template variable's declared type.
Only ``number`` and ``list`` change values; every other type passes through.
"""

import math
import re
from typing import Any, List, Optional, Union

INTEGER_RE = re.compile(r'[+-]?[0-9]+')
DECIMAL_RE = re.compile(r'[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?')


def to_number(value: str) -> Union[int, float, str]:
    """Parse a plain ASCII int or float, returning the original string on failure."""
    text = value.strip()
    if INTEGER_RE.fullmatch(text):
        return int(text)
    if DECIMAL_RE.fullmatch(text):
        number = float(text)
        if math.isfinite(number):
            return number
    return value


def to_list(value: str) -> List[str]:
    """Split on commas, trimming pieces and dropping empty ones."""
    return [piece.strip() for piece in value.split(',') if piece.strip()]


def coerce_value(value: Any, var_type: Optional[str]) -> Any:
    """
    Coerce one value for a variable of ``var_type``.

    Non-string values are returned unchanged, so coercing twice gives the
    same result as coercing once.
    """
    if not isinstance(value, str):
        return value
    if var_type == 'number':
        return to_number(value)
    if var_type == 'list':
        return to_list(value)
    return value
