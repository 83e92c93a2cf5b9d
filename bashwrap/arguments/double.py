# bashwrap/arguments/double.py
from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Any

from bashwrap.arguments.argument import NumericArgument
from bashwrap.arguments.argument_registry import register_argument


@register_argument("double")
@dataclass(frozen=True)
class DoubleArgument(NumericArgument):
    """Floating point number, e.g. `--real_number 10.5`."""

    TYPE = "double"
    TYPE_LABEL = "double"
    VALUE_CHECK = "bw_is_double"
    COMPARE = "double"

    def coerce(self, value: Any) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("expected a number")
        value = float(value)
        if math.isnan(value) or math.isinf(value):
            raise ValueError("nan and inf are not supported")
        return value

    def render(self, value: Any) -> str:
        return repr(float(value))

    def to_python(self, expr: str) -> str:
        return f"float({expr})"

    def to_r(self, expr: str) -> str:
        return f"as.numeric({expr})"
