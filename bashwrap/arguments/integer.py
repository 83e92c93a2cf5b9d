# bashwrap/arguments/integer.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Any

from bashwrap.arguments.argument import NumericArgument
from bashwrap.arguments.argument_registry import register_argument


@register_argument("integer")
@dataclass(frozen=True)
class IntegerArgument(NumericArgument):
    """Whole number, e.g. `--core_amount 16`."""

    TYPE = "integer"
    TYPE_LABEL = "integer"
    VALUE_CHECK = "bw_is_integer"
    COMPARE = "integer"

    def coerce(self, value: Any) -> int:
        # bool은 int의 서브클래스라서 먼저 걸러냄
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError("expected an integer")
        return value

    def render(self, value: Any) -> str:
        return str(value)

    def to_python(self, expr: str) -> str:
        return f"int({expr})"

    def to_r(self, expr: str) -> str:
        return f"as.integer({expr})"
