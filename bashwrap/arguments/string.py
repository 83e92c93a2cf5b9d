# bashwrap/arguments/string.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Tuple

from bashwrap.errors import ConfigurationError
from bashwrap.arguments.argument import Argument, _as_tuple
from bashwrap.arguments.argument_registry import register_argument


@register_argument("string")
@dataclass(frozen=True)
class StringArgument(Argument):
    TYPE = "string"
    TYPE_LABEL = "string"

    choice_values: Tuple[str, ...] = field(default=())

    @property
    def choices(self) -> Tuple[str, ...]:
        return self.choice_values

    def validate(self) -> None:
        object.__setattr__(self, "choice_values", tuple(self._coerce_each(_as_tuple(self.choice_values), "choice")))
        for v in self.default:
            if self.choice_values and v not in self.choice_values:
                raise ConfigurationError(
                    f"{self.name}: default {v!r} is not one of the choices {list(self.choice_values)}"
                )

    def coerce(self, value: Any) -> str:
        # yaml이 숫자로 읽은 값도 문자열로 허용 (default: 10)
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (str, int, float)):
            return str(value)
        raise ValueError("expected a string")

    def render(self, value: Any) -> str:
        return str(value)

    def to_python(self, expr: str) -> str:
        return expr

    def to_r(self, expr: str) -> str:
        return expr
