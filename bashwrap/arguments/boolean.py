# bashwrap/arguments/boolean.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, ClassVar, Optional

from bashwrap.errors import ConfigurationError
from bashwrap.arguments.argument import Argument, FlagKind
from bashwrap.arguments.argument_registry import register_argument

TRUE_WORDS = {"true", "yes"}
FALSE_WORDS = {"false", "no"}


@register_argument("boolean")
@dataclass(frozen=True)
class BooleanArgument(Argument):
    """
    boolean        : --reality true / --reality=no
    boolean_true   : --truth       (flag, stores true,  default false)
    boolean_false  : --falsehood   (flag, stores false, default true)
    """

    TYPE = "boolean"
    TYPE_LABEL = "boolean"
    VALUE_CHECK = "bw_is_boolean"
    # None = takes a value
    FLAG_VALUE: ClassVar[Optional[bool]] = None

    @property
    def is_flag(self) -> bool:
        return self.FLAG_VALUE is not None

    def validate(self) -> None:
        if not self.is_flag:
            return
        if self.kind is FlagKind.POSITIONAL:
            raise ConfigurationError(f"{self.name}: a {self.TYPE} argument must be a flag (--name)")
        if self.multiple:
            raise ConfigurationError(f"{self.name}: a {self.TYPE} argument cannot be multiple")
        if self.required:
            raise ConfigurationError(f"{self.name}: a {self.TYPE} argument cannot be required")
        if not self.default:
            object.__setattr__(self, "default", (not self.FLAG_VALUE,))

    def coerce(self, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            low = value.lower()
            if low in TRUE_WORDS:
                return True
            if low in FALSE_WORDS:
                return False
        raise ValueError("expected a boolean")

    def render(self, value: Any) -> str:
        return "true" if value else "false"

    def to_python(self, expr: str) -> str:
        return f"({expr}.lower() in ('true', 'yes'))"

    def to_r(self, expr: str) -> str:
        return f"(tolower({expr}) %in% c('true', 'yes'))"


@register_argument("boolean_true")
@dataclass(frozen=True)
class BooleanTrueArgument(BooleanArgument):
    TYPE = "boolean_true"
    TYPE_LABEL = "boolean_true"
    FLAG_VALUE = True


@register_argument("boolean_false")
@dataclass(frozen=True)
class BooleanFalseArgument(BooleanArgument):
    TYPE = "boolean_false"
    TYPE_LABEL = "boolean_false"
    FLAG_VALUE = False
