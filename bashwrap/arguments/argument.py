# bashwrap/arguments/argument.py
from __future__ import annotations

import abc
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Iterable, List, Optional, Sequence, Tuple

from bashwrap.errors import ConfigurationError

# ---- 변수 이름 규칙 ----
PAR_PREFIX = "BW_PAR_"
META_PREFIX = "BW_META_"

# flags handled by the wrapper itself
RESERVED_FLAGS = {"-h", "--help", "--version"}

META_VARIABLES: Tuple[str, ...] = (
    "BW_META_FUNCTIONALITY_NAME",
    "BW_META_RESOURCES_DIR",
    "BW_META_EXECUTABLE",
    "BW_META_TEMP_DIR",
    "BW_META_N_PROC",
    "BW_META_MEMORY",
    "BW_META_MEMORY_B",
    "BW_META_MEMORY_KB",
    "BW_META_MEMORY_MB",
    "BW_META_MEMORY_GB",
    "BW_META_MEMORY_TB",
    "BW_META_MEMORY_PB",
)

_NAME_RX = re.compile(r"^(-{1,2})?[A-Za-z0-9_][A-Za-z0-9_-]*$")


class Direction(str, Enum):
    INPUT = "input"
    OUTPUT = "output"


class FlagKind(str, Enum):
    LONG = "long"
    SHORT = "short"
    POSITIONAL = "positional"


def flag_kind(name: str) -> FlagKind:
    if name.startswith("--"):
        return FlagKind.LONG
    if name.startswith("-"):
        return FlagKind.SHORT
    return FlagKind.POSITIONAL


def _as_tuple(value: Any) -> Tuple[Any, ...]:
    """scalar | list | None -> tuple"""
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(value)
    return (value,)


# ---- Base Argument ----
@dataclass(frozen=True)
class Argument(abc.ABC):
    """
    One CLI parameter of a component.

    The number of leading dashes of `name` decides how values are passed:
      --foo   long option   (--foo value, --foo=value)
      -f      short option  (-f value)
      foo     positional    (value)

    Subclasses define TYPE and the per-kind lowering (coerce / render /
    to_python / to_r). Validation data (choices, min, max) is read by the
    wrapper templates.
    """

    TYPE: ClassVar[str]
    TYPE_LABEL: ClassVar[str]
    # bash predicate used to type-check one value; None = any string
    VALUE_CHECK: ClassVar[Optional[str]] = None
    COMPARE: ClassVar[Optional[str]] = None

    name: str
    alternatives: Tuple[str, ...] = ()
    description: Optional[str] = None
    example: Tuple[Any, ...] = ()
    default: Tuple[Any, ...] = ()
    required: bool = False
    direction: Direction = Direction.INPUT
    multiple: bool = False
    multiple_sep: str = ":"

    def __post_init__(self):
        object.__setattr__(self, "alternatives", tuple(str(a) for a in _as_tuple(self.alternatives)))
        object.__setattr__(self, "direction", self._direction(self.direction))
        self._check_names()
        if not isinstance(self.multiple_sep, str) or len(self.multiple_sep) != 1:
            raise ConfigurationError(
                f"{self.name}: multiple_sep must be a single character, got {self.multiple_sep!r}"
            )
        object.__setattr__(self, "default", tuple(self._coerce_each(_as_tuple(self.default), "default")))
        object.__setattr__(self, "example", tuple(self._coerce_each(_as_tuple(self.example), "example")))
        if self.required and self.default:
            raise ConfigurationError(f"{self.name}: a required argument cannot have a default value")
        if len(self.default) > 1 and not self.multiple:
            raise ConfigurationError(f"{self.name}: multiple default values given but multiple is false")
        self.validate()

    # ---- init helpers ----
    def _direction(self, value) -> Direction:
        try:
            return Direction(value.value if isinstance(value, Direction) else str(value).lower())
        except ValueError:
            raise ConfigurationError(f"{self.name}: direction must be 'input' or 'output', got {value!r}")

    def _check_names(self) -> None:
        for spelling in (self.name, *self.alternatives):
            if spelling.startswith("---"):
                raise ConfigurationError(
                    f"Argument name '{spelling}' uses the '---' prefix, which is reserved for meta flags"
                )
            if not _NAME_RX.match(spelling):
                raise ConfigurationError(f"Invalid argument name '{spelling}'")
        if self.alternatives and self.kind is FlagKind.POSITIONAL:
            raise ConfigurationError(f"Positional argument '{self.name}' cannot have alternatives")
        for alt in self.alternatives:
            if flag_kind(alt) is FlagKind.POSITIONAL:
                raise ConfigurationError(f"{self.name}: alternative '{alt}' must start with '-' or '--'")

    def _coerce_each(self, values: Iterable[Any], what: str) -> List[Any]:
        out = []
        for v in values:
            try:
                out.append(self.coerce(v))
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"{self.name}: invalid {what} {v!r}: {e}")
        return out

    def validate(self) -> None:
        """Extra per-kind consistency checks (choices, ranges)."""

    # ---- derived ----
    @property
    def kind(self) -> FlagKind:
        return flag_kind(self.name)

    @property
    def plain_name(self) -> str:
        return self.name.lstrip("-").replace("-", "_")

    @property
    def env_name(self) -> str:
        return PAR_PREFIX + self.plain_name.upper()

    @property
    def flag_forms(self) -> List[Tuple[str, FlagKind]]:
        return [(n, flag_kind(n)) for n in (self.name, *self.alternatives)]

    @property
    def is_flag(self) -> bool:
        """valueless flag (--truth): boolean_true / boolean_false only"""
        return False

    @property
    def choices(self) -> Tuple[Any, ...]:
        return ()

    @property
    def min(self):
        return None

    @property
    def max(self):
        return None

    def render_default(self) -> Optional[str]:
        if not self.default:
            return None
        return self.multiple_sep.join(self.render(v) for v in self.default)

    # ---- per-kind lowering ----
    @abc.abstractmethod
    def coerce(self, value: Any) -> Any:
        """Convert a config value (yaml scalar) to this kind, raise ValueError otherwise."""

    @abc.abstractmethod
    def render(self, value: Any) -> str:
        """Text form of a value as the wrapper stores it."""

    @abc.abstractmethod
    def to_python(self, expr: str) -> str:
        """Python expression converting string `expr` to this kind."""

    @abc.abstractmethod
    def to_r(self, expr: str) -> str:
        """R expression converting character `expr` to this kind."""


# ---- numeric mixin-ish base ----
@dataclass(frozen=True)
class NumericArgument(Argument):
    min_value: Optional[Any] = None
    max_value: Optional[Any] = None
    choice_values: Tuple[Any, ...] = field(default=())

    @property
    def choices(self) -> Tuple[Any, ...]:
        return self.choice_values

    @property
    def min(self):
        return self.min_value

    @property
    def max(self):
        return self.max_value

    def validate(self) -> None:
        object.__setattr__(self, "choice_values", tuple(self._coerce_each(_as_tuple(self.choice_values), "choice")))
        if self.min_value is not None:
            object.__setattr__(self, "min_value", self._coerce_each([self.min_value], "min")[0])
        if self.max_value is not None:
            object.__setattr__(self, "max_value", self._coerce_each([self.max_value], "max")[0])
        if self.min_value is not None and self.max_value is not None and self.min_value > self.max_value:
            raise ConfigurationError(f"{self.name}: min ({self.min_value}) is larger than max ({self.max_value})")
        for v in self.default:
            if self.choice_values and v not in self.choice_values:
                raise ConfigurationError(f"{self.name}: default {v!r} is not one of the choices {list(self.choice_values)}")
            if self.min_value is not None and v < self.min_value:
                raise ConfigurationError(f"{self.name}: default {v!r} is smaller than min {self.min_value!r}")
            if self.max_value is not None and v > self.max_value:
                raise ConfigurationError(f"{self.name}: default {v!r} is larger than max {self.max_value!r}")


# ---- argument list checks ----
def check_arguments(arguments: Sequence[Argument]) -> None:
    """
    Configuration errors that involve more than one argument:
      - a flag spelling used twice, or one of the wrapper's own flags
      - two arguments sharing an environment variable
      - a multiple positional that is not the last positional
    """
    seen_flags: Dict[str, str] = {}
    seen_env: Dict[str, str] = {}
    for arg in arguments:
        for spelling, _ in arg.flag_forms:
            if spelling in RESERVED_FLAGS:
                raise ConfigurationError(f"Argument '{arg.name}': '{spelling}' is reserved by the wrapper")
            if spelling in seen_flags:
                raise ConfigurationError(
                    f"Argument '{arg.name}': '{spelling}' is already used by '{seen_flags[spelling]}'"
                )
            seen_flags[spelling] = arg.name
        env = arg.env_name
        if env in META_VARIABLES:
            raise ConfigurationError(f"Argument '{arg.name}' collides with reserved variable {env}")
        if env in seen_env:
            raise ConfigurationError(
                f"Arguments '{seen_env[env]}' and '{arg.name}' both map to variable {env}"
            )
        seen_env[env] = arg.name

    positionals = [a for a in arguments if a.kind is FlagKind.POSITIONAL]
    for i, arg in enumerate(positionals):
        if arg.multiple and i != len(positionals) - 1:
            raise ConfigurationError(
                f"Positional argument '{arg.name}' has multiple: true but is not the last positional argument"
            )
