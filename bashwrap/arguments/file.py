# bashwrap/arguments/file.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from bashwrap.arguments.argument import Argument, Direction
from bashwrap.arguments.argument_registry import register_argument


@register_argument("file")
@dataclass(frozen=True)
class FileArgument(Argument):
    """
    Path to a file or directory.

    must_exist    : (input) fail when the path does not exist at runtime
    create_parent : (output) create the parent directory before running
    Container platforms mount every file argument automatically.
    """

    TYPE = "file"
    TYPE_LABEL = "file"

    must_exist: bool = False
    create_parent: bool = True

    @property
    def is_output(self) -> bool:
        return self.direction is Direction.OUTPUT

    def coerce(self, value: Any) -> str:
        if isinstance(value, (str, Path)):
            return str(value)
        raise ValueError("expected a path")

    def render(self, value: Any) -> str:
        return str(value)

    def to_python(self, expr: str) -> str:
        return expr

    def to_r(self, expr: str) -> str:
        return expr
