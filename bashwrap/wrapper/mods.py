# bashwrap/wrapper/mods.py
from __future__ import annotations
from dataclasses import dataclass
from functools import reduce
from typing import Iterable, Tuple

from bashwrap.arguments.argument import Argument


def join_sections(*parts: str) -> str:
    """Join non-empty fragments with a newline."""
    return "\n".join(p for p in parts if p)


@dataclass(frozen=True)
class Modification:
    """
    Text fragments an environment layer splices into the generated wrapper.

      pre_parse    : before the argument parser loop (helpers, initialisation)
      parsers      : extra `case` branches inside the parser loop
      post_parse   : after the core validation, before the invocation
      extra_params : appended verbatim to the executor command line
      inputs       : extra (dummy) arguments the core parser has to handle

    Modifications form a monoid under `combine` with EMPTY as identity.
    """

    pre_parse: str = ""
    parsers: str = ""
    post_parse: str = ""
    extra_params: str = ""
    inputs: Tuple[Argument, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "inputs", tuple(self.inputs))

    def __add__(self, other: "Modification") -> "Modification":
        return combine(self, other)


EMPTY = Modification()


def combine(a: Modification, b: Modification) -> Modification:
    return Modification(
        pre_parse=join_sections(a.pre_parse, b.pre_parse),
        parsers=join_sections(a.parsers, b.parsers),
        post_parse=join_sections(a.post_parse, b.post_parse),
        # command line: 공백 포함 그대로 이어붙임
        extra_params=a.extra_params + b.extra_params,
        inputs=a.inputs + b.inputs,
    )


def combine_all(mods: Iterable[Modification]) -> Modification:
    return reduce(combine, mods, EMPTY)
