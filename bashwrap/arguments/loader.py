# bashwrap/arguments/loader.py
from __future__ import annotations
import dataclasses
from typing import Any, Dict, Iterable, List

from bashwrap.errors import ConfigurationError
from bashwrap.arguments.argument import Argument, check_arguments
from bashwrap.arguments.argument_registry import ArgumentRegistry

# 레지스트리 등록을 위해 모든 종류를 import
from bashwrap.arguments import boolean, double, file, integer, string  # noqa: F401

# yaml key -> dataclass field
_RENAMES = {
    "choices": "choice_values",
    "min": "min_value",
    "max": "max_value",
}


def argument_from_dict(spec: Dict[str, Any]) -> Argument:
    """
    {'name': '--whole_number', 'type': 'integer', 'min': 0} -> IntegerArgument
    `type` defaults to string.
    """
    if not isinstance(spec, dict):
        raise ConfigurationError(f"Argument definition must be a mapping, got {spec!r}")
    spec = dict(spec)
    type_name = str(spec.pop("type", "string"))
    try:
        cls = ArgumentRegistry.get(type_name)
    except KeyError as e:
        raise ConfigurationError(str(e.args[0]))

    if "name" not in spec:
        raise ConfigurationError(f"Argument of type {type_name} has no name")

    allowed = {f.name for f in dataclasses.fields(cls)}
    kwargs: Dict[str, Any] = {}
    for key, val in spec.items():
        field_name = _RENAMES.get(key, key)
        if field_name not in allowed:
            raise ConfigurationError(f"Argument '{spec['name']}': unknown field '{key}' for type {type_name}")
        kwargs[field_name] = val
    return cls(**kwargs)


def arguments_from_list(specs: Iterable[Dict[str, Any]]) -> List[Argument]:
    args = [argument_from_dict(s) for s in (specs or [])]
    check_arguments(args)
    return args
