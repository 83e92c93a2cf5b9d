# bashwrap/arguments/argument_registry.py
from __future__ import annotations
from typing import Dict, Type, Optional


class ArgumentRegistry:
    _registry: Dict[str, Type] = {}

    @classmethod
    def register(cls, cls_obj: Type):
        key = getattr(cls_obj, "TYPE", None)
        if not key:
            raise ValueError(f"Argument class {cls_obj.__name__} missing TYPE")
        key = key.lower()
        if key in cls._registry and cls._registry[key] is not cls_obj:
            raise KeyError(f"Argument TYPE already registered: {key}")
        cls._registry[key] = cls_obj
        return cls_obj

    @classmethod
    def get(cls, key: str) -> Type:
        key = key.lower()
        if key not in cls._registry:
            raise KeyError(f"Unknown argument type: {key} (known: {', '.join(sorted(cls._registry))})")
        return cls._registry[key]

    @classmethod
    def all(cls) -> Dict[str, Type]:
        return dict(cls._registry)


def register_argument(type_name: Optional[str] = None):
    def deco(cls_obj: Type):
        if type_name:
            cls_obj.TYPE = type_name
        return ArgumentRegistry.register(cls_obj)
    return deco
