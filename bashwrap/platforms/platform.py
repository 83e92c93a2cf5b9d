# bashwrap/platforms/platform.py
from __future__ import annotations
import abc
from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Any, ClassVar, Dict, List

from bashwrap.errors import ConfigurationError
from bashwrap.version import __version__
from bashwrap.wrapper.bash_wrapper import wrap_script
from bashwrap.wrapper.mods import Modification

if TYPE_CHECKING:
    from bashwrap.component import Component


# ---- Registry ----
class PlatformRegistry:
    _reg: Dict[str, type] = {}

    @classmethod
    def register(cls, t: type):
        name = getattr(t, "TYPE", None)
        if not name:
            raise ValueError("Platform class must define TYPE")
        if name in cls._reg and cls._reg[name] is not t:
            raise ValueError(f"Platform TYPE already registered: {name}")
        cls._reg[name] = t
        return t

    @classmethod
    def get(cls, name: str):
        if name not in cls._reg:
            raise ConfigurationError(f"Unknown platform type: {name} (known: {', '.join(sorted(cls._reg))})")
        return cls._reg[name]


# ---- Base Platform ----
@dataclass
class Platform(abc.ABC):
    """
    Environment a component runs in.

    A platform turns a component into the wrapper text by handing the
    generator an executor prefix, its merged Modification and the bash
    functions it needs before parsing.
    """

    TYPE: ClassVar[str]

    id: str = ""

    def __post_init__(self):
        self.id = self.id or self.TYPE

    @abc.abstractmethod
    def modifications(self, component: "Component") -> Modification:
        ...

    def executor(self, component: "Component") -> str:
        return ""

    def setup_functions(self, component: "Component") -> str:
        return ""

    def help_extra(self) -> List[str]:
        return []

    def generate(self, component: "Component") -> str:
        main = component.main_script
        return wrap_script(
            name=component.name,
            version=component.version,
            description=component.description,
            arguments=component.arguments,
            command=main.command(),
            executor=self.executor(component),
            mods=self.modifications(component),
            setup_functions=self.setup_functions(component),
            n_proc=component.requirements.n_proc,
            memory=component.requirements.memory,
            executable_args=main.PASS_ARGUMENTS,
            help_extra=self.help_extra(),
            generator_version=__version__,
        )


def platform_from_dict(spec: Dict[str, Any]) -> Platform:
    """{'type': 'docker', 'image': 'bash:4.0'} -> DockerPlatform"""
    if not isinstance(spec, dict):
        raise ConfigurationError(f"Platform definition must be a mapping, got {spec!r}")
    spec = dict(spec)
    type_name = str(spec.pop("type", "native"))
    cls = PlatformRegistry.get(type_name)
    allowed = {f.name for f in fields(cls)}
    unknown = set(spec) - allowed
    if unknown:
        raise ConfigurationError(f"Unknown field(s) for {type_name} platform: {', '.join(sorted(unknown))}")
    return cls(**spec)
