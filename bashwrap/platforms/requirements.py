# bashwrap/platforms/requirements.py
from __future__ import annotations
import abc
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

from bashwrap.errors import ConfigurationError
from bashwrap.utils.escape import squote


def as_list(value: Any) -> List[str]:
    """
    - None → []
    - 'a' → ['a']
    - ['a','b'] → ['a','b']
    """
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [str(x) for x in value]
    raise ConfigurationError(f"Expected a string or a list of strings, got {value!r}")


# ---- Registry ----
class RequirementRegistry:
    _reg: Dict[str, type] = {}

    @classmethod
    def register(cls, t: type):
        name = getattr(t, "TYPE", None)
        if not name:
            raise ValueError("Requirement class must define TYPE")
        cls._reg[name] = t
        return t

    @classmethod
    def get(cls, name: str):
        if name not in cls._reg:
            raise ConfigurationError(f"Unknown setup requirement type: {name}")
        return cls._reg[name]


class Requirement(abc.ABC):
    TYPE: str

    @abc.abstractmethod
    def dockerfile_lines(self) -> List[str]:
        """Lines appended to the Dockerfile, after FROM."""

    def docker_build_args(self) -> List[str]:
        return []


@RequirementRegistry.register
@dataclass
class ApkRequirement(Requirement):
    TYPE = "apk"
    packages: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.packages = as_list(self.packages)

    def dockerfile_lines(self) -> List[str]:
        if not self.packages:
            return []
        return ["RUN apk add --no-cache " + " ".join(self.packages)]


@RequirementRegistry.register
@dataclass
class AptRequirement(Requirement):
    TYPE = "apt"
    packages: List[str] = field(default_factory=list)
    interactive: bool = False

    def __post_init__(self):
        self.packages = as_list(self.packages)

    def dockerfile_lines(self) -> List[str]:
        if not self.packages:
            return []
        frontend = "" if self.interactive else "DEBIAN_FRONTEND=noninteractive "
        return [
            "RUN apt-get update && \\\n"
            f"  {frontend}apt-get install -y {' '.join(self.packages)} && \\\n"
            "  rm -rf /var/lib/apt/lists/*"
        ]


@RequirementRegistry.register
@dataclass
class PythonRequirement(Requirement):
    TYPE = "python"
    packages: List[str] = field(default_factory=list)
    git: List[str] = field(default_factory=list)
    url: List[str] = field(default_factory=list)
    user: bool = False
    upgrade: bool = True

    def __post_init__(self):
        self.packages = as_list(self.packages)
        self.git = as_list(self.git)
        self.url = as_list(self.url)

    def dockerfile_lines(self) -> List[str]:
        pkgs = self.packages + [f"git+{g}" for g in self.git] + self.url
        if not pkgs:
            return []
        opts = " --user" if self.user else ""
        opts += " --upgrade" if self.upgrade else ""
        quoted = " ".join(squote(p) for p in pkgs)
        return [f"RUN pip install --upgrade pip && \\\n  pip install{opts} --no-cache-dir {quoted}"]


@RequirementRegistry.register
@dataclass
class RRequirement(Requirement):
    TYPE = "r"
    cran: List[str] = field(default_factory=list)
    bioc: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.cran = as_list(self.cran)
        self.bioc = as_list(self.bioc)

    def dockerfile_lines(self) -> List[str]:
        lines = []
        if self.cran:
            pkgs = ", ".join(f'"{p}"' for p in self.cran)
            lines.append(f"RUN Rscript -e 'install.packages(c({pkgs}), repos = \"https://cloud.r-project.org\")'")
        if self.bioc:
            pkgs = ", ".join(f'"{p}"' for p in self.bioc)
            lines.append(
                "RUN Rscript -e 'if (!requireNamespace(\"BiocManager\", quietly = TRUE)) "
                "install.packages(\"BiocManager\", repos = \"https://cloud.r-project.org\")' && \\\n"
                f"  Rscript -e 'BiocManager::install(c({pkgs}))'"
            )
        return lines


@RequirementRegistry.register
@dataclass
class DockerRequirement(Requirement):
    """Raw Dockerfile instructions: env / copy / run, and docker build --build-arg values."""
    TYPE = "docker"
    env: List[str] = field(default_factory=list)
    copy: List[str] = field(default_factory=list)
    run: List[str] = field(default_factory=list)
    build_args: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.env = as_list(self.env)
        self.copy = as_list(self.copy)
        self.run = as_list(self.run)
        self.build_args = as_list(self.build_args)

    def dockerfile_lines(self) -> List[str]:
        lines = [f"ARG {a.split('=', 1)[0]}" for a in self.build_args]
        lines += [f"ENV {e}" for e in self.env]
        lines += [f"COPY {c}" for c in self.copy]
        lines += [f"RUN {r}" for r in self.run]
        return lines

    def docker_build_args(self) -> List[str]:
        return list(self.build_args)


def requirement_from_dict(spec: Dict[str, Any], type_name: Optional[str] = None) -> Requirement:
    if not isinstance(spec, dict):
        raise ConfigurationError(f"Setup requirement must be a mapping, got {spec!r}")
    spec = dict(spec)
    type_name = type_name or spec.pop("type", None)
    spec.pop("type", None)
    if not type_name:
        raise ConfigurationError(f"Setup requirement without type: {spec!r}")
    cls = RequirementRegistry.get(str(type_name))
    allowed = {f.name for f in fields(cls)}
    unknown = set(spec) - allowed
    if unknown:
        raise ConfigurationError(f"Unknown field(s) for {type_name} requirement: {', '.join(sorted(unknown))}")
    return cls(**spec)
