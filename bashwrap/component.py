# bashwrap/component.py
from __future__ import annotations
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from bashwrap.arguments.argument import Argument, check_arguments
from bashwrap.arguments.loader import arguments_from_list
from bashwrap.errors import ConfigurationError, ResourceError
from bashwrap.platforms.platform import Platform, platform_from_dict
from bashwrap.resources.resource import Executable, Resource, Script, resource_from_dict
from bashwrap.utils.memory import parse_memory

# 레지스트리 등록
from bashwrap.platforms import docker, native  # noqa: F401

_NAME_RX = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]*$")
COMPONENT_KEYS = {
    "name", "version", "namespace", "description", "arguments",
    "resources", "requirements", "platforms",
}


@dataclass
class Requirements:
    """Runtime defaults for the ---n_proc / ---memory meta flags."""

    n_proc: Optional[int] = None
    memory: Optional[str] = None

    def __post_init__(self):
        if self.n_proc is not None and (isinstance(self.n_proc, bool) or not isinstance(self.n_proc, int) or self.n_proc < 1):
            raise ConfigurationError(f"requirements.n_proc must be a positive integer, got {self.n_proc!r}")
        if self.memory is not None:
            self.memory = str(self.memory)
            try:
                parse_memory(self.memory)
            except ValueError as e:
                raise ConfigurationError(f"requirements.memory: {e}")


@dataclass
class Component:
    """
    One described unit of work: the main script plus its typed arguments.
    The first resource is the main script, the others are shipped with it.
    """

    name: str
    arguments: List[Argument] = field(default_factory=list)
    resources: List[Resource] = field(default_factory=list)
    version: Optional[str] = None
    namespace: Optional[str] = None
    description: Optional[str] = None
    requirements: Requirements = field(default_factory=Requirements)
    platforms: List[Dict[str, Any]] = field(default_factory=list)
    config_path: Optional[Path] = None

    def __post_init__(self):
        if not isinstance(self.name, str) or not _NAME_RX.match(self.name):
            raise ConfigurationError(f"Invalid component name {self.name!r}")
        if self.version is not None:
            self.version = str(self.version)
        if not self.resources:
            raise ConfigurationError(f"Component '{self.name}' has no resources; the first one must be the main script")
        if not isinstance(self.main_script, (Script, Executable)):
            raise ConfigurationError(
                f"Component '{self.name}': the first resource must be a script or an executable, "
                f"got {self.main_script.TYPE}"
            )
        for res in self.resources:
            if res.target_name == self.name:
                raise ConfigurationError(
                    f"Component '{self.name}': resource '{res.target_name}' would overwrite the wrapper script"
                )
        check_arguments(self.arguments)

    @property
    def main_script(self) -> Resource:
        return self.resources[0]

    # --------------------------
    # 로딩
    # --------------------------
    @classmethod
    def from_dict(cls, cfg: Dict[str, Any], base_dir: Optional[Path] = None,
                  config_path: Optional[Path] = None) -> "Component":
        if not isinstance(cfg, dict):
            raise ConfigurationError("Component description must be a mapping")
        unknown = set(cfg) - COMPONENT_KEYS
        if unknown:
            raise ConfigurationError(f"Unknown component field(s): {', '.join(sorted(unknown))}")
        if "name" not in cfg:
            raise ConfigurationError("Component description has no name")

        base_dir = Path(base_dir) if base_dir else Path.cwd()
        resources = [
            resource_from_dict(r, base_dir, default_type="bash_script" if i == 0 else "file")
            for i, r in enumerate(cfg.get("resources") or [])
        ]
        req = cfg.get("requirements") or {}
        if not isinstance(req, dict) or set(req) - {"n_proc", "memory"}:
            raise ConfigurationError("requirements may only contain n_proc and memory")

        return cls(
            name=cfg["name"],
            arguments=arguments_from_list(cfg.get("arguments") or []),
            resources=resources,
            version=cfg.get("version"),
            namespace=cfg.get("namespace"),
            description=cfg.get("description"),
            requirements=Requirements(**req),
            platforms=list(cfg.get("platforms") or []),
            config_path=config_path,
        )

    @classmethod
    def from_yaml(cls, path) -> "Component":
        path = Path(path)
        try:
            text = path.read_text()
        except OSError as e:
            raise ResourceError(f"Could not read config '{path}': {e.strerror or e}", path=path)
        try:
            cfg = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Could not parse config '{path}': {e}")
        return cls.from_dict(cfg or {}, base_dir=path.parent.resolve(), config_path=path.resolve())

    # --------------------------
    # platform
    # --------------------------
    def platform(self, platform_id: Optional[str] = None) -> Platform:
        """Platform by id (or type); the first declared one, or native, by default."""
        specs = self.platforms or [{"type": "native"}]
        if platform_id is None:
            return platform_from_dict(specs[0])
        for spec in specs:
            if spec.get("id", spec.get("type", "native")) == platform_id:
                return platform_from_dict(spec)
        if platform_id == "native":
            return platform_from_dict({"type": "native"})
        known = ", ".join(str(s.get("id", s.get("type", "native"))) for s in specs)
        raise ConfigurationError(f"Component '{self.name}' has no platform '{platform_id}' (available: {known})")
