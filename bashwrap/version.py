# bashwrap/version.py
from __future__ import annotations
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Sequence

import yaml

from bashwrap.errors import ConfigurationError, VersionError

__version__ = "0.4.0"

DEFAULT_HOME = "~/.bashwrap"
PROJECT_FILE = "_bashwrap.yaml"
# BASHWRAP_VERSION=- : 재실행 방지
NO_DELEGATE = "-"


@dataclass(frozen=True)
class VersionConfig:
    requested: Optional[str]
    home: Path


def _project_version(workdir: Path) -> Optional[str]:
    """bashwrap_version pinned in the nearest _bashwrap.yaml, walking up from workdir."""
    for d in (workdir, *workdir.parents):
        f = d / PROJECT_FILE
        if not f.is_file():
            continue
        try:
            cfg = yaml.safe_load(f.read_text()) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Could not parse '{f}': {e}")
        value = cfg.get("bashwrap_version") if isinstance(cfg, dict) else None
        return None if value is None else str(value)
    return None


def detect_version(env: Optional[Mapping[str, str]] = None, workdir=None) -> VersionConfig:
    """Resolve once at startup: BASHWRAP_VERSION wins over the project file."""
    env = os.environ if env is None else env
    home = Path(env.get("BASHWRAP_HOME") or DEFAULT_HOME).expanduser()
    requested = env.get("BASHWRAP_VERSION") or _project_version(Path(workdir or Path.cwd()).resolve())
    return VersionConfig(requested=requested, home=home)


def delegate_path(requested: Optional[str], current: str, home) -> Optional[Path]:
    """Executable of the requested release, or None when this process should handle the call."""
    if not requested or requested == NO_DELEGATE or requested == current:
        return None
    return Path(home) / "releases" / requested / "bashwrap"


def dispatch(argv: Sequence[str], config: VersionConfig) -> Optional[int]:
    """Re-run the CLI with the pinned release; None when no delegation is needed."""
    path = delegate_path(config.requested, __version__, config.home)
    if path is None:
        return None
    if not path.is_file():
        raise VersionError(f"bashwrap {config.requested} is requested but not installed at {path}")
    env = dict(os.environ, BASHWRAP_VERSION=NO_DELEGATE)
    return subprocess.call([str(path), *argv], env=env)
