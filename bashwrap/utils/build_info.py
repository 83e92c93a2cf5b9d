# bashwrap/utils/build_info.py
from __future__ import annotations
import datetime
import subprocess
from pathlib import Path
from typing import Any, Dict, Optional

import pyaml

from bashwrap.errors import ResourceError

BUILD_INFO_NAME = ".bashwrap.yaml"


def anonymize(path) -> Optional[str]:
    """/home/user/project/config.yaml -> [anonymized]/config.yaml"""
    if path is None:
        return None
    return f"[anonymized]/{Path(path).name}"


def git_remote(path) -> Optional[str]:
    """origin URL of the git working tree containing `path`, None outside git or without origin."""
    p = Path(path)
    cwd = p if p.is_dir() else p.parent
    try:
        out = subprocess.run(
            ["git", "remote", "get-url", "origin"],
            cwd=cwd, capture_output=True, text=True, check=False,
        )
    except OSError:
        return None
    url = out.stdout.strip()
    return url if out.returncode == 0 and url else None


def build_info(
    *,
    version: str,
    config: Optional[Path],
    executable: Path,
    output: Path,
    engine: str,
    runner: str = "executable",
) -> Dict[str, Any]:
    info: Dict[str, Any] = {
        "bashwrap_version": version,
        "config": anonymize(config),
        "executable": anonymize(executable),
        "output": anonymize(output),
        "engine": engine,
        "runner": runner,
        "build_time": datetime.datetime.now().astimezone().isoformat(timespec="seconds"),
    }
    # remote가 없으면 key 자체를 생략
    remote = git_remote(config if config is not None else output)
    if remote:
        info["git_remote"] = remote
    return info


def write_build_info(info: Dict[str, Any], out_dir) -> Path:
    path = Path(out_dir) / BUILD_INFO_NAME
    try:
        with open(path, "w", encoding="utf-8") as f:
            pyaml.dump(info, f)
    except OSError as e:
        raise ResourceError(f"Could not write '{path}': {e.strerror or e}", path=path)
    return path
