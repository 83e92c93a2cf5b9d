# test/conftest.py
from __future__ import annotations
import os
import subprocess
import textwrap
from pathlib import Path

import pytest

from bashwrap.build import build_component
from bashwrap.component import Component

# 파싱된 값을 그대로 출력하는 main script
ECHO_SCRIPT = textwrap.dedent("""\
    #!/usr/bin/env bash
    ## BASHWRAP START
    par_input="dummy"
    ## BASHWRAP END
    for name in input real_number whole_number truth falsehood multiple output; do
      var="par_$name"
      if [ -n "${!var+x}" ]; then
        echo "$name: >${!var}<"
      else
        echo "$name: unset"
      fi
    done
    echo "n_proc: >$meta_n_proc<"
    echo "memory_b: >$meta_memory_b<"
    echo "memory_kb: >$meta_memory_kb<"
    echo "memory_mb: >$meta_memory_mb<"
    echo "memory_gb: >$meta_memory_gb<"
    echo "memory_tb: >$meta_memory_tb<"
    echo "memory_pb: >$meta_memory_pb<"
    echo "ran: yes"
""")

TEST_ARGUMENTS = [
    {"name": "input", "type": "string", "required": True, "description": "Positional input."},
    {"name": "--real_number", "alternatives": ["-r"], "type": "double", "min": -1.5, "max": 100.0},
    {"name": "--whole_number", "alternatives": ["-w"], "type": "integer", "min": 0, "max": 10, "default": 5},
    {"name": "--truth", "type": "boolean_true"},
    {"name": "--falsehood", "type": "boolean_false"},
    {"name": "--multiple", "type": "string", "multiple": True},
    {"name": "--output", "type": "file", "direction": "output"},
]


def make_config(tmp_path: Path, arguments=None, platforms=None, **extra) -> dict:
    (tmp_path / "code.sh").write_text(ECHO_SCRIPT)
    cfg = {
        "name": "testbash",
        "version": "0.1",
        "description": "Prints its arguments.",
        "arguments": TEST_ARGUMENTS if arguments is None else arguments,
        "resources": [{"type": "bash_script", "path": "code.sh"}],
    }
    if platforms is not None:
        cfg["platforms"] = platforms
    cfg.update(extra)
    return cfg


@pytest.fixture
def build(tmp_path):
    """build(cfg, platform_id=None) -> path of the generated wrapper"""
    def _build(cfg, platform_id=None):
        component = Component.from_dict(cfg, base_dir=tmp_path)
        return build_component(component, component.platform(platform_id), tmp_path / "out")
    return _build


def run_wrapper(wrapper, *args, cwd=None, env=None):
    full_env = dict(os.environ)
    full_env.update(env or {})
    return subprocess.run(
        ["bash", str(wrapper), *map(str, args)],
        capture_output=True, text=True, cwd=cwd, env=full_env,
    )


def parsed(stdout: str) -> dict:
    out = {}
    for ln in stdout.splitlines():
        if ": " in ln:
            k, v = ln.split(": ", 1)
            out[k] = v
    return out


FAKE_DOCKER = textwrap.dedent("""\
    #!/usr/bin/env bash
    echo "$*" >> "$FAKE_DOCKER_LOG"
    case "$1 $2" in
      "image inspect") exit "${FAKE_DOCKER_INSPECT:-0}" ;;
      "pull "*|"build "*) exit "${FAKE_DOCKER_SETUP:-0}" ;;
    esac
    for a in "$@"; do
      if [ "$a" = "--entrypoint=chown" ]; then
        exit "${FAKE_DOCKER_CHOWN:-0}"
      fi
    done
    env | grep '^BW_PAR_' | sort
    exit "${FAKE_DOCKER_EXIT:-0}"
""")


@pytest.fixture
def fake_docker(tmp_path, monkeypatch):
    """A `docker` first on PATH that logs every call; returns the log file."""
    bindir = tmp_path / "fakebin"
    bindir.mkdir()
    exe = bindir / "docker"
    exe.write_text(FAKE_DOCKER)
    exe.chmod(0o755)
    log = tmp_path / "docker.log"
    log.write_text("")
    monkeypatch.setenv("PATH", f"{bindir}{os.pathsep}{os.environ['PATH']}")
    monkeypatch.setenv("FAKE_DOCKER_LOG", str(log))
    return log
