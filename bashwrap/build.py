# bashwrap/build.py
from __future__ import annotations
import subprocess
from pathlib import Path
from typing import Optional

from bashwrap.component import Component
from bashwrap.errors import ConfigurationError, ExecutionError, ResourceError
from bashwrap.platforms.platform import Platform
from bashwrap.resources.resource import Executable
from bashwrap.utils.build_info import build_info, write_build_info
from bashwrap.utils.log import log, logger
from bashwrap.utils.sh_writer import write_executable
from bashwrap.version import __version__


def default_output(component: Component, platform: Platform) -> Path:
    return Path("target") / platform.id / component.name


def _check_resources(component: Component) -> None:
    for res in component.resources:
        if res.text is not None or (isinstance(res, Executable) and res is component.main_script):
            continue
        if not res.source.exists():
            raise ResourceError(f"Resource '{res.source}' does not exist", path=res.source)


@logger
def build_component(
    component: Component,
    platform: Optional[Platform] = None,
    output: Optional[Path] = None,
    *,
    setup: bool = False,
) -> Path:
    """
    Write the wrapper, its resources and `.bashwrap.yaml` to `output`.
    Nothing is written when the component cannot be generated.
    """
    platform = platform or component.platform()
    out_dir = Path(output) if output else default_output(component, platform)

    text = platform.generate(component)
    _check_resources(component)

    component.main_script.stage(out_dir, component.arguments)
    for res in component.resources[1:]:
        res.stage(out_dir)
    wrapper = write_executable(text, out_dir / component.name)

    info = build_info(
        version=__version__,
        config=component.config_path,
        executable=wrapper,
        output=out_dir,
        engine=platform.id,
    )
    write_build_info(info, out_dir)
    log(f"Built {component.name} ({platform.id}) in {out_dir}")

    if setup:
        run_setup(wrapper)
    return wrapper


def run_setup(wrapper: Path) -> None:
    """Pull or build the container image of a built wrapper (---setup)."""
    log(f"Running setup of {wrapper}")
    rc = subprocess.run([str(wrapper), "---setup"]).returncode
    if rc != 0:
        raise ExecutionError(f"Setup of {wrapper} failed with exit code {rc}", returncode=rc)


def dockerfile(component: Component, platform: Optional[Platform] = None) -> str:
    platform = platform or component.platform()
    if not hasattr(platform, "dockerfile"):
        raise ConfigurationError(f"Platform '{platform.id}' ({platform.TYPE}) has no Dockerfile")
    return platform.dockerfile()
