# bashwrap/__main__.py
from __future__ import annotations
import argparse
import sys
from pathlib import Path

from bashwrap.build import build_component, default_output, dockerfile
from bashwrap.component import Component
from bashwrap.errors import BashwrapError, ExecutionError
from bashwrap.executor import WrapperExecutor
from bashwrap.version import __version__, detect_version, dispatch


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="bashwrap",
        description="Generate self-contained bash wrappers from component descriptions",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    p.add_argument("--version", action="version", version=f"bashwrap {__version__}")
    sub = p.add_subparsers(dest="command", required=True)

    # build
    b = sub.add_parser("build", help="Build the wrapper of a component")
    b.add_argument("config", type=Path, help="Component description (YAML)")
    b.add_argument("-p", "--platform", help="Platform id (default: first declared platform)")
    b.add_argument("-o", "--output", type=Path, help="Output directory (default: target/<platform>/<name>)")
    b.add_argument("--setup", action="store_true", help="Pull or build the container image after building")

    # run
    r = sub.add_parser("run", help="Build a component in a temporary location and run it")
    r.add_argument("config", type=Path)
    r.add_argument("-p", "--platform")
    r.add_argument("--logdir", type=Path, default=Path("./bwlog"), help="Directory for stdout/stderr logs")
    r.add_argument("args", nargs=argparse.REMAINDER, help="Arguments passed to the component (after --)")

    # dockerfile
    d = sub.add_parser("dockerfile", help="Print the Dockerfile of a component")
    d.add_argument("config", type=Path)
    d.add_argument("-p", "--platform")
    return p


def _run(a) -> int:
    component = Component.from_yaml(a.config)
    platform = component.platform(a.platform)
    out = a.logdir / "build" / default_output(component, platform)
    wrapper = build_component(component, platform, out)
    args = a.args[1:] if a.args[:1] == ["--"] else a.args
    result = WrapperExecutor(a.logdir).run(wrapper, args, check=False)
    sys.stdout.write(result.stdout)
    sys.stderr.write(result.stderr)
    return result.returncode


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else list(argv)
    try:
        delegated = dispatch(argv, detect_version())
        if delegated is not None:
            return delegated

        a = build_parser().parse_args(argv)
        if a.command == "build":
            component = Component.from_yaml(a.config)
            build_component(component, component.platform(a.platform), a.output, setup=a.setup)
        elif a.command == "run":
            return _run(a)
        elif a.command == "dockerfile":
            component = Component.from_yaml(a.config)
            print(dockerfile(component, component.platform(a.platform)))
    except ExecutionError as e:
        print(f"bashwrap: {e}", file=sys.stderr)
        return e.returncode
    except BashwrapError as e:
        print(f"bashwrap: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
