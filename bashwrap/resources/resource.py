# bashwrap/resources/resource.py
from __future__ import annotations
import abc
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Optional, Sequence

from bashwrap.arguments.argument import META_VARIABLES, META_PREFIX, Argument
from bashwrap.errors import ConfigurationError, ResourceError
from bashwrap.utils.escape import dquote, escape

START_MARKER = "BASHWRAP START"
END_MARKER = "BASHWRAP END"


# ---- Registry ----
class ResourceRegistry:
    _reg: Dict[str, type] = {}

    @classmethod
    def register(cls, t: type):
        name = getattr(t, "TYPE", None)
        if not name:
            raise ValueError("Resource class must define TYPE")
        cls._reg[name] = t
        return t

    @classmethod
    def get(cls, name: str):
        if name not in cls._reg:
            raise ConfigurationError(f"Unknown resource type: {name} (known: {', '.join(sorted(cls._reg))})")
        return cls._reg[name]


def resource_path(name: str) -> str:
    """bash expression for a file in the resources directory"""
    return '"$BW_META_RESOURCES_DIR/' + escape(name, quote=True) + '"'


def _meta_key(var: str) -> str:
    """BW_META_N_PROC -> n_proc"""
    return var[len(META_PREFIX):].lower()


# ---- Base Resource ----
@dataclass
class Resource:
    """
    A file shipped next to the wrapper.

    `path` is relative to the component's directory; `text` gives the
    content inline. `dest` is the file name in the build directory.
    """

    TYPE: ClassVar[str] = "file"
    PASS_ARGUMENTS: ClassVar[bool] = False

    path: Optional[str] = None
    text: Optional[str] = None
    dest: Optional[str] = None
    base_dir: Optional[Path] = None

    def __post_init__(self):
        if self.path is None and self.text is None:
            raise ConfigurationError(f"{self.TYPE} resource needs a path or a text")
        if self.path is None and self.dest is None:
            raise ConfigurationError(f"{self.TYPE} resource with inline text needs a dest")

    @property
    def target_name(self) -> str:
        return self.dest or Path(self.path).name

    @property
    def source(self) -> Optional[Path]:
        if self.path is None:
            return None
        p = Path(self.path)
        return p if p.is_absolute() or self.base_dir is None else Path(self.base_dir) / p

    def read(self) -> str:
        if self.text is not None:
            return self.text
        src = self.source
        try:
            return src.read_text()
        except OSError as e:
            raise ResourceError(f"Could not read resource '{src}': {e.strerror or e}", path=src)

    def stage(self, out_dir: Path) -> Path:
        """Copy (or write) the resource into out_dir."""
        target = Path(out_dir) / self.target_name
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            if self.text is not None:
                target.write_text(self.text)
            else:
                src = self.source
                if not src.exists():
                    raise ResourceError(f"Resource '{src}' does not exist", path=src)
                if src.is_dir():
                    shutil.copytree(src, target, dirs_exist_ok=True)
                else:
                    shutil.copy2(src, target)
        except ResourceError:
            raise
        except OSError as e:
            raise ResourceError(f"Could not write resource '{target}': {e.strerror or e}", path=target)
        return target

    def command(self) -> str:
        raise ConfigurationError(f"A {self.TYPE} resource cannot be the main script")


@ResourceRegistry.register
@dataclass
class FileResource(Resource):
    TYPE = "file"


# ---- Scripts ----
@dataclass
class Script(Resource, abc.ABC):
    """
    Main script of a component. The block between the `BASHWRAP START` and
    `BASHWRAP END` comment lines is replaced by code reading the parsed
    values (`par`, `meta`) from the environment the wrapper exports.
    """

    EXECUTOR: ClassVar[str] = ""
    COMMENT: ClassVar[str] = "#"

    def command(self) -> str:
        return f"{self.EXECUTOR} {resource_path(self.target_name)}"

    def header(self) -> List[str]:
        return [f"{self.COMMENT} The following code has been auto-generated by bashwrap."]

    @abc.abstractmethod
    def parameter_code(self, arguments: Sequence[Argument]) -> List[str]:
        ...

    def render(self, arguments: Sequence[Argument]) -> str:
        """Script text with the parameter block injected."""
        lines = self.read().splitlines()
        block = [*self.header(), *self.parameter_code(arguments)]
        start = end = None
        for i, ln in enumerate(lines):
            if ln.lstrip().startswith(self.COMMENT) and START_MARKER in ln and start is None:
                start = i
            elif ln.lstrip().startswith(self.COMMENT) and END_MARKER in ln and start is not None:
                end = i
                break
        if start is not None and end is not None:
            lines = lines[:start] + block + lines[end + 1:]
        else:
            # 마커가 없으면 shebang 뒤에 삽입
            at = 1 if lines and lines[0].startswith("#!") else 0
            lines = lines[:at] + block + lines[at:]
        return "\n".join(lines) + "\n"

    def stage(self, out_dir: Path, arguments: Sequence[Argument] = ()) -> Path:
        target = Path(out_dir) / self.target_name
        text = self.render(arguments)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text)
            target.chmod(0o755)
        except OSError as e:
            raise ResourceError(f"Could not write resource '{target}': {e.strerror or e}", path=target)
        return target


@ResourceRegistry.register
@dataclass
class BashScript(Script):
    TYPE = "bash_script"
    EXECUTOR = "bash"

    def parameter_code(self, arguments: Sequence[Argument]) -> List[str]:
        out = []
        for arg in arguments:
            var = arg.env_name
            out.append(f'if [ -n "${{{var}+x}}" ]; then par_{arg.plain_name}="${var}"; fi')
        for var in META_VARIABLES:
            out.append(f'meta_{_meta_key(var)}="${var}"')
        return out


@ResourceRegistry.register
@dataclass
class PythonScript(Script):
    TYPE = "python_script"
    EXECUTOR = "python"

    def parameter_code(self, arguments: Sequence[Argument]) -> List[str]:
        out = ["import os", "", "par = {"]
        for arg in arguments:
            env = f"os.environ['{arg.env_name}']"
            if arg.multiple:
                value = f"[{arg.to_python('v')} for v in {env}.split({arg.multiple_sep!r})]"
            else:
                value = arg.to_python(env)
            out.append(f"  '{arg.plain_name}': {value} if '{arg.env_name}' in os.environ else None,")
        out += ["}", "meta = {"]
        for var in META_VARIABLES:
            out.append(f"  '{_meta_key(var)}': os.environ.get('{var}'),")
        out.append("}")
        return out


@ResourceRegistry.register
@dataclass
class RScript(Script):
    TYPE = "r_script"
    EXECUTOR = "Rscript"

    def parameter_code(self, arguments: Sequence[Argument]) -> List[str]:
        out = ["par <- list("]
        items = []
        for arg in arguments:
            env = f'Sys.getenv("{arg.env_name}")'
            if arg.multiple:
                value = arg.to_r(f"strsplit({env}, split = {arg.multiple_sep!r}, fixed = TRUE)[[1]]")
            else:
                value = arg.to_r(env)
            items.append(f'  "{arg.plain_name}" = if (is.na(Sys.getenv("{arg.env_name}", unset = NA))) NULL else {value}')
        out += [",\n".join(items), ")", "meta <- list("]
        metas = [f'  "{_meta_key(var)}" = Sys.getenv("{var}")' for var in META_VARIABLES]
        out += [",\n".join(metas), ")"]
        return [ln for ln in out if ln]


@ResourceRegistry.register
@dataclass
class Executable(Resource):
    """
    Binary or script started directly. A `path` that is not a file next to
    the config (e.g. `ls`) is looked up on PATH at runtime and not staged.
    """

    TYPE = "executable"
    PASS_ARGUMENTS = True

    @property
    def is_local(self) -> bool:
        src = self.source
        return self.text is not None or (src is not None and src.exists())

    def command(self) -> str:
        exe = resource_path(self.target_name) if self.is_local else dquote(self.path)
        return f'{exe} "${{BW_EXECUTABLE_ARGS[@]}}"'

    def stage(self, out_dir: Path, arguments: Sequence[Argument] = ()) -> Optional[Path]:
        if not self.is_local:
            return None
        target = super().stage(out_dir)
        target.chmod(0o755)
        return target


def resource_from_dict(spec: Any, base_dir: Optional[Path] = None, default_type: str = "file") -> Resource:
    """{'type': 'bash_script', 'path': 'script.sh'} -> BashScript"""
    if isinstance(spec, str):
        spec = {"path": spec}
    if not isinstance(spec, dict):
        raise ConfigurationError(f"Resource definition must be a mapping, got {spec!r}")
    spec = dict(spec)
    cls = ResourceRegistry.get(str(spec.pop("type", default_type)))
    allowed = {"path", "text", "dest"}
    unknown = set(spec) - allowed
    if unknown:
        raise ConfigurationError(f"Unknown field(s) for resource: {', '.join(sorted(unknown))}")
    return cls(base_dir=base_dir, **spec)
