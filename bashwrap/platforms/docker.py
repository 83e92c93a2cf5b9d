# bashwrap/platforms/docker.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from bashwrap.arguments.argument import Argument, Direction
from bashwrap.arguments.file import FileArgument
from bashwrap.errors import ConfigurationError
from bashwrap.platforms.image import ImageIdentity
from bashwrap.platforms.platform import Platform, PlatformRegistry
from bashwrap.platforms.requirements import Requirement, as_list, requirement_from_dict
from bashwrap.utils.escape import dquote, escape, heredoc_delimiter
from bashwrap.wrapper import templates as T
from bashwrap.wrapper.helpers import DOCKER_HELPERS
from bashwrap.wrapper.mods import Modification, combine_all

RESOLVE_VOLUME = ("automatic", "manual")
MOUNTS = '"${BW_EXTRA_MOUNTS[@]}"'


@PlatformRegistry.register
@dataclass
class DockerPlatform(Platform):
    """
    Run the component inside a docker container.

    Without setup requirements `image` is used as-is (pulled when missing).
    With requirements a Dockerfile is derived from them and the image is
    built on the fly under a name derived from the component.
    """

    TYPE = "docker"

    image: str = ""
    target_registry: Optional[str] = None
    target_organization: Optional[str] = None
    target_image: Optional[str] = None
    target_tag: Optional[str] = None
    resolve_volume: str = "automatic"
    chown: bool = True
    port: List[str] = field(default_factory=list)
    workdir: Optional[str] = None
    run_args: List[str] = field(default_factory=list)
    setup: List[Dict[str, Any]] = field(default_factory=list)
    apk: Optional[Dict[str, Any]] = None
    apt: Optional[Dict[str, Any]] = None
    python: Optional[Dict[str, Any]] = None
    r: Optional[Dict[str, Any]] = None
    docker: Optional[Dict[str, Any]] = None
    volumes: List[Dict[str, str]] = field(default_factory=list)

    def __post_init__(self):
        super().__post_init__()
        if not self.image:
            raise ConfigurationError(f"docker platform '{self.id}': image is required")
        ImageIdentity.parse(self.image)
        if self.resolve_volume not in RESOLVE_VOLUME:
            raise ConfigurationError(
                f"docker platform '{self.id}': resolve_volume must be one of {', '.join(RESOLVE_VOLUME)}"
            )
        self.port = as_list(self.port)
        self.run_args = as_list(self.run_args)
        self.requirements: List[Requirement] = [requirement_from_dict(s) for s in (self.setup or [])]
        for key in ("apk", "apt", "r", "python", "docker"):
            block = getattr(self, key)
            if block is not None:
                self.requirements.append(requirement_from_dict(block, type_name=key))
        for vol in self.volumes:
            if not isinstance(vol, dict) or not vol.get("name") or not vol.get("mount"):
                raise ConfigurationError(f"docker platform '{self.id}': volumes need a name and a mount, got {vol!r}")

    # ------------------------------------------------------------------
    # image
    # ------------------------------------------------------------------
    def dockerfile_lines(self) -> List[str]:
        return [ln for req in self.requirements for ln in req.dockerfile_lines()]

    def dockerfile(self) -> str:
        lines = self.dockerfile_lines()
        if not lines:
            return f"FROM {self.image}"
        return f"FROM {self.image}\n\n" + "\n".join(lines)

    def build_args(self) -> List[str]:
        return [a for req in self.requirements for a in req.docker_build_args()]

    def image_identity(self, component) -> ImageIdentity:
        if not self.dockerfile_lines():
            return ImageIdentity.parse(self.image)
        return ImageIdentity.for_component(
            name=component.name,
            namespace=component.namespace,
            version=component.version,
            target_registry=self.target_registry,
            target_organization=self.target_organization,
            target_image=self.target_image,
            target_tag=self.target_tag,
        )

    # ------------------------------------------------------------------
    # generated code
    # ------------------------------------------------------------------
    def _docker_args(self) -> str:
        return "-i --rm" + "".join(f" -p {dquote(p)}" for p in self.port)

    def executor(self, component) -> str:
        parts = ["docker run --entrypoint=", self._docker_args()]
        if self.workdir:
            parts.append(f"--workdir {dquote(self.workdir)}")
        parts += [dquote(a) for a in self.run_args]
        return " ".join(parts)

    def setup_functions(self, component) -> str:
        image = dquote(self.image_identity(component))
        recipe = self.dockerfile()
        delim = heredoc_delimiter(recipe, "BWDOCKER")

        if self.dockerfile_lines():
            build_args = "".join(f" --build-arg {dquote(a)}" for a in self.build_args())
            prefix = dquote(f"bashwrap_setup-{component.name}-XXXXXX")[1:-1]
            fetch = [
                "  (",
                f'    tmpdir=$(mktemp -d "$BW_TEMP/{prefix}") || exit $?',
                "    trap 'rm -rf \"$tmpdir\"' EXIT",
                '    cp -r "$BW_META_RESOURCES_DIR/." "$tmpdir" || exit $?',
                '    bw_dockerfile > "$tmpdir/Dockerfile" || exit $?',
                f'    docker build -t {image}{build_args} "$tmpdir" >&2',
                "  )",
            ]
        else:
            fetch = [f"  docker pull {image} >&2"]

        return "\n".join([
            "# bw_dockerfile: print the Dockerfile of this component",
            "function bw_dockerfile {",
            f"  cat << '{delim}'",
            recipe,
            delim,
            "}",
            "",
            "# bw_docker_setup: make sure the docker image is available locally",
            "# examples:",
            "#   bw_docker_setup        # pull or build only when missing",
            "#   bw_docker_setup force  # always pull or build",
            "function bw_docker_setup {",
            f'  if [ "$1" != "force" ] && docker image inspect {image} >/dev/null 2>&1; then',
            "    return 0",
            "  fi",
            *fetch,
            "}",
        ])

    def help_extra(self) -> List[str]:
        return [
            "",
            "Docker flags:",
            "    ---setup",
            "        Pull or build the docker image, then exit.",
            "    ---dockerfile",
            "        Print the Dockerfile of this component, then exit.",
            "    ---debug",
            "        Open an interactive shell in the container instead of running the component.",
            "    ---v, ---volume=HOST:CONTAINER",
            "        Mount an extra volume in the container.",
        ]

    # ---- layers ----
    def volume_arguments(self) -> List[Argument]:
        return [
            FileArgument(
                name=f"--{vol['name']}",
                description=f"Host directory mounted at {vol['mount']} in the container.",
            )
            for vol in self.volumes
        ]

    def _base_layer(self) -> Modification:
        return Modification(
            pre_parse="\n".join([DOCKER_HELPERS, "", "BW_EXTRA_MOUNTS=()", "BW_MODE=run"]),
            parsers="\n".join([
                T.parser_case("---v|---volume", [
                    *T.if_block("[ $# -lt 2 ]", T.fatal(f"Not enough arguments passed to $1.{T.HELP_HINT}")),
                    'bw_add_mount "$2"',
                    "shift 2",
                ]),
                T.parser_case("---v=*|---volume=*", ['bw_add_mount "${1#*=}"', "shift 1"]),
            ]),
            extra_params=" " + MOUNTS,
        )

    def _setup_layer(self) -> Modification:
        return Modification(
            parsers=T.parser_case("---setup", ["bw_docker_setup force", "exit $?"]),
            post_parse="\n".join([
                "# make sure the docker image is available",
                "bw_docker_setup || {",
                "  BW_SETUP_CODE=$?",
                '  bw_error "Docker setup failed with exit code $BW_SETUP_CODE."',
                "  exit $BW_SETUP_CODE",
                "}",
            ]),
        )

    def _volumes_layer(self) -> Modification:
        dummies = self.volume_arguments()
        lines = []
        for arg, vol in zip(dummies, self.volumes):
            mount = dquote(vol["mount"])[1:-1]
            lines += T.if_block(
                f'[ -n "${{{arg.env_name}+x}}" ]',
                [f'bw_add_mount "$(bw_absolute_path "${arg.env_name}"):{mount}"'],
            )
        return Modification(
            post_parse="\n".join(["# declared volumes", *lines]) if lines else "",
            inputs=tuple(dummies),
        )

    def _automount_layer(self, component) -> Modification:
        lines = []
        if self.resolve_volume == "automatic":
            lines.append("# mount file arguments")
            for arg in component.arguments:
                if not isinstance(arg, FileArgument):
                    continue
                var = arg.env_name
                if arg.multiple:
                    body = [
                        "unset BW_MOUNTED",
                        *T.split_values(arg, [
                            'bw_add_mount "$(bw_automount_arg "$BW_VAL")"',
                            *T.append_value("BW_MOUNTED", arg.multiple_sep, '$(bw_automount "$BW_VAL")'),
                        ]),
                        f'{var}="$BW_MOUNTED"',
                    ]
                    lines += T.if_block(f'[ -n "${var}" ]', body)
                else:
                    lines += T.if_block(f'[ -n "${var}" ]', [
                        f'bw_add_mount "$(bw_automount_arg "${var}")"',
                        f'{var}=$(bw_automount "${var}")',
                    ])
        lines += [
            "# mount the resources and temporary directories",
            'bw_add_mount "$(bw_automount_arg "$BW_META_RESOURCES_DIR")"',
            'BW_META_RESOURCES_DIR=$(bw_automount "$BW_META_RESOURCES_DIR")',
            'BW_META_EXECUTABLE="$BW_META_RESOURCES_DIR/$BW_META_FUNCTIONALITY_NAME"',
            'bw_add_mount "$(bw_automount_arg "$BW_TEMP")"',
            'BW_TEMP=$(bw_automount "$BW_TEMP")',
            'BW_META_TEMP_DIR="$BW_TEMP"',
        ]
        return Modification(post_parse="\n".join(lines))

    def _debug_layer(self, image: str) -> Modification:
        cmd = f'docker run --entrypoint=bash {self._docker_args()} -t {MOUNTS} -v "$(pwd)":/pwd --workdir /pwd {image}'
        return Modification(
            parsers=T.parser_case("---debug", ["BW_MODE=debug", "shift 1"]),
            post_parse="\n".join([
                "# enter a debug session instead of running the component",
                *T.if_block('[ "$BW_MODE" = "debug" ]', [
                    f'echo "+ {escape(cmd, quote=True)}" >&2',
                    cmd,
                    "exit 0",
                ]),
            ]),
        )

    def _chown_layer(self, component, image: str) -> Modification:
        if not self.chown:
            return Modification()
        outputs = [
            a for a in component.arguments
            if isinstance(a, FileArgument) and a.direction is Direction.OUTPUT
        ]
        if not outputs:
            return Modification()

        def chown(value: str) -> List[str]:
            return [
                f'docker run --entrypoint=chown --rm {MOUNTS} {image} "$(id -u):$(id -g)" -R "{value}" || \\',
                f'  bw_warning "Could not change the owner of \'{value}\'."',
            ]

        body: List[str] = []
        for arg in outputs:
            var = arg.env_name
            if arg.multiple:
                inner = T.split_values(arg, chown("$BW_VAL"))
            else:
                inner = chown(f"${var}")
            body += T.if_block(f'[ -n "${var}" ]', inner)
        return Modification(post_parse="\n".join([
            "# give output files back to the calling user",
            "function bw_perform_chown {",
            *T.indent(body),
            "}",
            "trap bw_perform_chown EXIT",
        ]))

    def _dockerfile_layer(self) -> Modification:
        return Modification(parsers=T.parser_case("---dockerfile", ["bw_dockerfile", "exit 0"]))

    def modifications(self, component) -> Modification:
        image = dquote(self.image_identity(component))
        dummies = self.volume_arguments()
        passed = T.exported_variables([*component.arguments, *dummies])
        run = Modification(extra_params="".join(f" -e {v}" for v in passed) + f" {image}")
        return combine_all([
            self._base_layer(),
            self._setup_layer(),
            self._volumes_layer(),
            self._automount_layer(component),
            self._debug_layer(image),
            self._chown_layer(component, image),
            self._dockerfile_layer(),
            run,
        ])
