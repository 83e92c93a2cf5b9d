# bashwrap/wrapper/bash_wrapper.py
from __future__ import annotations

from typing import List, Optional, Sequence

from bashwrap.arguments.argument import Argument, check_arguments
from bashwrap.wrapper import templates as T
from bashwrap.wrapper.helpers import CORE_HELPERS
from bashwrap.wrapper.mods import EMPTY, Modification


def wrap_script(
    *,
    name: str,
    arguments: Sequence[Argument],
    command: str,
    generator_version: str,
    version: Optional[str] = None,
    description: Optional[str] = None,
    executor: str = "",
    mods: Modification = EMPTY,
    setup_functions: str = "",
    n_proc: Optional[int] = None,
    memory: Optional[str] = None,
    executable_args: bool = False,
    help_extra: Sequence[str] = (),
) -> str:
    """
    Generate the wrapper program.

    arguments       : component arguments, in declaration order
    command         : how the main resource is started (`bash "$BW_META_RESOURCES_DIR/x.sh"`)
    executor        : prefix of the invocation line (`docker run ...`), empty for native
    mods            : merged environment layers; `mods.inputs` are parsed like
                      regular arguments after the component's own
    setup_functions : bash functions a platform needs before parsing (bw_docker_setup, ...)
    executable_args : rebuild BW_EXECUTABLE_ARGS for an executable resource
    """
    all_args: List[Argument] = [*arguments, *mods.inputs]
    check_arguments(all_args)

    version_line = f"{name} {version}" if version else name
    cases = [case for arg in all_args for case in T.render_argument_cases(arg)]
    cases += T.render_meta_cases()

    sections = [
        T.render_header(name, version, generator_version),
        T.render_temp_dir(),
        CORE_HELPERS,
        T.render_meta(name, n_proc, memory),
        T.render_help(name, version, description, all_args, help_extra),
        setup_functions,
        T.render_storage_reset(all_args),
        mods.pre_parse,
        T.render_parser_loop(version_line, cases, mods.parsers),
        T.render_positionals(all_args),
        *[T.render_validation(arg) for arg in all_args],
        T.render_meta_derivation(),
        T.render_exports(all_args),
        mods.post_parse,
        T.render_executable_args(arguments) if executable_args else "",
        T.render_invocation(executor, mods.extra_params, command),
    ]
    # 섹션 사이 빈 줄
    return "\n\n".join(s for s in sections if s) + "\n"
