# bashwrap/wrapper/templates.py
"""
One render function per section of the generated wrapper.

Every function returns bash text without a trailing newline. Values coming
from the component description go through `escape`/`dquote`; runtime values
($1, $2, $BW_VAL) are referenced inside double quotes and never re-parsed.
"""
from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from bashwrap.arguments.argument import META_VARIABLES, Argument, FlagKind
from bashwrap.arguments.file import FileArgument
from bashwrap.utils.escape import dquote, escape, heredoc_delimiter
from bashwrap.utils.memory import UNIT_SIZE, UNITS

HELP_HINT = ' Use \\"--help\\" to get more information on the parameters.'

# meta flag -> variable
META_FLAGS = (
    ("---n_proc", "BW_META_N_PROC"),
    ("---memory", "BW_META_MEMORY"),
)


def indent(lines: Iterable[str], level: int = 1) -> List[str]:
    pad = "  " * level
    return [pad + ln if ln else "" for ln in lines]


def fatal(message: str) -> List[str]:
    """`message` is the body of a bash double-quoted string."""
    return [f'bw_error "{message}"', "exit 1"]


def if_block(condition: str, body: Sequence[str], orelse: Optional[Sequence[str]] = None) -> List[str]:
    out = [f"if {condition}; then", *indent(body)]
    if orelse:
        out += ["else", *indent(orelse)]
    out.append("fi")
    return out


def parser_case(pattern: str, body: Sequence[str]) -> str:
    """One branch of the parser loop, indented to sit inside `case "$1" in`."""
    lines = [f"{pattern})", *indent(body), "  ;;"]
    return "\n".join(indent(lines, 2))


# ------------------------------------------------------------------
# header / environment
# ------------------------------------------------------------------
def render_header(name: str, version: Optional[str], generator_version: str) -> str:
    title = f"{name} {version}" if version else name
    return "\n".join([
        "#!/usr/bin/env bash",
        "",
        f"# {title}",
        "#",
        f"# This wrapper script is auto-generated by bashwrap {generator_version}.",
        "# Rebuild it from the component description instead of editing it.",
        "",
        "set -e",
    ])


def render_temp_dir() -> str:
    chain = ["BW_TMPDIR", "BW_TEMPDIR", "TMPDIR", "TMP", "TEMP"]
    body = [f"BW_TEMP=${{BW_TEMP:-${var}}}" for var in chain] + ["BW_TEMP=${BW_TEMP:-/tmp}"]
    return "\n".join(["# temporary directory", *if_block('[ -z "$BW_TEMP" ]', body)])


def render_meta(name: str, n_proc: Optional[int] = None, memory: Optional[str] = None) -> str:
    """Metadata fields. n_proc/memory defaults come from the component requirements."""
    return "\n".join([
        "# component metadata",
        f"BW_META_FUNCTIONALITY_NAME={dquote(name)}",
        'BW_META_RESOURCES_DIR=$(bw_source_dir "${BASH_SOURCE[0]}")',
        'BW_META_EXECUTABLE="$BW_META_RESOURCES_DIR/$BW_META_FUNCTIONALITY_NAME"',
        'BW_META_TEMP_DIR="$BW_TEMP"',
        f"BW_META_N_PROC={dquote('' if n_proc is None else n_proc)}",
        f"BW_META_MEMORY={dquote(memory or '')}",
    ])


# ------------------------------------------------------------------
# help
# ------------------------------------------------------------------
def _help_entry(arg: Argument) -> List[str]:
    spellings = ", ".join(s for s, _ in arg.flag_forms)
    props = [f"type: {arg.TYPE_LABEL}"]
    if arg.required:
        props.append("required parameter")
    if arg.multiple:
        props.append(f"multiple values allowed, separated by '{arg.multiple_sep}'")
    if isinstance(arg, FileArgument) and arg.is_output:
        props.append("output")

    lines = [f"    {spellings}", "        " + ", ".join(props)]
    if arg.example:
        lines.append("        example: " + arg.multiple_sep.join(arg.render(v) for v in arg.example))
    if arg.default and not arg.is_flag:
        lines.append("        default: " + arg.render_default())
    if arg.choices:
        lines.append("        choices: [ " + ", ".join(arg.render(c) for c in arg.choices) + " ]")
    if arg.min is not None:
        lines.append(f"        min: {arg.render(arg.min)}")
    if arg.max is not None:
        lines.append(f"        max: {arg.render(arg.max)}")
    for desc in (arg.description or "").strip().splitlines():
        lines.append(f"        {desc}".rstrip())
    lines.append("")
    return lines


def render_help(name: str, version: Optional[str], description: Optional[str],
                arguments: Sequence[Argument], extra: Sequence[str] = ()) -> str:
    """`bw_help`: a quoted heredoc, so nothing in the text is expanded."""
    body = [f"{name} {version}" if version else name, ""]
    if description:
        body += [*description.strip().splitlines(), ""]
    if arguments:
        body += ["Arguments:", *[ln for a in arguments for ln in _help_entry(a)]]
    body += [
        "Meta flags:",
        "    ---n_proc=N",
        "        Number of processes the component may use.",
        "    ---memory=SIZE",
        "        Amount of memory the component may use, e.g. 512MB or 2GB.",
        *extra,
    ]
    text = "\n".join(body)
    delim = heredoc_delimiter(text, "BWHELP")
    return "\n".join([
        "# bw_help: print the usage of this component",
        "function bw_help {",
        f"  cat << '{delim}'",
        text,
        delim,
        "}",
    ])


# ------------------------------------------------------------------
# parser loop
# ------------------------------------------------------------------
def render_storage_reset(arguments: Sequence[Argument]) -> str:
    lines = ["# argument storage"]
    if arguments:
        lines.append("unset " + " ".join(a.env_name for a in arguments))
    lines.append("BW_POSITIONAL_ARGS=()")
    return "\n".join(lines)


def _duplicate_check(arg: Argument, spelling: str) -> List[str]:
    return if_block(
        f'[ -n "${{{arg.env_name}+x}}" ]',
        fatal(f"Bad arguments for option '{spelling}': got more than one value.{HELP_HINT}"),
    )


def store_value(arg: Argument, value_ref: str) -> List[str]:
    """
    Store one token. `value_ref` is a bash expansion ($2, ${1#*=}, $1).
    multiple: append with the separator, so `--x a --x b` and `--x a:b`
    end up identical.
    """
    if not arg.multiple:
        return [f'{arg.env_name}="{value_ref}"']
    return append_value(arg.env_name, arg.multiple_sep, value_ref)


def append_value(var: str, sep: str, value_ref: str) -> List[str]:
    sep = escape(sep, quote=True)
    return if_block(
        f'[ -z "${{{var}+x}}" ]',
        [f'{var}="{value_ref}"'],
        [f'{var}="${{{var}}}{sep}{value_ref}"'],
    )


def render_argument_cases(arg: Argument) -> List[str]:
    cases = []
    for spelling, kind in arg.flag_forms:
        if kind is FlagKind.POSITIONAL:
            continue
        if arg.is_flag:
            cases.append(parser_case(spelling, [
                f"{arg.env_name}={arg.render(arg.FLAG_VALUE)}",
                "shift 1",
            ]))
            continue
        dup = [] if arg.multiple else _duplicate_check(arg, spelling)
        cases.append(parser_case(spelling, [
            *dup,
            *if_block("[ $# -lt 2 ]", fatal(f"Not enough arguments passed to {spelling}.{HELP_HINT}")),
            *store_value(arg, "$2"),
            "shift 2",
        ]))
        cases.append(parser_case(f"{spelling}=*", [
            *dup,
            *store_value(arg, "${1#*=}"),
            "shift 1",
        ]))
    return cases


def render_meta_cases() -> List[str]:
    """Meta flags: the last value wins, an empty value clears the field."""
    cases = []
    for flag, var in META_FLAGS:
        cases.append(parser_case(flag, [
            *if_block("[ $# -lt 2 ]", fatal(f"Not enough arguments passed to {flag}.{HELP_HINT}")),
            f'{var}="$2"',
            "shift 2",
        ]))
        cases.append(parser_case(f"{flag}=*", [f'{var}="${{1#*=}}"', "shift 1"]))
    return cases


def render_parser_loop(version_line: str, cases: Sequence[str], extra_parsers: str = "") -> str:
    builtin = [
        parser_case("-h|--help", ["bw_help", "exit 0"]),
        parser_case("--version", [f"echo {dquote(version_line)}", "exit 0"]),
    ]
    tail = [
        parser_case("--", ["shift 1", 'BW_POSITIONAL_ARGS+=("$@")', "break"]),
        parser_case("-?*", fatal(f"Unrecognized argument '$1'.{HELP_HINT}")),
        parser_case("*", ['BW_POSITIONAL_ARGS+=("$1")', "shift 1"]),
    ]
    body = [*builtin, *cases]
    if extra_parsers:
        body.append(extra_parsers)
    body += tail
    return "\n".join([
        "# parse arguments",
        "while [[ $# -gt 0 ]]; do",
        '  case "$1" in',
        *body,
        "  esac",
        "done",
    ])


def render_positionals(arguments: Sequence[Argument]) -> str:
    """Positionals in declaration order; a trailing multiple one takes the rest."""
    lines = ["# positional arguments", 'set -- "${BW_POSITIONAL_ARGS[@]}"']
    for arg in arguments:
        if arg.kind is not FlagKind.POSITIONAL:
            continue
        if arg.multiple:
            lines += ["while [[ $# -gt 0 ]]; do", *indent(store_value(arg, "$1")), "  shift 1", "done"]
        else:
            lines += if_block("[[ $# -gt 0 ]]", [*store_value(arg, "$1"), "shift 1"])
    lines += if_block("[[ $# -gt 0 ]]", fatal(f"Unrecognized positional argument(s): $*.{HELP_HINT}"))
    return "\n".join(lines)


# ------------------------------------------------------------------
# validation
# ------------------------------------------------------------------
def _value_checks(arg: Argument) -> List[str]:
    """Checks on a single value held in $BW_VAL."""
    label = arg.name
    out: List[str] = []
    if arg.VALUE_CHECK:
        out += if_block(
            f'! {arg.VALUE_CHECK} "$BW_VAL"',
            fatal(f"'{label}' has to be of type {arg.TYPE_LABEL}, got '$BW_VAL'.{HELP_HINT}"),
        )
    if arg.choices:
        rendered = [arg.render(c) for c in arg.choices]
        listing = escape(", ".join(rendered), quote=True)
        out += if_block(
            '! bw_in_array "$BW_VAL" ' + " ".join(dquote(c) for c in rendered),
            fatal(f"'{label}' value '$BW_VAL' is not one of the allowed choices: {listing}.{HELP_HINT}"),
        )
    for bound, op in ((arg.min, "min"), (arg.max, "max")):
        if bound is None:
            continue
        limit = arg.render(bound)
        less = "bw_integer_less" if arg.COMPARE == "integer" else "bw_double_less"
        if op == "min":
            cond = f'{less} "$BW_VAL" {limit}'
        else:
            cond = f'{less} {limit} "$BW_VAL"'
        rel = "larger than or equal to" if op == "min" else "smaller than or equal to"
        out += if_block(cond, fatal(f"'{label}' has to be {rel} {limit}, got '$BW_VAL'.{HELP_HINT}"))
    if isinstance(arg, FileArgument):
        if arg.must_exist and not arg.is_output:
            out += if_block(
                '[ ! -e "$BW_VAL" ]',
                fatal(f"Input file '$BW_VAL' for '{label}' does not exist."),
            )
        if arg.create_parent and arg.is_output:
            out += if_block(
                '[ -n "$BW_VAL" ] && [ ! -d "$(dirname "$BW_VAL")" ]',
                ['mkdir -p "$(dirname "$BW_VAL")"'],
            )
    return out


def split_values(arg: Argument, body: Sequence[str]) -> List[str]:
    """Run `body` once per value of a multiple argument, with $BW_VAL set."""
    sep = escape(arg.multiple_sep, quote=True)
    return [
        f'IFS="{sep}" read -r -a BW_VALUES <<< "${arg.env_name}"',
        'for BW_VAL in "${BW_VALUES[@]}"; do',
        *indent(body),
        "done",
    ]


def render_validation(arg: Argument) -> str:
    var = arg.env_name
    lines = [f"# {arg.name}"]
    if arg.required:
        lines += if_block(
            f'[ -z "${{{var}+x}}" ]',
            fatal(f"'{arg.name}' is a required argument.{HELP_HINT}"),
        )
    elif arg.default:
        lines += if_block(f'[ -z "${{{var}+x}}" ]', [f"{var}={dquote(arg.render_default())}"])

    checks = _value_checks(arg)
    if checks:
        if arg.multiple:
            body = split_values(arg, checks)
        else:
            body = [f'BW_VAL="${var}"', *checks]
        lines += if_block(f'[ -n "${{{var}+x}}" ]', body)
    return "\n".join(lines)


def render_meta_derivation() -> str:
    """---n_proc check and the memory fields, floor-divided from the byte count."""
    units = [u.upper() for u in UNITS]
    derive = ['if ! BW_META_MEMORY_B=$(bw_memory_as_bytes "$BW_META_MEMORY"); then', "  exit 1", "fi"]
    for unit in UNITS[1:]:
        derive.append(f"BW_META_MEMORY_{unit.upper()}=$(( BW_META_MEMORY_B / {UNIT_SIZE[unit]} ))")
    return "\n".join([
        "# meta fields",
        *if_block(
            '[ -n "$BW_META_N_PROC" ] && ! bw_is_integer "$BW_META_N_PROC"',
            fatal(f"'---n_proc' has to be an integer, got '$BW_META_N_PROC'.{HELP_HINT}"),
        ),
        *[f"BW_META_MEMORY_{u}=''" for u in units],
        *if_block('[ -n "$BW_META_MEMORY" ]', derive),
    ])


def exported_variables(arguments: Sequence[Argument]) -> List[str]:
    return ["BW_TEMP", *META_VARIABLES, *(a.env_name for a in arguments)]


def render_exports(arguments: Sequence[Argument]) -> str:
    return "\n".join(["# export values", "export " + " ".join(exported_variables(arguments))])


# ------------------------------------------------------------------
# invocation
# ------------------------------------------------------------------
def render_executable_args(arguments: Sequence[Argument]) -> str:
    """Rebuild a command line for an executable from the parsed values."""
    lines = ["# arguments for the executable", "BW_EXECUTABLE_ARGS=()"]
    for arg in arguments:
        var = arg.env_name
        if arg.is_flag:
            lines += if_block(
                f'[ "${var}" = "{arg.render(arg.FLAG_VALUE)}" ]',
                [f'BW_EXECUTABLE_ARGS+=({dquote(arg.name)})'],
            )
            continue
        prefix = "" if arg.kind is FlagKind.POSITIONAL else dquote(arg.name) + " "
        if arg.multiple:
            body = split_values(arg, [f'BW_EXECUTABLE_ARGS+=({prefix}"$BW_VAL")'])
        else:
            body = [f'BW_EXECUTABLE_ARGS+=({prefix}"${var}")']
        lines += if_block(f'[ -n "${{{var}+x}}" ]', body)
    return "\n".join(lines)


def render_invocation(executor: str, extra_params: str, command: str) -> str:
    line = f"{executor}{extra_params} {command}".strip()
    return "\n".join(["# run the component", line])
