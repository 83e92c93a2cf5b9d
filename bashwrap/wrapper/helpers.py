# bashwrap/wrapper/helpers.py
"""Bash functions embedded in generated wrappers."""
from __future__ import annotations

from bashwrap.utils.memory import MAX_BYTES, UNIT_SIZE

BW_ERROR = r'''# bw_error / bw_warning: print a message to stderr
function bw_error {
  echo "[$BW_META_FUNCTIONALITY_NAME] ERROR: $*" >&2
}
function bw_warning {
  echo "[$BW_META_FUNCTIONALITY_NAME] WARNING: $*" >&2
}'''

BW_SOURCE_DIR = r'''# bw_source_dir: directory of a file, following symlinks
# examples:
#   bw_source_dir "${BASH_SOURCE[0]}"
function bw_source_dir {
  local source="$1"
  local dir
  while [ -h "$source" ]; do
    dir="$(cd -P "$(dirname "$source")" >/dev/null 2>&1 && pwd)"
    source="$(readlink "$source")"
    if [[ "$source" != /* ]]; then
      source="$dir/$source"
    fi
  done
  cd -P "$(dirname "$source")" >/dev/null 2>&1 && pwd
}'''

BW_TYPE_CHECKS = r'''# bw_is_integer / bw_is_double / bw_is_boolean: type predicates
function bw_is_integer {
  local regex='^[-+]?[0-9]+$'
  [[ "$1" =~ $regex ]]
}
function bw_is_double {
  local regex='^[-+]?(\.[0-9]+|[0-9]+(\.[0-9]*)?)([eE][-+]?[0-9]+)?$'
  [[ "$1" =~ $regex ]]
}
function bw_is_boolean {
  local regex='^(true|True|TRUE|false|False|FALSE|yes|Yes|YES|no|No|NO)$'
  [[ "$1" =~ $regex ]]
}

# bw_double_less A B: succeeds when A < B
function bw_double_less {
  awk -v a="$1" -v b="$2" 'BEGIN { exit !(a + 0 < b + 0) }'
}

# bw_in_array VALUE CHOICE...: succeeds when VALUE is one of the choices
function bw_in_array {
  local needle="$1"
  local item
  shift
  for item in "$@"; do
    if [ "$item" = "$needle" ]; then
      return 0
    fi
  done
  return 1
}'''

BW_INTEGER_LESS = r'''# bw_integer_less A B: succeeds when A < B, for integers of any length
# examples:
#   bw_integer_less 9 10                     # true
#   bw_integer_less 10 99999999999999999999  # true
function bw_integer_less {
  local a="$1" b="$2" sa=+ sb=+ lt
  case "$a" in -*) sa=-; a="${a#-}" ;; +*) a="${a#+}" ;; esac
  case "$b" in -*) sb=-; b="${b#-}" ;; +*) b="${b#+}" ;; esac
  # 앞자리 0 제거, -0 은 0
  a="${a#"${a%%[!0]*}"}"
  b="${b#"${b%%[!0]*}"}"
  if [ -z "$a" ]; then sa=+; fi
  if [ -z "$b" ]; then sb=+; fi
  if [ "$sa" != "$sb" ]; then
    [ "$sa" = "-" ]
    return
  fi
  if [ "$a" = "$b" ]; then
    return 1
  fi
  if [ ${#a} -ne ${#b} ]; then
    [ ${#a} -lt ${#b} ]
    lt=$?
  else
    [[ "$a" < "$b" ]]
    lt=$?
  fi
  if [ "$sa" = "-" ]; then
    [ $lt -ne 0 ]
    return
  fi
  return $lt
}'''

BW_MEMORY = r'''# bw_memory_as_bytes: convert a memory string (512MB, 2gb, 1.5TB) to bytes
# examples:
#   bw_memory_as_bytes 2GB  # 2147483648
function bw_memory_as_bytes {
  local memory
  memory=$(echo "$1" | tr '[:upper:]' '[:lower:]' | tr -d '[:space:]')
  local regex='^([0-9]+(\.[0-9]+)?|\.[0-9]+)([kmgtp]?b?)$'
  if [[ ! "$memory" =~ $regex ]]; then
    bw_error "Invalid memory value '$1': expected e.g. 512MB, 2GB or 1.5TB."
    return 1
  fi
  local number="${BASH_REMATCH[1]}"
  local multiplier
  case "${BASH_REMATCH[3]}" in
    ''|b) multiplier=%(b)s ;;
    k|kb) multiplier=%(kb)s ;;
    m|mb) multiplier=%(mb)s ;;
    g|gb) multiplier=%(gb)s ;;
    t|tb) multiplier=%(tb)s ;;
    p|pb) multiplier=%(pb)s ;;
  esac
  local int_part="${number%%.*}"
  local frac_part=""
  if [[ "$number" == *.* ]]; then
    frac_part="${number#*.}"
  fi
  int_part="${int_part#"${int_part%%%%[!0]*}"}"
  int_part="${int_part:-0}"
  # 소수부는 뒤 자리부터 floor((digit * multiplier + carry) / 10)
  local frac_bytes=0 i
  for (( i = ${#frac_part} - 1; i >= 0; i-- )); do
    frac_bytes=$(( (${frac_part:i:1} * multiplier + frac_bytes) / 10 ))
  done
  if bw_integer_less $(( (%(max)s - frac_bytes) / multiplier )) "$int_part"; then
    bw_error "Memory value '$1' is too large: at most %(max)s bytes are supported."
    return 1
  fi
  echo $(( 10#$int_part * multiplier + frac_bytes ))
}''' % dict(UNIT_SIZE, max=MAX_BYTES)

CORE_HELPERS = "\n\n".join([BW_ERROR, BW_SOURCE_DIR, BW_TYPE_CHECKS, BW_INTEGER_LESS, BW_MEMORY])


# ---- container helpers (docker layer) ----
AUTOMOUNT_PREFIX = "/bw_automount"

BW_ABSOLUTE_PATH = r'''# bw_absolute_path: normalise a path without requiring it to exist
# examples:
#   bw_absolute_path some_file.txt  # /path/to/some_file.txt
#   bw_absolute_path /foo/bar/..    # /foo
function bw_absolute_path {
  local the_path
  if [[ ! "$1" =~ ^/ ]]; then
    the_path="$PWD/$1"
  else
    the_path="$1"
  fi
  echo "$the_path" | (
    IFS=/
    read -r -a parr
    declare -a outp
    for i in "${parr[@]}"; do
      case "$i" in
      ''|.) continue ;;
      ..)
        len=${#outp[@]}
        if ((len != 0)); then
          unset "outp[$((len - 1))]"
        fi
        ;;
      *)
        len=${#outp[@]}
        outp[$len]="$i"
        ;;
      esac
    done
    echo /"${outp[*]}"
  )
}'''

BW_AUTOMOUNT = r'''# bw_automount: container path under which a host path is mounted
# examples:
#   bw_automount /foo/bar.txt  # %(prefix)s/foo/bar.txt
function bw_automount {
  local abs_path
  abs_path=$(bw_absolute_path "$1")
  if [ -d "$abs_path" ]; then
    echo "%(prefix)s$abs_path"
  else
    local source_dir
    source_dir=$(dirname "$abs_path")
    echo "%(prefix)s${source_dir%%/}/$(basename "$abs_path")"
  fi
}

# bw_automount_arg: host:container volume spec for a host path
# examples:
#   bw_automount_arg /foo/bar.txt  # /foo:%(prefix)s/foo
function bw_automount_arg {
  local abs_path source_dir
  abs_path=$(bw_absolute_path "$1")
  if [ -d "$abs_path" ]; then
    source_dir="$abs_path"
  else
    source_dir=$(dirname "$abs_path")
  fi
  echo "$source_dir:%(prefix)s$source_dir"
}

# bw_add_mount: add a volume spec to BW_EXTRA_MOUNTS once
function bw_add_mount {
  local spec="$1"
  local existing
  for existing in "${BW_EXTRA_MOUNTS[@]}"; do
    if [ "$existing" = "$spec" ]; then
      return 0
    fi
  done
  BW_EXTRA_MOUNTS+=(-v "$spec")
}''' % {"prefix": AUTOMOUNT_PREFIX}

DOCKER_HELPERS = "\n\n".join([BW_ABSOLUTE_PATH, BW_AUTOMOUNT])
