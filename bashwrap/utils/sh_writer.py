# bashwrap/utils/sh_writer.py
from __future__ import annotations
from pathlib import Path

from bashwrap.errors import ResourceError


def write_executable(text: str, out_path: str | Path) -> Path:
    """Write a generated script and mark it executable."""
    out = Path(out_path)
    try:
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(text)
        out.chmod(0o755)
    except OSError as e:
        raise ResourceError(f"Could not write '{out}': {e.strerror or e}", path=out)
    return out
