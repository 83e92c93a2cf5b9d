# bashwrap/utils/memory.py
from __future__ import annotations

import re
from typing import Dict

# 1024 단위 (100PB -> 112589990684262400 bytes)
UNITS = ["b", "kb", "mb", "gb", "tb", "pb"]
UNIT_SIZE: Dict[str, int] = {u: 1024 ** i for i, u in enumerate(UNITS)}
MAX_BYTES = 2 ** 63 - 1

_MEMORY_RX = re.compile(r"^([0-9]+(?:\.[0-9]+)?|\.[0-9]+)([kmgtp]?b?)$")


def parse_memory(value: str) -> int:
    """
    '2GB' -> 2147483648, '1.5 kb' -> 1536, '100' -> 100 (bytes).
    Units are case-insensitive and the trailing 'b' may be omitted.
    Fractional byte counts are floored.
    """
    text = "".join(str(value).split()).lower()
    m = _MEMORY_RX.match(text)
    if not m:
        raise ValueError(f"Invalid memory value '{value}': expected e.g. 512MB, 2GB or 1.5TB")
    number, unit = m.groups()
    if unit and not unit.endswith("b"):
        unit += "b"
    unit = unit or "b"
    size = UNIT_SIZE[unit]
    whole, _, frac = number.partition(".")
    n = int(whole or 0) * size
    if frac:
        n += int(frac) * size // 10 ** len(frac)
    if n > MAX_BYTES:
        raise ValueError(f"Memory value '{value}' is too large: at most {MAX_BYTES} bytes are supported")
    return n
