# bashwrap/utils/escape.py
"""
Quoting helpers for embedding arbitrary values in generated bash code.

`escape()` produces text that, placed between double quotes in bash, evaluates
back to the original value. Backslashes and dollar signs are always escaped;
backticks, double quotes and newlines depend on where the text ends up:

  - inside "..."                : escape(v, quote=True)
  - unquoted heredoc body       : escape(v)            (quotes are literal there)
  - echo -e / printf format     : escape(v, newline=True)
"""
from __future__ import annotations

import shlex


def escape(value: str, backtick: bool = True, quote: bool = False, newline: bool = False) -> str:
    out = []
    for ch in str(value):
        if ch in ("\\", "$"):
            out.append("\\" + ch)
        elif ch == "`" and backtick:
            out.append("\\`")
        elif ch == '"' and quote:
            out.append('\\"')
        elif ch == "\n" and newline:
            out.append("\\n")
        else:
            out.append(ch)
    return "".join(out)


def unescape(text: str, backtick: bool = True, quote: bool = False, newline: bool = False) -> str:
    """Inverse of escape() for the same flags."""
    specials = {"\\", "$"}
    if backtick:
        specials.add("`")
    if quote:
        specials.add('"')

    out = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "\\" and i + 1 < len(text):
            nxt = text[i + 1]
            if nxt in specials:
                out.append(nxt)
                i += 2
                continue
            if newline and nxt == "n":
                out.append("\n")
                i += 2
                continue
        out.append(ch)
        i += 1
    return "".join(out)


def dquote(value) -> str:
    """bash double-quoted literal: dquote('a "b"') -> "a \\"b\\"" """
    return '"' + escape(str(value), quote=True) + '"'


def squote(value) -> str:
    return shlex.quote(str(value))


def heredoc_delimiter(text: str, base: str = "BWEOF") -> str:
    """heredoc 종료 문자열이 본문에 등장하지 않도록 보장"""
    lines = set(text.splitlines())
    delim = base
    n = 0
    while delim in lines:
        n += 1
        delim = f"{base}_{n}"
    return delim
