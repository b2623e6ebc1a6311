"""
Regex replacement with `$N` style templates.

Templates use `$1`, `${1}`, `$name` and `${name}` for groups, `$0` for the
whole match and `$$` for a literal dollar sign. A reference to a group that
does not exist or did not participate expands to the empty string. Any other
character, backslashes included, is copied verbatim.
"""
from __future__ import annotations
import re
from typing import Callable, List, Pattern, Tuple, Union

_VAR_RE = re.compile(r"\$(?:\{([A-Za-z0-9_]+)\}|([A-Za-z0-9_]+)|(\$))")

# Literal text or a group reference (int index or group name).
Piece = Union[str, int, Tuple[str]]


def compile_template(template: str) -> List[Piece]:
    pieces: List[Piece] = []
    pos = 0
    for m in _VAR_RE.finditer(template):
        if m.start() > pos:
            pieces.append(template[pos:m.start()])
        name = m.group(1) or m.group(2)
        if m.group(3):
            pieces.append("$")
        elif name.isdigit():
            pieces.append(int(name))
        else:
            pieces.append((name,))
        pos = m.end()
    if pos < len(template):
        pieces.append(template[pos:])
    return pieces


def _group(m: "re.Match[str]", ref) -> str:
    try:
        val = m.group(ref)
    except IndexError:
        return ""
    return val or ""


def expander(template: str) -> Callable[["re.Match[str]"], str]:
    """Build a re.sub-compatible callable for `template`."""
    pieces = compile_template(template)

    def expand(m: "re.Match[str]") -> str:
        out = []
        for p in pieces:
            if isinstance(p, str):
                out.append(p)
            elif isinstance(p, int):
                out.append(_group(m, p))
            else:
                out.append(_group(m, p[0]))
        return "".join(out)

    return expand


def replace_all(pattern: Pattern[str], text: str, expand: Callable[["re.Match[str]"], str]) -> str:
    """
    Replace every non-overlapping match of `pattern` in `text`.
    An empty match directly after a previous match is left alone.
    """
    out = []
    pos = 0
    last_end = -1
    for m in pattern.finditer(text):
        if m.start() == m.end() == last_end:
            continue
        out.append(text[pos:m.start()])
        out.append(expand(m))
        pos = last_end = m.end()
    out.append(text[pos:])
    return "".join(out)
