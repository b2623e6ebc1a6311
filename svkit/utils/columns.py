from __future__ import annotations
import re
import enum
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from svkit.errors import ConfigError, FieldIndexError


class TypeHint(enum.Enum):
    STRING = "s"
    NUMERIC = "n"


@dataclass(frozen=True)
class FieldRange:
    """
    A selector over a record's fields.
    start and end are 0-based and inclusive; end=None selects start only.
    """
    start: int
    end: Optional[int] = None
    hint: TypeHint = TypeHint.STRING

    def indices(self) -> range:
        if self.end is None:
            return range(self.start, self.start + 1)
        return range(self.start, self.end + 1)


DEFAULT_SORT_KEYS: Tuple[FieldRange, ...] = (FieldRange(0, None, TypeHint.STRING),)

_NUM_RE = re.compile(r"[0-9]+")


def _parse_field_number(tok: str, whole: str) -> int:
    if not _NUM_RE.fullmatch(tok):
        raise ConfigError(f"Bad field number '{tok}' in column spec '{whole}'")
    n = int(tok)
    if n < 1:
        raise ConfigError(f"Field numbers start at 1: '{whole}'")
    return n - 1


def parse_field_range(token: str) -> FieldRange:
    """Parse one 'N', 'N-M', 'Nn' or 'N-Mn' token (1-based) into a FieldRange."""
    body = token
    hint = TypeHint.STRING
    if body and "a" <= body[-1] <= "z":
        if body[-1] == "n":
            hint = TypeHint.NUMERIC
        body = body[:-1]

    if "-" in body:
        a, b = body.split("-", 1)
        return FieldRange(_parse_field_number(a, token), _parse_field_number(b, token), hint)
    return FieldRange(_parse_field_number(body, token), None, hint)


def parse_field_ranges(spec: Optional[str]) -> Tuple[FieldRange, ...]:
    """
    Parse a comma-separated column spec into ordered FieldRanges.
    "1,3-5,2n" -> (0,open,str), (2,4,str), (1,open,num). Empty spec -> ().
    Order is kept; duplicates are kept.
    """
    if not spec:
        return ()
    return tuple(parse_field_range(tok) for tok in spec.split(","))


def project(record: Sequence[str], ranges: Sequence[FieldRange]) -> List[str]:
    """Select fields of `record` in range order; no ranges copies the record."""
    if not ranges:
        return list(record)
    n = len(record)
    out: List[str] = []
    for r in ranges:
        if r.start >= n:
            raise FieldIndexError(r.start + 1, n)
        for i in r.indices():
            if i >= n:
                raise FieldIndexError(i + 1, n)
            out.append(record[i])
    return out
