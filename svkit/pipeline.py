"""
Record pipeline shared by the svkit tools.

Streaming tools (cut, grep) run `process`: every decoded record goes through
the header policy and the tool's transform, then either straight to the sink
or through a tail-trim ring that holds back the last N kept records. The sort
tool runs `sort_records`, which reads everything, orders it with a
multi-key comparator built from FieldRanges, and writes it out.
"""
from __future__ import annotations
import functools
import re
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from svkit.config import Config
from svkit.errors import FieldIndexError, PipelineError
from svkit.utils.columns import DEFAULT_SORT_KEYS, FieldRange, TypeHint
from svkit.utils.logging import get_logger

logger = get_logger(__name__)

Record = List[str]
# transform(record, line_no, is_header) -> output record, or None to drop it
RecordTransform = Callable[[Sequence[str], int, bool], Optional[Record]]

HEADER_NUMBER = "N"


def synthesize_header(width: int) -> Record:
    return [f"C{i}" for i in range(1, width + 1)]


class HeaderPolicy:
    """One-shot decision on whether the first record is the header."""

    def __init__(self, no_header: bool) -> None:
        self.no_header = no_header
        self.emitted = False

    def begin(self, record: Sequence[str]) -> Tuple[Optional[Record], bool]:
        """
        Called for every physical record.
        Returns (synthesized_header or None, record_is_header).
        """
        if self.emitted:
            return None, False
        self.emitted = True
        if self.no_header:
            return synthesize_header(len(record)), False
        return None, True


class TailTrimBuffer:
    """
    Fixed-capacity ring delaying emission by `capacity` records.

    push() hands back whatever occupied the slot it overwrites, so the last
    `capacity` records pushed are never returned. Capacity 0 passes records
    straight through.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 0:
            raise ValueError("capacity must be >= 0")
        self.capacity = capacity
        self._slots: List[Optional[Record]] = [None] * capacity
        self._cursor = 0

    def push(self, record: Record) -> Optional[Record]:
        if self.capacity == 0:
            return record
        evicted = self._slots[self._cursor]
        self._slots[self._cursor] = record
        self._cursor = (self._cursor + 1) % self.capacity
        return evicted

    def residents(self) -> List[Record]:
        """Records still held back, oldest first."""
        order = self._slots[self._cursor:] + self._slots[:self._cursor]
        return [r for r in order if r is not None]

    def __len__(self) -> int:
        return sum(1 for r in self._slots if r is not None)


def is_empty_record(record: Sequence[str], skip_first: bool = False) -> bool:
    """True when every field is '' or the literal '""' (optionally ignoring field 0)."""
    fields = record[1:] if skip_first else record
    return all(f == "" or f == '""' for f in fields)


def identity_transform(record: Sequence[str], line_no: int, is_header: bool) -> Record:
    return list(record)


def _numbered(record: Record, label: str, config: Config) -> Record:
    if config.line_numbers:
        return [label] + record
    return record


def process(records: Iterable[Sequence[str]], sink, transform: RecordTransform,
            config: Config) -> int:
    """
    Run the streaming pipeline and return the number of records written.
    The sink is flushed on every exit path.
    """
    header = HeaderPolicy(config.no_header)
    trim = TailTrimBuffer(config.ignore_end)
    line = config.first_line_number - (0 if config.no_header else 1)
    seen = dropped = 0
    try:
        for record in records:
            seen += 1
            synthesized, is_header = header.begin(record)
            if synthesized is not None:
                out = transform(synthesized, line, True)
                if out is not None:
                    sink.write(_numbered(out, HEADER_NUMBER, config))

            out = transform(record, line, is_header)
            line += 1
            if out is None:
                dropped += 1
                continue
            out = _numbered(out, HEADER_NUMBER if is_header else str(line - 1), config)
            if config.delete_empty and is_empty_record(out, config.line_numbers):
                dropped += 1
                continue
            ready = trim.push(out)
            if ready is not None:
                sink.write(ready)
    finally:
        sink.flush()
    logger.debug("Read %d record(s), dropped %d, trimmed %d, wrote %d",
                 seen, dropped, len(trim), sink.count)
    return sink.count


# -- Sorting --

def _utf8(s: str) -> bytes:
    return s.encode("utf-8", "surrogateescape")


def compare_strings(a: str, b: str) -> int:
    """Byte-wise lexicographic order; a shorter common prefix sorts first."""
    ab, bb = _utf8(a), _utf8(b)
    if ab < bb:
        return -1
    if ab > bb:
        return 1
    return 0


# ASCII decimal or exponent forms plus inf/infinity/nan; float() alone also takes
# "1_000" and non-ASCII digits.
_FLOAT_RE = re.compile(
    r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)",
    re.ASCII | re.IGNORECASE)


def _to_float(s: str) -> Optional[float]:
    s = s.strip()
    if not _FLOAT_RE.fullmatch(s):
        return None
    return float(s)


def compare_fields(a: str, b: str, hint: TypeHint = TypeHint.STRING) -> int:
    """
    Three-way compare of two field values.

    NUMERIC: both unparsable -> string order; exactly one unparsable -> that
    side sorts first; both parse -> numeric order (NaN ties with anything).
    """
    if hint is not TypeHint.NUMERIC:
        return compare_strings(a, b)
    fa, fb = _to_float(a), _to_float(b)
    if fa is None and fb is None:
        return compare_strings(a, b)
    if fa is None:
        return -1
    if fb is None:
        return 1
    if fa < fb:
        return -1
    if fb < fa:
        return 1
    return 0


def make_comparator(ranges: Sequence[FieldRange]) -> Callable[[Sequence[str], Sequence[str]], int]:
    """Record comparator: ranges in order, fields left to right, first difference wins."""
    keys = tuple(ranges)

    def cmp(r1: Sequence[str], r2: Sequence[str]) -> int:
        for r in keys:
            for i in r.indices():
                if i >= len(r1):
                    raise FieldIndexError(i + 1, len(r1))
                if i >= len(r2):
                    raise FieldIndexError(i + 1, len(r2))
                c = compare_fields(r1[i], r2[i], r.hint)
                if c:
                    return c
        return 0

    return cmp


def sort_records(records: Iterable[Sequence[str]], sink, config: Config) -> int:
    """
    Buffer every record, sort the body and write header then body.
    Returns the number of records written; the sink is always flushed.
    """
    try:
        rows = [list(r) for r in records]
        if config.ignore_end:
            if config.ignore_end > len(rows):
                raise PipelineError(
                    f"Entire input was ignored: --ignore-end {config.ignore_end} "
                    f"exceeds {len(rows)} record(s)")
            rows = rows[:len(rows) - config.ignore_end]
        if not rows:
            return 0

        header = HeaderPolicy(config.no_header)
        synthesized, first_is_header = header.begin(rows[0])
        if first_is_header:
            head, body = rows[0], rows[1:]
        else:
            head, body = synthesized, rows

        cmp = make_comparator(config.columns or DEFAULT_SORT_KEYS)
        if config.reverse:
            base_cmp = cmp
            cmp = lambda a, b: base_cmp(b, a)
        body.sort(key=functools.cmp_to_key(cmp))
        logger.debug("Sorted %d record(s) on %d key range(s)%s", len(body),
                     len(config.columns or DEFAULT_SORT_KEYS), " (reversed)" if config.reverse else "")

        sink.write(_numbered(head, HEADER_NUMBER, config))
        start = config.first_line_number
        for i, row in enumerate(body):
            sink.write(_numbered(row, str(start + i), config))
        return sink.count
    finally:
        sink.flush()
