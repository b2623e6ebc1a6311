from __future__ import annotations
import io as _io
import os
import re
import csv
import sys
import math
from contextlib import contextmanager
from typing import IO, Iterable, Iterator, List, Optional, Sequence, Tuple

import pandas as pd
from wcwidth import wcswidth

from svkit.errors import ConfigError, RecordSyntaxError
from svkit.utils.logging import get_logger

logger = get_logger(__name__)


def normalize_sep(sep: Optional[str], default: str = ",") -> str:
    """
    Map common separator names to the single character the reader needs.
    Accepts: csv, comma, tsv, tab, '\\t', pipe, bar, space, or any single character.
    """
    if sep is None or sep == "":
        return default
    s = str(sep)
    low = s.strip().lower()
    if low in {"csv", "comma"}: return ","
    if low in {"tsv", "tab"}:   return "\t"
    if s == r"\t":              return "\t"
    if low in {"pipe", "bar"}:  return "|"
    if low in {"space"}:        return " "
    if len(s) != 1:
        raise ConfigError(f"Separator must be a single character, got {sep!r}")
    return s


@contextmanager
def open_streams(input_path: Optional[str], output_path: Optional[str], *,
                 encoding: str = "utf-8") -> Iterator[Tuple[IO[str], IO[str]]]:
    """
    Acquire the run's input and output handles; None or '-' selects stdin/stdout.
    Files opened here are closed on exit, the standard streams are only flushed.
    """
    opened: List[IO[str]] = []
    wrapped: Optional[_io.TextIOWrapper] = None
    try:
        if input_path in (None, "-"):
            fin = wrapped = _io.TextIOWrapper(sys.stdin.buffer, encoding=encoding, newline="")
        else:
            fin = open(input_path, "r", encoding=encoding, newline="")
            opened.append(fin)
        if output_path in (None, "-"):
            fout = sys.stdout
        else:
            fout = open(output_path, "w", encoding=encoding, newline="")
            opened.append(fout)
        yield fin, fout
    finally:
        for fh in reversed(opened):
            fh.close()
        if wrapped is not None:
            # leave sys.stdin usable
            wrapped.detach()
        try:
            sys.stdout.flush()
        except BrokenPipeError:
            pass


def skip_lines(fh: IO[str], n: int) -> None:
    """Discard the first n physical lines of fh; running out of input is an error."""
    logger.debug("Skipping %d leading line(s)", n)
    for i in range(n):
        if fh.readline() == "":
            raise RecordSyntaxError(
                f"Input ended after {i} line(s) while skipping {n} leading line(s)")


def _lift_field_size_limit() -> None:
    """Remove the csv module's per-field cap; clamp where sys.maxsize overflows a C long."""
    limit = sys.maxsize
    while True:
        try:
            csv.field_size_limit(limit)
            return
        except OverflowError:
            limit //= 2


def read_records(fh: Iterable[str], config, *, line_offset: int = 0) -> Iterator[List[str]]:
    """
    Decode records from a text stream under the configured syntax.
    Blank lines are skipped; lines starting with the comment marker are skipped.
    Error messages cite physical input lines; `line_offset` counts lines
    already consumed from fh (e.g. by skip_lines).
    """
    marker = config.comment
    physical = line_offset

    def lines() -> Iterator[str]:
        nonlocal physical
        for ln in fh:
            physical += 1
            if marker and ln.startswith(marker):
                continue
            yield ln

    _lift_field_size_limit()
    reader = csv.reader(
        lines(),
        delimiter=config.sep,
        quotechar='"',
        skipinitialspace=config.trim_leading_space,
        strict=not config.lazy_quotes,
    )
    expected = config.fields_per_line
    while True:
        try:
            row = next(reader)
        except StopIteration:
            return
        except csv.Error as e:
            raise RecordSyntaxError(f"line {physical}: {e}") from e
        if not row:
            continue
        if expected == 0:
            expected = len(row)
        if expected > 0 and len(row) != expected:
            raise RecordSyntaxError(
                f"line {physical}: wrong number of fields "
                f"(expected {expected}, got {len(row)})")
        if not config.trailing_comma and len(row) > 1 and row[-1] == "":
            raise RecordSyntaxError(f"line {physical}: trailing separator not allowed")
        yield row


class RecordWriter:
    """Delimited-text sink for emitted records."""

    def __init__(self, out: IO[str], *, sep: str = ",", crlf: bool = False) -> None:
        self.out = out
        self.count = 0
        self._w = csv.writer(out, delimiter=sep, quotechar='"',
                             lineterminator="\r\n" if crlf else "\n")

    def write(self, record: Sequence[str]) -> None:
        self._w.writerow(record)
        self.count += 1

    def flush(self) -> None:
        self.out.flush()


class PrettySink:
    """Collects emitted records and renders them as one bordered table on flush."""

    def __init__(self, out: IO[str]) -> None:
        self.out = out
        self.count = 0
        self._rows: List[List[str]] = []
        self._flushed = False

    def write(self, record: Sequence[str]) -> None:
        self._rows.append(list(record))
        self.count += 1

    def flush(self) -> None:
        if self._flushed:
            return
        self._flushed = True
        pretty_print(records_to_frame(self._rows), out=self.out)


def make_sink(out: IO[str], config):
    if config.pretty:
        return PrettySink(out)
    return RecordWriter(out, sep=config.output_sep, crlf=config.crlf)


def records_to_frame(rows: Sequence[Sequence[str]]) -> pd.DataFrame:
    """First row becomes the column labels; ragged rows are padded with ''."""
    if not rows:
        return pd.DataFrame()
    width = max(len(r) for r in rows)
    padded = [list(r) + [""] * (width - len(r)) for r in rows]
    return pd.DataFrame(padded[1:], columns=padded[0])


def print_names(names: Sequence[str], out: IO[str], *, pretty: bool = False) -> None:
    """List header fields as right-aligned 1-based 'index: name' lines."""
    if pretty:
        report = pd.DataFrame({"#": [str(i) for i in range(1, len(names) + 1)],
                               "header": list(names)})
        pretty_print(report, out=out)
        return
    n = len(names)
    width = int(math.ceil(math.log10(n + 1))) + 1
    for i, name in enumerate(names, start=1):
        out.write(f"{i:>{width}d}: {name}\n")


_NUM_LIKE_RE = re.compile(r"^\s*[\$]?[-+]?((?:\d{1,3}(?:,\d{3})*)|\d+)(?:\.\d+)?%?\s*$")


def pretty_print(df: pd.DataFrame, *, out: Optional[IO[str]] = None,
                 max_col_width: Optional[int] = 40) -> None:
    """
    ASCII table preview with MySQL-style borders (non-folding).
    Columns whose sampled values all look numeric are right-aligned.
    """
    out_stream = out if out is not None else sys.stdout
    supports_color = (getattr(out_stream, "isatty", lambda: False)()
                      and os.environ.get("NO_COLOR") is None)
    C_RESET = "\033[0m" if supports_color else ""
    C_BLUE = "\033[94m" if supports_color else ""

    ell = "…"
    try:
        ell.encode(getattr(out_stream, "encoding", None) or "utf-8")
    except (UnicodeError, LookupError):
        ell = "..."

    def _coerce(x) -> str:
        s = "" if x is None else str(x)
        s = s.replace("\r", "").replace("\n", "⏎")
        return re.sub(r"[\x00-\x08\x0b-\x1f\x7f]", "", s)

    def clip(s: str) -> str:
        if max_col_width is None:
            return s
        if wcswidth(s) <= max_col_width:
            return s
        keep = max_col_width - wcswidth(ell)
        if keep <= 0:
            return ell
        acc = ""
        for ch in s:
            if wcswidth(acc + ch) > keep:
                break
            acc += ch
        return acc + ell

    headers = [clip(_coerce(c)) for c in df.columns]
    rows = [[clip(_coerce(v)) for v in row] for row in df.itertuples(index=False, name=None)]

    def numeric_like(j: int) -> bool:
        sample = [r[j] for r in rows if r[j] != ""][:20]
        return bool(sample) and all(_NUM_LIKE_RE.match(v) for v in sample)

    numeric = [numeric_like(j) for j in range(len(headers))]
    widths = [max([wcswidth(headers[j])] + [wcswidth(r[j]) for r in rows])
              for j in range(len(headers))]

    def hline() -> str:
        return "+" + "+".join("-" * (w + 2) for w in widths) + "+"

    def render_row(vals: Sequence[str], is_header: bool = False) -> str:
        cells = []
        for j, w in enumerate(widths):
            v = vals[j]
            pad = " " * (w - wcswidth(v))
            if not is_header and numeric[j]:
                cells.append(" " + pad + C_BLUE + v + C_RESET + " ")
            else:
                cells.append(" " + v + pad + " ")
        return "|" + "|".join(cells) + "|"

    if not widths:
        out_stream.write("(empty table)\n")
        return
    out_stream.write(hline() + "\n")
    out_stream.write(render_row(headers, is_header=True) + "\n")
    out_stream.write(hline() + "\n")
    for r in rows:
        out_stream.write(render_row(r) + "\n")
    out_stream.write(hline() + "\n")
