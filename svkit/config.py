"""
Immutable run configuration.

A `Config` is built once from the parsed command line and passed explicitly
to every pipeline component; nothing in the pipeline mutates it.
"""
from __future__ import annotations
import re
import argparse
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional, Pattern, Tuple

from svkit.errors import ConfigError
from svkit.utils.columns import FieldRange, parse_field_ranges
from svkit.utils.io import normalize_sep
from svkit.utils.rewrite import expander, replace_all


@dataclass(frozen=True)
class GrepRule:
    """Regex rule for one field (0-based); template=None means match only."""
    index: int
    pattern: Pattern[str]
    template: Optional[str] = None
    _expand: Optional[Callable[["re.Match[str]"], str]] = field(
        default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.template is not None:
            object.__setattr__(self, "_expand", expander(self.template))

    @property
    def is_rewrite(self) -> bool:
        return self.template is not None

    def matches(self, value: str) -> bool:
        return self.pattern.search(value) is not None

    def rewrite(self, value: str) -> str:
        if self._expand is None:
            return value
        return replace_all(self.pattern, value, self._expand)


def compile_rules(raw: Mapping[int, Mapping[str, Optional[str]]]) -> Mapping[int, GrepRule]:
    """Compile raw {field: {pattern, template}} entries, keeping their order."""
    rules: Dict[int, GrepRule] = {}
    for fld, parts in raw.items():
        src = parts.get("pattern") or ""
        try:
            pat = re.compile(src)
        except re.error as e:
            raise ConfigError(f"Bad regex for field {fld + 1} '{src}': {e}") from e
        rules[fld] = GrepRule(fld, pat, parts.get("template"))
    return MappingProxyType(rules)


def _non_negative(name: str, value) -> int:
    v = int(value or 0)
    if v < 0:
        raise ConfigError(f"--{name} must be >= 0, got {v}")
    return v


@dataclass(frozen=True)
class Config:
    # reader
    sep: str = ","
    comment: Optional[str] = None
    fields_per_line: int = -1
    lazy_quotes: bool = False
    trailing_comma: bool = True
    trim_leading_space: bool = False
    encoding: str = "utf-8"
    # writer
    output_sep: str = ","
    crlf: bool = False
    pretty: bool = False
    # pipeline
    ignore_beginning: int = 0
    ignore_end: int = 0
    no_header: bool = False
    line_numbers: bool = False
    zero_based: bool = False
    delete_empty: bool = False
    names_only: bool = False
    # tools
    columns: Tuple[FieldRange, ...] = ()
    reverse: bool = False
    rules: Mapping[int, GrepRule] = field(default_factory=lambda: MappingProxyType({}))
    filter_rows: bool = True
    invert: bool = False

    @property
    def first_line_number(self) -> int:
        return 0 if self.zero_based else 1

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "Config":
        """Validate an argparse namespace (or SimpleNamespace) into a Config."""
        sep = "\t" if getattr(args, "tab", False) else normalize_sep(getattr(args, "sep", None))
        output_sep = normalize_sep(getattr(args, "output_sep", None), default=sep)

        comment = getattr(args, "comment", None) or None
        if comment is not None and len(comment) != 1:
            raise ConfigError(f"--comment must be a single character, got {comment!r}")
        if comment == sep:
            raise ConfigError("--comment and the input separator must differ")

        fields_per_line = int(getattr(args, "fields_per_line", -1))
        if fields_per_line < -1:
            raise ConfigError(f"--fields-per-line must be -1, 0 or positive, got {fields_per_line}")

        names_only = bool(getattr(args, "names", False))
        no_header = bool(getattr(args, "no_header", False))
        if names_only and no_header:
            raise ConfigError("--names and --no-header are incompatible")

        rules = getattr(args, "rules", None)
        if rules is None:
            rules = MappingProxyType({})
        elif not isinstance(rules, MappingProxyType):
            rules = MappingProxyType(dict(rules))

        return cls(
            sep=sep,
            comment=comment,
            fields_per_line=fields_per_line,
            lazy_quotes=bool(getattr(args, "lazy_quotes", False)),
            trailing_comma=bool(getattr(args, "trailing_comma", True)),
            trim_leading_space=bool(getattr(args, "trim_leading_space", False)),
            encoding=getattr(args, "encoding", None) or "utf-8",
            output_sep=output_sep,
            crlf=bool(getattr(args, "crlf", False)),
            pretty=bool(getattr(args, "pretty", False)),
            ignore_beginning=_non_negative("ignore-beginning", getattr(args, "ignore_beginning", 0)),
            ignore_end=_non_negative("ignore-end", getattr(args, "ignore_end", 0)),
            no_header=no_header,
            line_numbers=bool(getattr(args, "line_numbers", False)),
            zero_based=bool(getattr(args, "zero_based", False)),
            delete_empty=bool(getattr(args, "delete_empty", False)),
            names_only=names_only,
            columns=parse_field_ranges(getattr(args, "columns", None)),
            reverse=bool(getattr(args, "reverse", False)),
            rules=rules,
            filter_rows=bool(getattr(args, "filter_rows", True)),
            invert=bool(getattr(args, "invert", False)),
        )
