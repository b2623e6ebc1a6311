from __future__ import annotations
import sys
import argparse
import traceback
import signal
from typing import Iterator, List, Optional, Sequence

from . import __version__
from .config import Config, compile_rules
from .errors import ConfigError, FieldIndexError, SvkitError
from .pipeline import (
    Record, RecordTransform, identity_transform, process, sort_records,
)
from .utils import io as UIO
from .utils import parsing as UP
from .utils import logging as ULOG
from .utils import columns as UCOL
from .utils import formatters as UFMT

__VERSION__ = __version__

CUT_DESCRIPTION = """\
Select and reorder fields of separated-value records, like unix "cut".

Columns are a comma-separated list of 1-based field numbers or ranges:

  svkit cut -c 1-4,10 input.csv out.csv

With no output argument (or "-") the result goes to stdout.
"""

GREP_DESCRIPTION = """\
Keep rows whose fields match regular expressions, optionally rewriting them.

  -rN=<regexp>       regular expression to match in field N (1-based)
  -wN=<replacement>  replacement for matches in field N; $1.. are groups,
                     $0 is the whole match, $$ is a literal dollar

Rows that do not match are dropped (-v drops matching rows instead,
--no-filter keeps every row and only rewrites). The header always passes.

  svkit grep -r2='^TOP$' input.csv
  svkit grep --no-filter -r1='^(\\d+)-(\\d+)$' -w1='$2-$1' input.csv
"""

SORT_DESCRIPTION = """\
Sort records by one or more fields; the header row passes through unsorted.

Keys are a comma-separated list of 1-based field numbers or ranges, each
optionally suffixed with "n" for numeric ordering:

  svkit sort -c 4,5n input.csv

sorts by the fourth field, then numerically by the fifth. Values that do not
parse as numbers sort before values that do.
"""


#-- Record transforms --
def make_cut_transform(config: Config) -> RecordTransform:
    """Project each record (header included) onto the configured ranges."""
    ranges = config.columns

    def transform(record: Sequence[str], line_no: int, is_header: bool) -> Record:
        return UCOL.project(record, ranges)

    return transform


def make_grep_transform(config: Config) -> RecordTransform:
    """
    Apply the regex rules in declaration order.
    A row is dropped as soon as a rule's match result equals `invert` (when
    filtering); rewrite rules replace the field before the next rule runs.
    Header rows skip all rules.
    """
    rules = tuple(config.rules.values())
    filtering, invert = config.filter_rows, config.invert

    def transform(record: Sequence[str], line_no: int, is_header: bool) -> Optional[Record]:
        out = list(record)
        if is_header or not rules:
            return out
        for rule in rules:
            if rule.index >= len(out):
                raise FieldIndexError(rule.index + 1, len(out))
            if filtering and rule.matches(out[rule.index]) == invert:
                return None
            if rule.is_rewrite:
                out[rule.index] = rule.rewrite(out[rule.index])
        return out

    return transform


#-- Tool handlers --
def _handle_cut(records: Iterator[List[str]], sink, config: Config) -> int:
    return process(records, sink, make_cut_transform(config), config)


def _handle_grep(records: Iterator[List[str]], sink, config: Config) -> int:
    if not config.rules:
        ULOG.get_logger(__name__).warning("No -rN/-wN rules given; rows pass through unchanged.")
    return process(records, sink, make_grep_transform(config), config)


def _handle_sort(records: Iterator[List[str]], sink, config: Config) -> int:
    return sort_records(records, sink, config)


def _handle_names(records: Iterator[List[str]], out, config: Config) -> int:
    """Print the header as 'index: name' lines; the body is never read."""
    first = next(records, None)
    if first is not None:
        UIO.print_names(identity_transform(first, 0, True), out, pretty=config.pretty)
    return 0


#-- Parser --
def _attach_cut(subparsers: argparse._SubParsersAction, *, parents=None) -> None:
    p = subparsers.add_parser("cut", help="Select and reorder columns",
                              description=CUT_DESCRIPTION, parents=parents,
                              formatter_class=UFMT.ToolHelpFormatter)
    p.add_argument("input", nargs="?", help="Input file (default: stdin).")
    p.add_argument("output", nargs="?", help="Output file; '-' for stdout (default: stdout).")
    p.add_argument("-c", "--columns", default="",
                   help="Comma-separated 1-based columns or ranges to extract (default: all).")
    p.add_argument("-d", "--delete-empty", dest="delete_empty", action="store_true",
                   help="After cutting, delete rows that are completely empty.")
    p.add_argument("-n", "--names", action="store_true",
                   help="Display column names and indices from the input and exit.")
    UP.add_numbering_args(p)
    p.set_defaults(handler=_handle_cut)


def _attach_grep(subparsers: argparse._SubParsersAction, *, parents=None) -> None:
    p = subparsers.add_parser("grep", help="Filter rows by per-field regex, with rewrite",
                              description=GREP_DESCRIPTION, parents=parents,
                              formatter_class=UFMT.ToolHelpFormatter)
    p.add_argument("input", nargs="?", help="Input file (default: stdin).")
    p.add_argument("--no-filter", dest="filter_rows", action="store_false",
                   help="Do not drop rows; only apply -wN rewrites.")
    p.add_argument("-v", "--invert", action="store_true",
                   help="Drop matching rows instead of non-matching ones.")
    p.add_argument("-d", "--delete-empty", dest="delete_empty", action="store_true",
                   help="Delete rows that are completely empty.")
    UP.add_numbering_args(p)
    p.set_defaults(handler=_handle_grep)


def _attach_sort(subparsers: argparse._SubParsersAction, *, parents=None) -> None:
    p = subparsers.add_parser("sort", help="Sort rows by one or more fields",
                              description=SORT_DESCRIPTION, parents=parents,
                              formatter_class=UFMT.ToolHelpFormatter)
    p.add_argument("input", nargs="?", help="Input file (default: stdin).")
    p.add_argument("-c", "--columns", default="",
                   help="Comma-separated 1-based sort keys; suffix 'n' for numeric (default: 1).")
    p.add_argument("-r", "--reverse", action="store_true", help="Reverse sort order.")
    p.add_argument("-n", "--names", action="store_true",
                   help="Display column names and indices from the input and exit.")
    UP.add_numbering_args(p)
    p.set_defaults(handler=_handle_sort)


def build_parser() -> argparse.ArgumentParser:
    ap = UFMT.CustomArgumentParser(
        prog="svkit",
        description="Cut, grep and sort separated-value (CSV/TSV) streams",
        formatter_class=UFMT.CommandGroupHelpFormatter,
        add_help=False,
    )
    common_parent = argparse.ArgumentParser(add_help=False)
    UP.add_common_io_args(common_parent)

    g = ap.add_argument_group("Global Options")
    g.add_argument("-h", "--help", action="help", help=argparse.SUPPRESS)
    g.add_argument("--version", action="version", version=str(__VERSION__))
    UP.add_commands_flag(ap)
    subs = ap.add_subparsers(dest="command", metavar="command", required=True,
                             parser_class=UFMT.CustomArgumentParser)
    _attach_cut(subs, parents=[common_parent])
    _attach_grep(subs, parents=[common_parent])
    _attach_sort(subs, parents=[common_parent])
    return ap


#-- Runner --
def _resolve_paths(args: argparse.Namespace):
    out_positional = getattr(args, "output", None)
    out_flag = getattr(args, "out_file", None)
    if out_positional and out_flag:
        raise ConfigError("Give the output either as an argument or with -O, not both.")
    return getattr(args, "input", None), out_positional or out_flag


def run_handler(args: argparse.Namespace, logger) -> int:
    handler = getattr(args, "handler", None)
    if handler is None:
        raise ConfigError("No command selected. Use --help.")

    config = Config.from_args(args)
    logger.debug("Configuration: %s", config)
    in_path, out_path = _resolve_paths(args)

    with UIO.open_streams(in_path, out_path, encoding=config.encoding) as (fin, fout):
        UIO.skip_lines(fin, config.ignore_beginning)
        records = UIO.read_records(fin, config, line_offset=config.ignore_beginning)
        if config.names_only:
            return _handle_names(records, fout, config)
        handler(records, UIO.make_sink(fout, config), config)
    return 0


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else list(argv)
    try:
        signal.signal(signal.SIGPIPE, signal.SIG_DFL)
    except (AttributeError, ValueError):
        pass

    parser = build_parser()
    if not argv:
        parser.print_help(sys.stderr)
        return 1

    ULOG.configure()
    logger = ULOG.get_logger("svkit.core")
    try:
        argv, raw_rules = UP.split_rule_args(argv)
        args = parser.parse_args(argv)
    except SystemExit as e:
        return 0 if e.code in (0, None) else 1
    except ConfigError as e:
        logger.error(str(e))
        return 1

    debug = getattr(args, "debug", False)
    ULOG.configure(quiet=getattr(args, "quiet", False), debug=debug,
                   log_file=getattr(args, "log_file", None))

    try:
        if raw_rules and args.command != "grep":
            raise ConfigError("-rN/-wN rules are only valid for grep")
        args.rules = compile_rules(raw_rules)
        return run_handler(args, logger)
    except BrokenPipeError:
        try:
            sys.stdout.close()
        except OSError:
            pass
        return 0
    except (SvkitError, OSError) as e:
        logger.error(str(e))
        if debug: traceback.print_exc()
        return 1
    except Exception as e:
        logger.error("An unexpected error occurred: %s", e)
        if debug: traceback.print_exc()
        return 1


def _tool_main(tool: str, argv=None) -> int:
    argv = sys.argv[1:] if argv is None else list(argv)
    return main([tool, *argv])


def cut_main(argv=None) -> int:
    return _tool_main("cut", argv)


def grep_main(argv=None) -> int:
    return _tool_main("grep", argv)


def sort_main(argv=None) -> int:
    return _tool_main("sort", argv)


if __name__ == "__main__":
    raise SystemExit(main())
