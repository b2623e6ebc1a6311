from __future__ import annotations
import re
import argparse
from typing import Dict, List, Optional, Sequence, Tuple

from svkit.errors import ConfigError
from svkit.utils import formatters as UFMT

# -rN=<regexp> / -wN=<replacement>, N is a 1-based field number
_RULE_ARG_RE = re.compile(r"-([rw])(\d+)=(.*)", re.DOTALL)


def split_rule_args(argv: Sequence[str]) -> Tuple[List[str], Dict[int, Dict[str, Optional[str]]]]:
    """
    Pull grep rule flags out of argv before argparse sees them.

    Returns (remaining_argv, raw) where raw maps the 0-based field index to
    {"pattern": ..., "template": ...} in first-seen order. Repeating a flag
    for the same field overwrites that part of the rule. Scanning stops at '--'.
    """
    rest: List[str] = []
    raw: Dict[int, Dict[str, Optional[str]]] = {}
    for i, a in enumerate(argv):
        if a == "--":
            rest.extend(argv[i:])
            break
        m = _RULE_ARG_RE.fullmatch(a)
        if not m:
            rest.append(a)
            continue
        kind, num, value = m.groups()
        field = int(num) - 1
        if field < 0:
            raise ConfigError(f"{a}: field numbers start at 1")
        rule = raw.setdefault(field, {"pattern": None, "template": None})
        rule["pattern" if kind == "r" else "template"] = value
    return rest, raw


def add_common_io_args(ap: argparse.ArgumentParser) -> None:
    g = ap.add_argument_group("I/O")
    g.add_argument("-O", "--out-file", dest="out_file", help="Output file (default: stdout).")
    g.add_argument("--sep", default=",",
                   help="Input field separator: csv,tsv,tab,pipe,space,\\t or one character (default: ,).")
    g.add_argument("-t", "--tab", action="store_true",
                   help="Input separator is the tab character (overrides --sep).")
    g.add_argument("--output-sep", dest="output_sep",
                   help="Output field separator (default: input separator).")
    g.add_argument("--crlf", action="store_true", help="Use CRLF line endings on output.")
    g.add_argument("--encoding", default="utf-8")
    g.add_argument("--comment", help="Skip input lines beginning with this character.")
    g.add_argument("--fields-per-line", dest="fields_per_line", type=int, default=-1,
                   help="Expected fields per record: -1 any, 0 same as first record (default: -1).")
    g.add_argument("--lazy-quotes", dest="lazy_quotes", action="store_true",
                   help="Tolerate stray quotes in fields.")
    g.add_argument("--no-trailing-comma", dest="trailing_comma", action="store_false",
                   help="Reject records ending with an empty last field.")
    g.add_argument("--trim-leading-space", dest="trim_leading_space", action="store_true",
                   help="Ignore whitespace following a separator.")
    g.add_argument("--ignore-beginning", dest="ignore_beginning", type=int, default=0,
                   metavar="N", help="Skip the first N physical lines.")
    g.add_argument("--ignore-end", dest="ignore_end", type=int, default=0,
                   metavar="N", help="Drop the last N records.")
    g.add_argument("--no-header", action="store_true",
                   help="Treat input as headerless; a C1..Cn header is generated.")
    g.add_argument("--pretty", action="store_true", help="Pretty-print result to stdout.")
    g.add_argument("--quiet", action="store_true")
    g.add_argument("--debug", action="store_true")
    g.add_argument("--log-file", dest="log_file")


def add_numbering_args(ap: argparse.ArgumentParser) -> None:
    g = ap.add_argument_group("Numbering")
    g.add_argument("-l", "--line-numbers", dest="line_numbers", action="store_true",
                   help="Insert a column of line numbers at the front of the output.")
    g.add_argument("-z", "--zero-based", dest="zero_based", action="store_true",
                   help="Start line numbers at 0.")


def add_commands_flag(ap: argparse.ArgumentParser) -> None:
    ap.add_argument("--commands", action=UFMT.CommandsAction,
                    help="Show the available commands as a tree and exit.")
