"""
Exception hierarchy shared by the svkit tools.

Every error is fatal for the run: the CLI logs it once and exits with 1.
"""
from __future__ import annotations


class SvkitError(Exception):
    """Base exception for all svkit failures."""


class ConfigError(SvkitError, ValueError):
    """Bad column spec, regex, rule flag or option combination."""


class RecordSyntaxError(SvkitError, ValueError):
    """The separated-value reader rejected the input."""


class PipelineError(SvkitError, ValueError):
    """A run-time condition that aborts the pipeline."""


class FieldIndexError(SvkitError, IndexError):
    """A range or rule referenced a field the record does not have."""

    def __init__(self, index: int, length: int) -> None:
        # index is 1-based
        self.index = index
        self.length = length
        super().__init__(f"{index}: no such field in record of length {length}")
