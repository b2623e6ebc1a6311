# Shared helpers: reader/writer, column ranges, argument parsing, logging, help formatting.
from __future__ import annotations

from . import io, parsing, columns, formatters, rewrite
from . import logging as ULOG

__all__ = ["io", "parsing", "columns", "formatters", "rewrite", "ULOG"]
