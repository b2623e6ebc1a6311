from __future__ import annotations
from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("svkit")
except PackageNotFoundError:  # local dev
    __version__ = "0.0.0.dev0"

from . import core, pipeline, utils
from .config import Config

__all__ = ["Config", "core", "pipeline", "utils", "__version__"]
