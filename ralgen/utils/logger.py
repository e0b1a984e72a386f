"""Logging setup for command line use."""

from __future__ import annotations

import logging
import sys


def setup_logging(level: str = "INFO", quiet: bool = False) -> None:
    root = logging.getLogger()
    root.handlers.clear()

    lvl = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(lvl)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(lvl)
    fmt = "%(message)s" if quiet else "[%(levelname)s] %(name)s: %(message)s"
    handler.setFormatter(logging.Formatter(fmt))
    root.addHandler(handler)
