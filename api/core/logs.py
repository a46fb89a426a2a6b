"""
Process-wide logging setup.

Level comes from ISSUER_LOG (e.g. DEBUG, INFO, WARNING); output goes to stderr.
"""

from __future__ import annotations

import logging
import os
import sys

DEFAULT_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def log_level() -> int:
    raw = os.environ.get("ISSUER_LOG", DEFAULT_LEVEL).strip().upper() or DEFAULT_LEVEL
    level = logging.getLevelName(raw)
    # getLevelName returns a string for unknown names.
    if not isinstance(level, int):
        return logging.INFO
    return level


def setup_logging() -> None:
    root = logging.getLogger()
    if any(getattr(h, "_issuer_handler", False) for h in root.handlers):
        return None

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._issuer_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(log_level())
