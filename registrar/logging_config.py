"""Process-wide logging setup."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def configure_logging(level: str | int = logging.INFO) -> None:
    """Install a single stderr handler on the root logger. Safe to call twice."""
    global _configured

    root = logging.getLogger()
    root.setLevel(level if isinstance(level, int) else level.upper())
    if _configured:
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    _configured = True
