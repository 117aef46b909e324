"""Logging setup for the command line tools."""

from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATEFMT = "%H:%M:%S"


def setup_logging(verbosity: int = 0) -> logging.Logger:
    """
    Attach one stream handler to the ``wordlebits`` logger tree.

    verbosity 0 -> WARNING, 1 -> INFO, 2+ -> DEBUG. Calling it again only
    adjusts the level, so repeated CLI invocations in one process do not
    stack handlers.
    """
    if verbosity <= 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    root = logging.getLogger("wordlebits")
    root.setLevel(level)
    if not any(getattr(h, "_wordlebits", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATEFMT))
        handler._wordlebits = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    for h in root.handlers:
        h.setLevel(level)
    return root
