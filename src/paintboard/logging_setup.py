"""Logging configuration for the paintboard entry point.

Library modules only create module loggers with ``logging.getLogger(__name__)``;
handlers are attached once here by :func:`setup_logging`.
"""

from __future__ import annotations

import logging
import sys
from typing import Union

_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_configured = False


def setup_logging(level: Union[int, str] = "INFO") -> None:
    """Attach a stderr handler to the ``paintboard`` logger.

    Repeated calls only update the level.
    """
    global _configured
    root = logging.getLogger("paintboard")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    root.setLevel(level)
    if _configured:
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    root.addHandler(handler)
    root.propagate = False
    _configured = True
