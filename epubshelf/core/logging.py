"""Package logging helpers.

All modules log through children of the ``epubshelf`` logger so a host
application can attach its own handlers or silence the engine in one place.
"""
from __future__ import annotations

import logging
import threading

from epubshelf.core.config import log_level_name

ROOT_NAME = "epubshelf"

_LOCK = threading.Lock()
_CONFIGURED = False


def configure(level: str | None = None) -> logging.Logger:
    global _CONFIGURED
    root = logging.getLogger(ROOT_NAME)
    with _LOCK:
        level_name = (level or log_level_name()).upper()
        root.setLevel(getattr(logging, level_name, logging.INFO))
        if not _CONFIGURED:
            if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
                handler = logging.StreamHandler()
                handler.setFormatter(logging.Formatter("[epubshelf] %(asctime)s %(levelname)s %(name)s %(message)s"))
                root.addHandler(handler)
            _CONFIGURED = True
    return root


def get_logger(name: str = ROOT_NAME) -> logging.Logger:
    if not _CONFIGURED:
        configure()
    if name != ROOT_NAME and not name.startswith(ROOT_NAME + "."):
        name = f"{ROOT_NAME}.{name}"
    return logging.getLogger(name)


__all__ = ["configure", "get_logger"]
