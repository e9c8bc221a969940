"""Logging setup for the workforce engine.

Modules log through ``logging.getLogger(__name__)``; this only installs a
handler and level on the package logger, once.
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a stream handler to the ``workforce_engine`` logger."""
    global _configured
    logger = logging.getLogger("workforce_engine")
    logger.setLevel(level)
    if not _configured:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        _configured = True
    return logger
