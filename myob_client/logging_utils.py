from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> logging.Logger:
    """Attach a single stream handler to the package logger."""
    logger = logging.getLogger("myob_client")
    resolved_level = (level or os.getenv("MYOB_LOG_LEVEL", "WARNING")).strip().upper()
    logger.setLevel(getattr(logging, resolved_level, logging.WARNING))

    if not any(getattr(handler, "_myob_client_handler", False) for handler in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._myob_client_handler = True
        logger.addHandler(handler)
    return logger
