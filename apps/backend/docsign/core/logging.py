"""Logging helpers shared by every module."""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | int = logging.INFO) -> None:
    """Install a single stream handler on the root ``docsign`` logger."""
    root = logging.getLogger("docsign")
    root.setLevel(level)

    if not any(getattr(h, "_docsign", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._docsign = True  # type: ignore[attr-defined]
        root.addHandler(handler)


def get_logger(name: str, level: str | int | None = None) -> logging.Logger:
    """Return a module logger, optionally overriding its level."""
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return logger
