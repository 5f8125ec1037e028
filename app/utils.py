"""
Shared helpers.
"""
import logging
import sys

from app.core import config

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_configured = False


def _configure_root() -> None:
    global _configured
    if _configured:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root = logging.getLogger("app")
    root.addHandler(handler)
    root.setLevel(config.LOG_LEVEL)
    root.propagate = False
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a module logger under the "app" hierarchy.

    Usage:
        log = get_logger(__name__)
        log.info("Starting")
    """
    _configure_root()
    if name != "app" and not name.startswith("app."):
        name = f"app.{name}"
    return logging.getLogger(name)
