"""
Logging setup shared by the application.
"""

import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_configured = False


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger."""
    global _configured
    root = logging.getLogger()
    root.setLevel(level.upper())
    if _configured:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    _configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger under the ``harmony`` namespace."""
    if not name:
        return logging.getLogger("harmony")
    if name == "harmony" or name.startswith("harmony."):
        return logging.getLogger(name)
    return logging.getLogger(f"harmony.{name}")
