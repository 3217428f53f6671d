"""
HTTP middleware: access logging and security headers.
"""

from .logging import LoggingMiddleware
from .security import SecurityHeaders

__all__ = ["LoggingMiddleware", "SecurityHeaders"]
