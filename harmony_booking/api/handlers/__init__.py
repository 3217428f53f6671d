"""
HTTP route handlers.
"""

from .health import HealthHandler
from .booking import BookingHandler

__all__ = ["HealthHandler", "BookingHandler"]
