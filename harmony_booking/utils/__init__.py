"""
Utility helpers for the booking service.
"""

from .phone import PhoneNumberParser
from .text import TextProcessor
from .date import Clock, FixedClock, DateParser, utc_now_iso
from .validation import ValidationUtils

__all__ = [
    "PhoneNumberParser",
    "TextProcessor",
    "Clock",
    "FixedClock",
    "DateParser",
    "utc_now_iso",
    "ValidationUtils",
]
