"""
Data models for the booking service.
"""

from .base import DocumentModel
from .doctor import (
    TimeWindow,
    DaySchedule,
    BlockedDateRange,
    Doctor,
    DEFAULT_VISITING_HOURS,
    DEFAULT_BLOCK_REASON,
)
from .appointment import Appointment, SlotReservation, BookingDetails
from .patient import Patient, RecheckupRequest
from .session import BookingSession
from .availability import DayAvailability
from .chat import InboundMessage

__all__ = [
    "DocumentModel",
    "TimeWindow",
    "DaySchedule",
    "BlockedDateRange",
    "Doctor",
    "DEFAULT_VISITING_HOURS",
    "DEFAULT_BLOCK_REASON",
    "Appointment",
    "SlotReservation",
    "BookingDetails",
    "Patient",
    "RecheckupRequest",
    "BookingSession",
    "DayAvailability",
    "InboundMessage",
]
