"""
Scheduling core: time normalization, availability and reservations.
"""

from .time_normalizer import normalize_time, format_time_display, iter_slot_times
from .calendar import AvailabilityCalendar
from .repository import AppointmentRepository
from .resolver import SlotAvailabilityResolver, partition_slots
from .transactions import BookingTransactionManager

__all__ = [
    "normalize_time",
    "format_time_display",
    "iter_slot_times",
    "AvailabilityCalendar",
    "AppointmentRepository",
    "SlotAvailabilityResolver",
    "partition_slots",
    "BookingTransactionManager",
]
