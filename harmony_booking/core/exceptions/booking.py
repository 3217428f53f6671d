"""
Booking-related exceptions.
"""

from typing import Optional


class BookingFlowError(Exception):
    """Base exception for booking flow errors."""
    pass


class InvalidTimeFormatError(BookingFlowError):
    """Exception raised when a time value cannot be normalized to HH:MM."""

    def __init__(self, raw: object):
        self.raw = raw
        super().__init__(f"Invalid time format: {raw!r}")


class InvalidSelectionError(BookingFlowError):
    """Exception raised for out-of-range ordinals or unparseable dates/times."""
    pass


class NoAvailableSlotsError(BookingFlowError):
    """Exception raised when a doctor/date combination has no open slots."""
    pass


class SlotAlreadyBookedError(BookingFlowError):
    """Exception raised when the slot was reserved by someone else first."""

    def __init__(self, slot_key: str, message: Optional[str] = None):
        self.slot_key = slot_key
        super().__init__(message or f"Slot already booked: {slot_key}")


class SessionExpiredError(BookingFlowError):
    """Exception raised when an advanced session lost its doctor/date/time."""
    pass


class AppointmentNotFoundError(BookingFlowError):
    """Exception raised when an appointment id does not exist."""
    pass


class AppointmentAccessError(BookingFlowError):
    """Exception raised when a patient acts on someone else's appointment."""
    pass


class InvalidAppointmentStateError(BookingFlowError):
    """Exception raised when an appointment is no longer confirmed."""
    pass


class DuplicateBookingError(BookingFlowError):
    """Exception raised when duplicate same-day bookings are configured as blocking."""
    pass
