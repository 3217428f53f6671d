"""
Custom exceptions for the booking service.
"""

from .booking import (
    BookingFlowError,
    InvalidTimeFormatError,
    InvalidSelectionError,
    NoAvailableSlotsError,
    SlotAlreadyBookedError,
    SessionExpiredError,
    AppointmentNotFoundError,
    AppointmentAccessError,
    InvalidAppointmentStateError,
    DuplicateBookingError,
)
from .directory import DirectoryError, DoctorNotFoundError, PatientNotFoundError
from .storage import StorageError, StoreUnavailableError
from .external import ExternalAPIError, NotificationError

__all__ = [
    "BookingFlowError",
    "InvalidTimeFormatError",
    "InvalidSelectionError",
    "NoAvailableSlotsError",
    "SlotAlreadyBookedError",
    "SessionExpiredError",
    "AppointmentNotFoundError",
    "AppointmentAccessError",
    "InvalidAppointmentStateError",
    "DuplicateBookingError",
    "DirectoryError",
    "DoctorNotFoundError",
    "PatientNotFoundError",
    "StorageError",
    "StoreUnavailableError",
    "ExternalAPIError",
    "NotificationError",
]
