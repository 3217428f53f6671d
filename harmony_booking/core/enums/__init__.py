"""
Enumerations for the booking service.
"""

from .scheduling import Weekday, DoctorStatus, AppointmentStatus, RecheckupStatus
from .conversation import SessionState, Channel

__all__ = [
    "Weekday",
    "DoctorStatus",
    "AppointmentStatus",
    "RecheckupStatus",
    "SessionState",
    "Channel",
]
