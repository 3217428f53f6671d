"""
Scheduling-related enums.
"""

from datetime import date
from enum import Enum


class Weekday(str, Enum):
    """Weekday names as stored in doctor schedules."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def from_date(cls, value: date) -> "Weekday":
        """Resolve the weekday of a calendar date."""
        return list(cls)[value.weekday()]

    @property
    def short(self) -> str:
        return self.value[:3].capitalize()


class DoctorStatus(str, Enum):
    """Doctor account status. Only active doctors are schedulable."""

    ACTIVE = "active"
    PENDING = "pending"
    INACTIVE = "inactive"


class AppointmentStatus(str, Enum):
    """Appointment lifecycle status."""

    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RecheckupStatus(str, Enum):
    """Follow-up request status."""

    PENDING = "pending"
    BOOKED = "booked"
    DISMISSED = "dismissed"
