"""
Appointment and slot reservation models.
"""

from typing import Optional

from ..enums import AppointmentStatus, Channel
from .base import DocumentModel


class Appointment(DocumentModel):
    """A booked appointment. Scheduling reads only the slot fields and status."""

    id: str = ""
    doctor_id: str
    patient_id: str
    appointment_date: str
    appointment_time: str
    status: AppointmentStatus = AppointmentStatus.CONFIRMED

    patient_name: Optional[str] = None
    patient_phone: Optional[str] = None
    doctor_name: Optional[str] = None
    doctor_specialization: Optional[str] = None
    chief_complaint: str = "General consultation"
    medical_history: Optional[str] = None
    payment_amount: Optional[float] = None
    payment_method: Optional[str] = None

    created_by: Channel = Channel.WEB
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def is_confirmed(self) -> bool:
        return self.status == AppointmentStatus.CONFIRMED


class SlotReservation(DocumentModel):
    """Index record that exists while a confirmed appointment holds its slot."""

    appointment_id: str
    doctor_id: str
    appointment_date: str
    appointment_time: str
    created_at: Optional[str] = None


class BookingDetails(DocumentModel):
    """Descriptive appointment fields supplied by the booking channel."""

    chief_complaint: Optional[str] = None
    medical_history: Optional[str] = None
    payment_amount: Optional[float] = None
    payment_method: Optional[str] = None
