"""
Patient and follow-up request models.
"""

from typing import Optional

from ..enums import RecheckupStatus
from .base import DocumentModel


class Patient(DocumentModel):
    """Registered patient."""

    id: str
    first_name: str = ""
    last_name: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    phone_number: Optional[str] = None
    contact: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or "Patient"

    @property
    def primary_phone(self) -> Optional[str]:
        return self.phone or self.phone_number or self.contact


class RecheckupRequest(DocumentModel):
    """Follow-up reminder sent by a doctor after a visit."""

    id: str = ""
    appointment_id: str
    patient_id: str
    patient_phone: Optional[str] = None
    doctor_id: Optional[str] = None
    doctor_name: Optional[str] = None
    original_appointment_date: Optional[str] = None
    message: Optional[str] = None
    sent_at: Optional[str] = None
    status: RecheckupStatus = RecheckupStatus.PENDING
    booked_appointment_id: Optional[str] = None
