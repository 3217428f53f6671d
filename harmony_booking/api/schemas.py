"""
Request and response bodies of the booking API.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.enums import Channel


class DoctorSummary(BaseModel):
    id: str
    name: str
    specialization: str
    consultation_fee: Optional[float] = None
    availability_days: List[str] = Field(default_factory=list)


class AppointmentRequest(BaseModel):
    """Web booking form submission."""

    model_config = ConfigDict(extra="forbid")

    doctor_id: str
    patient_id: str
    date: str
    time: str
    chief_complaint: Optional[str] = None
    medical_history: Optional[str] = None
    payment_amount: Optional[float] = None
    payment_method: Optional[str] = None
    created_by: Channel = Channel.WEB


class AppointmentCreated(BaseModel):
    id: str
    slot_key: str
    appointment_date: str
    appointment_time: str
    duplicate_time: Optional[str] = None


class RescheduleRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    date: str
    time: str
    patient_id: Optional[str] = None


class CancelRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    patient_id: Optional[str] = None


class SlotCheck(BaseModel):
    available: bool
    slot_key: str


class DateOption(BaseModel):
    date: str
    label: str
