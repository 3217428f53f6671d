"""
Conversation session model.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from ..enums import SessionState
from .base import DocumentModel


class BookingSession(DocumentModel):
    """Persisted chat booking state for one phone number."""

    phone: str
    state: SessionState = SessionState.IDLE
    patient_id: Optional[str] = None
    selected_doctor_id: Optional[str] = None
    selected_date: Optional[str] = None
    selected_time: Optional[str] = None
    is_recheckup: bool = False
    recheckup_appointment_id: Optional[str] = None
    recheckup_request_id: Optional[str] = None

    # Lists last shown to the user, so ordinals resolve against what they saw.
    offered_doctor_ids: List[str] = Field(default_factory=list)
    offered_dates: List[str] = Field(default_factory=list)
    offered_times: List[str] = Field(default_factory=list)

    created_at: datetime
    updated_at: datetime
