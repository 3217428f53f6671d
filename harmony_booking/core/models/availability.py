"""
Resolved availability for a doctor on one date.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class DayAvailability(BaseModel):
    """The four slot partitions of a day plus the duplicate-booking advisory."""

    doctor_id: str
    date: str
    all_slots: List[str] = Field(default_factory=list)
    booked_slots: List[str] = Field(default_factory=list)
    past_slots: List[str] = Field(default_factory=list)
    available_slots: List[str] = Field(default_factory=list)
    duplicate_time: Optional[str] = None
    is_available_weekday: bool = True
    is_blocked: bool = False
    blocked_reason: Optional[str] = None

    @property
    def has_duplicate(self) -> bool:
        return self.duplicate_time is not None

    @property
    def has_open_slots(self) -> bool:
        return bool(self.available_slots)
