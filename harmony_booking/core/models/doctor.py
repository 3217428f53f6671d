"""
Doctor and weekly availability models.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, Field, field_validator, model_validator

from ..enums import DoctorStatus, Weekday
from .base import DocumentModel

DEFAULT_BLOCK_REASON = "Doctor not available"


class TimeWindow(DocumentModel):
    """A visiting window on one weekday, ``start`` inclusive and ``end`` exclusive."""

    start: str
    end: str


class DaySchedule(DocumentModel):
    """Visiting windows for one weekday."""

    is_available: bool = False
    slots: List[TimeWindow] = Field(default_factory=list)


def _default_week() -> Dict[Weekday, DaySchedule]:
    weekday_windows = [TimeWindow(start="09:00", end="13:00"), TimeWindow(start="14:00", end="17:00")]
    week = {
        day: DaySchedule(is_available=True, slots=list(weekday_windows))
        for day in (
            Weekday.MONDAY,
            Weekday.TUESDAY,
            Weekday.WEDNESDAY,
            Weekday.THURSDAY,
            Weekday.FRIDAY,
        )
    }
    week[Weekday.SATURDAY] = DaySchedule(
        is_available=True, slots=[TimeWindow(start="09:00", end="13:00")]
    )
    week[Weekday.SUNDAY] = DaySchedule(is_available=False, slots=[])
    return week


DEFAULT_VISITING_HOURS: Dict[Weekday, DaySchedule] = _default_week()


def _coerce_date(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        return value.strip()[:10]
    return value


class BlockedDateRange(DocumentModel):
    """An inclusive range of dates on which the doctor takes no bookings.

    Stored documents use a few historical shapes: a bare ``"YYYY-MM-DD"``
    string, ``{"date": ..., "reason": ...}``, or ``{"startDate", "endDate"}``.
    """

    start_date: date
    end_date: date
    reason: str = DEFAULT_BLOCK_REASON

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_shapes(cls, data: Any) -> Any:
        if isinstance(data, (str, date, datetime)):
            day = _coerce_date(data)
            return {"startDate": day, "endDate": day}
        if isinstance(data, dict):
            data = dict(data)
            single = data.pop("date", None)
            if single is not None:
                day = _coerce_date(single)
                data.setdefault("startDate", day)
                data.setdefault("endDate", day)
            for key in ("startDate", "start_date", "endDate", "end_date"):
                if key in data:
                    data[key] = _coerce_date(data[key])
            if "endDate" not in data and "end_date" not in data:
                data["endDate"] = data.get("startDate", data.get("start_date"))
            if not data.get("reason"):
                data.pop("reason", None)
        return data

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


class Doctor(DocumentModel):
    """Doctor record as read by the scheduling core."""

    id: str
    first_name: str = ""
    last_name: str = ""
    specialization: str = ""
    consultation_fee: Optional[float] = None
    status: DoctorStatus = DoctorStatus.ACTIVE
    weekly_visiting_hours: Optional[Dict[Weekday, DaySchedule]] = Field(
        default=None,
        validation_alias=AliasChoices(
            "weeklyVisitingHours", "visitingHours", "weekly_visiting_hours"
        ),
    )
    blocked_dates: List[BlockedDateRange] = Field(default_factory=list)
    slot_granularity_minutes: Optional[int] = None

    @field_validator("weekly_visiting_hours", mode="before")
    @classmethod
    def _lowercase_weekdays(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {str(k).strip().lower(): v for k, v in value.items()}
        return value

    @field_validator("blocked_dates", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return value or []

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def display_name(self) -> str:
        return f"Dr. {self.full_name}"

    @property
    def is_active(self) -> bool:
        return self.status == DoctorStatus.ACTIVE

    def schedule(self) -> Dict[Weekday, DaySchedule]:
        """Weekly schedule, falling back to the default clinic week."""
        if self.weekly_visiting_hours:
            return self.weekly_visiting_hours
        return DEFAULT_VISITING_HOURS
