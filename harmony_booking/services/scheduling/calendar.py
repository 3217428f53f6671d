"""
Weekly availability calendar.
"""

from datetime import date
from typing import List, Optional

from ...core.enums import Weekday
from ...core.exceptions import InvalidTimeFormatError
from ...core.logging import get_logger
from ...core.models import DEFAULT_BLOCK_REASON, DaySchedule, Doctor
from ...utils.date import DateParser
from .time_normalizer import iter_slot_times

logger = get_logger("harmony.scheduling")


class AvailabilityCalendar:
    """Derives bookable slot times from a doctor's recurring weekly schedule."""

    def __init__(self, granularity_minutes: int = 15):
        self.granularity_minutes = granularity_minutes

    def _day_schedule(self, doctor: Doctor, day: date) -> Optional[DaySchedule]:
        return doctor.schedule().get(Weekday.from_date(day))

    def is_available_weekday(self, doctor: Doctor, day: date) -> bool:
        """Whether the doctor works on this date's weekday at all."""
        schedule = self._day_schedule(doctor, day)
        return bool(schedule and schedule.is_available and schedule.slots)

    def is_blocked(self, doctor: Doctor, day: date) -> bool:
        """Whether the date falls inside one of the doctor's blocked ranges."""
        return any(block.contains(day) for block in doctor.blocked_dates)

    def blocked_reason(self, doctor: Doctor, day: date) -> Optional[str]:
        for block in doctor.blocked_dates:
            if block.contains(day):
                return block.reason or DEFAULT_BLOCK_REASON
        return None

    def slots_for_day(self, doctor: Doctor, day: date) -> List[str]:
        """
        Slot start times for a date, in window-declaration order.

        Each window contributes every granularity step from ``start``
        (inclusive) up to ``end`` (exclusive). Blocked dates and days off
        yield an empty list. A window with a malformed bound is skipped.
        """
        if not self.is_available_weekday(doctor, day) or self.is_blocked(doctor, day):
            return []

        granularity = doctor.slot_granularity_minutes or self.granularity_minutes
        schedule = self._day_schedule(doctor, day)
        slots: List[str] = []
        for window in schedule.slots:
            try:
                slots.extend(iter_slot_times(window.start, window.end, granularity))
            except InvalidTimeFormatError:
                logger.warning(
                    "Skipping malformed window %r-%r of %s on %s",
                    window.start,
                    window.end,
                    doctor.id,
                    day.isoformat(),
                )
        return slots

    def upcoming_dates(
        self,
        doctor: Doctor,
        start: date,
        horizon_days: int = 14,
        limit: int = 7,
    ) -> List[date]:
        """Dates within the horizon on which the doctor works and is not blocked."""
        dates: List[date] = []
        for day in DateParser.iter_days(start, horizon_days):
            if self.is_available_weekday(doctor, day) and not self.is_blocked(doctor, day):
                dates.append(day)
                if len(dates) >= limit:
                    break
        return dates

    def availability_days(self, doctor: Doctor) -> List[str]:
        """Short weekday labels the doctor works on, Monday first."""
        schedule = doctor.schedule()
        return [
            day.short
            for day in Weekday
            if schedule.get(day) and schedule[day].is_available and schedule[day].slots
        ]
