"""
Slot availability resolution for one doctor and date.
"""

from datetime import date, datetime
from typing import Iterable, List, Optional, Tuple

from ...core.exceptions import (
    DuplicateBookingError,
    InvalidSelectionError,
    NoAvailableSlotsError,
)
from ...core.logging import get_logger
from ...core.models import DayAvailability, Doctor
from ...utils.date import Clock, DateParser
from .calendar import AvailabilityCalendar
from .repository import AppointmentRepository

logger = get_logger("harmony.scheduling")


def partition_slots(
    all_slots: List[str],
    booked_times: Iterable[str],
    day: date,
    now: datetime,
    clock: Clock,
) -> Tuple[List[str], List[str], List[str]]:
    """
    Split a day's slots into booked, past and available, keeping slot order.

    A slot is past when its instant is not strictly after ``now``. Booked
    times outside ``all_slots`` are ignored here.
    """
    booked_set = set(booked_times)
    booked = [slot for slot in all_slots if slot in booked_set]
    past = [slot for slot in all_slots if clock.localize(day, slot) <= now]
    excluded = set(booked) | set(past)
    available = [slot for slot in all_slots if slot not in excluded]
    return booked, past, available


class SlotAvailabilityResolver:
    """Computes booked/past/available partitions and the duplicate advisory."""

    def __init__(
        self,
        calendar: AvailabilityCalendar,
        appointments: AppointmentRepository,
        clock: Clock,
    ):
        self.calendar = calendar
        self.appointments = appointments
        self.clock = clock

    async def resolve(
        self,
        doctor: Doctor,
        day: date,
        patient_id: Optional[str] = None,
    ) -> DayAvailability:
        """Resolve the availability of ``doctor`` on ``day``."""
        iso_day = day.isoformat()
        all_slots = self.calendar.slots_for_day(doctor, day)

        confirmed = await self.appointments.confirmed_for_doctor_on(doctor.id, iso_day)
        booked_times = self.appointments.booked_times(confirmed)
        booked, past, available = partition_slots(
            all_slots, booked_times, day, self.clock.now(), self.clock
        )

        duplicate_time = None
        if patient_id:
            own = [a for a in confirmed if a.patient_id == patient_id]
            own_times = sorted(self.appointments.booked_times(own))
            if own_times:
                duplicate_time = own_times[0]

        return DayAvailability(
            doctor_id=doctor.id,
            date=iso_day,
            all_slots=all_slots,
            booked_slots=booked,
            past_slots=past,
            available_slots=available,
            duplicate_time=duplicate_time,
            is_available_weekday=self.calendar.is_available_weekday(doctor, day),
            is_blocked=self.calendar.is_blocked(doctor, day),
            blocked_reason=self.calendar.blocked_reason(doctor, day),
        )

    async def check_bookable(
        self,
        doctor: Doctor,
        day: date,
        time: str,
        patient_id: Optional[str] = None,
        block_duplicates: bool = False,
    ) -> DayAvailability:
        """
        Check that a canonical ``time`` on ``day`` can be offered for booking.

        Whether the slot is still free is left to the reservation itself.

        Raises:
            NoAvailableSlotsError: the date is blocked or a day off
            InvalidSelectionError: the time is not a visiting slot or has passed
            DuplicateBookingError: the patient already booked this doctor that
                day and ``block_duplicates`` is set
        """
        availability = await self.resolve(doctor, day, patient_id=patient_id)
        shown_day = DateParser.format_display(day)
        if not availability.all_slots:
            reason = availability.blocked_reason or "day off"
            raise NoAvailableSlotsError(
                f"{doctor.display_name} has no visiting slots on {shown_day} ({reason})"
            )
        if time not in availability.all_slots:
            raise InvalidSelectionError(
                f"{time} is not a visiting slot of {doctor.display_name} on {shown_day}"
            )
        if time in availability.past_slots:
            raise InvalidSelectionError(f"{time} on {shown_day} has already passed")

        if availability.duplicate_time:
            logger.info(
                "Patient %s already booked %s on %s at %s",
                patient_id,
                doctor.id,
                availability.date,
                availability.duplicate_time,
            )
            if block_duplicates:
                raise DuplicateBookingError(
                    f"An appointment with {doctor.display_name} already exists at "
                    f"{availability.duplicate_time} on {shown_day}"
                )
        return availability

    async def next_available_dates(
        self,
        doctor: Doctor,
        start: Optional[date] = None,
        horizon_days: int = 14,
        limit: int = 7,
    ) -> List[date]:
        """Upcoming working dates that still have at least one open slot."""
        start = start or self.clock.today()
        candidates = self.calendar.upcoming_dates(
            doctor, start, horizon_days=horizon_days, limit=horizon_days
        )
        dates: List[date] = []
        for day in candidates:
            availability = await self.resolve(doctor, day)
            if availability.has_open_slots:
                dates.append(day)
                if len(dates) >= limit:
                    break
        return dates
