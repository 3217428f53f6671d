"""
Date and time utilities with an injectable wall clock.
"""

import re
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

import pytz
from dateparser import parse as parse_date


class Clock:
    """Wall clock in the clinic's timezone."""

    def __init__(self, timezone: str = "Asia/Kolkata"):
        self.tz = pytz.timezone(timezone)

    def now(self) -> datetime:
        """Current aware datetime in the clinic's timezone."""
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()

    def localize(self, day: date, hhmm: str) -> datetime:
        """Aware datetime for a wall-clock time on a clinic-local date."""
        hour, minute = (int(part) for part in hhmm.split(":"))
        naive = datetime(day.year, day.month, day.day, hour, minute)
        return self.tz.localize(naive)


class FixedClock(Clock):
    """Clock frozen at a given instant. Used by tests and replays."""

    def __init__(self, moment: datetime, timezone: str = "Asia/Kolkata"):
        super().__init__(timezone)
        if moment.tzinfo is None:
            moment = self.tz.localize(moment)
        self.moment = moment.astimezone(self.tz)

    def now(self) -> datetime:
        return self.moment

    def advance(self, **kwargs) -> None:
        self.moment = self.moment + timedelta(**kwargs)


class DateParser:
    """Date parsing and display helpers."""

    DISPLAY_FORMAT = "%A, %d %B %Y"

    def __init__(self, clock: Clock):
        self.clock = clock

    @staticmethod
    def parse_iso(value: str) -> Optional[date]:
        """Parse a strict ISO date (YYYY-MM-DD)."""
        try:
            return datetime.strptime(value.strip(), "%Y-%m-%d").date()
        except (AttributeError, ValueError):
            return None

    @staticmethod
    def is_valid_iso_date(value: str) -> bool:
        return DateParser.parse_iso(value) is not None

    def parse_user_date(self, text: str) -> Optional[date]:
        """
        Parse a date typed by a user.

        Accepts ISO dates, DD/MM/YYYY and natural phrases such as
        "tomorrow" or "next monday", resolved against the clinic clock.
        """
        if not text or not text.strip():
            return None
        value = text.strip()

        iso = self.parse_iso(value)
        if iso:
            return iso

        match = re.fullmatch(r"(\d{1,2})[/.-](\d{1,2})[/.-](\d{4})", value)
        if match:
            day, month, year = (int(g) for g in match.groups())
            try:
                return date(year, month, day)
            except ValueError:
                return None

        if value.isdigit():
            return None

        now = self.clock.now().replace(tzinfo=None)
        parsed = parse_date(
            value,
            languages=["en"],
            settings={
                "PREFER_DATES_FROM": "future",
                "RELATIVE_BASE": now,
                "DATE_ORDER": "DMY",
            },
        )
        if parsed is None:
            return None
        return parsed.date()

    @classmethod
    def format_display(cls, day: date) -> str:
        """Human-readable date, e.g. "Monday, 19 October 2026"."""
        return day.strftime(cls.DISPLAY_FORMAT)

    def label_for(self, day: date) -> str:
        """Short list label: "Today", "Tomorrow" or "Wed, 21 Oct"."""
        today = self.clock.today()
        if day == today:
            return f"Today, {day.strftime('%d %b')}"
        if day == today + timedelta(days=1):
            return f"Tomorrow, {day.strftime('%d %b')}"
        return day.strftime("%a, %d %b")

    @staticmethod
    def iter_days(start: date, count: int) -> Iterable[date]:
        for offset in range(count):
            yield start + timedelta(days=offset)


def utc_now_iso() -> str:
    """Current UTC instant as an ISO-8601 string."""
    return datetime.now(pytz.utc).isoformat()
