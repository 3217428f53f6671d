"""
Pytest configuration and fixtures.
"""

from datetime import datetime
from typing import Any, Dict, List, Tuple

import pytest

from harmony_booking.api.container import ServiceContainer
from harmony_booking.config import Settings
from harmony_booking.core.exceptions import StoreUnavailableError
from harmony_booking.storage import InMemoryDocumentStore, collections
from harmony_booking.utils.date import FixedClock

# Monday, before the clinic opens.
NOW = datetime(2026, 10, 19, 8, 0)
TIMEZONE = "Asia/Kolkata"

RAVI_PHONE = "+919876543210"
MEENA_PHONE = "+919123456789"
UNKNOWN_PHONE = "+919000000001"


def seed_data() -> Dict[str, Dict[str, Dict[str, Any]]]:
    """Doctors and patients shared by most tests."""
    closed = {"isAvailable": False, "slots": []}
    return {
        collections.DOCTORS: {
            "doc-smith": {
                "firstName": "Anita",
                "lastName": "Smith",
                "specialization": "Cardiology",
                "status": "active",
                "consultationFee": 500,
                "weeklyVisitingHours": {
                    "monday": {"isAvailable": True, "slots": [{"start": "09:00", "end": "10:00"}]},
                    "tuesday": closed,
                    "wednesday": {
                        "isAvailable": True,
                        "slots": [
                            {"start": "09:00", "end": "10:00"},
                            {"start": "14:00", "end": "15:00"},
                        ],
                    },
                    "thursday": closed,
                    "friday": closed,
                    "saturday": closed,
                    "sunday": closed,
                },
                "blockedDates": [{"date": "2026-10-21", "reason": "Conference"}],
            },
            "doc-rao": {
                "firstName": "Vikram",
                "lastName": "Rao",
                "specialization": "Dermatology",
                "status": "active",
                "visitingHours": {
                    day: {"isAvailable": True, "slots": [{"start": "10:00", "end": "12:00"}]}
                    for day in ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday")
                },
            },
            "doc-menon": {
                "firstName": "Priya",
                "lastName": "Menon",
                "specialization": "ENT",
                "status": "active",
                "weeklyVisitingHours": {
                    day: closed
                    for day in (
                        "monday", "tuesday", "wednesday", "thursday",
                        "friday", "saturday", "sunday",
                    )
                },
            },
            "doc-iyer": {
                "firstName": "Suresh",
                "lastName": "Iyer",
                "specialization": "Orthopedics",
                "status": "inactive",
            },
        },
        collections.PATIENTS: {
            "pat-ravi": {"firstName": "Ravi", "lastName": "Kumar", "phone": RAVI_PHONE},
            "pat-meena": {"firstName": "Meena", "lastName": "Iyer", "phoneNumber": "9123456789"},
        },
    }


class RecordingSender:
    """Outbound adapter that keeps every message it is asked to send."""

    def __init__(self, succeed: bool = True):
        self.succeed = succeed
        self.sent: List[Tuple[str, str]] = []

    async def send_message(self, destination: str, message: str) -> bool:
        self.sent.append((destination, message))
        return self.succeed

    @property
    def last(self) -> str:
        return self.sent[-1][1]


class FlakyStore(InMemoryDocumentStore):
    """In-memory store that can be told to fail like an unreachable backend."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fail_transactions = False
        self.fail_reads = False
        self.fail_deletes = False

    async def get(self, collection, key):
        if self.fail_reads:
            raise StoreUnavailableError("store offline")
        return await super().get(collection, key)

    async def delete(self, collection, key):
        if self.fail_deletes:
            raise StoreUnavailableError("store offline")
        return await super().delete(collection, key)

    async def run_transaction(self, fn):
        if self.fail_transactions:
            raise StoreUnavailableError("store offline")
        return await super().run_transaction(fn)


def make_settings(**overrides) -> Settings:
    values = {"store_backend": "memory", "timezone": TIMEZONE}
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def clock():
    """Clock frozen at Monday 2026-10-19 08:00 IST."""
    return FixedClock(NOW, TIMEZONE)


@pytest.fixture
def store():
    return FlakyStore(seed_data())


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def container(settings, store, clock):
    return ServiceContainer.build(settings, store=store, clock=clock)


@pytest.fixture
def sender():
    return RecordingSender()
