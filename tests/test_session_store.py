"""
Tests for booking session persistence and expiry.
"""

import pytest

from harmony_booking.core.enums import SessionState
from harmony_booking.services.conversation import SessionStore
from harmony_booking.storage import InMemoryDocumentStore, collections


@pytest.fixture
def sessions(clock):
    return SessionStore(InMemoryDocumentStore(), clock, ttl_seconds=1800)


@pytest.mark.asyncio
async def test_round_trip(sessions):
    session = sessions.new_session("+919876543210", patient_id="pat-ravi")
    session.state = SessionState.SELECTING_DATE
    session.selected_doctor_id = "doc-smith"
    session.offered_dates = ["2026-10-19", "2026-10-26"]
    await sessions.save(session)

    loaded = await sessions.get("+919876543210")

    assert loaded.state == SessionState.SELECTING_DATE
    assert loaded.selected_doctor_id == "doc-smith"
    assert loaded.offered_dates == ["2026-10-19", "2026-10-26"]
    assert loaded.patient_id == "pat-ravi"


@pytest.mark.asyncio
async def test_session_is_stored_with_camel_case_keys(sessions):
    await sessions.save(sessions.new_session("+919876543210", patient_id="pat-ravi"))
    raw = await sessions.store.get(collections.BOOKING_SESSIONS, "+919876543210")
    assert raw["patientId"] == "pat-ravi"
    assert raw["state"] == "idle"
    assert "updatedAt" in raw


@pytest.mark.asyncio
async def test_session_expires_after_ttl(sessions, clock):
    await sessions.save(sessions.new_session("+919876543210"))

    clock.advance(minutes=29)
    assert await sessions.get("+919876543210") is not None

    clock.advance(minutes=2)
    assert await sessions.get("+919876543210") is None
    assert await sessions.store.get(collections.BOOKING_SESSIONS, "+919876543210") is None


@pytest.mark.asyncio
async def test_save_refreshes_the_expiry(sessions, clock):
    session = sessions.new_session("+919876543210")
    await sessions.save(session)

    clock.advance(minutes=25)
    await sessions.save(await sessions.get("+919876543210"))
    clock.advance(minutes=25)

    assert await sessions.get("+919876543210") is not None


@pytest.mark.asyncio
async def test_delete(sessions):
    await sessions.save(sessions.new_session("+919876543210"))
    await sessions.delete("+919876543210")
    assert await sessions.get("+919876543210") is None
