"""
Tests for atomic slot reservation.
"""

import asyncio

import pytest

from harmony_booking.core.enums import AppointmentStatus, Channel
from harmony_booking.core.exceptions import (
    AppointmentAccessError,
    AppointmentNotFoundError,
    DoctorNotFoundError,
    InvalidAppointmentStateError,
    InvalidSelectionError,
    InvalidTimeFormatError,
    PatientNotFoundError,
    SlotAlreadyBookedError,
)
from harmony_booking.core.models import BookingDetails
from harmony_booking.services.directory import DoctorDirectory, PatientDirectory
from harmony_booking.services.scheduling import BookingTransactionManager
from harmony_booking.storage import SQLiteDocumentStore, collections

from conftest import seed_data

DAY = "2026-10-26"


def test_slot_key_is_storage_safe():
    key = BookingTransactionManager.slot_key("doc-smith", DAY, "9:30")
    assert key == "doc-smith_2026-10-26_09-30"


@pytest.mark.asyncio
async def test_reserve_writes_appointment_and_reservation(container, store):
    appointment = await container.transactions.reserve(
        "doc-smith", DAY, "930", "pat-ravi",
        details=BookingDetails(chief_complaint="Chest pain"),
        created_by=Channel.WHATSAPP_META,
    )

    stored = await store.get(collections.APPOINTMENTS, appointment.id)
    assert stored["status"] == "confirmed"
    assert stored["appointmentTime"] == "09:30"
    assert stored["doctorName"] == "Anita Smith"
    assert stored["patientName"] == "Ravi Kumar"
    assert stored["chiefComplaint"] == "Chest pain"
    assert stored["paymentAmount"] == 500
    assert stored["createdBy"] == "whatsapp_meta"

    reservation = await store.get(collections.APPOINTMENT_SLOTS, "doc-smith_2026-10-26_09-30")
    assert reservation["appointmentId"] == appointment.id


@pytest.mark.asyncio
@pytest.mark.parametrize("respelled", ["09:00", "0900", "9:00", "9:00 AM"])
async def test_second_reserve_with_equivalent_time_is_rejected(container, store, respelled):
    await container.transactions.reserve("doc-smith", DAY, "09:00", "pat-ravi")

    with pytest.raises(SlotAlreadyBookedError) as exc_info:
        await container.transactions.reserve("doc-smith", DAY, respelled, "pat-meena")

    assert exc_info.value.slot_key == "doc-smith_2026-10-26_09-00"
    assert len(store.dump(collections.APPOINTMENTS)) == 1


@pytest.mark.asyncio
async def test_concurrent_reserves_have_exactly_one_winner(container, store):
    results = await asyncio.gather(
        container.transactions.reserve("doc-smith", DAY, "09:00", "pat-ravi"),
        container.transactions.reserve("doc-smith", DAY, "09:00", "pat-meena"),
        return_exceptions=True,
    )

    winners = [r for r in results if not isinstance(r, Exception)]
    losers = [r for r in results if isinstance(r, SlotAlreadyBookedError)]
    assert len(winners) == 1
    assert len(losers) == 1
    assert len(store.dump(collections.APPOINTMENTS)) == 1


@pytest.mark.asyncio
async def test_concurrent_reserves_on_sqlite(tmp_path):
    store = SQLiteDocumentStore(str(tmp_path / "race.db"))
    for collection, docs in seed_data().items():
        for key, data in docs.items():
            await store.set(collection, key, data)
    transactions = BookingTransactionManager(store, DoctorDirectory(store), PatientDirectory(store))

    results = await asyncio.gather(
        *[
            transactions.reserve("doc-smith", DAY, "09:15", patient)
            for patient in ("pat-ravi", "pat-meena", "pat-ravi", "pat-meena")
        ],
        return_exceptions=True,
    )

    assert sum(1 for r in results if not isinstance(r, Exception)) == 1
    assert sum(1 for r in results if isinstance(r, SlotAlreadyBookedError)) == 3
    assert len(await store.query(collections.APPOINTMENTS)) == 1


@pytest.mark.asyncio
async def test_reserve_validates_inputs(container):
    with pytest.raises(InvalidTimeFormatError):
        await container.transactions.reserve("doc-smith", DAY, "25:00", "pat-ravi")
    with pytest.raises(InvalidSelectionError):
        await container.transactions.reserve("doc-smith", "26/10/2026", "09:00", "pat-ravi")
    with pytest.raises(DoctorNotFoundError):
        await container.transactions.reserve("doc-iyer", DAY, "09:00", "pat-ravi")
    with pytest.raises(DoctorNotFoundError):
        await container.transactions.reserve("doc-nobody", DAY, "09:00", "pat-ravi")
    with pytest.raises(PatientNotFoundError):
        await container.transactions.reserve("doc-smith", DAY, "09:00", "pat-nobody")


@pytest.mark.asyncio
async def test_cancel_frees_the_slot(container, store):
    first = await container.transactions.reserve("doc-smith", DAY, "09:00", "pat-ravi")

    cancelled = await container.transactions.cancel(first.id, patient_id="pat-ravi")

    assert cancelled.status == AppointmentStatus.CANCELLED
    assert await container.transactions.is_slot_free("doc-smith", DAY, "09:00")
    second = await container.transactions.reserve("doc-smith", DAY, "09:00", "pat-meena")
    assert second.id != first.id


@pytest.mark.asyncio
async def test_cancel_rules(container):
    appointment = await container.transactions.reserve("doc-smith", DAY, "09:00", "pat-ravi")

    with pytest.raises(AppointmentAccessError):
        await container.transactions.cancel(appointment.id, patient_id="pat-meena")
    with pytest.raises(AppointmentNotFoundError):
        await container.transactions.cancel("missing")

    await container.transactions.cancel(appointment.id)
    with pytest.raises(InvalidAppointmentStateError):
        await container.transactions.cancel(appointment.id)


@pytest.mark.asyncio
async def test_complete_frees_the_slot(container, store):
    appointment = await container.transactions.reserve("doc-smith", DAY, "09:45", "pat-ravi")

    completed = await container.transactions.complete(appointment.id)

    assert completed.status == AppointmentStatus.COMPLETED
    assert await store.get(collections.APPOINTMENT_SLOTS, "doc-smith_2026-10-26_09-45") is None


@pytest.mark.asyncio
async def test_reschedule_moves_the_reservation(container, store):
    appointment = await container.transactions.reserve("doc-smith", DAY, "09:00", "pat-ravi")

    moved = await container.transactions.reschedule(appointment.id, "2026-10-28", "2:15 PM")

    assert (moved.appointment_date, moved.appointment_time) == ("2026-10-28", "14:15")
    assert await store.get(collections.APPOINTMENT_SLOTS, "doc-smith_2026-10-26_09-00") is None
    new_reservation = await store.get(collections.APPOINTMENT_SLOTS, "doc-smith_2026-10-28_14-15")
    assert new_reservation["appointmentId"] == appointment.id


@pytest.mark.asyncio
async def test_reschedule_into_taken_slot_changes_nothing(container, store):
    mine = await container.transactions.reserve("doc-smith", DAY, "09:00", "pat-ravi")
    await container.transactions.reserve("doc-smith", DAY, "09:30", "pat-meena")

    with pytest.raises(SlotAlreadyBookedError):
        await container.transactions.reschedule(mine.id, DAY, "09:30", patient_id="pat-ravi")

    stored = await store.get(collections.APPOINTMENTS, mine.id)
    assert stored["appointmentTime"] == "09:00"
    reservation = await store.get(collections.APPOINTMENT_SLOTS, "doc-smith_2026-10-26_09-00")
    assert reservation["appointmentId"] == mine.id
