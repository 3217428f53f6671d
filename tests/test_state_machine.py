"""
Tests for the chat booking conversation.
"""

import pytest

from harmony_booking.core.enums import Channel, SessionState
from harmony_booking.core.models import InboundMessage
from harmony_booking.storage import collections

from conftest import MEENA_PHONE, RAVI_PHONE, UNKNOWN_PHONE, make_settings


async def say(container, sender, text="", payload=None, phone=RAVI_PHONE, message_id=None):
    message = InboundMessage(
        identity=phone,
        text=text,
        button_payload=payload,
        message_id=message_id,
        channel=Channel.WHATSAPP_META,
    )
    return await container.conversation.process(message, sender)


async def session_of(container, phone=RAVI_PHONE):
    return await container.sessions.get(phone)


async def reach_confirming(container, sender, time_choice="2"):
    await say(container, sender, "book")
    await say(container, sender, "1")  # Dr. Anita Smith
    await say(container, sender, "2")  # Mon, 26 Oct
    await say(container, sender, time_choice)


@pytest.mark.asyncio
async def test_full_booking_flow(container, store, sender):
    await say(container, sender, "I want to book an appointment")
    session = await session_of(container)
    assert session.state == SessionState.SELECTING_DOCTOR
    assert session.offered_doctor_ids == ["doc-smith", "doc-menon", "doc-rao"]
    assert "1. Dr. Anita Smith (Cardiology)" in sender.last

    await say(container, sender, "1")
    session = await session_of(container)
    assert session.state == SessionState.SELECTING_DATE
    assert session.offered_dates == ["2026-10-19", "2026-10-26", "2026-10-28"]
    assert "Today, 19 Oct" in sender.last

    await say(container, sender, "2")
    session = await session_of(container)
    assert session.state == SessionState.SELECTING_TIME
    assert session.selected_date == "2026-10-26"
    assert session.offered_times == ["09:00", "09:15", "09:30", "09:45"]
    assert "2. 9:15 AM" in sender.last

    await say(container, sender, "2")
    session = await session_of(container)
    assert session.state == SessionState.CONFIRMING
    assert session.selected_time == "09:15"
    assert "Monday, 26 October 2026" in sender.last

    result = await say(container, sender, "Yes")
    assert result.appointment is not None
    assert result.appointment.appointment_time == "09:15"
    assert f"Appointment ID: {result.appointment.id}" in sender.last
    assert await session_of(container) is None
    assert list(store.dump(collections.APPOINTMENTS)) == [result.appointment.id]


@pytest.mark.asyncio
async def test_out_of_range_time_reprompts_without_mutation(container, store, sender):
    await say(container, sender, "book")
    await say(container, sender, "1")
    await say(container, sender, "2")
    before = await store.get(collections.BOOKING_SESSIONS, RAVI_PHONE)

    result = await say(container, sender, "99")

    assert result.persist is False
    assert await store.get(collections.BOOKING_SESSIONS, RAVI_PHONE) == before
    assert (await session_of(container)).state == SessionState.SELECTING_TIME
    assert "Available times" in sender.last
    assert store.dump(collections.APPOINTMENTS) == {}


@pytest.mark.asyncio
async def test_cancel_while_confirming_then_book_again(container, store, sender):
    await reach_confirming(container, sender)

    await say(container, sender, "cancel")

    assert await session_of(container) is None
    assert store.dump(collections.APPOINTMENTS) == {}
    assert "cancelled" in sender.last

    await say(container, sender, "book")
    session = await session_of(container)
    assert session.state == SessionState.SELECTING_DOCTOR
    assert session.selected_doctor_id is None


@pytest.mark.asyncio
@pytest.mark.parametrize("command", ["restart", "Start over", "CANCEL"])
async def test_cancel_commands_work_in_any_state(container, sender, command):
    await say(container, sender, "book")
    await say(container, sender, "1")

    await say(container, sender, command)

    assert await session_of(container) is None


@pytest.mark.asyncio
async def test_no_declines_booking(container, store, sender):
    await reach_confirming(container, sender)

    await say(container, sender, "no")

    assert await session_of(container) is None
    assert store.dump(collections.APPOINTMENTS) == {}


@pytest.mark.asyncio
async def test_unclear_confirmation_reprompts(container, sender):
    await reach_confirming(container, sender)

    await say(container, sender, "maybe")

    assert (await session_of(container)).state == SessionState.CONFIRMING
    assert "Reply *Yes* to confirm" in sender.last


@pytest.mark.asyncio
async def test_recheckup_without_upcoming_dates_falls_back_to_doctor_list(container, store, sender):
    await store.set(
        collections.APPOINTMENTS,
        "old-visit",
        {
            "doctorId": "doc-menon",
            "patientId": "pat-ravi",
            "appointmentDate": "2026-10-01",
            "appointmentTime": "10:00",
            "status": "completed",
        },
    )
    await store.set(
        collections.RECHECKUP_REQUESTS,
        "rq-1",
        {"appointmentId": "old-visit", "patientId": "pat-ravi", "status": "pending", "sentAt": "2026-10-10T10:00:00Z"},
    )

    await say(container, sender, "recheckup")

    session = await session_of(container)
    assert session.state == SessionState.SELECTING_DOCTOR
    assert session.selected_doctor_id is None
    assert "Dr. Priya Menon has no available dates" in sender.last
    assert "Please choose a doctor" in sender.last


@pytest.mark.asyncio
async def test_recheckup_preselects_previous_doctor_and_marks_request(container, store, sender):
    await store.set(
        collections.RECHECKUP_REQUESTS,
        "rq-old",
        {"appointmentId": "v0", "patientId": "pat-ravi", "doctorId": "doc-rao", "status": "pending", "sentAt": "2026-09-01T10:00:00Z"},
    )
    await store.set(
        collections.RECHECKUP_REQUESTS,
        "rq-new",
        {"appointmentId": "v1", "patientId": "pat-ravi", "doctorId": "doc-smith", "status": "pending", "sentAt": "2026-10-10T10:00:00Z"},
    )

    await say(container, sender, "follow up")
    session = await session_of(container)
    assert session.state == SessionState.SELECTING_DATE
    assert session.selected_doctor_id == "doc-smith"
    assert session.is_recheckup
    assert "follow-up visit with Dr. Anita Smith" in sender.last

    await say(container, sender, "1")
    await say(container, sender, "1")
    result = await say(container, sender, "confirm")

    request = await store.get(collections.RECHECKUP_REQUESTS, "rq-new")
    assert request["status"] == "booked"
    assert request["bookedAppointmentId"] == result.appointment.id
    assert (await store.get(collections.RECHECKUP_REQUESTS, "rq-old"))["status"] == "pending"


@pytest.mark.asyncio
async def test_recheckup_without_request_explains_and_lists_doctors(container, sender):
    await say(container, sender, "re-checkup")

    assert (await session_of(container)).state == SessionState.SELECTING_DOCTOR
    assert "couldn't find a pending follow-up" in sender.last


@pytest.mark.asyncio
@pytest.mark.parametrize("reply,doctor_id", [("smith", "doc-smith"), ("Dr. Vikram Rao", "doc-rao"), ("3", "doc-rao")])
async def test_doctor_selected_by_name_or_number(container, sender, reply, doctor_id):
    await say(container, sender, "book")

    await say(container, sender, reply)

    assert (await session_of(container)).selected_doctor_id == doctor_id


@pytest.mark.asyncio
async def test_unknown_doctor_reprompts(container, sender):
    await say(container, sender, "book")

    await say(container, sender, "Dr. House")

    assert (await session_of(container)).state == SessionState.SELECTING_DOCTOR
    assert "doesn't match any doctor" in sender.last


@pytest.mark.asyncio
async def test_doctor_without_dates_keeps_doctor_selection(container, sender):
    await say(container, sender, "book")

    await say(container, sender, "2")  # Dr. Priya Menon

    assert (await session_of(container)).state == SessionState.SELECTING_DOCTOR
    assert "no available dates" in sender.last


@pytest.mark.asyncio
async def test_invalid_date_reprompts(container, sender):
    await say(container, sender, "book")
    await say(container, sender, "1")

    await say(container, sender, "8")

    assert (await session_of(container)).state == SessionState.SELECTING_DATE
    assert "Please pick one of the listed dates" in sender.last


@pytest.mark.asyncio
async def test_date_typed_as_natural_phrase(container, sender):
    await say(container, sender, "book")
    await say(container, sender, "rao")

    await say(container, sender, "tomorrow")

    assert (await session_of(container)).selected_date == "2026-10-20"


@pytest.mark.asyncio
async def test_fully_booked_date_reprompts_for_another(container, sender):
    for time in ("09:00", "09:15", "09:30", "09:45"):
        await container.transactions.reserve("doc-smith", "2026-10-26", time, "pat-meena")
    await say(container, sender, "book")
    await say(container, sender, "1")

    await say(container, sender, "2")

    assert (await session_of(container)).state == SessionState.SELECTING_DATE
    assert "no open slots left" in sender.last


@pytest.mark.asyncio
async def test_direct_time_entry(container, sender):
    await reach_confirming(container, sender, time_choice="0930")

    session = await session_of(container)
    assert session.state == SessionState.CONFIRMING
    assert session.selected_time == "09:30"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "typed,expected",
    [("18:00", "between 9:00 AM and 5:00 PM"), ("14:30", "not a bookable slot"), ("soon", "between")],
)
async def test_direct_time_entry_rejections(container, sender, typed, expected):
    await reach_confirming(container, sender, time_choice=typed)

    assert (await session_of(container)).state == SessionState.SELECTING_TIME
    assert expected in sender.last


@pytest.mark.asyncio
async def test_direct_time_entry_for_booked_slot(container, sender):
    await container.transactions.reserve("doc-smith", "2026-10-26", "09:45", "pat-meena")

    await reach_confirming(container, sender, time_choice="9:45")

    assert (await session_of(container)).state == SessionState.SELECTING_TIME
    assert "already booked" in sender.last


@pytest.mark.asyncio
async def test_losing_the_race_terminates_the_session(container, store, sender):
    await reach_confirming(container, sender, time_choice="1")
    await container.transactions.reserve("doc-smith", "2026-10-26", "09:00", "pat-meena")

    result = await say(container, sender, "yes")

    assert result.appointment is None
    assert "just booked by someone else" in sender.last
    assert await session_of(container) is None
    assert len(store.dump(collections.APPOINTMENTS)) == 1


@pytest.mark.asyncio
async def test_doctor_removed_mid_flow_expires_session(container, store, sender):
    await reach_confirming(container, sender)
    doctor = await store.get(collections.DOCTORS, "doc-smith")
    doctor["status"] = "inactive"
    await store.set(collections.DOCTORS, "doc-smith", doctor)

    await say(container, sender, "yes")

    assert await session_of(container) is None
    assert "no longer valid" in sender.last


@pytest.mark.asyncio
async def test_unregistered_phone_gets_registration_message(container, store, sender):
    await say(container, sender, "book", phone=UNKNOWN_PHONE)

    assert "register at our reception" in sender.last
    assert store.dump(collections.BOOKING_SESSIONS) == {}


@pytest.mark.asyncio
async def test_patient_found_by_legacy_phone_field(container, sender):
    await say(container, sender, "book", phone="whatsapp:" + MEENA_PHONE)

    session = await session_of(container, MEENA_PHONE)
    assert session.patient_id == "pat-meena"


@pytest.mark.asyncio
async def test_trigger_phrase_restarts_an_active_flow(container, sender):
    await say(container, sender, "book")
    await say(container, sender, "1")
    await say(container, sender, "2")

    await say(container, sender, "book")

    session = await session_of(container)
    assert session.state == SessionState.SELECTING_DOCTOR
    assert session.selected_date is None


@pytest.mark.asyncio
async def test_expired_session_is_treated_as_idle(container, clock, sender):
    await say(container, sender, "book")
    clock.advance(minutes=31)

    await say(container, sender, "1")

    assert await session_of(container) is None
    assert "Send *book*" in sender.last


@pytest.mark.asyncio
async def test_duplicate_same_day_booking_warns(container, sender):
    await container.transactions.reserve("doc-smith", "2026-10-26", "09:45", "pat-ravi")
    await say(container, sender, "book")
    await say(container, sender, "1")

    await say(container, sender, "2")

    assert (await session_of(container)).state == SessionState.SELECTING_TIME
    assert "you already have an appointment with Dr. Anita Smith" in sender.last


@pytest.mark.asyncio
async def test_duplicate_same_day_booking_can_be_blocked(store, clock, sender):
    from harmony_booking.api.container import ServiceContainer

    container = ServiceContainer.build(
        make_settings(block_duplicate_bookings=True), store=store, clock=clock
    )
    await container.transactions.reserve("doc-smith", "2026-10-26", "09:45", "pat-ravi")
    await say(container, sender, "book")
    await say(container, sender, "1")

    await say(container, sender, "2")

    assert (await session_of(container)).state == SessionState.SELECTING_DATE
    assert "Please choose a different date" in sender.last


@pytest.mark.asyncio
async def test_button_payloads_drive_the_flow(container, sender):
    await say(container, sender, "Book now", payload="book_appointment")
    await say(container, sender, "Dr. Vikram Rao", payload="doctor_doc-rao")
    await say(container, sender, "Tue, 20 Oct", payload="date_2026-10-20")
    await say(container, sender, "10:30 AM", payload="time_10:30")
    result = await say(container, sender, "Confirm", payload="booking_confirm")

    assert result.appointment.doctor_id == "doc-rao"
    assert result.appointment.appointment_date == "2026-10-20"
    assert result.appointment.appointment_time == "10:30"


@pytest.mark.asyncio
async def test_redelivered_message_is_processed_once(container, sender):
    await say(container, sender, "book", message_id="wamid.1")
    await say(container, sender, "1", message_id="wamid.2")

    result = await say(container, sender, "1", message_id="wamid.2")

    assert result is None
    assert (await session_of(container)).state == SessionState.SELECTING_DATE
    assert len(sender.sent) == 2


@pytest.mark.asyncio
async def test_store_failure_leaves_session_untouched(container, store, sender):
    await reach_confirming(container, sender)
    before = await store.get(collections.BOOKING_SESSIONS, RAVI_PHONE)
    store.fail_transactions = True

    result = await say(container, sender, "yes")

    assert result is None
    assert "technical problem" in sender.last
    assert await store.get(collections.BOOKING_SESSIONS, RAVI_PHONE) == before


@pytest.mark.asyncio
async def test_delivery_failure_does_not_undo_booking(container, store):
    from conftest import RecordingSender

    failing = RecordingSender(succeed=False)
    await reach_confirming(container, failing)

    result = await say(container, failing, "yes")

    assert result.appointment is not None
    assert len(store.dump(collections.APPOINTMENTS)) == 1


@pytest.mark.asyncio
async def test_session_cleanup_failure_keeps_confirmed_booking(container, store, sender):
    await reach_confirming(container, sender)
    store.fail_deletes = True

    result = await say(container, sender, "yes", message_id="wamid.confirm")

    assert result.appointment is not None
    assert "Your appointment is confirmed" in sender.last
    assert len(store.dump(collections.APPOINTMENTS)) == 1

    store.fail_deletes = False
    sent = len(sender.sent)
    assert await say(container, sender, "yes", message_id="wamid.confirm") is None
    assert len(sender.sent) == sent
    assert len(store.dump(collections.APPOINTMENTS)) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "text,expected",
    [
        ("Hello there", "Welcome to Harmony Medical Services"),
        ("help", "support"),
        ("thanks", "You're welcome"),
        ("what is this", "I didn't quite get that"),
        ("cancel", "no booking in progress"),
    ],
)
async def test_idle_replies(container, sender, text, expected):
    await say(container, sender, text)

    assert expected in sender.last
    assert await session_of(container) is None


@pytest.mark.asyncio
async def test_idle_appointments_lists_upcoming(container, sender):
    await container.transactions.reserve("doc-rao", "2026-10-20", "11:00", "pat-ravi")

    await say(container, sender, "my appointments")

    assert "Tuesday, 20 October 2026 at 11:00 AM with Dr. Vikram Rao" in sender.last


@pytest.mark.asyncio
async def test_flow_completion_books_directly(container, sender):
    message = InboundMessage(
        identity=RAVI_PHONE,
        message_id="wamid.flow",
        flow_response={
            "doctor_id": "doc-rao",
            "appointment_date": "2026-10-22",
            "appointment_time": "slot_1045",
            "chief_complaint": "Rash",
            "payment_option": "cash",
        },
    )

    result = await container.conversation.process(message, sender)

    assert result.appointment.appointment_time == "10:45"
    assert result.appointment.chief_complaint == "Rash"
    assert result.appointment.created_by == Channel.WHATSAPP_FLOW
    assert "Your appointment is confirmed" in sender.last


def flow_message(doctor_id, day, time, message_id="wamid.flow"):
    return InboundMessage(
        identity=RAVI_PHONE,
        message_id=message_id,
        flow_response={
            "doctor_id": doctor_id,
            "appointment_date": day,
            "appointment_time": time,
        },
    )


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "doctor_id,day,time,expected",
    [
        ("doc-smith", "2026-10-21", "09:00", "Conference"),
        ("doc-smith", "2026-10-20", "slot_0307", "day off"),
        ("doc-rao", "2026-10-22", "10:07", "not a visiting slot"),
        ("doc-rao", "2026-10-01", "10:00", "already passed"),
    ],
)
async def test_flow_completion_rejects_unbookable_slots(
    container, store, sender, doctor_id, day, time, expected
):
    result = await container.conversation.process(flow_message(doctor_id, day, time), sender)

    assert result.appointment is None
    assert "couldn't book that appointment" in sender.last
    assert expected in sender.last
    assert store.dump(collections.APPOINTMENTS) == {}


@pytest.mark.asyncio
async def test_flow_completion_respects_duplicate_blocking(store, clock, sender):
    from harmony_booking.api.container import ServiceContainer

    container = ServiceContainer.build(
        make_settings(block_duplicate_bookings=True), store=store, clock=clock
    )
    await container.transactions.reserve("doc-rao", "2026-10-22", "10:00", "pat-ravi")

    result = await container.conversation.process(
        flow_message("doc-rao", "2026-10-22", "slot_1100"), sender
    )

    assert result.appointment is None
    assert "already exists at 10:00" in sender.last
    assert len(store.dump(collections.APPOINTMENTS)) == 1


@pytest.mark.asyncio
async def test_flow_completion_with_malformed_date(container, store, sender):
    await container.conversation.process(flow_message("doc-rao", "22/10/2026", "10:00"), sender)

    assert "Some booking details were missing" in sender.last
    assert store.dump(collections.APPOINTMENTS) == {}
