"""
User-facing chat message templates.
"""

from datetime import date
from typing import List, Optional, Sequence

from ...core.models import Appointment, Doctor
from ...utils.date import DateParser
from ..scheduling.time_normalizer import format_time_display


def _numbered(lines: Sequence[str]) -> str:
    return "\n".join(f"{i}. {line}" for i, line in enumerate(lines, start=1))


def welcome(clinic_name: str) -> str:
    return (
        f"👋 Welcome to {clinic_name}!\n\n"
        "I can help you book an appointment with one of our doctors.\n"
        "• Send *book* to schedule an appointment\n"
        "• Send *appointments* to see your upcoming visits\n"
        "• Send *help* for support"
    )


def help_text(clinic_name: str, support_phone: str) -> str:
    return (
        f"ℹ️ {clinic_name} support\n\n"
        f"Call us at {support_phone} or send *book* to schedule an appointment.\n"
        "You can send *cancel* at any time to stop a booking in progress."
    )


def default_menu() -> str:
    return (
        "I didn't quite get that.\n"
        "Send *book* to schedule an appointment or *help* for support."
    )


def thanks() -> str:
    return "You're welcome! Send *book* whenever you need an appointment. 😊"


def not_registered(clinic_name: str) -> str:
    return (
        f"We couldn't find a patient record for this number at {clinic_name}.\n"
        "Please register at our reception desk, then message us again to book."
    )


def no_doctors() -> str:
    return "Sorry, no doctors are available for booking right now. Please try again later."


def doctor_list(doctors: Sequence[Doctor], intro: Optional[str] = None) -> str:
    lines = [
        f"{d.display_name} ({d.specialization})" if d.specialization else d.display_name
        for d in doctors
    ]
    header = (intro + "\n\n") if intro else ""
    return (
        f"{header}🩺 Please choose a doctor by replying with the number or name:\n\n"
        f"{_numbered(lines)}"
    )


def invalid_doctor() -> str:
    return "That doesn't match any doctor in the list."


def no_upcoming_dates(doctor: Doctor, horizon_days: int) -> str:
    return (
        f"{doctor.display_name} has no available dates in the next {horizon_days} days. "
        "Please choose another doctor."
    )


def date_list(doctor: Doctor, labels: Sequence[str], intro: Optional[str] = None) -> str:
    header = (intro + "\n\n") if intro else ""
    return (
        f"{header}📅 Available dates with {doctor.display_name}:\n\n"
        f"{_numbered(labels)}\n\n"
        "Reply with the number of the date you prefer."
    )


def invalid_date() -> str:
    return "Please pick one of the listed dates."


def no_slots_on(day: date) -> str:
    return (
        f"There are no open slots left on {DateParser.format_display(day)}. "
        "Please choose a different date."
    )


def duplicate_blocked(doctor: Doctor, day: date, existing_time: str) -> str:
    return (
        f"You already have an appointment with {doctor.display_name} on "
        f"{DateParser.format_display(day)} at {format_time_display(existing_time)}. "
        "Please choose a different date."
    )


def duplicate_warning(doctor: Doctor, existing_time: str) -> str:
    return (
        f"⚠️ Note: you already have an appointment with {doctor.display_name} on this day "
        f"at {format_time_display(existing_time)}."
    )


def time_list(day: date, times: Sequence[str], warning: Optional[str] = None) -> str:
    header = (warning + "\n\n") if warning else ""
    return (
        f"{header}🕒 Available times on {DateParser.format_display(day)}:\n\n"
        f"{_numbered([format_time_display(t) for t in times])}\n\n"
        "Reply with the number of the time slot, or type a time such as 10:30."
    )


def invalid_time(business_start: str, business_end: str) -> str:
    return (
        "Please reply with a number from the list or a time between "
        f"{format_time_display(business_start)} and {format_time_display(business_end)}."
    )


def slot_not_open(time: str, reason: str) -> str:
    return f"{format_time_display(time)} is not available ({reason})."


def confirmation_prompt(doctor: Doctor, day: date, time: str) -> str:
    return (
        "📋 Please confirm your appointment:\n\n"
        f"Doctor: {doctor.display_name}\n"
        f"Date: {DateParser.format_display(day)}\n"
        f"Time: {format_time_display(time)}\n\n"
        "Reply *Yes* to confirm or *No* to cancel."
    )


def booking_confirmed(appointment: Appointment, doctor: Doctor, day: date) -> str:
    return (
        "✅ Your appointment is confirmed!\n\n"
        f"Appointment ID: {appointment.id}\n"
        f"Doctor: {doctor.display_name}\n"
        f"Date: {DateParser.format_display(day)}\n"
        f"Time: {format_time_display(appointment.appointment_time)}\n\n"
        "Please arrive 10 minutes early."
    )


def slot_taken() -> str:
    return (
        "😔 Sorry, that time slot was just booked by someone else. "
        "Please send *book* to start again."
    )


def session_expired() -> str:
    return (
        "Your booking details are no longer valid. "
        "Please send *book* to start again."
    )


def booking_cancelled() -> str:
    return "Your booking has been cancelled. Send *book* whenever you want to start again."


def nothing_to_cancel() -> str:
    return "There's no booking in progress. Send *book* to schedule an appointment."


def recheckup_intro(doctor: Doctor) -> str:
    return f"🔁 Let's book your follow-up visit with {doctor.display_name}."


def recheckup_not_found() -> str:
    return "We couldn't find a pending follow-up request for you, so let's book a new appointment."


def recheckup_doctor_unavailable() -> str:
    return "Your previous doctor is not currently taking bookings."


def upcoming_appointments(items: List[str]) -> str:
    if not items:
        return "You have no upcoming appointments. Send *book* to schedule one."
    return "📅 Your upcoming appointments:\n\n" + _numbered(items)


def technical_problem() -> str:
    return "Sorry, we're having a technical problem right now. Please try again in a few minutes."


def flow_missing_fields() -> str:
    return "Some booking details were missing. Please try again or send *book*."


def flow_rejected(reason: str) -> str:
    return f"Sorry, we couldn't book that appointment: {reason}. Send *book* to choose another time."
