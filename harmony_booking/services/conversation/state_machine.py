"""
Chat booking conversation: doctor -> date -> time -> confirmation.

The machine is stateless between calls. Each turn receives the caller's
persisted session (or None) and returns the session to persist (or None to
delete it) together with the replies to send.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Sequence, Tuple

from ...config import Settings
from ...core.enums import Channel, SessionState
from ...core.exceptions import (
    DoctorNotFoundError,
    DuplicateBookingError,
    InvalidSelectionError,
    InvalidTimeFormatError,
    NoAvailableSlotsError,
    PatientNotFoundError,
    SessionExpiredError,
    SlotAlreadyBookedError,
    StorageError,
)
from ...core.logging import get_logger
from ...core.models import Appointment, BookingDetails, BookingSession, Doctor, InboundMessage
from ...utils.date import Clock, DateParser
from ...utils.text import TextProcessor
from ..directory import DoctorDirectory, PatientDirectory
from ..scheduling import (
    AppointmentRepository,
    AvailabilityCalendar,
    BookingTransactionManager,
    SlotAvailabilityResolver,
    format_time_display,
    normalize_time,
)
from ..scheduling.time_normalizer import to_minutes
from . import messages
from .session_store import SessionStore

logger = get_logger("harmony.conversation")

BOOK_PAYLOAD = "book_appointment"
RECHECKUP_PAYLOAD = "book_recheckup"
CONFIRM_PAYLOAD = "booking_confirm"
CANCEL_PAYLOAD = "booking_cancel"
DOCTOR_PREFIX = "doctor_"
DATE_PREFIX = "date_"
TIME_PREFIX = "time_"


@dataclass
class ConversationConfig:
    """Tunables of the chat booking flow."""

    clinic_name: str = "Harmony Medical Services"
    support_phone: str = ""
    booking_triggers: Tuple[str, ...] = ("book", "book appointment", "schedule", "schedule appointment")
    recheckup_triggers: Tuple[str, ...] = ("recheckup", "re-checkup", "follow up", "follow-up")
    cancel_commands: Tuple[str, ...] = ("cancel", "restart", "start over")
    confirm_words: Tuple[str, ...] = ("yes", "y", "confirm")
    decline_words: Tuple[str, ...] = ("no", "n", "cancel")
    greetings: Tuple[str, ...] = ("hi", "hello", "hey", "good morning", "good evening", "namaste")
    help_words: Tuple[str, ...] = ("help", "support")
    appointment_words: Tuple[str, ...] = ("appointments", "my appointments")
    thanks_words: Tuple[str, ...] = ("thanks", "thank you", "ok thanks")
    max_doctors: int = 10
    max_dates: int = 7
    horizon_days: int = 14
    max_times: int = 10
    business_start: str = "09:00"
    business_end: str = "17:00"
    block_duplicate_bookings: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "ConversationConfig":
        return cls(
            clinic_name=settings.clinic_name,
            support_phone=settings.support_phone,
            booking_triggers=tuple(settings.booking_triggers),
            recheckup_triggers=tuple(settings.recheckup_triggers),
            max_doctors=settings.max_offered_doctors,
            max_dates=settings.max_offered_dates,
            horizon_days=settings.booking_horizon_days,
            max_times=settings.max_offered_times,
            business_start=normalize_time(settings.business_start),
            business_end=normalize_time(settings.business_end),
            block_duplicate_bookings=settings.block_duplicate_bookings,
        )


@dataclass
class TurnResult:
    """Outcome of one inbound message.

    ``session`` None means the persisted session must be deleted.
    ``persist`` False means nothing changed and nothing is written.
    """

    session: Optional[BookingSession]
    replies: List[str] = field(default_factory=list)
    persist: bool = True
    appointment: Optional[Appointment] = None


class ConversationStateMachine:
    """Walks a chat user through a booking, one message at a time."""

    def __init__(
        self,
        doctors: DoctorDirectory,
        patients: PatientDirectory,
        calendar: AvailabilityCalendar,
        resolver: SlotAvailabilityResolver,
        transactions: BookingTransactionManager,
        appointments: AppointmentRepository,
        sessions: SessionStore,
        clock: Clock,
        config: Optional[ConversationConfig] = None,
    ):
        self.doctors = doctors
        self.patients = patients
        self.calendar = calendar
        self.resolver = resolver
        self.transactions = transactions
        self.appointments = appointments
        self.sessions = sessions
        self.clock = clock
        self.config = config or ConversationConfig()
        self.date_parser = DateParser(clock)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def handle(
        self, session: Optional[BookingSession], message: InboundMessage
    ) -> TurnResult:
        """Process one inbound message against the caller's session."""
        if message.flow_response:
            return await self._handle_flow(message)

        text = message.text or ""
        payload = message.button_payload

        if TextProcessor.matches_phrase(text, self.config.cancel_commands):
            return self._cancel(session)

        active = session is not None and session.state.is_active
        entry = self._entry_kind(text, payload, exact=active)
        if entry is not None:
            if active:
                logger.info("Restarting %s flow for %s", entry, message.identity)
            return await self._start(message, recheckup=(entry == "recheckup"))

        if not active:
            return await self._idle_reply(message)

        handlers = {
            SessionState.SELECTING_DOCTOR: self._handle_doctor,
            SessionState.SELECTING_DATE: self._handle_date,
            SessionState.SELECTING_TIME: self._handle_time,
            SessionState.CONFIRMING: self._handle_confirmation,
        }
        try:
            return await handlers[session.state](session, message)
        except SessionExpiredError as e:
            logger.warning("Session for %s is inconsistent: %s", session.phone, e)
            return TurnResult(None, [messages.session_expired()])

    def _entry_kind(self, text: str, payload: Optional[str], exact: bool) -> Optional[str]:
        """Recognize a booking entry request.

        Inside an active flow only exact trigger phrases count, so that
        replies such as "Schedule for Monday" are not mistaken for a restart.
        """
        if payload == RECHECKUP_PAYLOAD:
            return "recheckup"
        if payload == BOOK_PAYLOAD:
            return "book"
        match = TextProcessor.matches_phrase if exact else TextProcessor.contains_phrase
        if match(text, self.config.recheckup_triggers):
            return "recheckup"
        if match(text, self.config.booking_triggers):
            return "book"
        return None

    def _cancel(self, session: Optional[BookingSession]) -> TurnResult:
        if session is not None and session.state.is_active:
            return TurnResult(None, [messages.booking_cancelled()])
        return TurnResult(None, [messages.nothing_to_cancel()])

    async def _idle_reply(self, message: InboundMessage) -> TurnResult:
        text = message.text or ""
        cfg = self.config
        if TextProcessor.contains_phrase(text, cfg.greetings):
            reply = messages.welcome(cfg.clinic_name)
        elif TextProcessor.contains_phrase(text, cfg.help_words):
            reply = messages.help_text(cfg.clinic_name, cfg.support_phone)
        elif TextProcessor.matches_phrase(text, cfg.appointment_words):
            reply = await self._list_appointments(message.identity)
        elif TextProcessor.matches_phrase(text, cfg.thanks_words):
            reply = messages.thanks()
        else:
            reply = messages.default_menu()
        return TurnResult(None, [reply], persist=False)

    async def _list_appointments(self, identity: str) -> str:
        patient = await self.patients.find_by_phone(identity)
        if patient is None:
            return messages.not_registered(self.config.clinic_name)
        upcoming = await self.appointments.upcoming_for_patient(patient.id, self.clock.today())
        items = []
        for appointment in upcoming:
            day = DateParser.parse_iso(appointment.appointment_date)
            items.append(
                f"{DateParser.format_display(day)} at "
                f"{format_time_display(appointment.appointment_time)} with "
                f"Dr. {appointment.doctor_name or 'your doctor'}"
            )
        return messages.upcoming_appointments(items)

    # ------------------------------------------------------------------
    # Entry
    # ------------------------------------------------------------------

    async def _start(self, message: InboundMessage, recheckup: bool) -> TurnResult:
        patient = await self.patients.find_by_phone(message.identity)
        if patient is None:
            logger.info("No patient record for %s", message.identity)
            return TurnResult(None, [messages.not_registered(self.config.clinic_name)])

        session = self.sessions.new_session(message.identity, patient.id)
        if not recheckup:
            return await self._present_doctors(session)

        request = await self.patients.latest_pending_recheckup(patient.id)
        if request is None:
            return await self._present_doctors(session, intro=messages.recheckup_not_found())

        session.is_recheckup = True
        session.recheckup_request_id = request.id
        session.recheckup_appointment_id = request.appointment_id

        doctor_id = request.doctor_id
        if not doctor_id:
            original = await self.appointments.get(request.appointment_id)
            doctor_id = original.doctor_id if original else None
        doctor = await self.doctors.find(doctor_id) if doctor_id else None
        if doctor is None or not doctor.is_active:
            return await self._present_doctors(
                session, intro=messages.recheckup_doctor_unavailable()
            )

        dates = self._upcoming_dates(doctor)
        if not dates:
            return await self._present_doctors(
                session, intro=messages.no_upcoming_dates(doctor, self.config.horizon_days)
            )
        return self._present_dates(session, doctor, dates, intro=messages.recheckup_intro(doctor))

    # ------------------------------------------------------------------
    # Presenters
    # ------------------------------------------------------------------

    async def _present_doctors(
        self, session: BookingSession, intro: Optional[str] = None
    ) -> TurnResult:
        doctors = (await self.doctors.list_active())[: self.config.max_doctors]
        if not doctors:
            return TurnResult(None, [messages.no_doctors()])
        session.state = SessionState.SELECTING_DOCTOR
        session.selected_doctor_id = None
        session.selected_date = None
        session.selected_time = None
        session.offered_doctor_ids = [d.id for d in doctors]
        session.offered_dates = []
        session.offered_times = []
        return TurnResult(session, [messages.doctor_list(doctors, intro=intro)])

    def _upcoming_dates(self, doctor: Doctor) -> List[date]:
        return self.calendar.upcoming_dates(
            doctor,
            self.clock.today(),
            horizon_days=self.config.horizon_days,
            limit=self.config.max_dates,
        )

    def _present_dates(
        self,
        session: BookingSession,
        doctor: Doctor,
        dates: Sequence[date],
        intro: Optional[str] = None,
    ) -> TurnResult:
        session.state = SessionState.SELECTING_DATE
        session.selected_doctor_id = doctor.id
        session.selected_date = None
        session.selected_time = None
        session.offered_dates = [d.isoformat() for d in dates]
        session.offered_times = []
        labels = [self.date_parser.label_for(d) for d in dates]
        return TurnResult(session, [messages.date_list(doctor, labels, intro=intro)])

    def _date_prompt(self, doctor: Doctor, session: BookingSession) -> str:
        labels = [
            self.date_parser.label_for(DateParser.parse_iso(d)) for d in session.offered_dates
        ]
        return messages.date_list(doctor, labels)

    # ------------------------------------------------------------------
    # Session anchors
    # ------------------------------------------------------------------

    async def _session_doctor(self, session: BookingSession) -> Doctor:
        if not session.selected_doctor_id:
            raise SessionExpiredError("no doctor selected")
        doctor = await self.doctors.find(session.selected_doctor_id)
        if doctor is None or not doctor.is_active:
            raise SessionExpiredError(f"doctor {session.selected_doctor_id} unavailable")
        return doctor

    @staticmethod
    def _session_date(session: BookingSession) -> date:
        day = DateParser.parse_iso(session.selected_date or "")
        if day is None:
            raise SessionExpiredError("no date selected")
        return day

    # ------------------------------------------------------------------
    # States
    # ------------------------------------------------------------------

    async def _handle_doctor(self, session: BookingSession, message: InboundMessage) -> TurnResult:
        active = {d.id: d for d in await self.doctors.list_active()}
        offered = [active[i] for i in session.offered_doctor_ids if i in active]

        choice: Optional[Doctor] = None
        payload = message.button_payload or ""
        text = (message.text or "").strip()
        if payload.startswith(DOCTOR_PREFIX):
            choice = next((d for d in offered if d.id == payload[len(DOCTOR_PREFIX):]), None)
        if choice is None:
            index = TextProcessor.parse_ordinal(text, len(session.offered_doctor_ids))
            if index is not None:
                choice = active.get(session.offered_doctor_ids[index])
        if choice is None and text and not text.isdigit():
            needle = TextProcessor.normalize_command(text)
            if needle.startswith("dr.") or needle.startswith("dr "):
                needle = needle[3:].strip()
            if needle:
                choice = next((d for d in offered if needle in d.full_name.lower()), None)

        if choice is None:
            reply = messages.doctor_list(offered or list(active.values()), intro=messages.invalid_doctor())
            return TurnResult(session, [reply], persist=False)

        dates = self._upcoming_dates(choice)
        if not dates:
            reply = messages.no_upcoming_dates(choice, self.config.horizon_days)
            return TurnResult(session, [reply], persist=False)

        logger.info("%s selected doctor %s", session.phone, choice.id)
        return self._present_dates(session, choice, dates)

    async def _handle_date(self, session: BookingSession, message: InboundMessage) -> TurnResult:
        doctor = await self._session_doctor(session)

        chosen: Optional[str] = None
        payload = message.button_payload or ""
        text = (message.text or "").strip()
        if payload.startswith(DATE_PREFIX) and payload[len(DATE_PREFIX):] in session.offered_dates:
            chosen = payload[len(DATE_PREFIX):]
        if chosen is None:
            index = TextProcessor.parse_ordinal(text, len(session.offered_dates))
            if index is not None:
                chosen = session.offered_dates[index]
        if chosen is None and text and not text.isdigit():
            parsed = self.date_parser.parse_user_date(text)
            if parsed and parsed.isoformat() in session.offered_dates:
                chosen = parsed.isoformat()

        if chosen is None:
            reply = f"{messages.invalid_date()}\n\n{self._date_prompt(doctor, session)}"
            return TurnResult(session, [reply], persist=False)

        day = DateParser.parse_iso(chosen)
        availability = await self.resolver.resolve(doctor, day, patient_id=session.patient_id)

        if availability.has_duplicate and self.config.block_duplicate_bookings:
            reply = messages.duplicate_blocked(doctor, day, availability.duplicate_time)
            return TurnResult(session, [f"{reply}\n\n{self._date_prompt(doctor, session)}"], persist=False)

        if not availability.available_slots:
            reply = f"{messages.no_slots_on(day)}\n\n{self._date_prompt(doctor, session)}"
            return TurnResult(session, [reply], persist=False)

        times = availability.available_slots[: self.config.max_times]
        warning = (
            messages.duplicate_warning(doctor, availability.duplicate_time)
            if availability.has_duplicate
            else None
        )
        session.state = SessionState.SELECTING_TIME
        session.selected_date = chosen
        session.selected_time = None
        session.offered_times = times
        return TurnResult(session, [messages.time_list(day, times, warning=warning)])

    async def _handle_time(self, session: BookingSession, message: InboundMessage) -> TurnResult:
        doctor = await self._session_doctor(session)
        day = self._session_date(session)

        def reprompt(prefix: str) -> TurnResult:
            reply = f"{prefix}\n\n{messages.time_list(day, session.offered_times)}"
            return TurnResult(session, [reply], persist=False)

        invalid = messages.invalid_time(self.config.business_start, self.config.business_end)
        payload = message.button_payload or ""
        text = (message.text or "").strip()

        chosen: Optional[str] = None
        if payload.startswith(TIME_PREFIX):
            try:
                candidate = normalize_time(payload[len(TIME_PREFIX):])
            except InvalidTimeFormatError:
                candidate = None
            if candidate in session.offered_times:
                chosen = candidate

        if chosen is None:
            if text.isdigit() and len(text) <= 2:
                index = TextProcessor.parse_ordinal(text, len(session.offered_times))
                if index is None:
                    return reprompt(invalid)
                chosen = session.offered_times[index]
            else:
                try:
                    candidate = normalize_time(text)
                except InvalidTimeFormatError:
                    return reprompt(invalid)
                if not self._within_business_hours(candidate):
                    return reprompt(invalid)
                availability = await self.resolver.resolve(doctor, day)
                if candidate not in availability.available_slots:
                    if candidate in availability.booked_slots:
                        reason = "already booked"
                    elif candidate in availability.past_slots:
                        reason = "that time has passed"
                    else:
                        reason = "not a bookable slot"
                    return reprompt(messages.slot_not_open(candidate, reason))
                chosen = candidate

        session.state = SessionState.CONFIRMING
        session.selected_time = chosen
        return TurnResult(session, [messages.confirmation_prompt(doctor, day, chosen)])

    def _within_business_hours(self, hhmm: str) -> bool:
        start = to_minutes(self.config.business_start)
        end = to_minutes(self.config.business_end)
        return start <= to_minutes(hhmm) <= end

    async def _handle_confirmation(
        self, session: BookingSession, message: InboundMessage
    ) -> TurnResult:
        payload = message.button_payload or ""
        text = message.text or ""

        if payload == CANCEL_PAYLOAD or TextProcessor.matches_phrase(text, self.config.decline_words):
            logger.info("%s declined the booking", session.phone)
            return TurnResult(None, [messages.booking_cancelled()])

        doctor = await self._session_doctor(session)
        day = self._session_date(session)
        if not session.selected_time:
            raise SessionExpiredError("no time selected")

        if payload != CONFIRM_PAYLOAD and not TextProcessor.matches_phrase(
            text, self.config.confirm_words
        ):
            reply = messages.confirmation_prompt(doctor, day, session.selected_time)
            return TurnResult(session, [reply], persist=False)

        try:
            appointment = await self.transactions.reserve(
                doctor.id,
                session.selected_date,
                session.selected_time,
                session.patient_id,
                created_by=message.channel,
            )
        except SlotAlreadyBookedError:
            return TurnResult(None, [messages.slot_taken()])
        except DoctorNotFoundError:
            return TurnResult(None, [messages.session_expired()])
        except PatientNotFoundError:
            return TurnResult(None, [messages.not_registered(self.config.clinic_name)])

        if session.is_recheckup and session.recheckup_request_id:
            await self._mark_recheckup(session.recheckup_request_id, appointment.id)

        return TurnResult(
            None,
            [messages.booking_confirmed(appointment, doctor, day)],
            appointment=appointment,
        )

    async def _mark_recheckup(self, request_id: str, appointment_id: str) -> None:
        try:
            await self.patients.mark_recheckup_booked(request_id, appointment_id)
        except StorageError:
            logger.exception("Could not mark follow-up request %s as booked", request_id)

    # ------------------------------------------------------------------
    # WhatsApp Flow completion
    # ------------------------------------------------------------------

    async def _handle_flow(self, message: InboundMessage) -> TurnResult:
        """Book directly from a completed WhatsApp Flow form."""
        data = message.flow_response or {}
        doctor_id = data.get("doctor_id")
        raw_time = str(data.get("appointment_time") or "")
        if raw_time.startswith("slot_"):
            raw_time = raw_time[len("slot_"):]
        day = DateParser.parse_iso(str(data.get("appointment_date") or ""))

        if not doctor_id or day is None or not raw_time:
            return TurnResult(None, [messages.flow_missing_fields()])
        try:
            time = normalize_time(raw_time)
        except InvalidTimeFormatError:
            return TurnResult(None, [messages.flow_missing_fields()])

        patient = await self.patients.find_by_phone(message.identity)
        if patient is None:
            return TurnResult(None, [messages.not_registered(self.config.clinic_name)])

        details = BookingDetails(
            chief_complaint=data.get("chief_complaint") or None,
            medical_history=data.get("medical_history") or None,
            payment_method=data.get("payment_option") or None,
        )
        try:
            doctor = await self.doctors.get_active(doctor_id)
            await self.resolver.check_bookable(
                doctor,
                day,
                time,
                patient_id=patient.id,
                block_duplicates=self.config.block_duplicate_bookings,
            )
            appointment = await self.transactions.reserve(
                doctor.id,
                day.isoformat(),
                time,
                patient.id,
                details=details,
                created_by=Channel.WHATSAPP_FLOW,
            )
        except SlotAlreadyBookedError:
            return TurnResult(None, [messages.slot_taken()])
        except (NoAvailableSlotsError, InvalidSelectionError, DuplicateBookingError) as e:
            logger.info("Rejected flow booking from %s: %s", message.identity, e)
            return TurnResult(None, [messages.flow_rejected(str(e))])
        except (DoctorNotFoundError, PatientNotFoundError):
            return TurnResult(None, [messages.session_expired()])

        return TurnResult(
            None,
            [messages.booking_confirmed(appointment, doctor, day)],
            appointment=appointment,
        )
