"""
Wiring of stores and services shared by the HTTP handlers.
"""

from dataclasses import dataclass
from typing import Optional

from ..config import Settings
from ..services.conversation import (
    ConversationConfig,
    ConversationService,
    ConversationStateMachine,
    SessionStore,
)
from ..services.directory import DoctorDirectory, PatientDirectory
from ..services.external import MetaWhatsAppSender, TwilioWhatsAppSender
from ..services.scheduling import (
    AppointmentRepository,
    AvailabilityCalendar,
    BookingTransactionManager,
    SlotAvailabilityResolver,
)
from ..storage import DocumentStore, create_store
from ..utils.date import Clock


@dataclass
class ServiceContainer:
    """Everything a request handler needs, built once per application."""

    settings: Settings
    store: DocumentStore
    clock: Clock
    doctors: DoctorDirectory
    patients: PatientDirectory
    calendar: AvailabilityCalendar
    appointments: AppointmentRepository
    resolver: SlotAvailabilityResolver
    transactions: BookingTransactionManager
    sessions: SessionStore
    conversation: ConversationService
    meta_sender: MetaWhatsAppSender
    twilio_sender: TwilioWhatsAppSender

    @classmethod
    def build(
        cls,
        settings: Settings,
        store: Optional[DocumentStore] = None,
        clock: Optional[Clock] = None,
    ) -> "ServiceContainer":
        store = store or create_store(settings.database())
        clock = clock or Clock(settings.timezone)

        doctors = DoctorDirectory(store)
        patients = PatientDirectory(store)
        calendar = AvailabilityCalendar(settings.slot_granularity_minutes)
        appointments = AppointmentRepository(store)
        resolver = SlotAvailabilityResolver(calendar, appointments, clock)
        transactions = BookingTransactionManager(store, doctors, patients)
        sessions = SessionStore(store, clock, ttl_seconds=settings.session_ttl_seconds)
        machine = ConversationStateMachine(
            doctors=doctors,
            patients=patients,
            calendar=calendar,
            resolver=resolver,
            transactions=transactions,
            appointments=appointments,
            sessions=sessions,
            clock=clock,
            config=ConversationConfig.from_settings(settings),
        )
        external = settings.external_apis()

        return cls(
            settings=settings,
            store=store,
            clock=clock,
            doctors=doctors,
            patients=patients,
            calendar=calendar,
            appointments=appointments,
            resolver=resolver,
            transactions=transactions,
            sessions=sessions,
            conversation=ConversationService(machine, sessions, store, clock),
            meta_sender=MetaWhatsAppSender(external),
            twilio_sender=TwilioWhatsAppSender(external),
        )
