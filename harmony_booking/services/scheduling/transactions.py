"""
Atomic check-and-reserve of appointment slots.
"""

import re
from typing import Optional

from ...core.enums import AppointmentStatus, Channel
from ...core.exceptions import (
    AppointmentAccessError,
    AppointmentNotFoundError,
    InvalidAppointmentStateError,
    InvalidSelectionError,
    SlotAlreadyBookedError,
)
from ...core.logging import get_logger
from ...core.models import Appointment, BookingDetails, SlotReservation
from ...storage import DocumentStore, Transaction, collections
from ...utils.date import DateParser, utc_now_iso
from ..directory import DoctorDirectory, PatientDirectory
from .time_normalizer import normalize_time

logger = get_logger("harmony.booking")

_UNSAFE_KEY_CHARS = re.compile(r"[:\s/]+")


class BookingTransactionManager:
    """Creates, moves and releases appointments together with their slot reservation.

    A reservation document keyed by ``slot_key`` exists exactly while a
    confirmed appointment holds that slot. Every mutation reads and writes it
    inside one store transaction, which is the only guard against double
    booking; availability shown to users is advisory.
    """

    def __init__(
        self,
        store: DocumentStore,
        doctors: DoctorDirectory,
        patients: PatientDirectory,
    ):
        self.store = store
        self.doctors = doctors
        self.patients = patients

    @staticmethod
    def slot_key(doctor_id: str, day: str, time: str) -> str:
        """Deterministic storage-safe key, e.g. ``"doc1_2026-10-19_09-30"``."""
        raw = f"{doctor_id}_{day}_{normalize_time(time)}"
        return _UNSAFE_KEY_CHARS.sub("-", raw)

    @staticmethod
    def _require_date(day: str) -> str:
        parsed = DateParser.parse_iso(day or "")
        if parsed is None:
            raise InvalidSelectionError(f"Invalid appointment date: {day!r}")
        return parsed.isoformat()

    async def is_slot_free(self, doctor_id: str, day: str, time: str) -> bool:
        """Advisory, non-transactional check of a slot key."""
        key = self.slot_key(doctor_id, self._require_date(day), time)
        return await self.store.get(collections.APPOINTMENT_SLOTS, key) is None

    async def reserve(
        self,
        doctor_id: str,
        day: str,
        time: str,
        patient_id: str,
        details: Optional[BookingDetails] = None,
        created_by: Channel = Channel.WEB,
    ) -> Appointment:
        """
        Book a slot.

        Returns:
            The new confirmed appointment

        Raises:
            InvalidTimeFormatError: when ``time`` cannot be normalized
            InvalidSelectionError: when ``day`` is not an ISO date
            DoctorNotFoundError: when the doctor is missing or inactive
            PatientNotFoundError: when the patient is not registered
            SlotAlreadyBookedError: when the slot key is already reserved
        """
        canonical_time = normalize_time(time)
        iso_day = self._require_date(day)
        doctor = await self.doctors.get_active(doctor_id)
        patient = await self.patients.get(patient_id)
        details = details or BookingDetails()

        key = self.slot_key(doctor.id, iso_day, canonical_time)
        appointment_id = self.store.new_key()
        now = utc_now_iso()

        appointment = Appointment(
            id=appointment_id,
            doctor_id=doctor.id,
            patient_id=patient.id,
            appointment_date=iso_day,
            appointment_time=canonical_time,
            status=AppointmentStatus.CONFIRMED,
            patient_name=patient.full_name,
            patient_phone=patient.primary_phone,
            doctor_name=doctor.full_name,
            doctor_specialization=doctor.specialization,
            chief_complaint=details.chief_complaint or "General consultation",
            medical_history=details.medical_history,
            payment_amount=(
                details.payment_amount
                if details.payment_amount is not None
                else doctor.consultation_fee
            ),
            payment_method=details.payment_method,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        reservation = SlotReservation(
            appointment_id=appointment_id,
            doctor_id=doctor.id,
            appointment_date=iso_day,
            appointment_time=canonical_time,
            created_at=now,
        )

        async def _reserve(txn: Transaction) -> None:
            if await txn.get(collections.APPOINTMENT_SLOTS, key) is not None:
                raise SlotAlreadyBookedError(key)
            await txn.set(collections.APPOINTMENTS, appointment_id, appointment.to_document())
            await txn.set(collections.APPOINTMENT_SLOTS, key, reservation.to_document())

        try:
            await self.store.run_transaction(_reserve)
        except SlotAlreadyBookedError:
            logger.info("Slot %s already booked; patient %s lost the race", key, patient.id)
            raise

        logger.info("Reserved slot %s as appointment %s", key, appointment_id)
        return appointment

    async def _load_for_update(
        self, txn: Transaction, appointment_id: str, patient_id: Optional[str]
    ) -> Appointment:
        data = await txn.get(collections.APPOINTMENTS, appointment_id)
        if data is None:
            raise AppointmentNotFoundError(f"Appointment {appointment_id} not found")
        appointment = Appointment.from_document(data, key=appointment_id)
        if patient_id is not None and appointment.patient_id != patient_id:
            raise AppointmentAccessError(
                f"Appointment {appointment_id} does not belong to patient {patient_id}"
            )
        if not appointment.is_confirmed:
            raise InvalidAppointmentStateError(
                f"Appointment {appointment_id} is {appointment.status.value}"
            )
        return appointment

    async def _release(self, txn: Transaction, appointment: Appointment) -> None:
        key = self.slot_key(
            appointment.doctor_id, appointment.appointment_date, appointment.appointment_time
        )
        reservation = await txn.get(collections.APPOINTMENT_SLOTS, key)
        if reservation and reservation.get("appointmentId") == appointment.id:
            await txn.delete(collections.APPOINTMENT_SLOTS, key)

    async def _finish(
        self,
        appointment_id: str,
        status: AppointmentStatus,
        patient_id: Optional[str] = None,
    ) -> Appointment:
        async def _apply(txn: Transaction) -> Appointment:
            appointment = await self._load_for_update(txn, appointment_id, patient_id)
            appointment.status = status
            appointment.updated_at = utc_now_iso()
            await txn.set(collections.APPOINTMENTS, appointment_id, appointment.to_document())
            await self._release(txn, appointment)
            return appointment

        appointment = await self.store.run_transaction(_apply)
        logger.info("Appointment %s marked %s", appointment_id, status.value)
        return appointment

    async def cancel(self, appointment_id: str, patient_id: Optional[str] = None) -> Appointment:
        """Cancel a confirmed appointment and free its slot."""
        return await self._finish(appointment_id, AppointmentStatus.CANCELLED, patient_id)

    async def complete(self, appointment_id: str) -> Appointment:
        """Mark a confirmed appointment completed and free its slot."""
        return await self._finish(appointment_id, AppointmentStatus.COMPLETED)

    async def reschedule(
        self,
        appointment_id: str,
        new_day: str,
        new_time: str,
        patient_id: Optional[str] = None,
    ) -> Appointment:
        """
        Move a confirmed appointment to another slot of the same doctor.

        The new slot is checked, the old reservation released and the new one
        written in a single transaction.
        """
        canonical_time = normalize_time(new_time)
        iso_day = self._require_date(new_day)

        async def _move(txn: Transaction) -> Appointment:
            appointment = await self._load_for_update(txn, appointment_id, patient_id)
            new_key = self.slot_key(appointment.doctor_id, iso_day, canonical_time)
            old_key = self.slot_key(
                appointment.doctor_id,
                appointment.appointment_date,
                appointment.appointment_time,
            )
            if new_key == old_key:
                return appointment
            if await txn.get(collections.APPOINTMENT_SLOTS, new_key) is not None:
                raise SlotAlreadyBookedError(new_key)

            await self._release(txn, appointment)
            now = utc_now_iso()
            appointment.appointment_date = iso_day
            appointment.appointment_time = canonical_time
            appointment.updated_at = now
            await txn.set(collections.APPOINTMENTS, appointment_id, appointment.to_document())
            await txn.set(
                collections.APPOINTMENT_SLOTS,
                new_key,
                SlotReservation(
                    appointment_id=appointment_id,
                    doctor_id=appointment.doctor_id,
                    appointment_date=iso_day,
                    appointment_time=canonical_time,
                    created_at=now,
                ).to_document(),
            )
            return appointment

        appointment = await self.store.run_transaction(_move)
        logger.info(
            "Appointment %s rescheduled to %s %s", appointment_id, iso_day, canonical_time
        )
        return appointment
