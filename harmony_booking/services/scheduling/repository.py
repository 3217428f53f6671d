"""
Read access to stored appointments.
"""

from datetime import date
from typing import List, Optional

from ...core.enums import AppointmentStatus
from ...core.exceptions import InvalidTimeFormatError
from ...core.logging import get_logger
from ...core.models import Appointment
from ...storage import DocumentStore, collections
from .time_normalizer import normalize_time

logger = get_logger("harmony.scheduling")


class AppointmentRepository:
    """Queries over the appointments collection."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def get(self, appointment_id: str) -> Optional[Appointment]:
        data = await self.store.get(collections.APPOINTMENTS, appointment_id)
        if data is None:
            return None
        return Appointment.from_document(data, key=appointment_id)

    async def _confirmed(self, **filters) -> List[Appointment]:
        filters["status"] = AppointmentStatus.CONFIRMED.value
        docs = await self.store.query(collections.APPOINTMENTS, filters)
        return [Appointment.from_document(doc.data, key=doc.key) for doc in docs]

    async def confirmed_for_doctor_on(self, doctor_id: str, day: str) -> List[Appointment]:
        """Confirmed appointments of a doctor on an ISO date."""
        return await self._confirmed(doctorId=doctor_id, appointmentDate=day)

    async def confirmed_for_patient(
        self,
        patient_id: str,
        doctor_id: Optional[str] = None,
        day: Optional[str] = None,
    ) -> List[Appointment]:
        filters = {"patientId": patient_id}
        if doctor_id:
            filters["doctorId"] = doctor_id
        if day:
            filters["appointmentDate"] = day
        return await self._confirmed(**filters)

    async def upcoming_for_patient(self, patient_id: str, today: date) -> List[Appointment]:
        """Confirmed appointments from today onwards, soonest first."""
        appointments = await self.confirmed_for_patient(patient_id)
        upcoming = [a for a in appointments if a.appointment_date >= today.isoformat()]
        return sorted(upcoming, key=lambda a: (a.appointment_date, a.appointment_time))

    @staticmethod
    def booked_times(appointments: List[Appointment]) -> List[str]:
        """Canonical times of the given appointments; malformed times are skipped."""
        times: List[str] = []
        for appointment in appointments:
            try:
                times.append(normalize_time(appointment.appointment_time))
            except InvalidTimeFormatError:
                logger.warning(
                    "Skipping appointment %s with malformed time %r",
                    appointment.id,
                    appointment.appointment_time,
                )
        return times
