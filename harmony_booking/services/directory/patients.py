"""
Patient directory and follow-up request lookups.
"""

from typing import Optional

from ...core.enums import RecheckupStatus
from ...core.exceptions import PatientNotFoundError
from ...core.logging import get_logger
from ...core.models import Patient, RecheckupRequest
from ...storage import DocumentStore, collections
from ...utils.date import utc_now_iso
from ...utils.phone import PhoneNumberParser

logger = get_logger("harmony.directory")


class PatientDirectory:
    """Looks up patients, tolerating the phone fields used historically."""

    PHONE_FIELDS = ("phone", "phoneNumber", "contact")

    def __init__(self, store: DocumentStore):
        self.store = store

    async def find_by_phone(self, phone: str) -> Optional[Patient]:
        """
        Find a patient by phone number.

        Each phone field is tried with every stored spelling of the number;
        the first match wins.
        """
        variants = PhoneNumberParser.candidate_variants(phone)
        if not variants:
            return None

        for field in self.PHONE_FIELDS:
            for variant in variants:
                docs = await self.store.query(collections.PATIENTS, {field: variant}, limit=1)
                if docs:
                    logger.debug("Patient matched on %s", field)
                    return Patient.from_document(docs[0].data, key=docs[0].key)
        return None

    async def get(self, patient_id: str) -> Patient:
        """
        Fetch a patient by id.

        Raises:
            PatientNotFoundError: when no such patient exists
        """
        data = await self.store.get(collections.PATIENTS, patient_id) if patient_id else None
        if data is None:
            raise PatientNotFoundError(f"Patient {patient_id} not found")
        return Patient.from_document(data, key=patient_id)

    async def latest_pending_recheckup(self, patient_id: str) -> Optional[RecheckupRequest]:
        """Most recently sent pending follow-up request for the patient."""
        docs = await self.store.query(
            collections.RECHECKUP_REQUESTS,
            {"patientId": patient_id, "status": RecheckupStatus.PENDING.value},
        )
        if not docs:
            return None
        requests = [RecheckupRequest.from_document(doc.data, key=doc.key) for doc in docs]
        return max(requests, key=lambda r: r.sent_at or "")

    async def mark_recheckup_booked(self, request_id: str, appointment_id: str) -> None:
        data = await self.store.get(collections.RECHECKUP_REQUESTS, request_id)
        if data is None:
            return
        data["status"] = RecheckupStatus.BOOKED.value
        data["bookedAppointmentId"] = appointment_id
        data["updatedAt"] = utc_now_iso()
        await self.store.set(collections.RECHECKUP_REQUESTS, request_id, data)
