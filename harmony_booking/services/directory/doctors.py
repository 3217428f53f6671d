"""
Read-only doctor directory.
"""

from typing import List, Optional

from ...core.enums import DoctorStatus
from ...core.exceptions import DoctorNotFoundError
from ...core.models import Doctor
from ...storage import DocumentStore, collections


class DoctorDirectory:
    """Fetches doctors from the document store."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def find(self, doctor_id: str) -> Optional[Doctor]:
        if not doctor_id:
            return None
        data = await self.store.get(collections.DOCTORS, doctor_id)
        if data is None:
            return None
        return Doctor.from_document(data, key=doctor_id)

    async def get_active(self, doctor_id: str) -> Doctor:
        """
        Fetch a schedulable doctor.

        Raises:
            DoctorNotFoundError: when the doctor is missing or not active
        """
        doctor = await self.find(doctor_id)
        if doctor is None or not doctor.is_active:
            raise DoctorNotFoundError(f"Doctor {doctor_id} not found")
        return doctor

    async def list_active(self) -> List[Doctor]:
        """Active doctors ordered by name."""
        docs = await self.store.query(
            collections.DOCTORS, {"status": DoctorStatus.ACTIVE.value}
        )
        doctors = [Doctor.from_document(doc.data, key=doc.key) for doc in docs]
        return sorted(doctors, key=lambda d: (d.first_name.lower(), d.last_name.lower(), d.id))
