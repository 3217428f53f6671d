"""
Persistence of chat booking sessions.
"""

from datetime import timedelta
from typing import Optional

from ...core.enums import SessionState
from ...core.logging import get_logger
from ...core.models import BookingSession
from ...storage import DocumentStore, collections
from ...utils.date import Clock

logger = get_logger("harmony.conversation")


class SessionStore:
    """Stores one BookingSession per phone number, expiring idle ones."""

    def __init__(self, store: DocumentStore, clock: Clock, ttl_seconds: int = 1800):
        self.store = store
        self.clock = clock
        self.ttl = timedelta(seconds=ttl_seconds)

    def new_session(self, phone: str, patient_id: Optional[str] = None) -> BookingSession:
        now = self.clock.now()
        return BookingSession(
            phone=phone,
            state=SessionState.IDLE,
            patient_id=patient_id,
            created_at=now,
            updated_at=now,
        )

    def is_expired(self, session: BookingSession) -> bool:
        return self.clock.now() - session.updated_at > self.ttl

    async def get(self, phone: str) -> Optional[BookingSession]:
        """Load the active session, treating expired ones as absent."""
        data = await self.store.get(collections.BOOKING_SESSIONS, phone)
        if data is None:
            return None

        session = BookingSession.from_document(data)
        if self.is_expired(session):
            logger.info("Session for %s expired in state %s", phone, session.state.value)
            await self.delete(phone)
            return None
        return session

    async def save(self, session: BookingSession) -> None:
        session.updated_at = self.clock.now()
        await self.store.set(collections.BOOKING_SESSIONS, session.phone, session.to_document())

    async def delete(self, phone: str) -> None:
        await self.store.delete(collections.BOOKING_SESSIONS, phone)
