"""
Conversation-related enums.
"""

from enum import Enum


class SessionState(str, Enum):
    """States of the chat booking flow."""

    IDLE = "idle"
    SELECTING_DOCTOR = "selecting_doctor"
    SELECTING_DATE = "selecting_date"
    SELECTING_TIME = "selecting_time"
    CONFIRMING = "confirming"
    COMPLETED = "completed"

    @property
    def is_active(self) -> bool:
        """Whether a session in this state holds an in-progress flow."""
        return self not in (SessionState.IDLE, SessionState.COMPLETED)


class Channel(str, Enum):
    """Origin of a booking request."""

    WEB = "web"
    WHATSAPP_META = "whatsapp_meta"
    WHATSAPP_TWILIO = "whatsapp_twilio"
    WHATSAPP_FLOW = "whatsapp_flow"
