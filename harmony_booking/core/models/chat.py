"""
Transport-neutral chat message model.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from ..enums import Channel


class InboundMessage(BaseModel):
    """A single inbound chat message after transport decoding."""

    model_config = ConfigDict(extra="forbid")

    identity: str
    text: str = ""
    button_payload: Optional[str] = None
    message_id: Optional[str] = None
    channel: Channel = Channel.WHATSAPP_META
    flow_response: Optional[Dict[str, Any]] = None

    @property
    def is_empty(self) -> bool:
        return not self.text.strip() and not self.button_payload and not self.flow_response
