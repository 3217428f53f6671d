"""
Transport seams of the conversation flow.

Each messaging integration provides an inbound adapter that decodes its
webhook payloads into ``InboundMessage`` objects and an outbound adapter that
delivers text replies.
"""

from typing import Any, List, Optional, Protocol, runtime_checkable

from ...core.models import InboundMessage


@runtime_checkable
class InboundAdapter(Protocol):
    """Decodes one transport's webhook payload."""

    def extract_identity(self, message: Any) -> Optional[str]:
        ...

    def extract_text(self, message: Any) -> str:
        ...

    def extract_button_payload(self, message: Any) -> Optional[str]:
        ...

    def parse(self, payload: Any) -> List[InboundMessage]:
        ...


@runtime_checkable
class OutboundAdapter(Protocol):
    """Fire-and-forget message delivery."""

    async def send_message(self, destination: str, message: str) -> bool:
        ...
