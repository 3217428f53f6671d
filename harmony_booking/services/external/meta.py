"""
Meta WhatsApp Cloud API integration.
"""

import hashlib
import hmac
import json
from typing import Any, Dict, List, Optional

from ...core.enums import Channel
from ...core.exceptions import ExternalAPIError
from ...core.logging import get_logger
from ...core.models import InboundMessage
from ...utils.phone import PhoneNumberParser
from ...utils.text import TextProcessor
from .http import MessagingHTTPClient

logger = get_logger("harmony.outbound")


def verify_meta_signature(app_secret: str, body: bytes, header: Optional[str]) -> bool:
    """Check an ``X-Hub-Signature-256`` header against the raw request body."""
    if not header or not header.startswith("sha256="):
        return False
    expected = hmac.new(app_secret.encode(), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, header[len("sha256="):])


class MetaInboundAdapter:
    """Decodes Cloud API webhook notifications."""

    def extract_identity(self, message: Dict[str, Any]) -> Optional[str]:
        return PhoneNumberParser.strip_transport_prefix(str(message.get("from") or ""))

    def extract_text(self, message: Dict[str, Any]) -> str:
        kind = message.get("type")
        if kind == "text":
            return (message.get("text") or {}).get("body", "").strip()
        if kind == "interactive":
            reply = self._interactive_reply(message)
            return (reply.get("title") or "").strip()
        if kind == "button":
            return ((message.get("button") or {}).get("text") or "").strip()
        return ""

    def extract_button_payload(self, message: Dict[str, Any]) -> Optional[str]:
        kind = message.get("type")
        if kind == "interactive":
            return self._interactive_reply(message).get("id") or None
        if kind == "button":
            return (message.get("button") or {}).get("payload") or None
        return None

    def extract_flow_response(self, message: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Form data of a completed WhatsApp Flow, if this message is one."""
        if message.get("type") != "interactive":
            return None
        interactive = message.get("interactive") or {}
        if interactive.get("type") != "nfm_reply":
            return None
        raw = (interactive.get("nfm_reply") or {}).get("response_json")
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Discarding malformed flow response in message %s", message.get("id"))
            return None
        return data if isinstance(data, dict) else None

    @staticmethod
    def _interactive_reply(message: Dict[str, Any]) -> Dict[str, Any]:
        interactive = message.get("interactive") or {}
        return interactive.get("button_reply") or interactive.get("list_reply") or {}

    def parse(self, payload: Dict[str, Any]) -> List[InboundMessage]:
        """Collect user messages from a webhook body; status updates are skipped."""
        results: List[InboundMessage] = []
        for entry in payload.get("entry") or []:
            for change in entry.get("changes") or []:
                value = change.get("value") or {}
                for raw in value.get("messages") or []:
                    identity = self.extract_identity(raw)
                    if not identity:
                        continue
                    results.append(
                        InboundMessage(
                            identity=identity,
                            text=self.extract_text(raw),
                            button_payload=self.extract_button_payload(raw),
                            message_id=raw.get("id"),
                            channel=Channel.WHATSAPP_META,
                            flow_response=self.extract_flow_response(raw),
                        )
                    )
        return results


class MetaWhatsAppSender(MessagingHTTPClient):
    """Sends text messages through the Graph API."""

    async def send_message(self, destination: str, message: str) -> bool:
        url = self.config.get_meta_messages_url()
        if not self.config.is_meta_configured() or not url:
            logger.debug("Meta sender not configured; dropping reply to %s", destination)
            return False

        e164 = PhoneNumberParser.to_e164(destination)
        if not e164:
            logger.warning("Cannot send to invalid number %r", destination)
            return False

        headers = {"Authorization": f"Bearer {self.config.meta_access_token}"}
        chunks = TextProcessor.split_text_for_whatsapp(message, self.config.max_message_length)
        for chunk in chunks:
            body = {
                "messaging_product": "whatsapp",
                "recipient_type": "individual",
                "to": e164.lstrip("+"),
                "type": "text",
                "text": {"preview_url": False, "body": chunk},
            }
            try:
                await self._make_request("POST", url, json=body, headers=headers)
            except ExternalAPIError as e:
                logger.error("Meta send to %s failed: %s", e164, e)
                return False
        return True
