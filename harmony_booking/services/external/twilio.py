"""
Twilio WhatsApp integration.
"""

import base64
import hashlib
import hmac
from typing import Any, List, Mapping, Optional

from ...core.enums import Channel
from ...core.exceptions import ExternalAPIError
from ...core.logging import get_logger
from ...core.models import InboundMessage
from ...utils.phone import PhoneNumberParser
from ...utils.text import TextProcessor
from .http import MessagingHTTPClient

logger = get_logger("harmony.outbound")


def compute_twilio_signature(auth_token: str, url: str, params: Mapping[str, Any]) -> str:
    """Signature Twilio sends in ``X-Twilio-Signature`` for a form POST."""
    payload = url + "".join(f"{key}{params[key]}" for key in sorted(params))
    digest = hmac.new(auth_token.encode(), payload.encode(), hashlib.sha1).digest()
    return base64.b64encode(digest).decode()


def verify_twilio_signature(
    auth_token: str, url: str, params: Mapping[str, Any], header: Optional[str]
) -> bool:
    if not header:
        return False
    return hmac.compare_digest(compute_twilio_signature(auth_token, url, params), header)


class TwilioInboundAdapter:
    """Decodes Twilio's form-encoded WhatsApp webhooks."""

    def extract_identity(self, form: Mapping[str, Any]) -> Optional[str]:
        return PhoneNumberParser.strip_transport_prefix(str(form.get("From") or ""))

    def extract_text(self, form: Mapping[str, Any]) -> str:
        body = str(form.get("Body") or "").strip()
        return body or str(form.get("ButtonText") or "").strip()

    def extract_button_payload(self, form: Mapping[str, Any]) -> Optional[str]:
        return str(form.get("ButtonPayload") or "").strip() or None

    def parse(self, form: Mapping[str, Any]) -> List[InboundMessage]:
        identity = self.extract_identity(form)
        if not identity:
            return []
        return [
            InboundMessage(
                identity=identity,
                text=self.extract_text(form),
                button_payload=self.extract_button_payload(form),
                message_id=str(form.get("MessageSid") or "") or None,
                channel=Channel.WHATSAPP_TWILIO,
            )
        ]


class TwilioWhatsAppSender(MessagingHTTPClient):
    """Sends WhatsApp messages through the Twilio Messages API."""

    async def send_message(self, destination: str, message: str) -> bool:
        url = self.config.get_twilio_messages_url()
        if not self.config.is_twilio_configured() or not url:
            logger.debug("Twilio sender not configured; dropping reply to %s", destination)
            return False

        to_address = PhoneNumberParser.to_whatsapp_address(destination)
        from_address = PhoneNumberParser.to_whatsapp_address(self.config.twilio_whatsapp_number)
        if not to_address or not from_address:
            logger.warning("Cannot send from %r to %r", self.config.twilio_whatsapp_number, destination)
            return False

        auth = (self.config.twilio_account_sid, self.config.twilio_auth_token)
        chunks = TextProcessor.split_text_for_whatsapp(message, self.config.max_message_length)
        for chunk in chunks:
            form = {"From": from_address, "To": to_address, "Body": chunk}
            try:
                await self._make_request("POST", url, data=form, auth=auth)
            except ExternalAPIError as e:
                logger.error("Twilio send to %s failed: %s", to_address, e)
                return False
        return True
