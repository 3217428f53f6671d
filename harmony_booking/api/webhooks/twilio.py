"""
Twilio WhatsApp webhook handler.
"""

from fastapi import APIRouter, Request, Response, status

from ...core.logging import get_logger
from ...services.external import TwilioInboundAdapter, verify_twilio_signature
from ..container import ServiceContainer

logger = get_logger("harmony.webhook.twilio")

EMPTY_TWIML = '<?xml version="1.0" encoding="UTF-8"?><Response></Response>'


class TwilioWebhook:
    """Handler for Twilio's WhatsApp message webhook."""

    def __init__(self, container: ServiceContainer):
        self.container = container
        self.settings = container.settings
        self.adapter = TwilioInboundAdapter()
        self.router = APIRouter()
        self._setup_routes()

    def _setup_routes(self):
        """Setup Twilio webhook routes."""

        @self.router.post("/twilio")
        async def receive_message(request: Request):
            """Handle an incoming WhatsApp message; replies go out via the REST API."""
            form = await request.form()
            params = {key: value for key, value in form.items() if isinstance(value, str)}

            if self.settings.twilio_validate_signature:
                url = self.settings.twilio_webhook_url or str(request.url)
                signature = request.headers.get("X-Twilio-Signature")
                token = self.settings.twilio_auth_token or ""
                if not token or not verify_twilio_signature(token, url, params, signature):
                    logger.warning("Rejected webhook with bad signature")
                    return Response(status_code=status.HTTP_403_FORBIDDEN)

            for message in self.adapter.parse(params):
                logger.info("Message %s from %s", message.message_id, message.identity)
                try:
                    await self.container.conversation.process(message, self.container.twilio_sender)
                except Exception:
                    logger.exception("Failed to process message %s", message.message_id)

            return Response(content=EMPTY_TWIML, media_type="application/xml")
