"""
Meta WhatsApp Cloud API webhook handler.
"""

import json

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import PlainTextResponse

from ...core.logging import get_logger
from ...services.external import MetaInboundAdapter, verify_meta_signature
from ..container import ServiceContainer

logger = get_logger("harmony.webhook.meta")


class MetaWebhook:
    """Handler for Meta webhook verification and message notifications."""

    def __init__(self, container: ServiceContainer):
        self.container = container
        self.settings = container.settings
        self.adapter = MetaInboundAdapter()
        self.router = APIRouter()
        self._setup_routes()

    def _setup_routes(self):
        """Setup Meta webhook routes."""

        @self.router.get("/meta")
        async def verify_subscription(request: Request):
            """Answer Meta's subscription challenge."""
            params = request.query_params
            mode = params.get("hub.mode")
            token = params.get("hub.verify_token")
            challenge = params.get("hub.challenge", "")

            expected = self.settings.meta_verify_token
            if mode == "subscribe" and expected and token == expected:
                logger.info("Webhook subscription verified")
                return PlainTextResponse(challenge)
            logger.warning("Webhook verification rejected (mode=%s)", mode)
            return Response(status_code=status.HTTP_403_FORBIDDEN)

        @self.router.post("/meta")
        async def receive_notification(request: Request):
            """Handle incoming WhatsApp messages and status updates."""
            raw = await request.body()

            if self.settings.meta_app_secret:
                signature = request.headers.get("X-Hub-Signature-256")
                if not verify_meta_signature(self.settings.meta_app_secret, raw, signature):
                    logger.warning("Rejected notification with bad signature")
                    return Response(status_code=status.HTTP_401_UNAUTHORIZED)

            try:
                body = json.loads(raw or b"{}")
            except ValueError:
                return Response(status_code=status.HTTP_400_BAD_REQUEST)
            if not isinstance(body, dict):
                return Response(status_code=status.HTTP_400_BAD_REQUEST)

            inbound = self.adapter.parse(body)
            if not inbound:
                return {"status": "ok"}

            for message in inbound:
                logger.info("Message %s from %s", message.message_id, message.identity)
                try:
                    await self.container.conversation.process(message, self.container.meta_sender)
                except Exception:
                    logger.exception("Failed to process message %s", message.message_id)

            return {"status": "ok"}
