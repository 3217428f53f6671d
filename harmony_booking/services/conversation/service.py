"""
Conversation orchestration: load session, run a turn, persist, reply.
"""

from typing import Optional

from ...core.exceptions import ExternalAPIError, StorageError
from ...core.logging import get_logger
from ...core.models import InboundMessage
from ...storage import DocumentStore, collections
from ...utils.date import Clock
from ...utils.phone import PhoneNumberParser
from . import messages
from .adapters import OutboundAdapter
from .session_store import SessionStore
from .state_machine import ConversationStateMachine, TurnResult

logger = get_logger("harmony.conversation")


class ConversationService:
    """Runs inbound chat messages through the booking state machine."""

    def __init__(
        self,
        machine: ConversationStateMachine,
        sessions: SessionStore,
        store: DocumentStore,
        clock: Clock,
    ):
        self.machine = machine
        self.sessions = sessions
        self.store = store
        self.clock = clock

    async def process(
        self, message: InboundMessage, outbound: OutboundAdapter
    ) -> Optional[TurnResult]:
        """
        Handle one inbound message end to end.

        Returns:
            The turn result, or None when the message was empty, a redelivery,
            or could not be processed because the store failed
        """
        if message.is_empty:
            return None

        identity = PhoneNumberParser.to_e164(message.identity) or message.identity
        message = message.model_copy(update={"identity": identity})

        try:
            if await self._is_duplicate(message):
                logger.info("Skipping redelivered message %s from %s", message.message_id, identity)
                return None

            session = await self.sessions.get(identity)
            previous_state = session.state.value if session else "none"
            result = await self.machine.handle(session, message)

            if result.appointment is not None:
                await self._finish_booking(session, result, message)
            else:
                if result.session is None:
                    if session is not None:
                        await self.sessions.delete(identity)
                elif result.persist:
                    await self.sessions.save(result.session)
                await self._remember(message)
        except StorageError:
            logger.exception("Store failure while handling message from %s", identity)
            await self._send(outbound, identity, [messages.technical_problem()])
            return None

        new_state = result.session.state.value if result.session else "none"
        if new_state != previous_state:
            logger.info("Session %s: %s -> %s", identity, previous_state, new_state)

        await self._send(outbound, identity, result.replies)
        return result

    async def _finish_booking(self, session, result: TurnResult, message: InboundMessage) -> None:
        """Clear the session after a committed booking; the booking stands either way."""
        identity = message.identity
        try:
            if result.session is not None and result.persist:
                await self.sessions.save(result.session)
            elif result.session is None and session is not None:
                await self.sessions.delete(identity)
        except StorageError:
            logger.exception(
                "Appointment %s is booked but the session of %s was not cleared",
                result.appointment.id,
                identity,
            )
        try:
            await self._remember(message)
        except StorageError:
            logger.exception(
                "Appointment %s is booked but message %s was not recorded",
                result.appointment.id,
                message.message_id,
            )

    async def _is_duplicate(self, message: InboundMessage) -> bool:
        if not message.message_id:
            return False
        return await self.store.get(collections.INBOUND_MESSAGES, message.message_id) is not None

    async def _remember(self, message: InboundMessage) -> None:
        if not message.message_id:
            return
        await self.store.set(
            collections.INBOUND_MESSAGES,
            message.message_id,
            {
                "identity": message.identity,
                "channel": message.channel.value,
                "receivedAt": self.clock.now().isoformat(),
            },
        )

    async def _send(self, outbound: OutboundAdapter, destination: str, replies) -> None:
        """Deliver replies; failures are logged and never undo a booking."""
        for reply in replies:
            try:
                delivered = await outbound.send_message(destination, reply)
            except ExternalAPIError:
                logger.exception("Failed to deliver reply to %s", destination)
                continue
            if not delivered:
                logger.warning("Reply to %s was not delivered", destination)
