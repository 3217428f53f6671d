"""
Chat booking conversation.
"""

from .adapters import InboundAdapter, OutboundAdapter
from .session_store import SessionStore
from .state_machine import ConversationConfig, ConversationStateMachine, TurnResult
from .service import ConversationService

__all__ = [
    "InboundAdapter",
    "OutboundAdapter",
    "SessionStore",
    "ConversationConfig",
    "ConversationStateMachine",
    "TurnResult",
    "ConversationService",
]
