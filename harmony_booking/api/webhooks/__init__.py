"""
Messaging webhook handlers.
"""

from .meta import MetaWebhook
from .twilio import TwilioWebhook

__all__ = ["MetaWebhook", "TwilioWebhook"]
