"""
External messaging provider integrations.
"""

from .http import MessagingHTTPClient
from .meta import MetaInboundAdapter, MetaWhatsAppSender, verify_meta_signature
from .twilio import (
    TwilioInboundAdapter,
    TwilioWhatsAppSender,
    compute_twilio_signature,
    verify_twilio_signature,
)

__all__ = [
    "MessagingHTTPClient",
    "MetaInboundAdapter",
    "MetaWhatsAppSender",
    "verify_meta_signature",
    "TwilioInboundAdapter",
    "TwilioWhatsAppSender",
    "compute_twilio_signature",
    "verify_twilio_signature",
]
