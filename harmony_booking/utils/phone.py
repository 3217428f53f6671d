"""
Phone number parsing utilities.
"""

import re
from typing import List, Optional


class PhoneNumberParser:
    """Phone number parsing utilities for WhatsApp identities."""

    TRANSPORT_PREFIXES = ("whatsapp:",)
    DEFAULT_COUNTRY_CODE = "91"

    @classmethod
    def strip_transport_prefix(cls, identity: str) -> Optional[str]:
        """
        Remove transport decorations from a WhatsApp identity.

        Args:
            identity: Raw identity, e.g. "whatsapp:+919876543210" or "919876543210@c.us"

        Returns:
            The bare phone string (with a leading "+" when it had one) or None
        """
        if not identity or not isinstance(identity, str):
            return None

        value = identity.strip()
        for prefix in cls.TRANSPORT_PREFIXES:
            if value.lower().startswith(prefix):
                value = value[len(prefix):]

        chat_match = re.match(r"(\+?\d+)@", value)
        if chat_match:
            value = chat_match.group(1)

        value = value.strip()
        return value or None

    @classmethod
    def to_e164(cls, phone: str) -> Optional[str]:
        """
        Normalize a phone number to E.164 ("+<country><number>").

        Ten-digit national numbers are assumed to belong to the default country.
        """
        bare = cls.strip_transport_prefix(phone)
        if not bare:
            return None

        digits = re.sub(r"\D", "", bare)
        if not digits:
            return None

        if len(digits) == 11 and digits.startswith("0"):
            digits = digits[1:]
        if len(digits) == 10:
            digits = cls.DEFAULT_COUNTRY_CODE + digits
        if len(digits) < 10 or len(digits) > 15:
            return None
        return "+" + digits

    @classmethod
    def candidate_variants(cls, phone: str) -> List[str]:
        """
        Spellings under which the same number may have been stored.

        Args:
            phone: Phone number in any supported format

        Returns:
            Ordered, de-duplicated list of variants, the E.164 form first
        """
        variants: List[str] = []

        def add(value: Optional[str]) -> None:
            if value and value not in variants:
                variants.append(value)

        bare = cls.strip_transport_prefix(phone)
        e164 = cls.to_e164(phone)
        add(e164)
        if e164:
            digits = e164[1:]
            add(digits)
            if digits.startswith(cls.DEFAULT_COUNTRY_CODE) and len(digits) == 12:
                national = digits[len(cls.DEFAULT_COUNTRY_CODE):]
                add(national)
                add("0" + national)
        add(bare)
        return variants

    @classmethod
    def to_whatsapp_address(cls, phone: str) -> Optional[str]:
        """Format a number as a Twilio WhatsApp address."""
        e164 = cls.to_e164(phone)
        return f"whatsapp:{e164}" if e164 else None
