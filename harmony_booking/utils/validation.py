"""
Validation utilities for request data.
"""

import re
from typing import Optional, Tuple

from .date import DateParser

_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


class ValidationUtils:
    """Validation utilities for various data types."""

    @staticmethod
    def validate_identifier(value: str, label: str = "id") -> Tuple[bool, Optional[str]]:
        """
        Validate a document identifier.

        Identifiers end up inside slot keys, so only letters, digits,
        "_" and "-" are accepted.

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not value:
            return False, f"{label} is required"
        if not _ID_PATTERN.match(value):
            return False, f"{label} contains invalid characters"
        return True, None

    @staticmethod
    def validate_iso_date(value: str) -> Tuple[bool, Optional[str]]:
        """Validate a YYYY-MM-DD date string."""
        if not value:
            return False, "date is required"
        if not DateParser.is_valid_iso_date(value):
            return False, "date must be in YYYY-MM-DD format"
        return True, None

    @staticmethod
    def sanitize_free_text(value: Optional[str], max_length: int = 500) -> Optional[str]:
        """Trim user-provided free text and cap its length."""
        if value is None:
            return None
        cleaned = re.sub(r"\s+", " ", value).strip()
        return cleaned[:max_length] or None
