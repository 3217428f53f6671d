"""
Text processing utilities.
"""

import re
from typing import Iterable, List, Optional


class TextProcessor:
    """Text processing utilities."""

    @staticmethod
    def normalize_command(text: str) -> str:
        """Lowercase, trim and collapse whitespace for keyword matching."""
        if not isinstance(text, str):
            text = str(text or "")
        text = text.strip().lower()
        text = re.sub(r"[!?.,]+$", "", text)
        return re.sub(r"\s+", " ", text).strip()

    @classmethod
    def matches_phrase(cls, text: str, phrases: Iterable[str]) -> bool:
        """Whether the normalized text equals one of the phrases."""
        normalized = cls.normalize_command(text)
        return any(normalized == cls.normalize_command(p) for p in phrases)

    @classmethod
    def contains_phrase(cls, text: str, phrases: Iterable[str]) -> bool:
        """Whether any phrase occurs in the text on word boundaries."""
        normalized = cls.normalize_command(text)
        for phrase in phrases:
            needle = cls.normalize_command(phrase)
            if needle and re.search(rf"(?<!\w){re.escape(needle)}(?!\w)", normalized):
                return True
        return False

    @staticmethod
    def parse_ordinal(text: str, upper: int) -> Optional[int]:
        """
        Parse a 1-based ordinal reply.

        Returns:
            Zero-based index, or None when the text is not a number in range
        """
        value = (text or "").strip().rstrip(".)")
        if not value.isdigit():
            return None
        number = int(value)
        if 1 <= number <= upper:
            return number - 1
        return None

    @staticmethod
    def split_text_for_whatsapp(text: str, max_length: int = 4096) -> List[str]:
        """Split text into chunks suitable for WhatsApp, preferring line breaks."""
        if len(text) <= max_length:
            return [text]

        chunks: List[str] = []
        current = ""

        for line in text.split("\n"):
            candidate = f"{current}\n{line}" if current else line
            if len(candidate) <= max_length:
                current = candidate
                continue
            if current:
                chunks.append(current)
                current = ""
            while len(line) > max_length:
                cut = line.rfind(" ", 0, max_length)
                if cut <= 0:
                    cut = max_length
                chunks.append(line[:cut])
                line = line[cut:].lstrip()
            current = line

        if current:
            chunks.append(current)

        return chunks
