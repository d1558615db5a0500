"""Base converter interface and registry."""

import math
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from chat_transformer.config import DEFAULT_TOPIC_KEYWORDS
from chat_transformer.models import ConversationRecord

__all__ = [
    "Conversion",
    "Converter",
    "ConverterRegistry",
    "DecodeError",
    "extract_topics",
    "fallback_title",
    "parse_timestamp",
]


class DecodeError(ValueError):
    """A raw record is too malformed to become a conversation."""


@dataclass
class Conversion:
    """A converted record together with the anomalies met on the way."""

    record: ConversationRecord
    warnings: list[str] = field(default_factory=list)


def parse_timestamp(value: Any) -> float | None:
    """Parse an epoch number or ISO 8601 string to Unix seconds.

    Args:
        value: Epoch seconds (int/float), ISO 8601 string, or None

    Returns:
        Unix timestamp in seconds, or None if absent, unparseable or not
        finite (NaN and infinities)
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        try:
            result = float(value)
        except OverflowError:
            return None
        return result if math.isfinite(result) else None

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            result = float(text)
        except ValueError:
            pass
        else:
            return result if math.isfinite(result) else None
        try:
            # Handle ISO 8601 with optional microseconds and Z suffix
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
        # Naive times in exports are UTC
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.timestamp()

    return None


def fallback_title(conversation_id: str) -> str:
    """Synthesize a title from a conversation id."""
    return f"Conversation-{conversation_id[:8]}"


def extract_topics(title: str, keywords: list[str] | None = None) -> list[str]:
    """Tag a conversation with keywords found in its title.

    Keywords match whole words, allowing a plural 's'. Titles with no
    keyword are tagged 'help' when they ask for help, else 'general'.
    """
    if keywords is None:
        keywords = DEFAULT_TOPIC_KEYWORDS

    title_lower = title.lower()
    topics = [
        keyword
        for keyword in keywords
        if re.search(rf"\b{re.escape(keyword)}s?\b", title_lower)
    ]

    if not topics:
        if "help" in title_lower or "question" in title_lower:
            topics.append("help")
        else:
            topics.append("general")

    return topics


class Converter(ABC):
    """Base class for export record converters.

    Subclasses set the `platform` class attribute and implement `convert()`
    to turn one raw export record into a ConversationRecord.
    """

    platform: str

    def __init__(self, topic_keywords: list[str] | None = None) -> None:
        self.topic_keywords = topic_keywords

    @abstractmethod
    def convert(self, raw: Any) -> Conversion:
        """Convert one raw export record.

        Args:
            raw: One decoded element of the export's conversation array

        Returns:
            Conversion holding the record and any structural warnings

        Raises:
            DecodeError: If the record cannot be interpreted at all
        """


class ConverterRegistry:
    """Registry of converter classes by platform name."""

    _converters: dict[str, type[Converter]] = {}

    @classmethod
    def register(cls, converter_class: type[Converter]) -> None:
        """Register a converter class."""
        cls._converters[converter_class.platform] = converter_class

    @classmethod
    def get(cls, platform: str) -> type[Converter] | None:
        """Get converter class by platform name."""
        return cls._converters.get(platform)

    @classmethod
    def all_platforms(cls) -> list[str]:
        """List all registered platform names."""
        return list(cls._converters.keys())
