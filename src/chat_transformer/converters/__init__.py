"""Converters for ChatGPT and Claude export formats."""

from .base import (
    Conversion,
    Converter,
    ConverterRegistry,
    DecodeError,
    extract_topics,
    fallback_title,
    parse_timestamp,
)
from .chatgpt import ChatGPTConverter
from .claude import ClaudeConverter
from .content import MixedParts, TextParts, classify_parts, has_media_parts, normalize_parts
from .tree import Linearization, canonical_author, contains_code, linearize

__all__ = [
    "ChatGPTConverter",
    "ClaudeConverter",
    "Conversion",
    "Converter",
    "ConverterRegistry",
    "DecodeError",
    "Linearization",
    "MixedParts",
    "TextParts",
    "canonical_author",
    "classify_parts",
    "contains_code",
    "extract_topics",
    "fallback_title",
    "has_media_parts",
    "linearize",
    "normalize_parts",
    "parse_timestamp",
]

# Register converters
ConverterRegistry.register(ChatGPTConverter)
ConverterRegistry.register(ClaudeConverter)
