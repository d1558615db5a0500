"""Normalization of loosely-typed message content.

ChatGPT exports store message text in ``content.parts``, whose shape varies:
a plain string, a list of strings, or a list mixing strings with objects
(image asset pointers, audio transcriptions, quoted text). The value is
classified once at the boundary into a tagged union and flattened into an
ordered list of text fragments, so nothing downstream sees the raw shape.
"""

import json
from dataclasses import dataclass, field
from typing import Any

# Keys and content types that identify a non-text attachment part
MEDIA_POINTER_KEYS = ("asset_pointer", "image_url", "audio_asset_pointer")
MEDIA_CONTENT_TYPES = ("image", "audio", "video")


@dataclass
class TextParts:
    """Parts that are already plain text."""

    fragments: list[str] = field(default_factory=list)


@dataclass
class MixedParts:
    """Parts mixing text with objects or other scalar values."""

    items: list[Any] = field(default_factory=list)


def _stringify(value: Any) -> str:
    """Deterministic string form for a non-text value."""
    try:
        return json.dumps(value, sort_keys=True, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return repr(value)


def classify_parts(value: Any) -> TextParts | MixedParts:
    """Resolve a raw parts field into a TextParts or MixedParts value.

    Never raises. A missing field is an empty TextParts; any stray scalar
    becomes a single text fragment.
    """
    if value is None:
        return TextParts()

    if isinstance(value, str):
        return TextParts([value])

    if isinstance(value, (list, tuple)):
        items = list(value)
        if all(isinstance(item, str) for item in items):
            return TextParts(items)
        return MixedParts(items)

    return TextParts([_stringify(value)])


def _object_text(part: dict[str, Any]) -> str:
    text = part.get("text")
    if isinstance(text, str):
        return text
    return f"[Object: {_stringify(part)}]"


def normalize_parts(value: Any) -> list[str]:
    """Flatten a raw parts field into an ordered list of text fragments.

    Args:
        value: The raw parts value from a message

    Returns:
        List of fragments, possibly empty, never None
    """
    parts = classify_parts(value)

    if isinstance(parts, TextParts):
        return list(parts.fragments)

    fragments: list[str] = []
    for item in parts.items:
        if isinstance(item, str):
            fragments.append(item)
        elif isinstance(item, dict):
            fragments.append(_object_text(item))
        else:
            fragments.append(_stringify(item))
    return fragments


def join_fragments(fragments: list[str]) -> str:
    """Join fragments with single spaces and trim the result."""
    return " ".join(fragments).strip()


def has_media_parts(value: Any) -> bool:
    """Check whether a raw parts field carries an image, audio or video part."""
    parts = classify_parts(value)
    if not isinstance(parts, MixedParts):
        return False

    for item in parts.items:
        if not isinstance(item, dict):
            continue
        if any(key in item for key in MEDIA_POINTER_KEYS):
            return True
        content_type = item.get("content_type")
        if isinstance(content_type, str) and any(t in content_type for t in MEDIA_CONTENT_TYPES):
            return True
    return False
