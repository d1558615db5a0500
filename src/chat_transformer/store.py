"""JSON persistence of converted conversations.

Layout under the output root:
    <platform>/chats/<YYYY>/<MM>/<YYYY-MM-DD>_<title>_<id8>.json
    <platform>/projects/<project>/<YYYY-MM-DD>_<title>_<id8>.json
"""

import json
import re
from datetime import datetime, timezone
from pathlib import Path

from chat_transformer.logging import get_logger
from chat_transformer.models import ConversationMetadata, ConversationRecord

logger = get_logger("store")

MAX_FILENAME_LENGTH = 100

_UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
_REPEATED_UNDERSCORES = re.compile(r"_+")


def sanitize_filename(name: str) -> str:
    """Make a string safe to use as a file or directory name.

    Args:
        name: Raw name, e.g. a conversation title

    Returns:
        Sanitized name, at most 100 characters, never empty
    """
    sanitized = _UNSAFE_CHARS.sub("_", name)
    sanitized = _REPEATED_UNDERSCORES.sub("_", sanitized)
    sanitized = sanitized.strip("_ ").strip()
    sanitized = sanitized[:MAX_FILENAME_LENGTH]
    return sanitized or "untitled"


def relative_path_for(metadata: ConversationMetadata) -> Path:
    """Compute where a conversation lives, relative to the output root.

    The id prefix keeps same-day conversations with equal titles apart.
    """
    created = datetime.fromtimestamp(metadata.created_ts, tz=timezone.utc)
    filename = f"{created:%Y-%m-%d}_{sanitize_filename(metadata.title)}_{metadata.id[:8]}.json"

    if metadata.project:
        return Path(metadata.platform) / "projects" / sanitize_filename(metadata.project) / filename
    return Path(metadata.platform) / "chats" / f"{created:%Y}" / f"{created:%m}" / filename


class ConversationStore:
    """Writes and reads conversation records under an output root."""

    def __init__(self, output_path: Path) -> None:
        """Initialize store.

        Args:
            output_path: Output root directory. Created on first save.
        """
        self._output_path = output_path

    @property
    def output_path(self) -> Path:
        return self._output_path

    def save(self, record: ConversationRecord) -> ConversationRecord:
        """Write a record to disk.

        Args:
            record: Converted conversation

        Returns:
            Copy of the record whose metadata carries the relative file path
        """
        rel_path = relative_path_for(record.metadata)
        stored = record.with_file_path(rel_path.as_posix())

        full_path = self._output_path / rel_path
        full_path.parent.mkdir(parents=True, exist_ok=True)
        with open(full_path, "w", encoding="utf-8") as f:
            json.dump(stored.to_dict(), f, indent=2, ensure_ascii=False)

        logger.debug("Saved conversation: id=%s path=%s", record.id, rel_path)
        return stored

    def load(self, path: Path) -> ConversationRecord:
        """Read a record back from disk.

        Args:
            path: Absolute path, or path relative to the output root
        """
        full_path = path if path.is_absolute() else self._output_path / path
        with open(full_path, encoding="utf-8") as f:
            return ConversationRecord.from_dict(json.load(f))
