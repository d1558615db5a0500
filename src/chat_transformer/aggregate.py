"""Cross-conversation indexes built incrementally while a batch is processed.

Holds the master conversation listing and the topic -> conversation id
groupings, and materializes per-platform listings and a chronological
timeline from them. Written to from pipeline worker threads.
"""

import json
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from chat_transformer.logging import get_logger
from chat_transformer.models import ConversationMetadata

logger = get_logger("aggregate")

# Platforms that always get an index file, even when empty
KNOWN_PLATFORMS = ("claude", "chatgpt")


@dataclass
class Timeline:
    """All conversations in creation order, with the covered date range."""

    conversations: list[ConversationMetadata] = field(default_factory=list)
    earliest: float | None = None
    latest: float | None = None

    @property
    def total_count(self) -> int:
        return len(self.conversations)


@dataclass
class IndexViews:
    """Read-only snapshot of the aggregate index."""

    by_platform: dict[str, list[ConversationMetadata]]
    topics: dict[str, list[str]]
    timeline: Timeline
    conversations: list[ConversationMetadata]


def _iso(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


class AggregateIndex:
    """Thread-safe accumulator of conversation metadata.

    One instance is created per run and passed to every worker. All access
    goes through a single lock; the standard library has no reader/writer
    lock and materialization happens once, after the pool has drained.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._conversations: list[ConversationMetadata] = []
        self._topics: dict[str, list[str]] = {}

    def record(self, metadata: ConversationMetadata) -> None:
        """Add one conversation to the listing and its topic buckets."""
        with self._lock:
            self._conversations.append(metadata)
            for topic in metadata.topics:
                self._topics.setdefault(topic, []).append(metadata.id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._conversations)

    def materialize(self) -> IndexViews:
        """Build platform listings, the topic map and the timeline.

        The listing is in completion order; the timeline re-sorts it by
        creation time, breaking ties by conversation id so the order does
        not depend on thread scheduling.
        """
        with self._lock:
            conversations = list(self._conversations)
            topics = {topic: list(ids) for topic, ids in self._topics.items()}

        by_platform: dict[str, list[ConversationMetadata]] = {p: [] for p in KNOWN_PLATFORMS}
        for conv in conversations:
            by_platform.setdefault(conv.platform, []).append(conv)

        ordered = sorted(conversations, key=lambda c: (c.created_ts, c.id))
        timeline = Timeline(conversations=ordered)
        if ordered:
            timeline.earliest = ordered[0].created_ts
            timeline.latest = ordered[-1].created_ts

        return IndexViews(
            by_platform=by_platform,
            topics=topics,
            timeline=timeline,
            conversations=conversations,
        )

    def write(self, output_path: Path) -> list[Path]:
        """Flush all index views as JSON files under output_path.

        Writes <platform>/index/conversations_index.json per platform, and
        unified/conversations_index.json, unified/topics_index.json and
        unified/timeline.json.

        Returns:
            Paths of the files written
        """
        views = self.materialize()
        last_updated = datetime.now(timezone.utc).isoformat()
        written: list[Path] = []

        for platform, conversations in views.by_platform.items():
            written.append(
                _save_json(
                    output_path / platform / "index" / "conversations_index.json",
                    {
                        "conversations": [c.to_dict() for c in conversations],
                        "last_updated": last_updated,
                    },
                )
            )

        written.append(
            _save_json(
                output_path / "unified" / "conversations_index.json",
                {
                    "conversations": [c.to_dict() for c in views.conversations],
                    "last_updated": last_updated,
                },
            )
        )
        written.append(
            _save_json(
                output_path / "unified" / "topics_index.json",
                {"topics": views.topics, "last_updated": last_updated},
            )
        )

        timeline_doc: dict[str, Any] = {
            "conversations": [c.to_dict() for c in views.timeline.conversations],
            "total_count": views.timeline.total_count,
            "last_updated": last_updated,
        }
        if views.timeline.earliest is not None and views.timeline.latest is not None:
            timeline_doc["date_range"] = {
                "earliest": _iso(views.timeline.earliest),
                "latest": _iso(views.timeline.latest),
            }
        written.append(_save_json(output_path / "unified" / "timeline.json", timeline_doc))

        logger.info(
            "Wrote indexes: conversations=%d topics=%d output=%s",
            len(views.conversations),
            len(views.topics),
            output_path,
        )
        return written


def _save_json(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    return path
