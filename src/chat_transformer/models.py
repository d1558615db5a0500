"""Canonical data models."""

from dataclasses import dataclass, field, replace
from typing import Any

EMPTY_MESSAGE = "[Empty message]"


@dataclass
class RawMessage:
    """A message as decoded from an export, before content normalization."""

    id: str
    role: str  # user, assistant, system, tool, or anything else
    ts: float  # Unix timestamp (seconds), 0.0 when absent
    parts: Any  # str, list[str], list of mixed values, or a stray scalar
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class RawNode:
    """One entry of a conversation tree, linked to others by id."""

    id: str
    parent: str | None = None
    children: list[str] = field(default_factory=list)
    message: RawMessage | None = None


@dataclass(frozen=True)
class NormalizedMessage:
    """A message with flattened text content and a canonical author."""

    id: str
    author: str  # User, System, Tool, Other, or the platform's assistant label
    content: str
    ts: float
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "author": self.author,
            "content": self.content,
            "timestamp": self.ts,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NormalizedMessage":
        return cls(
            id=data.get("id", ""),
            author=data.get("author", ""),
            content=data.get("content") or EMPTY_MESSAGE,
            ts=float(data.get("timestamp") or 0.0),
            metadata=data.get("metadata") or {},
        )


@dataclass(frozen=True)
class ConversationMetadata:
    """Per-conversation metadata shared by the store and the indexes."""

    id: str
    title: str
    platform: str  # chatgpt, claude
    created_ts: float
    updated_ts: float
    message_count: int
    project: str = ""
    participants: list[str] = field(default_factory=list)
    topics: list[str] = field(default_factory=list)
    has_code: bool = False
    has_media: bool = False
    file_path: str = ""  # Relative to the output root, empty until persisted

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "platform": self.platform,
            "project": self.project,
            "created_ts": self.created_ts,
            "updated_ts": self.updated_ts,
            "message_count": self.message_count,
            "participants": list(self.participants),
            "topics": list(self.topics),
            "has_code": self.has_code,
            "has_media": self.has_media,
            "file_path": self.file_path,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConversationMetadata":
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            platform=data.get("platform", ""),
            project=data.get("project", ""),
            created_ts=float(data.get("created_ts") or 0.0),
            updated_ts=float(data.get("updated_ts") or 0.0),
            message_count=int(data.get("message_count", 0)),
            participants=list(data.get("participants", [])),
            topics=list(data.get("topics", [])),
            has_code=bool(data.get("has_code", False)),
            has_media=bool(data.get("has_media", False)),
            file_path=data.get("file_path", ""),
        )


@dataclass(frozen=True)
class ConversationRecord:
    """A fully converted conversation: metadata plus its ordered messages."""

    metadata: ConversationMetadata
    messages: list[NormalizedMessage] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.metadata.id

    def with_file_path(self, file_path: str) -> "ConversationRecord":
        """Return a copy whose metadata points at the persisted file."""
        return replace(self, metadata=replace(self.metadata, file_path=file_path))

    def to_dict(self) -> dict[str, Any]:
        return {
            "metadata": self.metadata.to_dict(),
            "messages": [msg.to_dict() for msg in self.messages],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConversationRecord":
        return cls(
            metadata=ConversationMetadata.from_dict(data["metadata"]),
            messages=[NormalizedMessage.from_dict(m) for m in data.get("messages", [])],
        )
