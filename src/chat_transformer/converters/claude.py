"""Converter for Claude conversation exports.

Claude exports ship conversations.json and projects.json. Each conversation:
- uuid, name, created_at, updated_at (ISO 8601)
- project_uuid: optional link into projects.json
- chat_messages: ordered list of {uuid, sender, text, content, created_at,
  attachments, files}

Messages are already linear, so conversion is field normalization only.
"""

from typing import Any

from chat_transformer.converters.base import (
    Conversion,
    Converter,
    DecodeError,
    extract_topics,
    fallback_title,
    parse_timestamp,
)
from chat_transformer.converters.content import join_fragments
from chat_transformer.converters.tree import canonical_author, contains_code
from chat_transformer.models import EMPTY_MESSAGE, ConversationMetadata, ConversationRecord, NormalizedMessage


class ClaudeConverter(Converter):
    """Converter for Claude flat message lists."""

    platform = "claude"
    assistant_label = "Claude"

    def __init__(
        self,
        topic_keywords: list[str] | None = None,
        projects: dict[str, str] | None = None,
    ) -> None:
        """Initialize converter.

        Args:
            topic_keywords: Keywords for topic tagging (defaults apply if None)
            projects: Mapping of project uuid to project display name
        """
        super().__init__(topic_keywords)
        self.projects = projects or {}

    def convert(self, raw: Any) -> Conversion:
        """Convert a raw Claude conversation into a ConversationRecord.

        Raises:
            DecodeError: If the record is not an object, has no uuid, or its
                message list is not a list
        """
        if not isinstance(raw, dict):
            raise DecodeError(f"conversation must be an object, got {type(raw).__name__}")

        conv_id = raw.get("uuid") or raw.get("id")
        if not isinstance(conv_id, str) or not conv_id:
            raise DecodeError("conversation has no uuid")

        raw_messages = raw.get("chat_messages")
        if raw_messages is None:
            raw_messages = []
        if not isinstance(raw_messages, list):
            raise DecodeError(f"conversation {conv_id} chat_messages must be a list")

        warnings: list[str] = []
        messages: list[NormalizedMessage] = []
        participants: set[str] = set()
        has_code = False
        has_media = False

        for idx, raw_msg in enumerate(raw_messages):
            if not isinstance(raw_msg, dict):
                warnings.append(f"message {idx} is not an object, skipped")
                continue

            content, msg_media = self._extract_content(raw_msg)
            has_media = has_media or msg_media
            if contains_code(content):
                has_code = True

            sender = raw_msg.get("sender")
            if not isinstance(sender, str):
                if sender is not None:
                    warnings.append(f"message {idx} has a non-string sender")
                sender = ""
            author = canonical_author(sender, self.assistant_label)
            participants.add(author)

            ts = parse_timestamp(raw_msg.get("created_at"))
            if ts is None:
                warnings.append(f"message {idx} has no usable timestamp")
                ts = 0.0

            metadata = raw_msg.get("metadata")
            msg_id = raw_msg.get("uuid")
            messages.append(
                NormalizedMessage(
                    id=msg_id if isinstance(msg_id, str) and msg_id else f"{conv_id}-{idx:04d}",
                    author=author,
                    content=content,
                    ts=ts,
                    metadata=metadata if isinstance(metadata, dict) else {},
                )
            )

        title = raw.get("name")
        if not isinstance(title, str) or not title.strip():
            title = fallback_title(conv_id)

        project = ""
        project_uuid = raw.get("project_uuid")
        if isinstance(project_uuid, str) and project_uuid:
            project = self.projects.get(project_uuid, "")
        elif project_uuid:
            warnings.append("project_uuid is not a string, no project association")

        created_ts = parse_timestamp(raw.get("created_at")) or 0.0
        updated_ts = parse_timestamp(raw.get("updated_at")) or created_ts

        metadata = ConversationMetadata(
            id=conv_id,
            title=title,
            platform=self.platform,
            project=project,
            created_ts=created_ts,
            updated_ts=updated_ts,
            message_count=len(messages),
            participants=sorted(participants),
            topics=extract_topics(title, self.topic_keywords),
            has_code=has_code,
            has_media=has_media,
        )
        return Conversion(
            record=ConversationRecord(metadata=metadata, messages=messages),
            warnings=[f"conversation {conv_id}: {w}" for w in warnings],
        )

    def _extract_content(self, raw_msg: dict[str, Any]) -> tuple[str, bool]:
        """Extract message text from content blocks, falling back to 'text'.

        Returns:
            Tuple of (content text, whether the message carries media)
        """
        fragments: list[str] = []
        has_media = bool(raw_msg.get("attachments")) or bool(raw_msg.get("files"))

        blocks = raw_msg.get("content")
        if isinstance(blocks, list):
            for block in blocks:
                if isinstance(block, str):
                    fragments.append(block)
                    continue
                if not isinstance(block, dict):
                    continue

                block_type = block.get("type")
                if block_type == "text":
                    text = block.get("text")
                    if isinstance(text, str):
                        fragments.append(text)
                elif block_type == "image":
                    has_media = True
                    fragments.append(f"[Image: {block.get('url') or block.get('file_name', '')}]")
                elif block_type == "tool_use":
                    fragments.append(f"[Tool: {block.get('name', 'unknown')}]")
                elif block_type == "tool_result":
                    fragments.append("[Tool Result]")

        content = join_fragments(fragments)
        if not content:
            text = raw_msg.get("text")
            if isinstance(text, str):
                content = text.strip()

        return content or EMPTY_MESSAGE, has_media
