"""Converter for ChatGPT conversation exports.

ChatGPT exports ship a single conversations.json array. Each conversation is:
- id / conversation_id: UUID
- title: may be empty or null
- create_time / update_time: epoch floats
- current_node: id of the latest node on the active branch
- mapping: node id -> {id, parent, children, message}

Each message carries author.role, create_time, metadata and
content.parts, whose shape varies (see converters.content).
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
from chat_transformer.converters.tree import linearize
from chat_transformer.models import ConversationMetadata, ConversationRecord, RawMessage, RawNode


class ChatGPTConverter(Converter):
    """Converter for ChatGPT tree-shaped conversations."""

    platform = "chatgpt"
    assistant_label = "ChatGPT"

    def convert(self, raw: Any) -> Conversion:
        """Convert a raw ChatGPT conversation into a ConversationRecord.

        Args:
            raw: One element of conversations.json

        Returns:
            Conversion with the record and structural warnings

        Raises:
            DecodeError: If the record is not an object, has no id, or its
                mapping is not an object
        """
        if not isinstance(raw, dict):
            raise DecodeError(f"conversation must be an object, got {type(raw).__name__}")

        conv_id = raw.get("id") or raw.get("conversation_id")
        if not isinstance(conv_id, str) or not conv_id:
            raise DecodeError("conversation has no id")

        raw_mapping = raw.get("mapping")
        if raw_mapping is None:
            raw_mapping = {}
        if not isinstance(raw_mapping, dict):
            raise DecodeError(f"conversation {conv_id} mapping must be an object")

        warnings: list[str] = []
        nodes = self._decode_mapping(raw_mapping, warnings)
        if not nodes:
            warnings.append("empty mapping")

        current_node = raw.get("current_node")
        tree = linearize(
            nodes,
            current_node=current_node if isinstance(current_node, str) else None,
            assistant_label=self.assistant_label,
        )
        warnings.extend(tree.warnings)

        title = raw.get("title")
        if not isinstance(title, str) or not title.strip():
            title = fallback_title(conv_id)

        created_ts = parse_timestamp(raw.get("create_time")) or 0.0
        updated_ts = parse_timestamp(raw.get("update_time")) or created_ts

        metadata = ConversationMetadata(
            id=conv_id,
            title=title,
            platform=self.platform,
            created_ts=created_ts,
            updated_ts=updated_ts,
            message_count=len(tree.messages),
            participants=tree.participants,
            topics=extract_topics(title, self.topic_keywords),
            has_code=tree.has_code,
            has_media=tree.has_media,
        )
        return Conversion(
            record=ConversationRecord(metadata=metadata, messages=tree.messages),
            warnings=[f"conversation {conv_id}: {w}" for w in warnings],
        )

    def _decode_mapping(self, raw_mapping: dict[str, Any], warnings: list[str]) -> dict[str, RawNode]:
        """Decode raw nodes, keeping malformed ones as message-less placeholders."""
        nodes: dict[str, RawNode] = {}

        for node_id, raw_node in raw_mapping.items():
            if not isinstance(raw_node, dict):
                warnings.append(f"node {node_id} is not an object, skipped")
                continue

            parent = raw_node.get("parent")
            children = raw_node.get("children")
            if not isinstance(children, list):
                children = []

            node = RawNode(
                id=node_id,
                parent=parent if isinstance(parent, str) and parent else None,
                children=[c for c in children if isinstance(c, str)],
            )

            raw_message = raw_node.get("message")
            if raw_message is not None:
                node.message = self._decode_message(node_id, raw_message, warnings)

            nodes[node_id] = node

        return nodes

    def _decode_message(self, node_id: str, raw: Any, warnings: list[str]) -> RawMessage | None:
        if not isinstance(raw, dict):
            # Keep the node so its children stay reachable
            warnings.append(f"node {node_id} has a malformed message, kept as placeholder")
            return None

        author = raw.get("author")
        role = author.get("role", "") if isinstance(author, dict) else ""

        content = raw.get("content")
        parts: Any = None
        if isinstance(content, dict):
            parts = content.get("parts")
            # code / execution_output messages carry 'text' instead of 'parts'
            if parts is None and isinstance(content.get("text"), str):
                parts = content["text"]
        elif content is not None:
            parts = content

        metadata = raw.get("metadata")
        msg_id = raw.get("id")

        return RawMessage(
            id=msg_id if isinstance(msg_id, str) and msg_id else node_id,
            role=role if isinstance(role, str) else "",
            ts=parse_timestamp(raw.get("create_time")) or 0.0,
            parts=parts,
            metadata=metadata if isinstance(metadata, dict) else {},
        )
