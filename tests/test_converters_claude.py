"""Tests for Claude converter."""

from datetime import datetime, timezone
from typing import Any

import pytest

from chat_transformer.converters import ClaudeConverter, DecodeError
from chat_transformer.models import EMPTY_MESSAGE
from chat_transformer.pipeline import process_batch


@pytest.fixture
def converter() -> ClaudeConverter:
    """Create a converter with one known project."""
    return ClaudeConverter(projects={"proj-1": "Website Rewrite"})


@pytest.fixture
def sample_conversation() -> dict[str, Any]:
    """A small Claude conversation linked to a project."""
    return {
        "uuid": "3f2a1b4c-0000-4000-8000-000000000001",
        "name": "React state management",
        "created_at": "2024-06-01T12:00:00Z",
        "updated_at": "2024-06-01T12:30:00Z",
        "project_uuid": "proj-1",
        "chat_messages": [
            {
                "uuid": "m-1",
                "sender": "human",
                "text": "How should I manage state?",
                "content": [{"type": "text", "text": "How should I manage state?"}],
                "created_at": "2024-06-01T12:00:05Z",
                "attachments": [],
                "files": [],
            },
            {
                "uuid": "m-2",
                "sender": "assistant",
                "text": "",
                "content": [
                    {"type": "text", "text": "Try ```js\nuseReducer()\n```"},
                    {"type": "tool_use", "name": "artifacts"},
                    {"type": "tool_result"},
                ],
                "created_at": "2024-06-01T12:00:20Z",
                "attachments": [],
                "files": [],
            },
        ],
    }


class TestClaudeConverterBasics:
    """Tests for basic converter attributes."""

    def test_platform(self, converter: ClaudeConverter) -> None:
        """Converter should have the claude platform name."""
        assert converter.platform == "claude"

    def test_projects_default_empty(self) -> None:
        """A converter without a project lookup should have an empty one."""
        assert ClaudeConverter().projects == {}


class TestClaudeConvert:
    """Tests for convert method."""

    def test_messages_in_order(self, converter: ClaudeConverter, sample_conversation: dict[str, Any]) -> None:
        """Messages should keep their order and canonical authors."""
        record = converter.convert(sample_conversation).record

        assert [m.id for m in record.messages] == ["m-1", "m-2"]
        assert [m.author for m in record.messages] == ["User", "Claude"]
        assert record.messages[0].content == "How should I manage state?"

    def test_content_blocks_rendered(self, converter: ClaudeConverter, sample_conversation: dict[str, Any]) -> None:
        """Tool blocks should become short placeholders after the text."""
        record = converter.convert(sample_conversation).record

        content = record.messages[1].content
        assert content.startswith("Try ```js")
        assert content.endswith("[Tool: artifacts] [Tool Result]")

    def test_metadata_fields(self, converter: ClaudeConverter, sample_conversation: dict[str, Any]) -> None:
        """Conversation metadata should come from the record and project lookup."""
        meta = converter.convert(sample_conversation).record.metadata

        assert meta.id == "3f2a1b4c-0000-4000-8000-000000000001"
        assert meta.title == "React state management"
        assert meta.platform == "claude"
        assert meta.project == "Website Rewrite"
        assert meta.created_ts == datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc).timestamp()
        assert meta.updated_ts == datetime(2024, 6, 1, 12, 30, tzinfo=timezone.utc).timestamp()
        assert meta.message_count == 2
        assert meta.participants == ["Claude", "User"]
        assert meta.topics == ["react"]
        assert meta.has_code is True
        assert meta.has_media is False

    def test_no_warnings_for_well_formed(
        self, converter: ClaudeConverter, sample_conversation: dict[str, Any]
    ) -> None:
        """A well-formed conversation should not produce warnings."""
        assert converter.convert(sample_conversation).warnings == []

    def test_unknown_project(self, converter: ClaudeConverter, sample_conversation: dict[str, Any]) -> None:
        """An unknown project uuid should leave the project empty."""
        sample_conversation["project_uuid"] = "proj-unknown"

        meta = converter.convert(sample_conversation).record.metadata

        assert meta.project == ""

    @pytest.mark.parametrize("project_uuid", [["proj-1"], {"uuid": "proj-1"}, 7])
    def test_non_string_project_uuid(
        self, converter: ClaudeConverter, sample_conversation: dict[str, Any], project_uuid: Any
    ) -> None:
        """A project_uuid that is not a string should give no project, with a warning."""
        sample_conversation["project_uuid"] = project_uuid

        conversion = converter.convert(sample_conversation)

        assert conversion.record.metadata.project == ""
        assert conversion.record.metadata.message_count == 2
        assert any("project_uuid" in w for w in conversion.warnings)

    def test_empty_name_synthesized(self, converter: ClaudeConverter, sample_conversation: dict[str, Any]) -> None:
        """An empty name should be replaced with a title from the uuid."""
        sample_conversation["name"] = "   "

        meta = converter.convert(sample_conversation).record.metadata

        assert meta.title == "Conversation-3f2a1b4c"
        assert meta.topics == ["general"]

    def test_no_messages(self, converter: ClaudeConverter) -> None:
        """A conversation without messages should still convert."""
        record = converter.convert({"uuid": "empty-claude", "name": "Empty"}).record

        assert record.messages == []
        assert record.metadata.message_count == 0
        assert record.metadata.participants == []


class TestClaudeMessageFallbacks:
    """Tests for per-message fallbacks."""

    def convert_one(self, converter: ClaudeConverter, message: dict[str, Any]) -> Any:
        raw = {"uuid": "conv-1", "name": "Single", "chat_messages": [message]}
        return converter.convert(raw)

    def test_text_field_used_without_blocks(self, converter: ClaudeConverter) -> None:
        """The plain text field should be used when no content blocks exist."""
        conversion = self.convert_one(
            converter, {"uuid": "m", "sender": "human", "text": "  just text ", "created_at": 10}
        )
        assert conversion.record.messages[0].content == "just text"

    def test_empty_message_is_sentinel(self, converter: ClaudeConverter) -> None:
        """A message with no text at all should get the sentinel."""
        conversion = self.convert_one(
            converter, {"uuid": "m", "sender": "assistant", "text": "", "content": [], "created_at": 10}
        )
        assert conversion.record.messages[0].content == EMPTY_MESSAGE

    def test_missing_uuid_uses_position(self, converter: ClaudeConverter) -> None:
        """Messages without a uuid should get a position-based id."""
        conversion = self.convert_one(converter, {"sender": "human", "text": "hi", "created_at": 10})
        assert conversion.record.messages[0].id == "conv-1-0000"

    def test_missing_timestamp_warns(self, converter: ClaudeConverter) -> None:
        """A message without a timestamp should convert with a warning."""
        conversion = self.convert_one(converter, {"uuid": "m", "sender": "human", "text": "hi"})

        assert conversion.record.messages[0].ts == 0.0
        assert conversion.warnings == ["conversation conv-1: message 0 has no usable timestamp"]

    def test_image_block_sets_media(self, converter: ClaudeConverter) -> None:
        """Image blocks should produce a placeholder and set the media flag."""
        conversion = self.convert_one(
            converter,
            {
                "uuid": "m",
                "sender": "human",
                "created_at": 10,
                "content": [{"type": "image", "url": "https://example.com/cat.png"}, {"type": "text", "text": "Cat?"}],
            },
        )

        assert conversion.record.messages[0].content == "[Image: https://example.com/cat.png] Cat?"
        assert conversion.record.metadata.has_media is True

    def test_attachments_set_media(self, converter: ClaudeConverter) -> None:
        """Attachments or files should set the media flag."""
        conversion = self.convert_one(
            converter,
            {"uuid": "m", "sender": "human", "text": "see file", "created_at": 10, "files": [{"file_name": "a.pdf"}]},
        )
        assert conversion.record.metadata.has_media is True

    def test_unknown_sender_is_other(self, converter: ClaudeConverter) -> None:
        """Unrecognized senders should map to Other."""
        conversion = self.convert_one(converter, {"uuid": "m", "sender": "narrator", "text": "x", "created_at": 1})
        assert conversion.record.messages[0].author == "Other"

    @pytest.mark.parametrize("sender", [5, ["human"], {"role": "human"}])
    def test_non_string_sender_is_other(self, converter: ClaudeConverter, sender: Any) -> None:
        """A non-string sender should map to Other with a warning."""
        conversion = self.convert_one(converter, {"uuid": "m", "sender": sender, "text": "x", "created_at": 1})

        assert conversion.record.messages[0].author == "Other"
        assert conversion.warnings == ["conversation conv-1: message 0 has a non-string sender"]

    def test_missing_sender_is_other(self, converter: ClaudeConverter) -> None:
        """A missing sender should map to Other without a warning."""
        conversion = self.convert_one(converter, {"uuid": "m", "text": "x", "created_at": 1})

        assert conversion.record.messages[0].author == "Other"
        assert conversion.warnings == []

    def test_non_string_sender_not_dropped_in_batch(self, converter: ClaudeConverter) -> None:
        """Field-shape problems should not drop records from a batch."""
        raw = [
            {"uuid": "c1", "chat_messages": [{"uuid": "m", "sender": 5, "text": "x", "created_at": 1}]},
            {"uuid": "c2", "project_uuid": ["p"], "chat_messages": []},
        ]

        result = process_batch(raw, converter, workers=2)

        assert result.success_count == 2
        assert result.errors == []

    def test_non_object_message_skipped(self, converter: ClaudeConverter) -> None:
        """Non-object entries in chat_messages should be skipped with a warning."""
        raw = {"uuid": "conv-1", "chat_messages": ["oops", {"uuid": "m", "sender": "human", "text": "ok", "created_at": 1}]}

        conversion = converter.convert(raw)

        assert [m.content for m in conversion.record.messages] == ["ok"]
        assert any("message 0 is not an object" in w for w in conversion.warnings)


class TestClaudeMalformed:
    """Tests for malformed records."""

    def test_non_object_raises(self, converter: ClaudeConverter) -> None:
        """A non-object record should raise DecodeError."""
        with pytest.raises(DecodeError):
            converter.convert("not a conversation")

    def test_missing_uuid_raises(self, converter: ClaudeConverter) -> None:
        """A record without a uuid should raise DecodeError."""
        with pytest.raises(DecodeError):
            converter.convert({"name": "no uuid", "chat_messages": []})

    def test_chat_messages_not_list_raises(self, converter: ClaudeConverter) -> None:
        """A chat_messages field that is not a list should raise DecodeError."""
        with pytest.raises(DecodeError):
            converter.convert({"uuid": "c", "chat_messages": {"a": 1}})
