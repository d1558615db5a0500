"""Tests for the converter base module."""

from datetime import datetime, timezone

import pytest

from chat_transformer.converters import ChatGPTConverter, ClaudeConverter
from chat_transformer.converters.base import (
    ConverterRegistry,
    DecodeError,
    extract_topics,
    fallback_title,
    parse_timestamp,
)


class TestParseTimestamp:
    """Tests for parse_timestamp function."""

    def test_epoch_float(self) -> None:
        """Epoch floats should pass through."""
        assert parse_timestamp(1718000000.5) == 1718000000.5

    def test_epoch_int(self) -> None:
        """Epoch ints should become floats."""
        assert parse_timestamp(1718000000) == 1718000000.0

    def test_iso_with_z_suffix(self) -> None:
        """ISO 8601 with Z suffix should parse as UTC."""
        expected = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc).timestamp()
        assert parse_timestamp("2024-06-01T12:00:00Z") == expected

    def test_iso_with_microseconds_and_offset(self) -> None:
        """ISO 8601 with microseconds and an offset should parse."""
        expected = datetime(2024, 6, 1, 12, 0, 0, 500000, tzinfo=timezone.utc).timestamp()
        assert parse_timestamp("2024-06-01T12:00:00.500000+00:00") == expected

    def test_naive_iso_is_utc(self) -> None:
        """ISO 8601 without an offset should be read as UTC."""
        expected = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc).timestamp()
        assert parse_timestamp("2024-06-01T12:00:00") == expected

    def test_numeric_string(self) -> None:
        """Numeric strings should parse as epoch seconds."""
        assert parse_timestamp("1718000000.25") == 1718000000.25

    @pytest.mark.parametrize("value", [None, "", "not a date", True, [], {}])
    def test_unparseable_returns_none(self, value: object) -> None:
        """Missing or malformed values should give None."""
        assert parse_timestamp(value) is None

    @pytest.mark.parametrize(
        "value",
        ["NaN", "nan", "inf", "-Infinity", float("nan"), float("inf"), float("-inf"), 10**400],
    )
    def test_non_finite_returns_none(self, value: object) -> None:
        """NaN, infinities and out-of-range numbers should give None."""
        assert parse_timestamp(value) is None


class TestFallbackTitle:
    """Tests for fallback_title function."""

    def test_uses_first_eight_characters(self) -> None:
        """The synthesized title should contain the id prefix."""
        assert fallback_title("abc12345-xxxx") == "Conversation-abc12345"

    def test_short_id(self) -> None:
        """Short ids should be used whole."""
        assert fallback_title("ab") == "Conversation-ab"


class TestExtractTopics:
    """Tests for extract_topics function."""

    def test_matches_keywords_in_title(self) -> None:
        """Keywords present in the title should be returned in keyword order."""
        assert extract_topics("Python web scraper") == ["python", "web"]

    def test_case_insensitive(self) -> None:
        """Matching should ignore case."""
        assert extract_topics("SQL Database Design") == ["database", "sql"]

    def test_plural_forms_match(self) -> None:
        """A trailing plural 's' should still match."""
        assert "api" in extract_topics("Designing REST APIs")

    def test_does_not_match_inside_words(self) -> None:
        """Keywords should not match inside longer words."""
        assert extract_topics("Good morning") == ["general"]

    def test_help_fallback(self) -> None:
        """Titles asking for help should be tagged 'help'."""
        assert extract_topics("Need help with taxes") == ["help"]
        assert extract_topics("Quick question") == ["help"]

    def test_general_fallback(self) -> None:
        """Titles with no keyword should be tagged 'general'."""
        assert extract_topics("Holiday plans") == ["general"]

    def test_custom_keywords(self) -> None:
        """A custom keyword list should replace the defaults."""
        assert extract_topics("Baking bread", ["bread", "python"]) == ["bread"]


class TestConverterRegistry:
    """Tests for ConverterRegistry."""

    def test_builtin_converters_registered(self) -> None:
        """Both built-in converters should be registered."""
        assert ConverterRegistry.get("chatgpt") is ChatGPTConverter
        assert ConverterRegistry.get("claude") is ClaudeConverter
        assert set(ConverterRegistry.all_platforms()) >= {"chatgpt", "claude"}

    def test_unknown_platform(self) -> None:
        """Unknown platforms should return None."""
        assert ConverterRegistry.get("unknown") is None


class TestDecodeError:
    """Tests for DecodeError."""

    def test_is_value_error(self) -> None:
        """DecodeError should be a ValueError."""
        assert issubclass(DecodeError, ValueError)
