"""Tests for app.utils.audio_types module."""

import pytest

from app.utils.audio_types import (
    ACCEPTED_AUDIO_CONTENT_TYPES,
    extension_for_content_type,
    is_supported_content_type,
)


class TestIsSupportedContentType:
    """Tests for is_supported_content_type function."""

    @pytest.mark.parametrize(
        "content_type",
        ["audio/mpeg", "audio/mp3", "audio/ogg", "audio/wav", "audio/flac"],
    )
    def test_accepted(self, content_type):
        assert is_supported_content_type(content_type)

    @pytest.mark.parametrize(
        "content_type",
        [
            "audio/MPEG",
            "Audio/mpeg",
            "audio/mpeg; charset=binary",
            " audio/mpeg",
            "audio/x-wav",
            "audio/webm",
            "video/ogg",
            "application/octet-stream",
            "",
            None,
        ],
    )
    def test_rejected(self, content_type):
        assert not is_supported_content_type(content_type)

    def test_whitelist_is_exactly_five_types(self):
        assert len(ACCEPTED_AUDIO_CONTENT_TYPES) == 5


class TestExtensionForContentType:
    """Tests for extension_for_content_type function."""

    @pytest.mark.parametrize(
        "content_type,expected",
        [
            ("audio/mpeg", "mpeg"),
            ("audio/mp3", "mp3"),
            ("audio/ogg", "ogg"),
            ("audio/wav", "wav"),
            ("audio/flac", "flac"),
        ],
    )
    def test_subtype(self, content_type, expected):
        assert extension_for_content_type(content_type) == expected
