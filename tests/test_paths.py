"""Tests for app.utils.paths module."""

from pathlib import Path

import pytest

from app.config import AUDIO_DIR
from app.utils.paths import StoragePath, allocate_audio_path, audio_path_from_url


class TestAllocateAudioPath:
    """Tests for allocate_audio_path function."""

    def test_basic_path(self):
        """Should place the file directly in the audio directory."""
        storage = allocate_audio_path("audio/mpeg")
        assert storage.file_path == AUDIO_DIR / storage.file_name
        assert storage.url == f"/audio/{storage.file_name}"

    def test_extension_from_subtype(self):
        assert allocate_audio_path("audio/mpeg").file_name.endswith(".mpeg")
        assert allocate_audio_path("audio/flac").file_path.suffix == ".flac"

    def test_file_name_is_uuid(self):
        import uuid

        storage = allocate_audio_path("audio/ogg")
        stem, ext = storage.file_name.rsplit(".", 1)
        assert ext == "ogg"
        assert str(uuid.UUID(stem)) == stem

    def test_path_and_url_agree(self):
        storage = allocate_audio_path("audio/wav")
        assert audio_path_from_url(storage.url) == storage.file_path

    def test_fresh_per_call(self):
        names = {allocate_audio_path("audio/mp3").file_name for _ in range(1000)}
        assert len(names) == 1000

    def test_returns_storage_path(self):
        storage = allocate_audio_path("audio/mpeg")
        assert isinstance(storage, StoragePath)
        assert isinstance(storage.file_path, Path)

    def test_follows_patched_audio_dir(self, audio_dir):
        storage = allocate_audio_path("audio/mpeg")
        assert storage.file_path.parent == audio_dir


class TestAudioPathFromUrl:
    """Tests for audio_path_from_url function."""

    def test_basic_url(self):
        assert audio_path_from_url("/audio/abc.mpeg") == AUDIO_DIR / "abc.mpeg"

    @pytest.mark.parametrize(
        "url",
        [
            "/static/abc.mpeg",
            "audio/abc.mpeg",
            "/audio/",
            "/audio/../podcast.db",
            "/audio/sub/abc.mpeg",
            "/audio/..",
        ],
    )
    def test_rejects_urls_outside_audio_dir(self, url):
        with pytest.raises(ValueError):
            audio_path_from_url(url)
