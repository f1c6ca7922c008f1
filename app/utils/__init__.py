"""Podcast Media Backend - Utility modules."""

from app.utils.atomic_io import (
    atomic_stream_to_file,
    cleanup_orphan_temp_files,
    remove_published_file,
)
from app.utils.audio_types import (
    ACCEPTED_AUDIO_CONTENT_TYPES,
    extension_for_content_type,
    is_supported_content_type,
)
from app.utils.paths import StoragePath, allocate_audio_path, audio_path_from_url

__all__ = [
    # atomic_io
    "atomic_stream_to_file",
    "cleanup_orphan_temp_files",
    "remove_published_file",
    # audio_types
    "ACCEPTED_AUDIO_CONTENT_TYPES",
    "is_supported_content_type",
    "extension_for_content_type",
    # paths
    "StoragePath",
    "allocate_audio_path",
    "audio_path_from_url",
]
