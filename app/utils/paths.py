"""Podcast Media Backend - Storage path allocation.

Returns canonical Paths and urls for stored audio. Does NOT create directories.
Directory creation is the responsibility of the calling code.
"""

import uuid
from dataclasses import dataclass
from pathlib import Path

from app.config import AUDIO_DIR, AUDIO_URL_PREFIX
from app.utils.audio_types import extension_for_content_type


@dataclass(frozen=True)
class StoragePath:
    """Where an upload is written and how it is published.

    file_path and url are both built from file_name and never diverge.
    """

    file_name: str
    file_path: Path
    url: str


def generate_file_id() -> str:
    """Generate a fresh storage identifier (UUID4, 128 bits)."""
    return str(uuid.uuid4())


def allocate_audio_path(content_type: str) -> StoragePath:
    """Allocate a unique storage location for an upload.

    Args:
        content_type: Validated audio content type, e.g. "audio/mpeg".

    Returns:
        StoragePath: data at AUDIO_DIR/{uuid}.{ext}, url /audio/{uuid}.{ext}
    """
    file_name = f"{generate_file_id()}.{extension_for_content_type(content_type)}"
    return StoragePath(
        file_name=file_name,
        file_path=AUDIO_DIR / file_name,
        url=f"{AUDIO_URL_PREFIX}{file_name}",
    )


def audio_path_from_url(url: str) -> Path:
    """Translate a stored podcast url back to its file path.

    Args:
        url: Server-relative url, e.g. /audio/{uuid}.mpeg

    Returns:
        Path: AUDIO_DIR/{file_name}

    Raises:
        ValueError: If the url is not under the audio prefix or names
            anything other than a plain file in the audio directory.
    """
    if not url.startswith(AUDIO_URL_PREFIX):
        raise ValueError(f"Not an audio url: {url!r}")
    file_name = url[len(AUDIO_URL_PREFIX) :]
    if not file_name or "/" in file_name or "\\" in file_name or file_name in (".", ".."):
        raise ValueError(f"Invalid audio file name in url: {url!r}")
    return AUDIO_DIR / file_name
