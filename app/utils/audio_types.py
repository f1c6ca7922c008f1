"""Podcast Media Backend - Accepted audio content types.

Checks only the content type the client declared for the upload. File bytes
are never inspected.
"""

ACCEPTED_AUDIO_CONTENT_TYPES = (
    "audio/mpeg",
    "audio/mp3",
    "audio/ogg",
    "audio/wav",
    "audio/flac",
)


def is_supported_content_type(content_type: str | None) -> bool:
    """Return True if the declared content type is an accepted audio type.

    Matching is exact and case-sensitive.
    """
    if content_type is None:
        return False
    return content_type in ACCEPTED_AUDIO_CONTENT_TYPES


def extension_for_content_type(content_type: str) -> str:
    """Return the file extension for a content type.

    The extension is the subtype: "audio/mpeg" -> "mpeg".
    """
    return content_type.rsplit("/", 1)[-1]
