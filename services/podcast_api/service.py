"""Podcast Media Backend - Podcast service logic.

Core business logic implementing:
- Upload ingestion: validate, allocate path, write file, insert row
- Single and bulk deletion that keeps files and rows consistent

Ordering rules:
- Ingest writes the file before inserting the row. If the insert fails the
  file stays on disk as an orphan; it is logged, never deleted here.
- Delete removes the file before the row. If the file removal fails the row
  survives and still points at the file.
"""

from __future__ import annotations

import logging
import uuid
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import MAX_TITLE_LENGTH
from app.db import (
    PodcastNotFound,
    delete_podcast_row,
    delete_podcast_rows,
    get_podcast,
    insert_podcast,
    list_podcast_urls,
    list_podcasts,
    podcast_exists,
)
from app.models import Podcast
from app.utils.atomic_io import atomic_stream_to_file, remove_published_file
from app.utils.audio_types import ACCEPTED_AUDIO_CONTENT_TYPES, is_supported_content_type
from app.utils.paths import allocate_audio_path, audio_path_from_url

if TYPE_CHECKING:
    from typing import BinaryIO

logger = logging.getLogger(__name__)


# --- Error Codes ---


class PodcastErrorCode(StrEnum):
    """Error codes for podcast operations."""

    INVALID_REQUEST = "INVALID_REQUEST"
    UNSUPPORTED_CONTENT_TYPE = "UNSUPPORTED_CONTENT_TYPE"
    PODCAST_NOT_FOUND = "PODCAST_NOT_FOUND"
    STORAGE_FAILED = "STORAGE_FAILED"
    DATABASE_FAILED = "DATABASE_FAILED"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class PodcastError(Exception):
    """Base exception for podcast errors."""

    def __init__(self, error_code: str, message: str):
        self.error_code = error_code
        self.message = message
        super().__init__(f"{error_code}: {message}")


class InvalidRequestError(PodcastError):
    """Upload is missing a required field or a field is malformed."""

    def __init__(self, reason: str):
        super().__init__(PodcastErrorCode.INVALID_REQUEST, reason)


class UnsupportedContentTypeError(PodcastError):
    """Declared content type is not an accepted audio type."""

    def __init__(self, content_type: str | None):
        self.content_type = content_type
        super().__init__(
            PodcastErrorCode.UNSUPPORTED_CONTENT_TYPE,
            f"Unsupported content type: {content_type!r}. "
            f"Accepted: {', '.join(ACCEPTED_AUDIO_CONTENT_TYPES)}",
        )


class PodcastNotFoundError(PodcastError):
    """No podcast with the requested id."""

    def __init__(self, podcast_id: uuid.UUID):
        self.podcast_id = podcast_id
        super().__init__(PodcastErrorCode.PODCAST_NOT_FOUND, f"Podcast not found: {podcast_id}")


class StorageFailedError(PodcastError):
    """Audio file could not be written or removed."""

    def __init__(self, reason: str):
        super().__init__(PodcastErrorCode.STORAGE_FAILED, f"Storage failed: {reason}")


class DatabaseFailedError(PodcastError):
    """A database statement or commit failed."""

    def __init__(self, reason: str):
        super().__init__(PodcastErrorCode.DATABASE_FAILED, f"Database failed: {reason}")


# --- Ingest ---


def validate_upload_fields(
    title: str | None,
    content_type: str | None,
    has_file: bool,
) -> str:
    """Check the multipart fields of an upload before anything is written.

    Args:
        title: Value of the title field, None if absent.
        content_type: Declared content type of the file part.
        has_file: Whether a file part was present.

    Returns:
        The title.

    Raises:
        InvalidRequestError: If title or file is missing, or title is too long.
        UnsupportedContentTypeError: If the content type is not accepted.
    """
    if title is None or not title.strip():
        raise InvalidRequestError("Missing required field: title")
    if len(title) > MAX_TITLE_LENGTH:
        raise InvalidRequestError(f"Title longer than {MAX_TITLE_LENGTH} characters")
    if not has_file:
        raise InvalidRequestError("Missing required field: file")
    if not is_supported_content_type(content_type):
        raise UnsupportedContentTypeError(content_type)
    return title


def ingest_podcast_upload(
    session: Session,
    title: str | None,
    content_type: str | None,
    stream: BinaryIO | None,
) -> Podcast:
    """Ingest an uploaded audio file and record its metadata.

    Steps:
    1. Validate fields and content type (no side effects on failure)
    2. Allocate a fresh storage path
    3. Atomically write the stream to that path
    4. Insert the Podcast row and commit

    Args:
        session: Active database session.
        title: Display title from the form.
        content_type: Declared content type of the file part.
        stream: File-like object for the payload, None if no file part.

    Returns:
        The persisted Podcast with id and created_at populated.

    Raises:
        InvalidRequestError: Missing or malformed field.
        UnsupportedContentTypeError: Content type not accepted.
        StorageFailedError: File write failed; no row was inserted.
        DatabaseFailedError: Insert failed; the written file is left orphaned.
    """
    title = validate_upload_fields(title, content_type, stream is not None)

    storage = allocate_audio_path(content_type)

    try:
        size = atomic_stream_to_file(stream, storage.file_path)
    except OSError as e:
        logger.error("Failed to write upload to %s: %s", storage.file_path, e)
        raise StorageFailedError(f"could not write {storage.file_name}: {e}") from e

    try:
        podcast = insert_podcast(session, title=title, url=storage.url)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.warning(
            "Insert failed after writing %s; file left orphaned at %s",
            storage.url,
            storage.file_path,
        )
        raise DatabaseFailedError(f"insert failed: {e}") from e

    logger.info("Stored podcast id=%s url=%s (%d bytes)", podcast.id, podcast.url, size)
    return podcast


# --- Read ---


def fetch_all_podcasts(session: Session) -> list[Podcast]:
    """List every stored podcast."""
    try:
        return list_podcasts(session)
    except SQLAlchemyError as e:
        raise DatabaseFailedError(f"list failed: {e}") from e


def fetch_podcast(session: Session, podcast_id: uuid.UUID, for_update: bool = False) -> Podcast:
    """Fetch one podcast, optionally holding a row lock for the transaction.

    Raises:
        PodcastNotFoundError: If the id is unknown.
        DatabaseFailedError: If the lookup fails.
    """
    try:
        return get_podcast(session, podcast_id, for_update=for_update)
    except PodcastNotFound as e:
        raise PodcastNotFoundError(podcast_id) from e
    except SQLAlchemyError as e:
        raise DatabaseFailedError(f"lookup failed: {e}") from e


# --- Delete ---


def _file_path_for(podcast_url: str) -> Path:
    try:
        return audio_path_from_url(podcast_url)
    except ValueError as e:
        raise StorageFailedError(str(e)) from e


def delete_podcast(session: Session, podcast_id: uuid.UUID) -> None:
    """Delete one podcast: file first, then row.

    If the stored file is already gone the row is re-checked: a row deleted
    meanwhile by a concurrent request means not-found, a row still present
    means the file vanished underneath it and the row is kept.

    Raises:
        PodcastNotFoundError: If the id is unknown (no side effects).
        StorageFailedError: If the file could not be removed (row kept).
        DatabaseFailedError: If the row delete fails after the file is gone.
    """
    # Row lock serializes concurrent deletes of the same id where the backend supports it
    podcast = fetch_podcast(session, podcast_id, for_update=True)
    file_path = _file_path_for(podcast.url)

    try:
        remove_published_file(file_path)
    except FileNotFoundError as e:
        try:
            still_exists = podcast_exists(session, podcast_id)
        except SQLAlchemyError as db_err:
            raise DatabaseFailedError(f"lookup failed: {db_err}") from db_err
        if not still_exists:
            raise PodcastNotFoundError(podcast_id) from e
        logger.error("Podcast %s points at missing file %s; row kept", podcast_id, file_path)
        raise StorageFailedError(f"file missing: {podcast.url}") from e
    except OSError as e:
        logger.error("Failed to remove %s for podcast %s: %s", file_path, podcast_id, e)
        raise StorageFailedError(f"could not remove {podcast.url}: {e}") from e

    try:
        delete_podcast_row(session, podcast_id)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("File %s removed but row delete failed for podcast %s", file_path, podcast_id)
        raise DatabaseFailedError(f"delete failed: {e}") from e

    logger.info("Deleted podcast id=%s url=%s", podcast_id, podcast.url)


def delete_all_podcasts(session: Session) -> int:
    """Delete every podcast: all files first, then all rows.

    Files are removed one at a time. On the first failure the operation
    aborts without touching the database; files removed before the failure
    are logged and not restored. Only the rows seen in the initial snapshot
    are deleted, so uploads that land mid-operation keep their row and file.

    Returns:
        Number of podcasts deleted.

    Raises:
        StorageFailedError: If any file could not be removed (all rows kept).
        DatabaseFailedError: If reading or deleting rows fails.
    """
    try:
        entries = list_podcast_urls(session)
    except SQLAlchemyError as e:
        raise DatabaseFailedError(f"list failed: {e}") from e

    removed: list[str] = []
    for podcast_id, url in entries:
        try:
            remove_published_file(_file_path_for(url))
        except (OSError, StorageFailedError) as e:
            logger.error(
                "Bulk delete aborted at podcast %s (%s): %s. "
                "%d file(s) already removed, rows kept: %s",
                podcast_id,
                url,
                e,
                len(removed),
                removed,
            )
            raise StorageFailedError(f"could not remove {url}: {e}") from e
        removed.append(url)

    try:
        deleted = delete_podcast_rows(session, (podcast_id for podcast_id, _ in entries))
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("All %d files removed but row delete failed", len(removed))
        raise DatabaseFailedError(f"bulk delete failed: {e}") from e

    logger.info("Deleted %d podcasts", deleted)
    return deleted
