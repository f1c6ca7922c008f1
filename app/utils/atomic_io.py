"""Podcast Media Backend - Atomic I/O utilities.

Implements the atomic publish rule for stored audio:
1. Write to temp path in same directory
2. Flush + best-effort fsync
3. Rename temp -> final (the publish boundary)

This ensures that the final path either contains the complete upload
or does not exist. Partial writes only affect the temp file, which is
removed on failure or swept by cleanup_orphan_temp_files at startup.
"""

import os
from pathlib import Path

TEMP_SUFFIX = ".tmp"


def _write_all(fd: int, data: bytes) -> None:
    """Write every byte of data to fd, retrying after short writes."""
    view = memoryview(data)
    while view:
        try:
            written = os.write(fd, view)
        except InterruptedError:
            continue
        if written == 0:
            raise OSError(f"short write to fd {fd}: 0 of {len(view)} bytes accepted")
        view = view[written:]


def _fsync_directory(dir_path: Path) -> None:
    """Flush directory metadata so a rename or unlink in it survives a crash.

    Platforms without O_DIRECTORY, and filesystems that refuse directory
    fsync, skip the flush.
    """
    flags = os.O_RDONLY | getattr(os, "O_DIRECTORY", 0)
    try:
        fd = os.open(dir_path, flags)
    except OSError:
        return
    try:
        os.fsync(fd)
    except OSError:
        pass
    finally:
        os.close(fd)


def temp_path_for(final_path: str | Path, temp_suffix: str = TEMP_SUFFIX) -> Path:
    """Return the temp path used while writing final_path."""
    final_path = Path(final_path)
    return final_path.with_suffix(final_path.suffix + temp_suffix)


def atomic_stream_to_file(
    stream,
    final_path: str | Path,
    temp_suffix: str = TEMP_SUFFIX,
    chunk_size: int = 65536,
) -> int:
    """Atomically write a stream to a file.

    Used for upload ingestion where data comes from a file-like object.
    The parent directory must already exist.

    Args:
        stream: File-like object with read() method.
        final_path: Target path for the output file.
        temp_suffix: Suffix for the temporary file (default: ".tmp").
        chunk_size: Buffer size for reading (default: 64KB).

    Returns:
        Total bytes written.

    Raises:
        OSError: If reading the stream, writing, or the rename fails. The
            temp file is removed and final_path is left untouched.
    """
    final_path = Path(final_path)
    temp_path = temp_path_for(final_path, temp_suffix)

    total_bytes = 0
    fd = os.open(temp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o644)
    try:
        try:
            while True:
                chunk = stream.read(chunk_size)
                if not chunk:
                    break
                if isinstance(chunk, str):
                    chunk = chunk.encode("utf-8")
                _write_all(fd, chunk)
                total_bytes += len(chunk)

            os.fsync(fd)
        finally:
            os.close(fd)

        # Atomic rename (POSIX guarantees atomicity)
        os.replace(temp_path, final_path)
    except Exception:
        try:
            os.remove(temp_path)
        except OSError:
            pass  # Best-effort cleanup
        raise

    _fsync_directory(final_path.parent)

    return total_bytes


def remove_published_file(path: str | Path) -> None:
    """Remove a published file.

    Unlike the temp-file cleanup helpers, a missing file is an error here.

    Raises:
        FileNotFoundError: If the file does not exist.
        OSError: If the file cannot be removed.
    """
    path = Path(path)
    path.unlink()
    _fsync_directory(path.parent)


def cleanup_orphan_temp_files(directory: str | Path, temp_suffix: str = TEMP_SUFFIX) -> int:
    """Delete leftover temp files from uploads interrupted mid-write.

    Run once at startup, before any upload can be in flight. Published files
    never carry the temp suffix and are left alone. A file that cannot be
    removed is skipped and retried on the next startup.

    Returns:
        Number of temp files deleted. Zero if the directory does not exist.
    """
    directory = Path(directory)
    if not directory.is_dir():
        return 0

    removed = 0
    for leftover in directory.glob(f"*{temp_suffix}"):
        try:
            leftover.unlink()
        except OSError:
            continue
        removed += 1
    return removed
