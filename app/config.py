"""Podcast Media Backend - Configuration constants.

No external config libraries. Values are module constants, a few of them
overridable through environment variables. All paths are relative to the
repository root by default.
"""

import os
from pathlib import Path

# Repository root (parent of app/)
REPO_ROOT = Path(__file__).parent.parent.resolve()

# Media directories. Audio files live in MEDIA_DIR/audio and are published
# under the /audio/ url prefix.
MEDIA_DIR = Path(os.environ.get("PODCAST_MEDIA_DIR", REPO_ROOT / "media"))
AUDIO_DIR = MEDIA_DIR / "audio"
AUDIO_URL_PREFIX = "/audio/"

# Frontend build output served by the API when present
STATIC_DIR = REPO_ROOT / "static" / "dist"

# Database connection string. Falls back to a local SQLite file.
DEFAULT_DATABASE_URL = f"sqlite:///{MEDIA_DIR / 'podcast.db'}"
DATABASE_URL = os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)


def _get_positive_int(name: str, default: int) -> int:
    """Read a positive integer from the environment.

    Invalid or non-positive values fall back to the default.

    Args:
        name: Environment variable name.
        default: Value used when the variable is unset or invalid.

    Returns:
        The configured integer.
    """
    env_val = os.environ.get(name)
    if env_val:
        try:
            value = int(env_val)
            if value > 0:
                return value
        except ValueError:
            pass
    return default


# Connection pool bounds. Callers waiting longer than the timeout for a
# connection fail instead of blocking.
DB_POOL_SIZE = _get_positive_int("DB_POOL_SIZE", 5)
DB_POOL_TIMEOUT_SECONDS = _get_positive_int("DB_POOL_TIMEOUT_SEC", 3)

# Request body limit (250 MB)
MAX_UPLOAD_BYTES = 250 * 1024 * 1024

# Longest title the podcast table accepts
MAX_TITLE_LENGTH = 255

# Single origin allowed to call the API from a browser
CORS_ALLOWED_ORIGIN = os.environ.get("CORS_ALLOWED_ORIGIN", "http://0.0.0.0:3000")
CORS_ALLOWED_METHODS = ("GET", "POST", "DELETE")

# Server bind address for the console entry point
SERVER_HOST = os.environ.get("PODCAST_HOST", "0.0.0.0")
SERVER_PORT = _get_positive_int("PODCAST_PORT", 3000)

LOG_LEVEL = os.environ.get("PODCAST_LOG_LEVEL", "INFO").upper()
