"""Podcast Media Backend - Database engine, session management and lifecycle store.

SQLAlchemy sync engine/session factory. The engine owns the process-wide
connection pool; it is created once at startup and handed to request
handlers through the session factory.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from pathlib import Path

from sqlalchemy import Engine, Select, create_engine, delete, select
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from app.config import DATABASE_URL, DB_POOL_SIZE, DB_POOL_TIMEOUT_SECONDS
from app.models import Base, Podcast


def get_database_url(db_path: str | Path | None = None) -> str:
    """Get the database URL.

    Args:
        db_path: Optional SQLite file path. Overrides DATABASE_URL when given.

    Returns:
        SQLAlchemy connection URL string.
    """
    if db_path is not None:
        return f"sqlite:///{db_path}"
    return DATABASE_URL


def create_db_engine(
    db_path: str | Path | None = None,
    echo: bool = False,
    pool_size: int = DB_POOL_SIZE,
    pool_timeout: int = DB_POOL_TIMEOUT_SECONDS,
) -> Engine:
    """Create SQLAlchemy engine with a bounded connection pool.

    Args:
        db_path: Optional SQLite file path override.
        echo: If True, log all SQL statements.
        pool_size: Maximum number of pooled connections (no overflow).
        pool_timeout: Seconds to wait for a free connection before failing.

    Returns:
        SQLAlchemy Engine instance.
    """
    url = make_url(get_database_url(db_path))
    connect_args = {}
    if url.get_backend_name() == "sqlite":
        # Sessions are never shared across threads; one per request.
        connect_args["check_same_thread"] = False
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    return create_engine(
        url,
        echo=echo,
        pool_size=pool_size,
        max_overflow=0,
        pool_timeout=pool_timeout,
        connect_args=connect_args,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    """Create a session factory bound to the given engine.

    Args:
        engine: SQLAlchemy Engine instance.

    Returns:
        Configured sessionmaker.
    """
    # - autoflush=False: explicit flush control in the store primitives
    # - expire_on_commit=False: records stay readable after commit for serialization
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(db_path: str | Path | None = None, echo: bool = False) -> tuple[Engine, sessionmaker]:
    """Initialize the database: create engine, session factory, and all tables.

    This is idempotent - safe to call multiple times.

    Args:
        db_path: Optional SQLite file path override.
        echo: If True, log all SQL statements.

    Returns:
        Tuple of (engine, SessionFactory).
    """
    engine = create_db_engine(db_path, echo=echo)
    SessionFactory = create_session_factory(engine)

    # Provision the podcast table (checkfirst=True default)
    Base.metadata.create_all(engine)

    return engine, SessionFactory


# --- Podcast Lifecycle Store ---
#
# None of these primitives commit. Each issues a single statement; the caller
# owns the transaction and decides when to commit or roll back.


class PodcastNotFound(Exception):
    """Raised when no podcast row exists for the requested id."""

    def __init__(self, podcast_id: uuid.UUID):
        self.podcast_id = podcast_id
        super().__init__(f"Podcast not found: {podcast_id}")


def list_podcasts(session: Session) -> list[Podcast]:
    """Return every podcast row in natural retrieval order."""
    return list(session.execute(select(Podcast)).scalars().all())


def podcast_lookup_stmt(podcast_id: uuid.UUID, for_update: bool = False) -> Select:
    """Build the select for one podcast, optionally locking the row.

    SQLite has no row locks and compiles the statement without FOR UPDATE.
    """
    stmt = select(Podcast).where(Podcast.id == podcast_id)
    if for_update:
        stmt = stmt.with_for_update()
    return stmt


def get_podcast(session: Session, podcast_id: uuid.UUID, for_update: bool = False) -> Podcast:
    """Fetch one podcast by id.

    Args:
        session: Active database session.
        podcast_id: Podcast identifier.
        for_update: Lock the row until the session's transaction ends.
            Concurrent lockers wait, then see the row as deleted if the
            holder removed it.

    Raises:
        PodcastNotFound: If no row has this id.
    """
    podcast = session.execute(podcast_lookup_stmt(podcast_id, for_update)).scalar_one_or_none()
    if podcast is None:
        raise PodcastNotFound(podcast_id)
    return podcast


def podcast_exists(session: Session, podcast_id: uuid.UUID) -> bool:
    """Check for a row without going through the identity map."""
    stmt = select(Podcast.id).where(Podcast.id == podcast_id)
    return session.execute(stmt).scalar_one_or_none() is not None


def insert_podcast(session: Session, title: str, url: str) -> Podcast:
    """Insert a podcast row.

    Note:
        This function does NOT commit the transaction. It calls session.flush()
        so id and created_at are populated, and leaves commit to the caller.

    Args:
        session: Active database session.
        title: Display title.
        url: Server-relative url of the stored audio file.

    Returns:
        The flushed Podcast instance.
    """
    podcast = Podcast(title=title, url=url)
    session.add(podcast)
    session.flush()
    return podcast


def delete_podcast_row(session: Session, podcast_id: uuid.UUID) -> bool:
    """Delete one podcast row.

    Returns:
        True if a row was deleted, False if none matched.
    """
    result = session.execute(delete(Podcast).where(Podcast.id == podcast_id))
    return result.rowcount > 0


def list_podcast_urls(session: Session) -> list[tuple[uuid.UUID, str]]:
    """Return (id, url) for every podcast row."""
    rows = session.execute(select(Podcast.id, Podcast.url)).all()
    return [(row.id, row.url) for row in rows]


def delete_podcast_rows(session: Session, podcast_ids: Iterable[uuid.UUID]) -> int:
    """Delete the given podcast rows in a single statement.

    Returns:
        Number of rows deleted.
    """
    ids = list(podcast_ids)
    if not ids:
        return 0
    result = session.execute(delete(Podcast).where(Podcast.id.in_(ids)))
    return result.rowcount
