"""Podcast Media Backend - SQLAlchemy ORM models.

One table: podcast. Each row describes exactly one stored audio file.
"""

import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from app.config import MAX_TITLE_LENGTH


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def utc_now() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(UTC)


class Podcast(Base):
    """Metadata record for one uploaded audio file.

    Rows are immutable after insert. The url embeds the freshly generated
    storage file name, so it is unique in practice.
    """

    __tablename__ = "podcast"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    title: Mapped[str] = mapped_column(String(MAX_TITLE_LENGTH), nullable=False)

    # Server-relative path of the stored file, e.g. /audio/<uuid>.mpeg
    url: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    def __repr__(self) -> str:
        return f"Podcast(id={self.id!s}, title={self.title!r}, url={self.url!r})"
