"""ORM base class and mixins: all models inherit from Base."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import BigInteger, DateTime, Integer, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Declarative base: shared MetaData registry for all models."""

    pass


class CreatedAtMixin:
    """Adds a ``created_at`` audit column."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )


class UUIDPrimaryKeyMixin:
    """Adds a UUID primary key, generated in Python when the caller gives none."""

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )


class TimeSeriesMixin:
    """BIGSERIAL PK + ingestion timestamp for the append-only data tables.

    Readings and actuator states are never updated or deleted individually;
    the ``timestamp`` column on each table is the observation time and
    ``ingested_at`` records when the row reached the store.
    """

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    ingested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
