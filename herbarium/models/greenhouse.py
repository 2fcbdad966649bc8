"""Greenhouse, Plant and PlantType ORM models.

Deletes cascade in the database (``ON DELETE CASCADE``): removing a
greenhouse row removes its plants, readings and actuator records without
the ORM loading any of them.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Uuid,
    false,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from herbarium.models.base import Base, CreatedAtMixin, UUIDPrimaryKeyMixin

DEFAULT_PLANT_TYPE_ID = 1
DEFAULT_PLANT_TYPE_NAME = "default"

# ═══════════════════════════════════════════════════════════════════════════
# Greenhouse
# ═══════════════════════════════════════════════════════════════════════════


class Greenhouse(Base, UUIDPrimaryKeyMixin, CreatedAtMixin):
    """A growing enclosure registered by its owner.

    The id is supplied by the device at registration time rather than
    generated here.
    """

    __tablename__ = "greenhouses"
    __table_args__ = (Index("ix_greenhouses_user_id", "user_id"),)

    name: Mapped[str] = mapped_column(String(256), nullable=False)
    user_id: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Greenhouse id={self.id} name={self.name!r} user={self.user_id!r}>"


# ═══════════════════════════════════════════════════════════════════════════
# PlantType
# ═══════════════════════════════════════════════════════════════════════════


class PlantType(Base):
    """Reference data: growing targets for a kind of plant."""

    __tablename__ = "plant_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(512), nullable=False)
    moisture_goal: Mapped[float] = mapped_column(
        Float, nullable=False, default=80.0, server_default=text("80.0")
    )
    light_exposure_min_duration: Mapped[float] = mapped_column(
        Float, nullable=False, default=14.0, server_default=text("14.0")
    )
    germination_time: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    growing_time: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )

    def __repr__(self) -> str:
        return f"<PlantType id={self.id} name={self.name!r}>"


# ═══════════════════════════════════════════════════════════════════════════
# Plant
# ═══════════════════════════════════════════════════════════════════════════


class Plant(Base, UUIDPrimaryKeyMixin):
    """A growing slot at a fixed position inside a greenhouse.

    ``removed`` is a one-way soft delete.  At most one non-removed plant may
    hold a given position, enforced by the partial unique index below.
    ``previous_id`` is the identifier the plant was known by before it was
    re-registered; lookups accept either.
    """

    __tablename__ = "plants"
    __table_args__ = (
        CheckConstraint("position >= 0", name="ck_plants_position"),
        CheckConstraint(
            "override_moisture_goal >= 0 AND override_moisture_goal <= 100",
            name="ck_plants_override_moisture_goal",
        ),
        CheckConstraint(
            "override_light_exposure_min_duration >= 0 "
            "AND override_light_exposure_min_duration <= 24",
            name="ck_plants_override_light_exposure",
        ),
        Index("ix_plants_greenhouse_id", "greenhouse_id"),
        Index(
            "uq_plants_greenhouse_position_active",
            "greenhouse_id",
            "position",
            unique=True,
            postgresql_where=text("NOT removed"),
            sqlite_where=text("removed = 0"),
        ),
    )

    previous_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True), unique=True, nullable=True
    )
    greenhouse_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("greenhouses.id", ondelete="CASCADE"),
        nullable=False,
    )
    type_id: Mapped[int] = mapped_column(
        "type",
        Integer,
        ForeignKey("plant_types.id"),
        nullable=False,
        default=DEFAULT_PLANT_TYPE_ID,
        server_default=text(str(DEFAULT_PLANT_TYPE_ID)),
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    override_moisture_goal: Mapped[float | None] = mapped_column(Float, nullable=True)
    override_light_exposure_min_duration: Mapped[float | None] = mapped_column(
        Float, nullable=True
    )
    planted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    removed: Mapped[bool] = mapped_column(
        default=False,
        server_default=false(),
        nullable=False,
    )
    removed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        return (
            f"<Plant id={self.id} greenhouse={self.greenhouse_id} "
            f"position={self.position} removed={self.removed}>"
        )
