"""Time-series ORM models: sensor readings and actuator states.

Both tables are append-only logs.  Each row belongs to a greenhouse and,
optionally, to one plant; rows with no plant are greenhouse-level
observations (tank level, ambient light, pump).  The dominant read is
"latest value per greenhouse/plant", served by the (fk, timestamp) indexes.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, Float, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from herbarium.models.base import Base, TimeSeriesMixin
from herbarium.models.enums import ActuatorTypeEnum, SensorTypeEnum, enum_values


class SensorReading(Base, TimeSeriesMixin):
    """A timestamped numeric observation (moisture, light or tank level)."""

    __tablename__ = "sensors_data"
    __table_args__ = (
        Index("ix_sensors_data_greenhouse_ts", "greenhouse_id", "timestamp"),
        Index("ix_sensors_data_plant_ts", "plant_id", "timestamp"),
    )

    greenhouse_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("greenhouses.id", ondelete="CASCADE"),
        nullable=False,
    )
    plant_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("plants.id", ondelete="CASCADE"),
        nullable=True,
    )
    type: Mapped[SensorTypeEnum] = mapped_column(
        Enum(
            SensorTypeEnum,
            name="sensor_type",
            native_enum=False,
            create_constraint=True,
            length=1,
            values_callable=enum_values,
        ),
        nullable=False,
    )
    value: Mapped[float] = mapped_column(Float, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<SensorReading id={self.id} greenhouse={self.greenhouse_id} "
            f"type={self.type} ts={self.timestamp}>"
        )


class ActuatorState(Base, TimeSeriesMixin):
    """A timestamped on/off command or status for a valve, light strip or pump."""

    __tablename__ = "actuators_state"
    __table_args__ = (
        Index("ix_actuators_state_greenhouse_ts", "greenhouse_id", "timestamp"),
        Index("ix_actuators_state_plant_ts", "plant_id", "timestamp"),
    )

    greenhouse_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("greenhouses.id", ondelete="CASCADE"),
        nullable=False,
    )
    plant_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("plants.id", ondelete="CASCADE"),
        nullable=True,
    )
    type: Mapped[ActuatorTypeEnum] = mapped_column(
        Enum(
            ActuatorTypeEnum,
            name="actuator_type",
            native_enum=False,
            create_constraint=True,
            length=1,
            values_callable=enum_values,
        ),
        nullable=False,
    )
    status: Mapped[bool] = mapped_column(nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<ActuatorState id={self.id} greenhouse={self.greenhouse_id} "
            f"type={self.type} status={self.status}>"
        )
