"""Time-series store: append sensor readings / actuator states, fetch latest values."""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from enum import StrEnum
from typing import Any, TypeVar

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from herbarium.database import flush_checked
from herbarium.errors import ConstraintViolationError
from herbarium.models import ActuatorState, ActuatorTypeEnum, SensorReading, SensorTypeEnum
from herbarium.schemas.data import ActuatorStateIn, SensorReadingIn

logger = structlog.get_logger("herbarium.data")

Record = TypeVar("Record", SensorReading, ActuatorState)
E = TypeVar("E", bound=StrEnum)


def _coerce_type(enum_cls: type[E], value: Any) -> E:
	try:
		return enum_cls(value)
	except ValueError as exc:
		raise ConstraintViolationError(f"Unknown {enum_cls.__name__} code: {value!r}") from exc


class DataService:
	"""Append-only store for readings and actuator states, with latest-value queries."""

	def __init__(self, db: AsyncSession):
		self.db = db

	async def append_readings(
		self,
		greenhouse_id: uuid.UUID,
		readings: Sequence[SensorReadingIn],
	) -> int:
		rows = [
			SensorReading(
				greenhouse_id=greenhouse_id,
				plant_id=item.plant_id,
				type=_coerce_type(SensorTypeEnum, item.type),
				value=float(item.value),
				timestamp=item.timestamp,
			)
			for item in readings
		]
		if not rows:
			return 0
		self.db.add_all(rows)
		await flush_checked(self.db)
		logger.info("sensor_readings_appended", greenhouse_id=str(greenhouse_id), count=len(rows))
		return len(rows)

	async def append_actuator_states(
		self,
		greenhouse_id: uuid.UUID,
		states: Sequence[ActuatorStateIn],
	) -> int:
		rows = [
			ActuatorState(
				greenhouse_id=greenhouse_id,
				plant_id=item.plant_id,
				type=_coerce_type(ActuatorTypeEnum, item.type),
				status=bool(item.status),
				timestamp=item.timestamp,
			)
			for item in states
		]
		if not rows:
			return 0
		self.db.add_all(rows)
		await flush_checked(self.db)
		logger.info("actuator_states_appended", greenhouse_id=str(greenhouse_id), count=len(rows))
		return len(rows)

	async def latest_reading(
		self,
		greenhouse_id: uuid.UUID | None = None,
		plant_id: uuid.UUID | None = None,
		type: SensorTypeEnum | None = None,
	) -> SensorReading | None:
		return await self._latest(SensorReading, greenhouse_id, plant_id, type)

	async def latest_actuator_state(
		self,
		greenhouse_id: uuid.UUID | None = None,
		plant_id: uuid.UUID | None = None,
		type: ActuatorTypeEnum | None = None,
	) -> ActuatorState | None:
		return await self._latest(ActuatorState, greenhouse_id, plant_id, type)

	async def latest_readings_batch(
		self,
		greenhouse_ids: Sequence[uuid.UUID] | None = None,
		plant_ids: Sequence[uuid.UUID] | None = None,
		type: SensorTypeEnum | None = None,
	) -> list[SensorReading]:
		"""Latest reading per plant (when ``plant_ids`` is given) or per greenhouse.

		``plant_ids`` takes precedence: when both filters are passed the
		greenhouse filter is ignored.
		"""
		return await self._latest_batch(SensorReading, greenhouse_ids, plant_ids, type)

	async def latest_actuator_states_batch(
		self,
		greenhouse_ids: Sequence[uuid.UUID] | None = None,
		plant_ids: Sequence[uuid.UUID] | None = None,
		type: ActuatorTypeEnum | None = None,
	) -> list[ActuatorState]:
		"""Same contract as :meth:`latest_readings_batch`, for actuator records."""
		return await self._latest_batch(ActuatorState, greenhouse_ids, plant_ids, type)

	async def _latest(
		self,
		model: type[Record],
		greenhouse_id: uuid.UUID | None,
		plant_id: uuid.UUID | None,
		type_: StrEnum | None,
	) -> Record | None:
		stmt = select(model)
		if greenhouse_id is not None:
			stmt = stmt.where(model.greenhouse_id == greenhouse_id)
		if plant_id is not None:
			stmt = stmt.where(model.plant_id == plant_id)
		if type_ is not None:
			stmt = stmt.where(model.type == type_)
		stmt = stmt.order_by(model.timestamp.desc(), model.id.desc()).limit(1)
		rows = await self.db.execute(stmt)
		return rows.scalars().first()

	async def _latest_batch(
		self,
		model: type[Record],
		greenhouse_ids: Sequence[uuid.UUID] | None,
		plant_ids: Sequence[uuid.UUID] | None,
		type_: StrEnum | None,
	) -> list[Record]:
		"""Top record per key, ranked in the database with ``row_number()``."""
		newest_first = (model.timestamp.desc(), model.id.desc())
		if plant_ids is not None:
			if not plant_ids:
				return []
			key = model.plant_id
			condition = model.plant_id.in_(list(plant_ids))
		elif greenhouse_ids is not None:
			if not greenhouse_ids:
				return []
			key = model.greenhouse_id
			condition = model.greenhouse_id.in_(list(greenhouse_ids))
		else:
			key = model.greenhouse_id
			condition = None

		ranked = select(
			model.id,
			func.row_number().over(partition_by=key, order_by=newest_first).label("row_rank"),
		)
		if condition is not None:
			ranked = ranked.where(condition)
		if type_ is not None:
			ranked = ranked.where(model.type == type_)
		newest = ranked.subquery()

		stmt = (
			select(model)
			.join(newest, model.id == newest.c.id)
			.where(newest.c.row_rank == 1)
			.order_by(*newest_first)
		)
		rows = await self.db.execute(stmt)
		return list(rows.scalars().all())
