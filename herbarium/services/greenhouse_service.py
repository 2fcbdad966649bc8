"""Greenhouse directory: registration, composed reads, renames and cascading deletes."""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from typing import TypeVar

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from herbarium.database import flush_checked
from herbarium.errors import (
	AlreadyExistsError,
	ConstraintViolationError,
	NotFoundError,
	UnknownPlantError,
)
from herbarium.models import ActuatorTypeEnum, Greenhouse, SensorTypeEnum, User
from herbarium.schemas.data import (
	ActuatorStateIn,
	ActuatorStateRead,
	DataPushReceipt,
	SensorReadingIn,
	SensorReadingRead,
)
from herbarium.schemas.greenhouse import GreenhouseRead
from herbarium.services.data_service import DataService
from herbarium.services.plant_service import PlantService

logger = structlog.get_logger("herbarium.greenhouses")

Item = TypeVar("Item", SensorReadingIn, ActuatorStateIn)


class GreenhouseService:
	"""Service for greenhouse CRUD and the composed greenhouse view."""

	def __init__(self, db: AsyncSession):
		self.db = db
		self.data = DataService(db)
		self.plants = PlantService(db, data=self.data)

	async def exists(self, greenhouse_id: uuid.UUID) -> bool:
		return await self._find(greenhouse_id) is not None

	async def is_owned_by(self, greenhouse_id: uuid.UUID, user_id: str) -> bool:
		stmt = select(Greenhouse.id).where(
			Greenhouse.id == greenhouse_id,
			Greenhouse.user_id == user_id,
		)
		row = await self.db.execute(stmt)
		return row.scalar_one_or_none() is not None

	async def get_greenhouse(
		self,
		greenhouse_id: uuid.UUID,
		include_removed_plants: bool = False,
	) -> GreenhouseRead:
		greenhouse = await self._find(greenhouse_id)
		if greenhouse is None:
			raise NotFoundError(f"Greenhouse {greenhouse_id} not found")
		return await self._compose(greenhouse, include_removed_plants)

	async def list_by_user(
		self,
		user_id: str,
		include_removed_plants: bool = False,
	) -> list[GreenhouseRead]:
		stmt = (
			select(Greenhouse)
			.where(Greenhouse.user_id == user_id)
			.order_by(Greenhouse.created_at.asc(), Greenhouse.name.asc())
		)
		rows = await self.db.execute(stmt)
		return [
			await self._compose(greenhouse, include_removed_plants)
			for greenhouse in rows.scalars().all()
		]

	async def add_greenhouse(self, user_id: str, greenhouse_id: uuid.UUID, name: str) -> uuid.UUID:
		if await self.exists(greenhouse_id):
			raise AlreadyExistsError(f"Greenhouse {greenhouse_id} already exists")
		owner = await self.db.execute(select(User.id).where(User.id == user_id))
		if owner.scalar_one_or_none() is None:
			raise NotFoundError(f"User {user_id} not found")

		greenhouse = Greenhouse(id=greenhouse_id, user_id=user_id, name=name)
		self.db.add(greenhouse)
		try:
			await self.db.flush()
		except IntegrityError as exc:
			# another request registered the same id after the exists check
			if _is_primary_key_conflict(exc):
				raise AlreadyExistsError(f"Greenhouse {greenhouse_id} already exists") from exc
			raise ConstraintViolationError(f"Rejected by a schema constraint: {exc.orig}") from exc
		logger.info("greenhouse_created", greenhouse_id=str(greenhouse_id), user_id=user_id)
		return greenhouse.id

	async def update_details(self, greenhouse_id: uuid.UUID, name: str) -> None:
		greenhouse = await self._find(greenhouse_id)
		if greenhouse is None:
			raise NotFoundError(f"Greenhouse {greenhouse_id} not found")
		greenhouse.name = name
		await flush_checked(self.db)

	async def delete_greenhouse(self, greenhouse_id: uuid.UUID) -> None:
		if not await self.exists(greenhouse_id):
			raise NotFoundError(f"Greenhouse {greenhouse_id} not found")
		# plants, readings and actuator states go with it via ON DELETE CASCADE
		await self.db.execute(delete(Greenhouse).where(Greenhouse.id == greenhouse_id))
		self.db.expunge_all()
		logger.info("greenhouse_deleted", greenhouse_id=str(greenhouse_id))

	async def record_data(
		self,
		greenhouse_id: uuid.UUID,
		sensors: Sequence[SensorReadingIn],
		actuators: Sequence[ActuatorStateIn],
	) -> DataPushReceipt:
		"""Append one upload from a greenhouse controller.

		Plant ids may be current or previous ids; they are rewritten to the
		current id before storage.  Nothing is written if any id is unknown.
		"""
		if not await self.exists(greenhouse_id):
			raise NotFoundError(f"Greenhouse {greenhouse_id} not found")

		named = {item.plant_id for item in [*sensors, *actuators] if item.plant_id is not None}
		resolved = await self.plants.resolve_ids(sorted(named, key=str), greenhouse_id)
		unknown = sorted(str(plant_id) for plant_id in named - resolved.keys())
		if unknown:
			raise UnknownPlantError(f"Unknown plant ids for greenhouse {greenhouse_id}: {', '.join(unknown)}")

		sensors = [_with_plant(item, resolved) for item in sensors]
		actuators = [_with_plant(item, resolved) for item in actuators]
		return DataPushReceipt(
			greenhouse_id=greenhouse_id,
			sensors_inserted=await self.data.append_readings(greenhouse_id, sensors),
			actuators_inserted=await self.data.append_actuator_states(greenhouse_id, actuators),
		)

	async def _find(self, greenhouse_id: uuid.UUID) -> Greenhouse | None:
		row = await self.db.execute(select(Greenhouse).where(Greenhouse.id == greenhouse_id))
		return row.scalar_one_or_none()

	async def _compose(self, greenhouse: Greenhouse, include_removed_plants: bool) -> GreenhouseRead:
		tank = await self.data.latest_reading(
			greenhouse_id=greenhouse.id, type=SensorTypeEnum.tank_level
		)
		pump = await self.data.latest_actuator_state(
			greenhouse_id=greenhouse.id, type=ActuatorTypeEnum.pump
		)
		last = await self.data.latest_reading(greenhouse_id=greenhouse.id)
		plants = await self.plants.list_by_greenhouse(
			greenhouse.id, include_removed=include_removed_plants
		)
		return GreenhouseRead(
			id=greenhouse.id,
			name=greenhouse.name,
			plants=plants,
			tank_level=SensorReadingRead.model_validate(tank) if tank else None,
			pump_status=ActuatorStateRead.model_validate(pump) if pump else None,
			last_seen=last.timestamp if last is not None else greenhouse.created_at,
			created_at=greenhouse.created_at,
		)


def _with_plant(item: Item, resolved: dict[uuid.UUID, uuid.UUID]) -> Item:
	if item.plant_id is None or resolved[item.plant_id] == item.plant_id:
		return item
	return item.model_copy(update={"plant_id": resolved[item.plant_id]})


def _is_primary_key_conflict(exc: IntegrityError) -> bool:
	message = str(exc.orig)
	return "greenhouses_pkey" in message or "greenhouses.id" in message
