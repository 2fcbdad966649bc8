"""Plant directory: registration, updates, soft removal and enriched listings."""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import UTC, datetime

import structlog
from sqlalchemy import or_, select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from herbarium.database import flush_checked
from herbarium.errors import (
	AlreadyRemovedError,
	ConstraintViolationError,
	NotFoundError,
	PositionOccupiedError,
)
from herbarium.models import (
	ActuatorState,
	ActuatorTypeEnum,
	Plant,
	PlantType,
	SensorReading,
	SensorTypeEnum,
)
from herbarium.models.greenhouse import DEFAULT_PLANT_TYPE_ID, DEFAULT_PLANT_TYPE_NAME
from herbarium.schemas.data import ActuatorStateRead, SensorReadingRead
from herbarium.schemas.greenhouse import PlantRead, PlantTypeRead
from herbarium.services.data_service import DataService

logger = structlog.get_logger("herbarium.plants")

_POSITION_INDEX = "uq_plants_greenhouse_position_active"


class PlantService:
	"""Service for plant CRUD and the per-plant sensor/actuator enrichment."""

	def __init__(self, db: AsyncSession, data: DataService | None = None):
		self.db = db
		self.data = data or DataService(db)

	async def exists(self, plant_id: uuid.UUID) -> bool:
		return await self._resolve_one(plant_id) is not None

	async def exists_batch(
		self,
		plant_ids: Sequence[uuid.UUID],
		greenhouse_id: uuid.UUID | None = None,
	) -> list[uuid.UUID]:
		"""Return the ids (current or previous) that match no plant."""
		resolved = await self.resolve_ids(plant_ids, greenhouse_id)
		return [plant_id for plant_id in plant_ids if plant_id not in resolved]

	async def resolve_ids(
		self,
		plant_ids: Sequence[uuid.UUID],
		greenhouse_id: uuid.UUID | None = None,
	) -> dict[uuid.UUID, uuid.UUID]:
		"""Map every known id or previous id to the plant's current id."""
		if not plant_ids:
			return {}
		wanted = list(plant_ids)
		stmt = select(Plant.id, Plant.previous_id).where(
			or_(Plant.id.in_(wanted), Plant.previous_id.in_(wanted))
		)
		if greenhouse_id is not None:
			stmt = stmt.where(Plant.greenhouse_id == greenhouse_id)
		rows = await self.db.execute(stmt)

		resolved: dict[uuid.UUID, uuid.UUID] = {}
		for current_id, previous_id in rows.all():
			resolved[current_id] = current_id
			if previous_id is not None:
				resolved.setdefault(previous_id, current_id)
		wanted_set = set(wanted)
		return {key: value for key, value in resolved.items() if key in wanted_set}

	async def position_free(self, greenhouse_id: uuid.UUID, position: int) -> bool:
		stmt = select(Plant.id).where(
			Plant.greenhouse_id == greenhouse_id,
			Plant.position == position,
			Plant.removed.is_(False),
		)
		row = await self.db.execute(stmt.limit(1))
		return row.scalar_one_or_none() is None

	async def add_plant(
		self,
		greenhouse_id: uuid.UUID,
		position: int,
		planted_at: datetime,
	) -> uuid.UUID:
		if not await self.position_free(greenhouse_id, position):
			raise PositionOccupiedError(f"Position {position} is already occupied")

		plant = Plant(
			greenhouse_id=greenhouse_id,
			position=position,
			planted_at=planted_at,
			type_id=DEFAULT_PLANT_TYPE_ID,
		)
		self.db.add(plant)
		try:
			await self.db.flush()
		except IntegrityError as exc:
			# a concurrent registration won the partial unique index
			if _is_position_conflict(exc):
				raise PositionOccupiedError(f"Position {position} is already occupied") from exc
			raise ConstraintViolationError(f"Rejected by a schema constraint: {exc.orig}") from exc

		logger.info(
			"plant_added",
			plant_id=str(plant.id),
			greenhouse_id=str(greenhouse_id),
			position=position,
		)
		return plant.id

	async def get_plant(self, plant_id: uuid.UUID) -> PlantRead:
		plant = await self._require_plant(plant_id)
		plants = await self.list_by_greenhouse(plant.greenhouse_id, include_removed=True)
		for item in plants:
			if item.id == plant.id:
				return item
		raise NotFoundError(f"Plant {plant_id} not found")

	async def get_greenhouse_id_for_plant(self, plant_id: uuid.UUID) -> uuid.UUID:
		plant = await self._require_plant(plant_id)
		return plant.greenhouse_id

	async def update_plant(
		self,
		plant_id: uuid.UUID,
		type_id: int,
		override_moisture_goal: float | None,
		override_light_exposure_min_duration: float | None,
	) -> None:
		plant = await self._require_plant(plant_id)
		plant.type_id = type_id
		plant.override_moisture_goal = override_moisture_goal
		plant.override_light_exposure_min_duration = override_light_exposure_min_duration
		await flush_checked(self.db)

	async def remove_plant(self, plant_id: uuid.UUID) -> None:
		plant = await self._require_plant(plant_id)
		if plant.removed:
			raise AlreadyRemovedError(f"Plant {plant.id} was already removed")

		plant.removed = True
		plant.removed_at = datetime.now(UTC)
		await flush_checked(self.db)
		logger.info("plant_removed", plant_id=str(plant.id), greenhouse_id=str(plant.greenhouse_id))

	async def list_by_greenhouse(
		self,
		greenhouse_id: uuid.UUID,
		include_removed: bool = False,
	) -> list[PlantRead]:
		stmt = (
			select(Plant, PlantType)
			.join(PlantType, Plant.type_id == PlantType.id)
			.where(Plant.greenhouse_id == greenhouse_id)
			.order_by(Plant.position.asc(), Plant.planted_at.asc())
		)
		if not include_removed:
			stmt = stmt.where(Plant.removed.is_(False))
		rows = (await self.db.execute(stmt)).all()
		if not rows:
			return []

		plant_ids = [plant.id for plant, _ in rows]
		moisture = {
			reading.plant_id: reading
			for reading in await self.data.latest_readings_batch(
				plant_ids=plant_ids, type=SensorTypeEnum.moisture
			)
		}
		valves = {
			state.plant_id: state
			for state in await self.data.latest_actuator_states_batch(
				plant_ids=plant_ids, type=ActuatorTypeEnum.valve
			)
		}
		light_strips = {
			state.plant_id: state
			for state in await self.data.latest_actuator_states_batch(
				plant_ids=plant_ids, type=ActuatorTypeEnum.light_strip
			)
		}
		# one light sensor per greenhouse, shared by every plant
		light = await self.data.latest_reading(greenhouse_id=greenhouse_id, type=SensorTypeEnum.light)

		return [
			self._to_plant_read(
				plant,
				plant_type,
				moisture=moisture.get(plant.id),
				light=light,
				valve=valves.get(plant.id),
				light_strip=light_strips.get(plant.id),
			)
			for plant, plant_type in rows
		]

	async def list_plant_types(self) -> list[PlantType]:
		rows = await self.db.execute(select(PlantType).order_by(PlantType.id.asc()))
		return list(rows.scalars().all())

	async def ensure_default_type(self) -> bool:
		"""Insert the ``default`` plant type (id 1) if missing.  Returns True if inserted."""
		row = await self.db.execute(select(PlantType.id).where(PlantType.id == DEFAULT_PLANT_TYPE_ID))
		if row.scalar_one_or_none() is not None:
			return False
		self.db.add(PlantType(id=DEFAULT_PLANT_TYPE_ID, name=DEFAULT_PLANT_TYPE_NAME))
		await flush_checked(self.db)
		if self.db.get_bind().dialect.name == "postgresql":
			# explicit id bypassed the serial; move it past the seed row
			await self.db.execute(
				text("SELECT setval(pg_get_serial_sequence('plant_types', 'id'), (SELECT MAX(id) FROM plant_types))")
			)
		logger.info("default_plant_type_seeded")
		return True

	async def _resolve_one(self, plant_id: uuid.UUID) -> Plant | None:
		stmt = select(Plant).where(or_(Plant.id == plant_id, Plant.previous_id == plant_id))
		rows = await self.db.execute(stmt)
		plants = list(rows.scalars().all())
		for plant in plants:
			if plant.id == plant_id:
				return plant
		return plants[0] if plants else None

	async def _require_plant(self, plant_id: uuid.UUID) -> Plant:
		plant = await self._resolve_one(plant_id)
		if plant is None:
			raise NotFoundError(f"Plant {plant_id} not found")
		return plant

	@staticmethod
	def _to_plant_read(
		plant: Plant,
		plant_type: PlantType,
		*,
		moisture: SensorReading | None,
		light: SensorReading | None,
		valve: ActuatorState | None,
		light_strip: ActuatorState | None,
	) -> PlantRead:
		return PlantRead(
			id=plant.id,
			previous_id=plant.previous_id,
			greenhouse_id=plant.greenhouse_id,
			position=plant.position,
			type=PlantTypeRead.model_validate(plant_type),
			planted_at=plant.planted_at,
			moisture_last_reading=SensorReadingRead.model_validate(moisture) if moisture else None,
			light_last_reading=SensorReadingRead.model_validate(light) if light else None,
			valve_status=ActuatorStateRead.model_validate(valve) if valve else None,
			light_strip_status=ActuatorStateRead.model_validate(light_strip) if light_strip else None,
			override_moisture_goal=plant.override_moisture_goal,
			override_light_exposure_min_duration=plant.override_light_exposure_min_duration,
			removed=plant.removed,
			removed_at=plant.removed_at,
		)


def _is_position_conflict(exc: IntegrityError) -> bool:
	message = str(exc.orig)
	return _POSITION_INDEX in message or "plants.greenhouse_id, plants.position" in message
