"""Pydantic request/response schemas for greenhouses, plants and plant types."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from herbarium.schemas.data import ActuatorStateRead, SensorReadingRead


class PlantTypeRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: int
	name: str
	moisture_goal: float
	light_exposure_min_duration: float
	germination_time: int
	growing_time: int


class PlantTypeListRead(BaseModel):
	items: list[PlantTypeRead]


class PlantCreate(BaseModel):
	position: int = Field(ge=0)
	planted_at: datetime | None = None


class PlantCreated(BaseModel):
	id: uuid.UUID


class PlantUpdate(BaseModel):
	type_id: int = Field(ge=1)
	override_moisture_goal: float | None = Field(default=None, ge=0, le=100)
	override_light_exposure_min_duration: float | None = Field(default=None, ge=0, le=24)


class PlantRead(BaseModel):
	"""A plant with its latest readings and actuator states attached."""

	id: uuid.UUID
	previous_id: uuid.UUID | None = None
	greenhouse_id: uuid.UUID
	position: int
	type: PlantTypeRead
	planted_at: datetime
	moisture_last_reading: SensorReadingRead | None = None
	light_last_reading: SensorReadingRead | None = None
	valve_status: ActuatorStateRead | None = None
	light_strip_status: ActuatorStateRead | None = None
	override_moisture_goal: float | None = None
	override_light_exposure_min_duration: float | None = None
	removed: bool = False
	removed_at: datetime | None = None


class PlantListRead(BaseModel):
	items: list[PlantRead]


class GreenhouseCreate(BaseModel):
	id: uuid.UUID
	name: str = Field(min_length=1, max_length=256)


class GreenhouseUpdate(BaseModel):
	name: str = Field(min_length=1, max_length=256)


class GreenhouseRead(BaseModel):
	id: uuid.UUID
	name: str
	plants: list[PlantRead] = Field(default_factory=list)
	tank_level: SensorReadingRead | None = None
	pump_status: ActuatorStateRead | None = None
	last_seen: datetime
	created_at: datetime


class GreenhouseListRead(BaseModel):
	items: list[GreenhouseRead]
