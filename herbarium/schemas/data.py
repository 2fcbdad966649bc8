"""Pydantic schemas for sensor readings and actuator states."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from herbarium.models.enums import ActuatorTypeEnum, SensorTypeEnum


class SensorReadingIn(BaseModel):
	type: SensorTypeEnum
	value: float
	timestamp: datetime
	plant_id: uuid.UUID | None = None


class ActuatorStateIn(BaseModel):
	type: ActuatorTypeEnum
	status: bool
	timestamp: datetime
	plant_id: uuid.UUID | None = None


class SensorReadingRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	type: SensorTypeEnum
	value: float
	timestamp: datetime
	plant_id: uuid.UUID | None = None


class ActuatorStateRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	type: ActuatorTypeEnum
	status: bool
	timestamp: datetime
	plant_id: uuid.UUID | None = None


class DataPushRequest(BaseModel):
	"""Periodic upload from a greenhouse controller."""

	sensors: list[SensorReadingIn] = Field(default_factory=list)
	actuators: list[ActuatorStateIn] = Field(default_factory=list)


class ActuatorCommandRequest(BaseModel):
	states: list[ActuatorStateIn] = Field(min_length=1)


class DataPushReceipt(BaseModel):
	greenhouse_id: uuid.UUID
	sensors_inserted: int = 0
	actuators_inserted: int = 0
