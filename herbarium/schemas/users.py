"""Pydantic schemas for user registration and profile reads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class UserCreate(BaseModel):
	display_name: str = Field(min_length=1, max_length=256)
	email: str = Field(min_length=3, max_length=512)
	language: str | None = Field(default=None, pattern=r"^[a-z]{2}$")


class UserRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: str
	display_name: str
	email: str
	language: str
	joined_on: datetime
