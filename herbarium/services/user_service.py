"""User directory keyed by the identity provider's uid."""

from __future__ import annotations

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from herbarium.database import flush_checked
from herbarium.errors import AlreadyExistsError, NotFoundError
from herbarium.models import User

logger = structlog.get_logger("herbarium.users")

DEFAULT_LANGUAGE = "en"


class UserService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def exists(self, user_id: str) -> bool:
		row = await self.db.execute(select(User.id).where(User.id == user_id))
		return row.scalar_one_or_none() is not None

	async def get_user(self, user_id: str) -> User:
		row = await self.db.execute(select(User).where(User.id == user_id))
		user = row.scalar_one_or_none()
		if user is None:
			raise NotFoundError(f"User {user_id} not found")
		return user

	async def insert_user(
		self,
		user_id: str,
		display_name: str,
		email: str,
		language: str | None = None,
	) -> User:
		if await self.exists(user_id):
			raise AlreadyExistsError(f"User {user_id} already exists")
		user = User(
			id=user_id,
			display_name=display_name,
			email=email,
			language=language or DEFAULT_LANGUAGE,
		)
		self.db.add(user)
		await flush_checked(self.db)
		logger.info("user_registered", user_id=user_id)
		return user
