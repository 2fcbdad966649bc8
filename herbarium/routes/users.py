"""User registration routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from herbarium.auth.dependencies import get_current_user
from herbarium.database import get_db
from herbarium.errors import ConflictError, HerbariumError
from herbarium.schemas.users import UserCreate, UserRead
from herbarium.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


def _map_error(exc: Exception) -> HTTPException:
	detail = exc.as_detail() if isinstance(exc, HerbariumError) else str(exc)
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
	if isinstance(exc, ConflictError):
		return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="user service failure")


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def register_user(
	payload: UserCreate,
	db: AsyncSession = Depends(get_db),
	user_id: str = Depends(get_current_user),
) -> UserRead:
	service = UserService(db)
	try:
		user = await service.insert_user(user_id, payload.display_name, payload.email, payload.language)
	except Exception as exc:
		raise _map_error(exc) from exc
	return UserRead.model_validate(user)


@router.get("/me", response_model=UserRead)
async def get_me(
	db: AsyncSession = Depends(get_db),
	user_id: str = Depends(get_current_user),
) -> UserRead:
	service = UserService(db)
	try:
		user = await service.get_user(user_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return UserRead.model_validate(user)
