"""Greenhouse CRUD routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from herbarium.auth.dependencies import (
	AuthPrincipal,
	ensure_greenhouse_access,
	ensure_owner,
	get_auth_principal,
	get_current_user,
)
from herbarium.database import get_db
from herbarium.errors import ConflictError, HerbariumError
from herbarium.schemas.greenhouse import (
	GreenhouseCreate,
	GreenhouseListRead,
	GreenhouseRead,
	GreenhouseUpdate,
)
from herbarium.services.greenhouse_service import GreenhouseService

router = APIRouter(prefix="/greenhouses", tags=["greenhouses"])


def _map_error(exc: Exception) -> HTTPException:
	detail = exc.as_detail() if isinstance(exc, HerbariumError) else str(exc)
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
	if isinstance(exc, ConflictError):
		return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)
	return HTTPException(
		status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
		detail="Unexpected greenhouse service failure",
	)


@router.get("", response_model=GreenhouseListRead)
async def list_greenhouses(
	include_removed_plants: bool = Query(default=False),
	db: AsyncSession = Depends(get_db),
	user_id: str = Depends(get_current_user),
) -> GreenhouseListRead:
	service = GreenhouseService(db)
	try:
		items = await service.list_by_user(user_id, include_removed_plants=include_removed_plants)
	except Exception as exc:
		raise _map_error(exc) from exc
	return GreenhouseListRead(items=items)


@router.post("", response_model=GreenhouseRead, status_code=status.HTTP_201_CREATED)
async def create_greenhouse(
	payload: GreenhouseCreate,
	db: AsyncSession = Depends(get_db),
	user_id: str = Depends(get_current_user),
) -> GreenhouseRead:
	service = GreenhouseService(db)
	try:
		greenhouse_id = await service.add_greenhouse(user_id, payload.id, payload.name)
		return await service.get_greenhouse(greenhouse_id)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/{greenhouse_id}", response_model=GreenhouseRead)
async def get_greenhouse(
	greenhouse_id: uuid.UUID,
	include_removed_plants: bool = Query(default=False),
	db: AsyncSession = Depends(get_db),
	principal: AuthPrincipal = Depends(get_auth_principal),
) -> GreenhouseRead:
	await ensure_greenhouse_access(db, principal, greenhouse_id)
	service = GreenhouseService(db)
	try:
		return await service.get_greenhouse(greenhouse_id, include_removed_plants=include_removed_plants)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.patch("/{greenhouse_id}", response_model=GreenhouseRead)
async def update_greenhouse(
	greenhouse_id: uuid.UUID,
	payload: GreenhouseUpdate,
	db: AsyncSession = Depends(get_db),
	user_id: str = Depends(get_current_user),
) -> GreenhouseRead:
	await ensure_owner(db, user_id, greenhouse_id)
	service = GreenhouseService(db)
	try:
		await service.update_details(greenhouse_id, payload.name)
		return await service.get_greenhouse(greenhouse_id)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.delete("/{greenhouse_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_greenhouse(
	greenhouse_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	user_id: str = Depends(get_current_user),
) -> Response:
	await ensure_owner(db, user_id, greenhouse_id)
	service = GreenhouseService(db)
	try:
		await service.delete_greenhouse(greenhouse_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)
