"""Plant and plant type routes."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

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
	PlantCreate,
	PlantCreated,
	PlantListRead,
	PlantRead,
	PlantTypeListRead,
	PlantTypeRead,
	PlantUpdate,
)
from herbarium.services.plant_service import PlantService

router = APIRouter(tags=["plants"])


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
		detail="Unexpected plant service failure",
	)


@router.get("/greenhouses/{greenhouse_id}/plants", response_model=PlantListRead)
async def list_plants(
	greenhouse_id: uuid.UUID,
	include_removed: bool = Query(default=False),
	db: AsyncSession = Depends(get_db),
	principal: AuthPrincipal = Depends(get_auth_principal),
) -> PlantListRead:
	await ensure_greenhouse_access(db, principal, greenhouse_id)
	service = PlantService(db)
	try:
		items = await service.list_by_greenhouse(greenhouse_id, include_removed=include_removed)
	except Exception as exc:
		raise _map_error(exc) from exc
	return PlantListRead(items=items)


@router.post(
	"/greenhouses/{greenhouse_id}/plants",
	response_model=PlantCreated,
	status_code=status.HTTP_201_CREATED,
)
async def add_plant(
	greenhouse_id: uuid.UUID,
	payload: PlantCreate,
	db: AsyncSession = Depends(get_db),
	user_id: str = Depends(get_current_user),
) -> PlantCreated:
	await ensure_owner(db, user_id, greenhouse_id)
	service = PlantService(db)
	try:
		plant_id = await service.add_plant(
			greenhouse_id,
			payload.position,
			payload.planted_at or datetime.now(UTC),
		)
	except Exception as exc:
		raise _map_error(exc) from exc
	return PlantCreated(id=plant_id)


@router.put("/plants/{plant_id}", response_model=PlantRead)
async def update_plant(
	plant_id: uuid.UUID,
	payload: PlantUpdate,
	db: AsyncSession = Depends(get_db),
	user_id: str = Depends(get_current_user),
) -> PlantRead:
	service = PlantService(db)
	try:
		greenhouse_id = await service.get_greenhouse_id_for_plant(plant_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	await ensure_owner(db, user_id, greenhouse_id)
	try:
		await service.update_plant(
			plant_id,
			payload.type_id,
			payload.override_moisture_goal,
			payload.override_light_exposure_min_duration,
		)
		return await service.get_plant(plant_id)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.delete("/plants/{plant_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_plant(
	plant_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	user_id: str = Depends(get_current_user),
) -> Response:
	service = PlantService(db)
	try:
		greenhouse_id = await service.get_greenhouse_id_for_plant(plant_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	await ensure_owner(db, user_id, greenhouse_id)
	try:
		await service.remove_plant(plant_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/plant-types", response_model=PlantTypeListRead)
async def list_plant_types(
	db: AsyncSession = Depends(get_db),
	_principal: AuthPrincipal = Depends(get_auth_principal),
) -> PlantTypeListRead:
	service = PlantService(db)
	try:
		plant_types = await service.list_plant_types()
	except Exception as exc:
		raise _map_error(exc) from exc
	return PlantTypeListRead(items=[PlantTypeRead.model_validate(item) for item in plant_types])
