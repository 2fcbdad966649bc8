"""Sensor/actuator upload routes for devices and owners."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from herbarium.auth.dependencies import AuthPrincipal, ensure_owner, get_api_key_principal, get_current_user
from herbarium.database import get_db
from herbarium.errors import HerbariumError
from herbarium.schemas.data import ActuatorCommandRequest, DataPushReceipt, DataPushRequest
from herbarium.services.greenhouse_service import GreenhouseService

router = APIRouter(prefix="/greenhouses", tags=["data"])


def _map_error(exc: Exception) -> HTTPException:
	detail = exc.as_detail() if isinstance(exc, HerbariumError) else str(exc)
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="data upload failure")


@router.put("/{greenhouse_id}/data", response_model=DataPushReceipt)
async def push_data(
	greenhouse_id: uuid.UUID,
	payload: DataPushRequest,
	db: AsyncSession = Depends(get_db),
	_principal: AuthPrincipal = Depends(get_api_key_principal),
) -> DataPushReceipt:
	service = GreenhouseService(db)
	try:
		return await service.record_data(greenhouse_id, payload.sensors, payload.actuators)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.post("/{greenhouse_id}/actuators", response_model=DataPushReceipt, status_code=status.HTTP_201_CREATED)
async def command_actuators(
	greenhouse_id: uuid.UUID,
	payload: ActuatorCommandRequest,
	db: AsyncSession = Depends(get_db),
	user_id: str = Depends(get_current_user),
) -> DataPushReceipt:
	await ensure_owner(db, user_id, greenhouse_id)
	service = GreenhouseService(db)
	try:
		return await service.record_data(greenhouse_id, [], payload.states)
	except Exception as exc:
		raise _map_error(exc) from exc
