from __future__ import annotations

from uuid import UUID, uuid4

import pytest
from httpx import AsyncClient

from herbarium.errors import NotFoundError, UnknownPlantError
from herbarium.schemas.data import DataPushReceipt
from herbarium.services.greenhouse_service import GreenhouseService

PUSH = {
    "sensors": [
        {"type": "T", "value": 48.5, "timestamp": "2026-03-01T08:00:00Z"},
        {"type": "M", "value": 33.0, "timestamp": "2026-03-01T08:00:00Z", "plant_id": str(uuid4())},
    ],
    "actuators": [
        {"type": "P", "status": True, "timestamp": "2026-03-01T08:00:00Z"},
    ],
}


@pytest.mark.asyncio
async def test_device_push_appends_both_kinds(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    greenhouse_id = uuid4()

    async def fake_record(self: GreenhouseService, gid: UUID, sensors: list, actuators: list) -> DataPushReceipt:
        return DataPushReceipt(greenhouse_id=gid, sensors_inserted=len(sensors), actuators_inserted=len(actuators))

    monkeypatch.setattr(GreenhouseService, "record_data", fake_record)

    response = await client.put(f"/api/v1/greenhouses/{greenhouse_id}/data", json=PUSH)

    assert response.status_code == 200
    assert response.json() == {
        "greenhouse_id": str(greenhouse_id),
        "sensors_inserted": 2,
        "actuators_inserted": 1,
    }


@pytest.mark.asyncio
async def test_device_push_with_unknown_type_code_is_unprocessable(client: AsyncClient) -> None:
    payload = {"sensors": [{"type": "X", "value": 1, "timestamp": "2026-03-01T08:00:00Z"}]}

    response = await client.put(f"/api/v1/greenhouses/{uuid4()}/data", json=payload)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_device_push_with_unknown_plant_is_bad_request(
    client: AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    async def fake_record(self: GreenhouseService, *_args: object) -> DataPushReceipt:
        raise UnknownPlantError("Unknown plant ids")

    monkeypatch.setattr(GreenhouseService, "record_data", fake_record)

    response = await client.put(f"/api/v1/greenhouses/{uuid4()}/data", json=PUSH)

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "unknown_plant"


@pytest.mark.asyncio
async def test_device_push_for_unknown_greenhouse_is_not_found(
    client: AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    async def fake_record(self: GreenhouseService, gid: UUID, *_args: object) -> DataPushReceipt:
        raise NotFoundError(f"Greenhouse {gid} not found")

    monkeypatch.setattr(GreenhouseService, "record_data", fake_record)

    response = await client.put(f"/api/v1/greenhouses/{uuid4()}/data", json=PUSH)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_owner_actuator_command_requires_ownership(
    client: AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    async def fake_exists(self: GreenhouseService, _gid: object) -> bool:
        return True

    async def fake_owned(self: GreenhouseService, _gid: object, _uid: object) -> bool:
        return False

    monkeypatch.setattr(GreenhouseService, "exists", fake_exists)
    monkeypatch.setattr(GreenhouseService, "is_owned_by", fake_owned)

    response = await client.post(
        f"/api/v1/greenhouses/{uuid4()}/actuators",
        json={"states": [{"type": "V", "status": True, "timestamp": "2026-03-01T08:00:00Z"}]},
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_owner_actuator_command_records_states(
    client: AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    recorded: list[tuple[int, int]] = []

    async def fake_exists(self: GreenhouseService, _gid: object) -> bool:
        return True

    async def fake_owned(self: GreenhouseService, _gid: object, _uid: object) -> bool:
        return True

    async def fake_record(self: GreenhouseService, gid: UUID, sensors: list, actuators: list) -> DataPushReceipt:
        recorded.append((len(sensors), len(actuators)))
        return DataPushReceipt(greenhouse_id=gid, actuators_inserted=len(actuators))

    monkeypatch.setattr(GreenhouseService, "exists", fake_exists)
    monkeypatch.setattr(GreenhouseService, "is_owned_by", fake_owned)
    monkeypatch.setattr(GreenhouseService, "record_data", fake_record)

    response = await client.post(
        f"/api/v1/greenhouses/{uuid4()}/actuators",
        json={"states": [{"type": "L", "status": False, "timestamp": "2026-03-01T08:00:00Z"}]},
    )

    assert response.status_code == 201
    assert response.json()["actuators_inserted"] == 1
    assert recorded == [(0, 1)]


@pytest.mark.asyncio
async def test_empty_actuator_command_rejected(client: AsyncClient) -> None:
    response = await client.post(f"/api/v1/greenhouses/{uuid4()}/actuators", json={"states": []})

    assert response.status_code == 422
