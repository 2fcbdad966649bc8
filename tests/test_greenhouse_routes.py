from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID, uuid4

import pytest
from httpx import AsyncClient

from herbarium.auth.dependencies import AuthPrincipal, get_auth_principal
from herbarium.errors import AlreadyExistsError, NotFoundError
from herbarium.main import app
from herbarium.schemas.data import SensorReadingRead
from herbarium.schemas.greenhouse import GreenhouseRead
from herbarium.services.greenhouse_service import GreenhouseService


def _view(greenhouse_id: UUID, name: str = "North bay") -> GreenhouseRead:
    now = datetime.now(UTC)
    return GreenhouseRead(
        id=greenhouse_id,
        name=name,
        plants=[],
        tank_level=SensorReadingRead(type="T", value=42.0, timestamp=now),
        last_seen=now,
        created_at=now,
    )


def _access(monkeypatch: pytest.MonkeyPatch, *, exists: bool = True, owned: bool = True) -> None:
    async def fake_exists(self: GreenhouseService, _greenhouse_id: object) -> bool:
        return exists

    async def fake_owned(self: GreenhouseService, _greenhouse_id: object, _user_id: object) -> bool:
        return owned

    monkeypatch.setattr(GreenhouseService, "exists", fake_exists)
    monkeypatch.setattr(GreenhouseService, "is_owned_by", fake_owned)


@pytest.mark.asyncio
async def test_create_greenhouse_returns_composed_view(
    client: AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    greenhouse_id = uuid4()
    calls: list[tuple[object, ...]] = []

    async def fake_add(self: GreenhouseService, user_id: str, gid: UUID, name: str) -> UUID:
        calls.append((user_id, gid, name))
        return gid

    async def fake_get(self: GreenhouseService, gid: UUID, include_removed_plants: bool = False) -> GreenhouseRead:
        return _view(gid, "Rooftop")

    monkeypatch.setattr(GreenhouseService, "add_greenhouse", fake_add)
    monkeypatch.setattr(GreenhouseService, "get_greenhouse", fake_get)

    response = await client.post("/api/v1/greenhouses", json={"id": str(greenhouse_id), "name": "Rooftop"})

    assert response.status_code == 201
    assert response.json()["name"] == "Rooftop"
    assert response.json()["tank_level"]["type"] == "T"
    assert calls == [("owner-uid-1", greenhouse_id, "Rooftop")]


@pytest.mark.asyncio
async def test_create_duplicate_greenhouse_is_conflict(
    client: AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    async def fake_add(self: GreenhouseService, *_args: object) -> UUID:
        raise AlreadyExistsError("Greenhouse already exists")

    monkeypatch.setattr(GreenhouseService, "add_greenhouse", fake_add)

    response = await client.post("/api/v1/greenhouses", json={"id": str(uuid4()), "name": "Dup"})

    assert response.status_code == 409
    assert response.json()["detail"]["error"] == "already_exists"


@pytest.mark.asyncio
async def test_list_greenhouses_passes_include_removed_flag(
    client: AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    seen: dict[str, object] = {}

    async def fake_list(self: GreenhouseService, user_id: str, include_removed_plants: bool = False) -> list[GreenhouseRead]:
        seen["user_id"] = user_id
        seen["include_removed_plants"] = include_removed_plants
        return [_view(uuid4())]

    monkeypatch.setattr(GreenhouseService, "list_by_user", fake_list)

    response = await client.get("/api/v1/greenhouses", params={"include_removed_plants": "true"})

    assert response.status_code == 200
    assert len(response.json()["items"]) == 1
    assert seen == {"user_id": "owner-uid-1", "include_removed_plants": True}


@pytest.mark.asyncio
async def test_get_greenhouse_owned_by_someone_else_is_forbidden(
    client: AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    _access(monkeypatch, owned=False)

    response = await client.get(f"/api/v1/greenhouses/{uuid4()}")

    assert response.status_code == 403
    assert response.json()["detail"]["error"] == "forbidden"


@pytest.mark.asyncio
async def test_get_unknown_greenhouse_is_not_found(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    _access(monkeypatch, exists=False)

    response = await client.get(f"/api/v1/greenhouses/{uuid4()}")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_device_key_reads_any_greenhouse(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    _access(monkeypatch, owned=False)
    greenhouse_id = uuid4()

    async def device_principal() -> AuthPrincipal:
        return AuthPrincipal(auth_type="api_key", subject="device")

    async def fake_get(self: GreenhouseService, gid: UUID, include_removed_plants: bool = False) -> GreenhouseRead:
        return _view(gid)

    app.dependency_overrides[get_auth_principal] = device_principal
    monkeypatch.setattr(GreenhouseService, "get_greenhouse", fake_get)

    response = await client.get(f"/api/v1/greenhouses/{greenhouse_id}")

    assert response.status_code == 200
    assert response.json()["id"] == str(greenhouse_id)


@pytest.mark.asyncio
async def test_rename_greenhouse(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    _access(monkeypatch)
    renamed: list[str] = []

    async def fake_update(self: GreenhouseService, _gid: UUID, name: str) -> None:
        renamed.append(name)

    async def fake_get(self: GreenhouseService, gid: UUID, include_removed_plants: bool = False) -> GreenhouseRead:
        return _view(gid, renamed[-1])

    monkeypatch.setattr(GreenhouseService, "update_details", fake_update)
    monkeypatch.setattr(GreenhouseService, "get_greenhouse", fake_get)

    response = await client.patch(f"/api/v1/greenhouses/{uuid4()}", json={"name": "South bay"})

    assert response.status_code == 200
    assert response.json()["name"] == "South bay"


@pytest.mark.asyncio
async def test_delete_greenhouse_returns_no_content(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    _access(monkeypatch)
    deleted: list[UUID] = []

    async def fake_delete(self: GreenhouseService, gid: UUID) -> None:
        deleted.append(gid)

    monkeypatch.setattr(GreenhouseService, "delete_greenhouse", fake_delete)
    greenhouse_id = uuid4()

    response = await client.delete(f"/api/v1/greenhouses/{greenhouse_id}")

    assert response.status_code == 204
    assert deleted == [greenhouse_id]


@pytest.mark.asyncio
async def test_delete_race_maps_not_found(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    _access(monkeypatch)

    async def fake_delete(self: GreenhouseService, gid: UUID) -> None:
        raise NotFoundError(f"Greenhouse {gid} not found")

    monkeypatch.setattr(GreenhouseService, "delete_greenhouse", fake_delete)

    response = await client.delete(f"/api/v1/greenhouses/{uuid4()}")

    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "not_found"
