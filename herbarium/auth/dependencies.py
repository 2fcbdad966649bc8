"""Authentication dependencies: Firebase users, device API keys, greenhouse access."""

from __future__ import annotations

import hashlib
import hmac
import re
import uuid
from dataclasses import dataclass

from fastapi import HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from herbarium.auth.firebase import AuthError, verify_id_token
from herbarium.config import get_settings
from herbarium.services.greenhouse_service import GreenhouseService

bearer_scheme = HTTPBearer(auto_error=False)

_GREENHOUSE_PATH = re.compile(r"/api/v1/greenhouses/([0-9a-fA-F\-]{36})(?:/|$)")


@dataclass(slots=True)
class AuthPrincipal:
	auth_type: str
	subject: str

	@property
	def is_device(self) -> bool:
		return self.auth_type == "api_key"


def _raise_auth(exc: AuthError) -> HTTPException:
	return HTTPException(
		status_code=exc.status_code,
		detail={"error": exc.code, "message": exc.detail},
	)


def api_key_digest(plaintext: str) -> str:
	return hashlib.sha256(plaintext.encode("utf-8")).hexdigest()


def extract_request_greenhouse_id(request: Request) -> uuid.UUID | None:
	token = request.path_params.get("greenhouse_id")
	if token is not None:
		try:
			return uuid.UUID(str(token))
		except ValueError:
			return None

	match = _GREENHOUSE_PATH.search(request.url.path)
	if match is None:
		return None
	try:
		return uuid.UUID(match.group(1))
	except ValueError:
		return None


def extract_identity_hint(request: Request) -> str:
	settings = get_settings()
	api_key_header = request.headers.get(settings.api_key_header_name)
	auth_header = request.headers.get("authorization", "")
	if api_key_header:
		return "api_key"
	if auth_header.lower().startswith("bearer "):
		return "firebase"
	return "anonymous"


async def _resolve_uid(credentials: HTTPAuthorizationCredentials | None) -> str:
	if credentials is None or credentials.scheme.lower() != "bearer":
		raise _raise_auth(AuthError(code="auth_required", detail="Bearer token is required"))
	try:
		return await verify_id_token(credentials.credentials)
	except AuthError as exc:
		raise _raise_auth(exc) from exc


def _api_key_matches(plaintext: str) -> bool:
	digest = api_key_digest(plaintext)
	matched = False
	for stored in get_settings().api_key_hashes:
		if hmac.compare_digest(digest, stored.strip().lower()):
			matched = True
	return matched


async def get_current_user(request: Request) -> str:
	"""Return the Firebase uid of the caller."""
	credentials = await bearer_scheme(request)
	return await _resolve_uid(credentials)


async def get_api_key_principal(request: Request) -> AuthPrincipal:
	settings = get_settings()
	plaintext = request.headers.get(settings.api_key_header_name)
	if plaintext is None or not plaintext.strip():
		raise _raise_auth(AuthError(code="api_key_required", detail="API key header is required"))
	if not _api_key_matches(plaintext.strip()):
		raise _raise_auth(AuthError(code="api_key_invalid", detail="Invalid API key"))
	return AuthPrincipal(auth_type="api_key", subject=api_key_digest(plaintext.strip())[:12])


async def get_auth_principal(request: Request) -> AuthPrincipal:
	settings = get_settings()
	api_key = request.headers.get(settings.api_key_header_name)
	if api_key and api_key.strip():
		return await get_api_key_principal(request)

	credentials = await bearer_scheme(request)
	uid = await _resolve_uid(credentials)
	return AuthPrincipal(auth_type="firebase", subject=uid)


async def ensure_greenhouse_access(
	db: AsyncSession,
	principal: AuthPrincipal,
	greenhouse_id: uuid.UUID,
) -> None:
	"""404 for an unknown greenhouse, 403 when a user does not own it.

	Devices holding a valid API key may read any greenhouse.
	"""
	service = GreenhouseService(db)
	if not await service.exists(greenhouse_id):
		raise HTTPException(
			status_code=status.HTTP_404_NOT_FOUND,
			detail={"error": "not_found", "message": f"Greenhouse {greenhouse_id} not found"},
		)
	if principal.is_device:
		return
	if not await service.is_owned_by(greenhouse_id, principal.subject):
		raise HTTPException(
			status_code=status.HTTP_403_FORBIDDEN,
			detail={"error": "forbidden", "message": "Greenhouse belongs to another user"},
		)


async def ensure_owner(db: AsyncSession, user_id: str, greenhouse_id: uuid.UUID) -> None:
	await ensure_greenhouse_access(db, AuthPrincipal(auth_type="firebase", subject=user_id), greenhouse_id)
