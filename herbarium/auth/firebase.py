"""Firebase ID token verification."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import firebase_admin
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials
from starlette.concurrency import run_in_threadpool

from herbarium.config import get_settings

_APP_NAME = "herbarium"


@dataclass(slots=True)
class AuthError(Exception):
	"""Structured authentication error for consistent mapping at the edge."""

	code: str
	detail: str
	status_code: int = 401


def get_firebase_app() -> firebase_admin.App:
	"""Return the process-wide Firebase app, initializing it on first use."""
	try:
		return firebase_admin.get_app(_APP_NAME)
	except ValueError:
		pass

	settings = get_settings()
	credential = None
	if settings.firebase_credentials_path:
		credential = credentials.Certificate(settings.firebase_credentials_path)
	options: dict[str, Any] = {}
	if settings.firebase_project_id:
		options["projectId"] = settings.firebase_project_id
	return firebase_admin.initialize_app(credential, options, name=_APP_NAME)


def _verify(token: str) -> dict[str, Any]:
	return firebase_auth.verify_id_token(token, app=get_firebase_app())


async def verify_id_token(token: str) -> str:
	"""Verify ``token`` and return the uid it was issued for.

	The admin SDK fetches signing certificates over blocking HTTP, so the
	check runs in the threadpool.
	"""
	try:
		claims = await run_in_threadpool(_verify, token)
	except firebase_auth.ExpiredIdTokenError as exc:
		raise AuthError(code="token_expired", detail="Authentication token has expired") from exc
	except firebase_auth.CertificateFetchError as exc:
		raise AuthError(
			code="auth_unavailable",
			detail="Token signing keys could not be fetched",
			status_code=503,
		) from exc
	except (firebase_auth.InvalidIdTokenError, ValueError) as exc:
		raise AuthError(code="token_invalid", detail="Invalid authentication token") from exc

	uid = claims.get("uid") or claims.get("sub")
	if not isinstance(uid, str) or not uid:
		raise AuthError(code="token_invalid", detail="Token subject is missing")
	return uid
