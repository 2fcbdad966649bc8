"""Redis-backed rate limiting middleware."""

from __future__ import annotations

from datetime import UTC, datetime

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from herbarium.auth.dependencies import extract_identity_hint, extract_request_greenhouse_id
from herbarium.config import get_settings

logger = structlog.get_logger("herbarium.rate_limit")


class RateLimitMiddleware(BaseHTTPMiddleware):
	"""Per-greenhouse quota limiter backed by Redis atomic counters."""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		settings = get_settings()
		if not settings.rate_limit_enabled or self._is_bypass_path(request.url.path):
			return await call_next(request)

		greenhouse_id = extract_request_greenhouse_id(request)
		if greenhouse_id is None:
			return await call_next(request)

		redis_client = getattr(request.app.state, "redis", None)
		if redis_client is None:
			return await call_next(request)

		identity = extract_identity_hint(request)
		quota = (
			settings.rate_limit_api_key_per_minute
			if identity == "api_key"
			else settings.rate_limit_user_per_minute
		)

		minute_bucket = datetime.now(UTC).strftime("%Y%m%d%H%M")
		key = f"ratelimit:greenhouse:{greenhouse_id}:{identity}:{minute_bucket}"
		current = await redis_client.incr(key)
		if current == 1:
			await redis_client.expire(key, 65)

		if current > quota:
			logger.warning(
				"rate_limited",
				greenhouse_id=str(greenhouse_id),
				identity=identity,
				quota=quota,
			)
			return JSONResponse(
				status_code=429,
				content={
					"detail": {
						"error": "rate_limited",
						"message": "Greenhouse quota exceeded",
						"greenhouse_id": str(greenhouse_id),
						"quota": quota,
					}
				},
			)

		return await call_next(request)

	@staticmethod
	def _is_bypass_path(path: str) -> bool:
		return path.startswith("/docs") or path.startswith("/redoc") or path.startswith("/openapi") or path.startswith("/health")
