"""structlog setup and per-request access logging with request ids."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from herbarium.auth.dependencies import extract_request_greenhouse_id
from herbarium.config import LogFormat, get_settings

REQUEST_ID_HEADER = "x-request-id"

# replaced by http_request events below
_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine.Engine")

_configured = False


def configure_structured_logging() -> None:
	"""Configure stdlib + structlog once per process."""
	global _configured
	if _configured:
		return

	settings = get_settings()
	log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

	processors: list[Any] = [
		structlog.contextvars.merge_contextvars,
		structlog.processors.add_log_level,
		structlog.processors.TimeStamper(fmt="iso", utc=True),
		structlog.processors.format_exc_info,
	]
	if settings.log_format == LogFormat.json:
		processors.append(structlog.processors.JSONRenderer())
		logging.basicConfig(level=log_level, format="%(message)s")
	else:
		processors.append(structlog.dev.ConsoleRenderer())
		logging.basicConfig(level=log_level)

	for name in _QUIET_LOGGERS:
		logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

	structlog.configure(
		processors=processors,
		wrapper_class=structlog.make_filtering_bound_logger(log_level),
		logger_factory=structlog.PrintLoggerFactory(),
		cache_logger_on_first_use=True,
	)
	_configured = True


class RequestLoggingMiddleware(BaseHTTPMiddleware):
	"""Bind a request id (and greenhouse id, when routed to one) for every log line."""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
		request.state.request_id = request_id

		structlog.contextvars.clear_contextvars()
		context: dict[str, Any] = {"request_id": request_id}
		greenhouse_id = extract_request_greenhouse_id(request)
		if greenhouse_id is not None:
			context["greenhouse_id"] = str(greenhouse_id)
		structlog.contextvars.bind_contextvars(**context)

		logger = structlog.get_logger("herbarium.request")
		start = time.perf_counter()
		try:
			response = await call_next(request)
		except Exception:
			logger.exception(
				"http_request_failed",
				method=request.method,
				path=request.url.path,
				duration_ms=_elapsed_ms(start),
			)
			raise

		response.headers[REQUEST_ID_HEADER] = request_id
		log = logger.debug if request.url.path.startswith("/health") else logger.info
		log(
			"http_request",
			method=request.method,
			path=request.url.path,
			status_code=response.status_code,
			duration_ms=_elapsed_ms(start),
		)
		return response


def _elapsed_ms(start: float) -> float:
	return round((time.perf_counter() - start) * 1000.0, 2)
