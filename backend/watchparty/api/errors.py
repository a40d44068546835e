"""Global error handlers ensuring request_id is included in JSON responses."""

from __future__ import annotations

import asyncio
import logging

import asyncpg
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.exceptions import HTTPException as StarletteHTTPException

from watchparty.domain.errors import WatchPartyError
from watchparty.obs.logging import current_request_id

LOGGER = logging.getLogger(__name__)

_UNAVAILABLE = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, RedisError, asyncio.TimeoutError)


class ApiError(HTTPException):
	"""HTTPException carrying a human readable message next to the error code."""

	def __init__(self, status_code: int, detail: str, message: str | None = None) -> None:
		super().__init__(status_code=status_code, detail=detail)
		self.message = message or detail


def as_http_error(exc: WatchPartyError) -> ApiError:
	return ApiError(status_code=exc.status_code, detail=exc.code, message=exc.detail)


def get_request_id(request: Request) -> str | None:
	return getattr(request.state, "request_id", None) or current_request_id()


def _payload(request: Request, detail, message) -> dict:
	return {"detail": detail, "message": message, "request_id": get_request_id(request)}


def install_error_handlers(app: FastAPI) -> None:
	@app.exception_handler(StarletteHTTPException)
	async def http_exc_handler(request: Request, exc: StarletteHTTPException):  # type: ignore[override]
		message = getattr(exc, "message", None) or exc.detail
		return JSONResponse(
			status_code=exc.status_code,
			content=_payload(request, exc.detail, message),
			headers=getattr(exc, "headers", None),
		)

	@app.exception_handler(WatchPartyError)
	async def domain_exc_handler(request: Request, exc: WatchPartyError):  # type: ignore[override]
		return JSONResponse(status_code=exc.status_code, content=_payload(request, exc.code, exc.detail))

	@app.exception_handler(RequestValidationError)
	async def validation_exc_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
		payload = _payload(request, "validation_error", "Request validation failed")
		payload["errors"] = jsonable_errors(exc)
		return JSONResponse(status_code=422, content=payload)

	@app.exception_handler(Exception)
	async def unhandled_exc_handler(request: Request, exc: Exception):  # type: ignore[override]
		if isinstance(exc, _UNAVAILABLE):
			LOGGER.error("dependency_unavailable", extra={"error": type(exc).__name__}, exc_info=exc)
			return JSONResponse(
				status_code=503,
				content=_payload(request, "service_unavailable", "Service temporarily unavailable"),
			)
		LOGGER.exception("unhandled_error", exc_info=exc)
		return JSONResponse(status_code=500, content=_payload(request, "internal_error", "Internal server error"))


def jsonable_errors(exc: RequestValidationError) -> list:
	errors = []
	for error in exc.errors():
		errors.append({"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")})
	return errors
