"""Error taxonomy shared by every router and service.

Services raise these; the handlers registered in ``register_error_handlers``
turn them into ``{"detail": message}`` JSON responses.
"""
from __future__ import annotations
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)


class AppError(Exception):
	status_code: int = 500
	default_message: str = "Something went wrong"

	def __init__(self, message: str | None = None) -> None:
		self.message = message or self.default_message
		super().__init__(self.message)


class Unauthorized(AppError):
	status_code = 401
	default_message = "Unauthorized"


class Forbidden(AppError):
	status_code = 403
	default_message = "Forbidden"


class NotFound(AppError):
	status_code = 404
	default_message = "Not found"


class InvalidInput(AppError):
	status_code = 400
	default_message = "Invalid input"


class InsufficientPool(AppError):
	status_code = 422
	default_message = "Not enough notes to build a quiz"


class Conflict(AppError):
	status_code = 409
	default_message = "Conflict"


class UpstreamFailure(AppError):
	status_code = 502
	default_message = "Upstream service unavailable"


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
	if exc.status_code >= 500:
		# The cause stays in the logs; clients only see the generic message
		logger.error("%s %s failed: %r", request.method, request.url.path, exc.__cause__ or exc)
	headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
	return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=headers)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
	errors = exc.errors()
	message = InvalidInput.default_message
	if errors:
		first = errors[0]
		location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "path", "query"))
		if first.get("type") == "string_pattern_mismatch" and location.lower().endswith("id"):
			message = f"Invalid {location}"
		else:
			message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
	return JSONResponse(status_code=InvalidInput.status_code, content={"detail": message})


async def _integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
	logger.warning("integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
	return JSONResponse(status_code=Conflict.status_code, content={"detail": "Resource already exists"})


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
	logger.exception("unhandled error on %s %s", request.method, request.url.path)
	return JSONResponse(status_code=500, content={"detail": AppError.default_message})


def register_error_handlers(app: FastAPI) -> None:
	app.add_exception_handler(AppError, _app_error_handler)
	app.add_exception_handler(RequestValidationError, _validation_error_handler)
	app.add_exception_handler(IntegrityError, _integrity_error_handler)
	app.add_exception_handler(Exception, _unhandled_error_handler)
