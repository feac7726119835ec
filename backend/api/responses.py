"""
api/responses.py
----------------
Response envelope shared by every endpoint.

  success: {"success": true,  "data": {...}, "meta": {"timestamp": ..., ...}}
  error:   {"success": false, "error": {"code", "message", "details"?},
            "meta": {"timestamp": ...}}

Exception handlers registered in api/server.py turn ValidationError,
HTTPException, RequestValidationError and unhandled errors into the error
shape.
"""
from __future__ import annotations

import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

import config
from modules.validation import ValidationError

logger = logging.getLogger(__name__)

VALIDATION_ERROR = "VALIDATION_ERROR"
INTERNAL_ERROR = "INTERNAL_ERROR"

_STATUS_CODES: dict[int, str] = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    429: "RATE_LIMITED",
    502: "BAD_GATEWAY",
}


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def success(data: Any, **meta: Any) -> dict:
    return {"success": True, "data": data, "meta": {"timestamp": _timestamp(), **meta}}


def error_body(code: str, message: str, details: Optional[Any] = None) -> dict:
    err: dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        err["details"] = details
    return {"success": False, "error": err, "meta": {"timestamp": _timestamp()}}


def error_response(status_code: int, code: str, message: str, details: Optional[Any] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=error_body(code, message, details))


# ── Exception handlers ────────────────────────────────────────────────────────

async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    logger.info("[api] %s %s rejected: %s", request.method, request.url.path, exc.errors)
    return error_response(400, VALIDATION_ERROR, exc.message, {"errors": exc.errors, **exc.extra})


async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        errors.append(f"{location}: {err.get('msg', 'invalid value')}" if location else err.get("msg", ""))
    return error_response(400, VALIDATION_ERROR, "Validation failed", {"errors": errors})


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = _STATUS_CODES.get(exc.status_code, "HTTP_ERROR")
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return error_response(exc.status_code, code, message)


async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("[api] unhandled error on %s %s", request.method, request.url.path)
    details = None
    if config.APP_ENV == "development":
        details = {"exception": repr(exc), "stack": traceback.format_exc()}
    return error_response(500, INTERNAL_ERROR, "Internal server error", details)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, _validation_error)
    app.add_exception_handler(RequestValidationError, _request_validation_error)
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(Exception, _unhandled_error)
