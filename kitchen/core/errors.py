from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class KitchenError(Exception):
    kind = "internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationFailed(KitchenError):
    kind = "validation"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(KitchenError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(KitchenError):
    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT


class InvalidStatusTransition(Conflict):
    kind = "invalid_transition"


class ReportComputationError(KitchenError):
    """Stored data could not be aggregated (dangling references, bad numbers)."""


_HTTP_KINDS = {
    status.HTTP_400_BAD_REQUEST: "validation",
    status.HTTP_401_UNAUTHORIZED: "unauthorized",
    status.HTTP_403_FORBIDDEN: "forbidden",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_409_CONFLICT: "conflict",
}


def error_body(kind: str, message: str, details: Any = None) -> dict:
    return {"error": {"kind": kind, "message": message, "details": details}}


def _validation_details(exc: RequestValidationError) -> list[dict]:
    details = []
    for err in exc.errors():
        details.append(
            {
                "loc": [str(part) for part in err.get("loc", ())],
                "msg": err.get("msg", ""),
                "type": err.get("type", ""),
            }
        )
    return details


async def _kitchen_error_handler(request: Request, exc: KitchenError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request failed kind=%s path=%s message=%s", exc.kind, request.url.path, exc.message)
        message = "Internal error"
    else:
        logger.info("request rejected kind=%s path=%s message=%s", exc.kind, request.url.path, exc.message)
        message = exc.message
    details = exc.details if exc.status_code < 500 else None
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.kind, message, details))


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = _validation_details(exc)
    logger.info("request validation failed path=%s errors=%s", request.url.path, len(details))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("validation", "Invalid request data", details),
    )


async def _http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    kind = _HTTP_KINDS.get(exc.status_code, "internal" if exc.status_code >= 500 else "error")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(kind, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error path=%s", request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("internal", "Internal error"),
    )


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(KitchenError, _kitchen_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(HTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
