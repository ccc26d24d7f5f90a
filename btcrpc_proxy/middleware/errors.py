from __future__ import annotations

"""
Exception → RFC7807 "problem+json" mappers for FastAPI.

- Produces `application/problem+json` for:
    * ApiError subclasses (from btcrpc_proxy.errors)
    * Starlette/FastAPI HTTPException
    * RequestValidationError
    * Unhandled exceptions (500)
- Attaches request.state.request_id when the request-id middleware ran.
- Never leaks stack traces in responses; logs them instead.
"""

from typing import Any, Dict, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..errors import ApiError

PROBLEM_CT = "application/problem+json"

log = structlog.get_logger(__name__)

_TITLES = {
    400: "Bad Request",
    404: "Not Found",
    405: "Method Not Allowed",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
}


def _base_problem(
    request: Request,
    *,
    status: int,
    detail: Optional[str] = None,
    extras: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    prob: Dict[str, Any] = {
        "type": "about:blank",
        "title": _TITLES.get(status, "Error"),
        "status": status,
        "detail": detail or "",
        "instance": str(request.url.path),
        "request_id": getattr(request.state, "request_id", "") or "",
    }
    for k, v in (extras or {}).items():
        # extension members must not clobber base fields
        prob.setdefault(k, v)
    return prob


# --------------------------- Handlers ---------------------------


async def _handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
    body = {**_base_problem(request, status=exc.status_code), **exc.to_problem()}
    (log.error if exc.status_code >= 500 else log.warning)("api_error", **body)
    return JSONResponse(status_code=exc.status_code, content=body, media_type=PROBLEM_CT)


async def _handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    status = int(exc.status_code)
    body = _base_problem(request, status=status, detail=str(exc.detail) if exc.detail else "")
    (log.warning if 400 <= status < 500 else log.error)("http_exception", **body)
    return JSONResponse(status_code=status, content=body, media_type=PROBLEM_CT, headers=getattr(exc, "headers", None))


async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    body = _base_problem(
        request,
        status=422,
        detail="Request validation failed.",
        extras={"errors": exc.errors()},
    )
    log.warning("validation_error", path=body["instance"])
    return JSONResponse(status_code=422, content=body, media_type=PROBLEM_CT)


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    body = _base_problem(
        request,
        status=500,
        detail="An unexpected error occurred. Please retry or report the request_id.",
    )
    log.exception("unhandled_exception", **body)
    return JSONResponse(status_code=500, content=body, media_type=PROBLEM_CT)


# --------------------------- Installer ---------------------------


def install_error_handlers(app: FastAPI) -> None:
    """Register exception handlers on the given FastAPI app."""
    app.add_exception_handler(ApiError, _handle_api_error)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _handle_unexpected_error)


__all__ = ["install_error_handlers", "PROBLEM_CT"]
