"""Gestion standardisée des erreurs API avec enveloppes d'erreur.

Ce module traduit les erreurs métier (`MarketplaceError`), les erreurs de validation FastAPI et
les exceptions HTTP dans une enveloppe unique `{code, message, trace_id, details}`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from myles.core.http_constants import (
    HTTP_INTERNAL_SERVER_ERROR,
    HTTP_UNAUTHORIZED,
    HTTP_UNPROCESSABLE_ENTITY,
)
from myles.domain.errors import MarketplaceError
from myles.domain.validation import fields_from_pydantic

log = logging.getLogger(__name__)


@dataclass
class ErrorEnvelope:
    """Standard error envelope for API responses."""

    code: str
    message: str
    trace_id: str | None = None
    details: dict[str, Any] | None = None


def create_error_response(
    status_code: int,
    code: str,
    message: str,
    trace_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Create a standardized error response."""
    envelope = ErrorEnvelope(code=code, message=message, trace_id=trace_id, details=details)
    return JSONResponse(
        status_code=status_code,
        content={
            "code": envelope.code,
            "message": envelope.message,
            "trace_id": envelope.trace_id,
            **({"details": envelope.details} if envelope.details else {}),
        },
    )


def extract_trace_id(request: Request) -> str | None:
    """Extract trace ID from request headers or from state set by the request-id middleware."""
    trace_id = request.headers.get("X-Trace-ID")
    if trace_id:
        return trace_id
    return getattr(request.state, "trace_id", None)


def handle_marketplace_error(request: Request, exc: MarketplaceError) -> JSONResponse:
    """Handle domain errors: stable code and status carried by the exception class."""
    trace_id = extract_trace_id(request)
    details = dict(exc.details or {})
    if exc.status_code == HTTP_UNAUTHORIZED:
        login_url = getattr(request.app.state, "login_url", None)
        if login_url:
            details["login_url"] = login_url

    log.warning(
        "Domain error",
        extra={
            "code": exc.code,
            "error_message": exc.message,
            "status_code": exc.status_code,
            "trace_id": trace_id,
        },
    )
    return create_error_response(
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
        trace_id=trace_id,
        details=details or None,
    )


def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle malformed request bodies/params with the same envelope as domain validation."""
    trace_id = extract_trace_id(request)
    fields = fields_from_pydantic(exc)
    log.info("Request validation failed", extra={"fields": sorted(fields), "trace_id": trace_id})
    return create_error_response(
        status_code=HTTP_UNPROCESSABLE_ENTITY,
        code="VALIDATION_ERROR",
        message="invalid fields: " + ", ".join(sorted(fields)),
        trace_id=trace_id,
        details={"fields": fields},
    )


_HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    500: "INTERNAL_ERROR",
    502: "BAD_GATEWAY",
    503: "SERVICE_UNAVAILABLE",
}


def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTPException with standard envelope."""
    trace_id = extract_trace_id(request)
    code = _HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    log.info(
        "HTTP exception occurred",
        extra={"code": code, "status_code": exc.status_code, "trace_id": trace_id},
    )
    return create_error_response(
        status_code=exc.status_code,
        code=code,
        message=str(exc.detail),
        trace_id=trace_id,
    )


def handle_generic_exception(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions with standard envelope."""
    trace_id = extract_trace_id(request)
    log.error(
        "Unexpected error occurred",
        extra={
            "code": "INTERNAL_ERROR",
            "trace_id": trace_id,
            "exception_type": type(exc).__name__,
            "exception_message": str(exc),
        },
        exc_info=True,
    )
    return create_error_response(
        status_code=HTTP_INTERNAL_SERVER_ERROR,
        code="INTERNAL_ERROR",
        message="An unexpected error occurred",
        trace_id=trace_id,
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MarketplaceError, handle_marketplace_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_generic_exception)
