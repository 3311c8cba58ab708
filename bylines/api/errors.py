"""Gestion standardisée des erreurs API avec enveloppes d'erreur.

Ce module traduit les erreurs du domaine bylines et les HTTPException en enveloppes
`{code, message, trace_id, details}` et les enregistre sur l'application FastAPI.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from bylines.core.http_constants import (
    HTTP_BAD_REQUEST,
    HTTP_CONFLICT,
    HTTP_INTERNAL_SERVER_ERROR,
    HTTP_NOT_FOUND,
)
from bylines.domain.errors import (
    BylineError,
    BylineNotFound,
    DuplicateSlug,
    InvalidGlobalId,
    InvalidSlug,
    SchemaBuildError,
    UnresolvedToken,
    UserAlreadyLinked,
    UserNotFound,
)

log = structlog.get_logger(__name__)

DOMAIN_STATUS: dict[type[BylineError], int] = {
    DuplicateSlug: HTTP_CONFLICT,
    UserAlreadyLinked: HTTP_CONFLICT,
    InvalidSlug: HTTP_BAD_REQUEST,
    UnresolvedToken: HTTP_BAD_REQUEST,
    InvalidGlobalId: HTTP_BAD_REQUEST,
    BylineNotFound: HTTP_NOT_FOUND,
    UserNotFound: HTTP_NOT_FOUND,
    SchemaBuildError: HTTP_INTERNAL_SERVER_ERROR,
}

HTTP_CODES = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    500: "INTERNAL_ERROR",
}


@dataclass
class ErrorEnvelope:
    """Standard error envelope for API responses."""

    code: str
    message: str
    trace_id: str | None = None
    details: dict[str, Any] | None = None

    def to_response(self, status_code: int) -> JSONResponse:
        return JSONResponse(
            status_code=status_code,
            content={
                "code": self.code,
                "message": self.message,
                "trace_id": self.trace_id,
                **({"details": self.details} if self.details else {}),
            },
        )


def extract_trace_id(request: Request) -> str | None:
    """Trace id depuis l'en-tête X-Trace-ID, sinon l'id de requête posé par le middleware."""
    trace_id = request.headers.get("X-Trace-ID")
    if trace_id:
        return trace_id
    return getattr(request.state, "request_id", None)


def status_for(exc: BylineError) -> int:
    for cls in type(exc).__mro__:
        if cls in DOMAIN_STATUS:
            return DOMAIN_STATUS[cls]
    return HTTP_BAD_REQUEST


def handle_domain_error(request: Request, exc: BylineError) -> JSONResponse:
    """Handle domain errors with standard envelope."""
    status_code = status_for(exc)
    trace_id = extract_trace_id(request)
    log.warning(
        "domain_error",
        code=exc.code,
        error_message=exc.message,
        status_code=status_code,
        trace_id=trace_id,
    )
    envelope = ErrorEnvelope(exc.code, exc.message, trace_id, exc.details)
    return envelope.to_response(status_code)


def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTPException (routes and unmatched paths) with standard envelope."""
    code = HTTP_CODES.get(exc.status_code, "HTTP_ERROR")
    envelope = ErrorEnvelope(code, str(exc.detail), extract_trace_id(request))
    return envelope.to_response(exc.status_code)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BylineError, handle_domain_error)
    app.add_exception_handler(HTTPException, handle_http_exception)
