# app/core/errors.py
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

log = logging.getLogger("app.errors")


# -----------------------------
# Collaboration errors
# -----------------------------
class CollaborationError(Exception):
    """Base for every terminal, non-retriable outcome of a collaboration call."""

    status_code = 400
    typ = "collaboration_error"

    def __init__(self, detail: str = "", *, details: Optional[Any] = None):
        super().__init__(detail or self.__class__.__name__)
        self.detail = detail or self.__class__.__name__
        self.details = details


class ForbiddenError(CollaborationError):
    status_code = 403
    typ = "forbidden"


class NotFoundError(CollaborationError):
    status_code = 404
    typ = "not_found"


class AlreadyCollaboratorError(CollaborationError):
    status_code = 409
    typ = "already_collaborator"


class InvitationPendingError(CollaborationError):
    status_code = 409
    typ = "invitation_pending"


class DuplicateCollaborationError(CollaborationError):
    """Raised by the store when a unique index rejects an insert."""

    status_code = 409
    typ = "duplicate_collaboration"


class ValidationError(CollaborationError):
    status_code = 422
    typ = "validation_error"




# -----------------------------
# Envelope
# -----------------------------
def request_trace_id(request: Request) -> str:
    """
    trace_id for this request: the one already on request.state, else the
    client's X-Request-ID, else a fresh one (stored on request.state).
    """
    trace_id = getattr(request.state, "trace_id", None) or request.headers.get("x-request-id")
    if not trace_id:
        trace_id = uuid.uuid4().hex
    request.state.trace_id = trace_id
    return trace_id


def error_body(
    *, typ: str, message: str, status: int, trace_id: str, details: Optional[Any] = None
) -> Dict[str, Any]:
    error: Dict[str, Any] = {"type": typ, "message": message, "status": status, "trace_id": trace_id}
    if details is not None:
        error["details"] = details
    return {"ok": False, "error": error}


def _respond(
    request: Request,
    *,
    status: int,
    typ: str,
    message: str,
    details: Optional[Any] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    trace_id = request_trace_id(request)
    level = logging.ERROR if status >= 500 else logging.WARNING
    log.log(
        level,
        "%s %s -> %s %s | trace_id=%s | %s",
        request.method,
        request.url.path,
        status,
        typ,
        trace_id,
        message,
    )
    return JSONResponse(
        status_code=status,
        headers={**(headers or {}), "X-Request-ID": trace_id},
        content=error_body(typ=typ, message=message, status=status, trace_id=trace_id, details=details),
    )


# -----------------------------
# Install / register handlers
# -----------------------------
def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(CollaborationError)
    async def collaboration_exc_handler(request: Request, exc: CollaborationError):
        return _respond(
            request,
            status=exc.status_code,
            typ=exc.typ,
            message=exc.detail,
            details=exc.details,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException):
        # detail may be a dict; keep it under details and send a plain message
        return _respond(
            request,
            status=int(exc.status_code),
            typ="http_error",
            message=exc.detail if isinstance(exc.detail, str) else "HTTP error",
            details=exc.detail if isinstance(exc.detail, dict) else None,
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):
        return _respond(
            request,
            status=422,
            typ="validation_error",
            message="Validation failed.",
            details=[{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()],
        )

    @app.exception_handler(Exception)
    async def unhandled_exc_handler(request: Request, exc: Exception):
        log.error("unhandled %s on %s %s", type(exc).__name__, request.method, request.url.path, exc_info=exc)
        return _respond(request, status=500, typ="internal_error", message="Internal server error.")
