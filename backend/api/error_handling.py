"""
Exception handlers.

Every error leaves the API as ``{"success": false, "error", "code", "details"?}``
with the status taken from the error's kind.
"""

import logging
from collections import defaultdict
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shared.exceptions import ErrorKind, FamilyHubError
from modules.audit.models import AuditCategory, AuditSeverity
from .dependencies import get_audit_logger, get_rate_limiter
from .middleware.context import get_security_context

logger = logging.getLogger(__name__)


def _error_body(error: str, code: str, details: Optional[dict[str, Any]] = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "error": error, "code": code}
    if details:
        body["details"] = details
    return body


def validation_errors_by_field(exc: RequestValidationError) -> dict[str, list[str]]:
    """Group pydantic error messages by dotted field path, without the ``body`` prefix."""
    errors: dict[str, list[str]] = defaultdict(list)
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        errors[".".join(loc) or "body"].append(error.get("msg", "Invalid value"))
    return dict(errors)


async def family_hub_error_handler(request: Request, exc: FamilyHubError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.code} on {request.method} {request.url.path}")

    headers = dict(getattr(exc, "headers", None) or {})
    if exc.kind == ErrorKind.AUTHENTICATION:
        headers.setdefault("WWW-Authenticate", "Bearer")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers or None)


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed bodies count as failed attempts against the endpoint's rate limit."""
    context = await get_security_context(request)
    fields = validation_errors_by_field(exc)

    endpoint = getattr(request.state, "rate_limit_endpoint", None)
    if endpoint:
        await get_rate_limiter().record_attempt(
            endpoint, context.ip_address, context.user_agent, False
        )
    await get_audit_logger().log(
        "request_validation_failed",
        AuditCategory.SECURITY,
        f"Validation failed on {request.url.path}",
        context=context,
        event_data={"path": request.url.path, "fields": sorted(fields)},
        severity=AuditSeverity.LOW,
        success=False,
    )
    return JSONResponse(
        status_code=400,
        content=_error_body("Validation failed", "VALIDATION_ERROR", {"errors": fields}),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail), "HTTP_ERROR"),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    context = await get_security_context(request)
    try:
        audit = get_audit_logger()
    except Exception:
        # The failure may be in building the services themselves
        logger.exception("Audit logger unavailable while handling an unhandled error")
    else:
        await audit.log(
            "system_error",
            AuditCategory.SYSTEM,
            f"Unhandled error on {request.url.path}",
            context=context,
            event_data={"path": request.url.path, "error_type": type(exc).__name__},
            severity=AuditSeverity.HIGH,
            success=False,
        )
    return JSONResponse(
        status_code=500,
        content=_error_body("An unexpected error occurred", "INTERNAL_SERVER_ERROR"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FamilyHubError, family_hub_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)
