"""FastAPI routes and API modules for IPGuard.

Provides common response models, error handlers, and request dependencies.
"""

from typing import Any
from uuid import UUID

from fastapi import Header, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..errors import (
    AssetNotFoundError,
    EvidenceNotFoundError,
    InvalidRequestError,
    IPGuardError,
    JobConflictError,
    JobNotFoundError,
)
from ..logging import get_logger

logger = get_logger(__name__)


# =========================
# Response Models
# =========================


class ErrorDetail(BaseModel):
    """Detailed error information."""

    code: str
    message: str
    field: str | None = None
    details: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    """Standard error response."""

    success: bool = False
    error: str
    error_code: str
    details: list[ErrorDetail] | None = None


# =========================
# Exception Classes
# =========================


class APIError(HTTPException):
    """Base API error with structured response."""

    def __init__(
        self,
        status_code: int,
        error_code: str,
        message: str,
        details: list[ErrorDetail] | None = None,
    ):
        self.error_code = error_code
        self.message = message
        self.details = details
        super().__init__(status_code=status_code, detail=message)


class NotFoundError(APIError):
    """Resource not found error."""

    def __init__(self, resource: str, identifier: str | UUID):
        super().__init__(
            status_code=404,
            error_code="NOT_FOUND",
            message=f"{resource} not found: {identifier}",
        )


class ValidationError(APIError):
    """Request validation error."""

    def __init__(self, message: str, details: list[ErrorDetail] | None = None):
        super().__init__(
            status_code=422,
            error_code="VALIDATION_ERROR",
            message=message,
            details=details,
        )


class ConflictError(APIError):
    """Resource is not in the state the request requires."""

    def __init__(self, message: str):
        super().__init__(status_code=409, error_code="CONFLICT", message=message)


class AuthenticationError(APIError):
    """Authentication required error."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(
            status_code=401,
            error_code="AUTHENTICATION_REQUIRED",
            message=message,
        )


class UpstreamError(APIError):
    """A collaborator (browser, AI service, storage) failed."""

    def __init__(self, message: str):
        super().__init__(status_code=502, error_code="UPSTREAM_ERROR", message=message)


def to_api_error(exc: IPGuardError) -> APIError:
    """Map a domain error onto its HTTP form."""
    if isinstance(exc, JobNotFoundError):
        return NotFoundError("Monitoring job", exc.job_id)
    if isinstance(exc, EvidenceNotFoundError):
        return NotFoundError("Evidence", exc.evidence_id)
    if isinstance(exc, AssetNotFoundError):
        return NotFoundError("Protected asset", exc.asset_id)
    if isinstance(exc, JobConflictError):
        return ConflictError(str(exc))
    if isinstance(exc, InvalidRequestError):
        return ValidationError(str(exc))
    return UpstreamError(str(exc))


# =========================
# Dependencies
# =========================


async def get_actor_id(x_actor_id: str | None = Header(default=None)) -> str:
    """Acting user, as asserted by the upstream authentication gateway."""
    if not x_actor_id or not x_actor_id.strip():
        raise AuthenticationError("X-Actor-Id header required")
    return x_actor_id.strip()


# =========================
# Exception Handlers
# =========================


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handle APIError exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=exc.message,
            error_code=exc.error_code,
            details=exc.details,
        ).model_dump(),
        headers={"X-Error-Code": exc.error_code},
    )


async def domain_error_handler(request: Request, exc: IPGuardError) -> JSONResponse:
    """Handle IPGuard domain errors raised by services."""
    error = to_api_error(exc)
    if error.status_code >= 500:
        logger.warning(f"{request.method} {request.url.path} failed upstream: {exc}")
    return await api_error_handler(request, error)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle generic HTTPException."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=str(exc.detail),
            error_code="HTTP_ERROR",
        ).model_dump(),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="An unexpected error occurred",
            error_code="INTERNAL_ERROR",
        ).model_dump(),
    )


def register_exception_handlers(app):
    """Register exception handlers with the FastAPI app."""
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(IPGuardError, domain_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
