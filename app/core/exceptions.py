"""
Domain Exceptions and Handlers
Every error carries its HTTP status and a stable error name; handlers render the
standard {success, error, message} envelope.
"""
import logging
import traceback
from typing import Any, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.config import settings

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for all domain errors."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error = "AppError"

    def __init__(self, message: str = "", errors: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message or self.__class__.__doc__ or self.error
        self.errors = errors or []

    def to_dict(self) -> dict:
        body = {"success": False, "error": self.error, "message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


# ==================== 400 / 404 ====================

class ValidationError(AppError):
    """Input failed validation."""

    status_code = status.HTTP_400_BAD_REQUEST
    error = "ValidationError"


class InvalidFrequency(ValidationError):
    error = "InvalidFrequency"


class NotFoundError(AppError):
    """Resource not found."""

    status_code = status.HTTP_404_NOT_FOUND
    error = "NotFound"


# ==================== 409 ====================

class ConflictError(AppError):
    """Duplicate entry detected."""

    status_code = status.HTTP_409_CONFLICT
    error = "Conflict"


class UnitAlreadyOccupied(ConflictError):
    """Unit is already occupied."""

    error = "UnitAlreadyOccupied"


class ConcurrentUpdateError(ConflictError):
    """The record was modified by another request, please retry."""

    error = "ConcurrentUpdate"


class DuplicateRecordError(ConflictError):
    """Duplicate tenant identity (phone, email or ID number)."""

    status_code = status.HTTP_400_BAD_REQUEST
    error = "DuplicateRecord"


# ==================== State machine ====================

class StateTransitionError(AppError):
    """Operation not allowed in the current state."""

    status_code = status.HTTP_400_BAD_REQUEST
    error = "StateTransitionError"


class AlreadyPaid(StateTransitionError):
    """Commission already marked as paid."""

    error = "AlreadyPaid"


class CannotCancelPaid(StateTransitionError):
    """Cannot delete paid commissions."""

    error = "CannotCancelPaid"


class PaymentAlreadyCancelled(StateTransitionError):
    """Payment already cancelled."""

    error = "PaymentAlreadyCancelled"


class PlanNotActive(StateTransitionError):
    """Payment plan is not active."""

    error = "PlanNotActive"


# ==================== 500 ====================

class PersistenceError(AppError):
    """Database operation failed."""

    error = "PersistenceError"


# ==================== Handlers ====================

def _field_name(err: dict) -> str:
    loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
    return ".".join(loc) or "request"


def setup_exception_handlers(app: FastAPI) -> None:
    """Register the envelope-producing handlers on the app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"[{exc.error}] {request.method} {request.url.path}: {exc.message}")
            body = exc.to_dict()
            if not settings.DEBUG:
                body["message"] = "Internal server error"
            return JSONResponse(status_code=exc.status_code, content=body)

        logger.warning(f"[{exc.error}] {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle request schema errors with the offending field names"""
        errors: List[Any] = [f"{_field_name(err)}: {err.get('msg')}" for err in exc.errors()]
        fields = sorted({_field_name(err) for err in exc.errors()})
        logger.warning(f"Validation error on {request.url.path}: {errors}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "success": False,
                "error": ValidationError.error,
                "message": f"Invalid or missing fields: {', '.join(fields)}",
                "errors": errors,
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle all unhandled exceptions"""
        logger.error(f"Unhandled exception: {exc}\n{traceback.format_exc()}")

        # Don't expose internal errors in production
        error_message = str(exc) if settings.DEBUG else "Internal server error"

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "error": "InternalError",
                "message": error_message,
            },
        )
