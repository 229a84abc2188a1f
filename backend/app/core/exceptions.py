"""
Custom exceptions and error handlers for consistent error responses.

Every domain failure carries a stable error code so clients can branch on
the kind of error rather than on the message text.
"""

import logging
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from typing import Any, Dict, List, Optional

logger = logging.getLogger("parcel_delivery.errors")


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class InvalidInputError(AppException):
    """Raised when request fields are missing or malformed."""

    def __init__(self, message: str = "Invalid input", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_INVALID_INPUT",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


class InsufficientPermissionsError(AppException):
    """Raised when user doesn't have permission to perform an action."""

    def __init__(self, message: str = "Insufficient permissions", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_PERM_001",
            status_code=status.HTTP_403_FORBIDDEN,
            details=details
        )


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class InvalidStatusError(AppException):
    """Raised when a delivery status transition is not allowed."""

    def __init__(self, message: str, current_status: Optional[str] = None, requested_status: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="ERR_INVALID_STATUS",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"current_status": current_status, "requested_status": requested_status}
        )


class InsufficientFundsError(AppException):
    """Raised when a cash-out exceeds the rider's unpaid balance."""

    def __init__(self, requested: float, available: float):
        super().__init__(
            message="Requested amount exceeds unpaid earnings",
            error_code="ERR_INSUFFICIENT_FUNDS",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"requested": requested, "available": available}
        )


class ConflictError(AppException):
    """Raised when a concurrent request changed the data underneath us."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_CONFLICT",
            status_code=status.HTTP_409_CONFLICT,
            details=details
        )


class OperationStepError(AppException):
    """Raised when one step of a multi-step operation fails."""

    def __init__(self, message: str, failed_step: str, completed_steps: List[str]):
        super().__init__(
            message=message,
            error_code="ERR_STEP_FAILED",
            status_code=status.HTTP_409_CONFLICT,
            details={"failed_step": failed_step, "completed_steps": completed_steps}
        )


class PaymentGatewayError(AppException):
    """Raised when the payment gateway rejects or cannot serve a request."""

    def __init__(self, message: str = "Payment gateway error", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_GATEWAY",
            status_code=status.HTTP_502_BAD_GATEWAY,
            details=details
        )


class StorageError(AppException):
    """Raised when the database fails mid-operation."""

    def __init__(self, message: str = "Storage operation failed"):
        super().__init__(
            message=message,
            error_code="ERR_INTERNAL_SERVER",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )


class AuthenticationError(AppException):
    """Raised for authentication failures."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(
            message=message,
            error_code="ERR_AUTH_001",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


class TokenRevokedError(AppException):
    """Raised when token has been revoked."""

    def __init__(self):
        super().__init__(
            message="Token has been revoked",
            error_code="ERR_AUTH_002",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        409: "ERR_CONFLICT",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        },
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "ERR_VALIDATION",
            "message": "Validation error",
            "details": {
                "errors": jsonable_errors(exc)
            }
        }
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # pydantic v2 puts the raw exception object in ctx for some validators
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        errors.append(error)
    return errors


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception("Unhandled exception on %s %s: %s", request.method, request.url.path, type(exc).__name__)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {}
        }
    )


async def storage_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handler for database errors that escaped the domain services."""
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return await app_exception_handler(request, StorageError())
