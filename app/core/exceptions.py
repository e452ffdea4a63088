"""
Global exception handling for the application.
Every AppError is rendered as {"error": {code, message, details, path}}.
"""

from typing import Any, Dict, Optional

import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)


class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class EntityNotFoundException(AppError):
    """Resource not found error."""
    def __init__(self, message: str = "Entity not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_404_NOT_FOUND, details)


class UnauthorizedException(AppError):
    """Authentication failure error."""
    def __init__(self, message: str = "Unauthorized", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED, details)


class ForbiddenException(AppError):
    """Authorization failure error."""
    def __init__(self, message: str = "Forbidden", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_403_FORBIDDEN, details)


class AccessDeniedException(ForbiddenException):
    """Caller neither owns the resource, nor may see it publicly, nor is an admin."""
    def __init__(self, message: str = "Access denied", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


# --- Spreadsheet pipeline ---------------------------------------------------


class MalformedWorkbookError(Exception):
    """The uploaded bytes could not be decoded as a workbook.

    Not an AppError: the orchestrator records it on the file (status=error)
    instead of rejecting the request.
    """


class FileStorageError(AppError):
    """Storing, reading or deleting a binary failed."""
    def __init__(self, message: str = "File storage failure", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, details)


class UnsupportedFileTypeException(AppError):
    def __init__(self, message: str = "Only Excel files (.xls, .xlsx) are allowed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details)


class FileTooLargeException(AppError):
    def __init__(self, message: str = "Uploaded file is too large", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, details)


class FileNotReadyException(AppError):
    """File has not been successfully ingested."""
    def __init__(self, message: str = "File is not processed yet", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details)


class WorksheetNotFoundException(AppError):
    def __init__(self, worksheet_name: str):
        super().__init__(
            f"Worksheet '{worksheet_name}' not found",
            status.HTTP_404_NOT_FOUND,
            {"worksheet": worksheet_name},
        )


class ColumnNotFoundException(AppError):
    def __init__(self, column: str):
        self.column = column
        super().__init__(
            f"Column {column} not found",
            status.HTTP_400_BAD_REQUEST,
            {"column": column},
        )


class EmptyDatasetException(AppError):
    def __init__(self, message: str = "No data found in worksheet", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all uncaught exceptions globally."""

    if isinstance(exc, AppError):
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": {
                    "code": exc.__class__.__name__,
                    "message": exc.message,
                    "details": exc.details,
                    "path": request.url.path,
                }
            },
        )

    logger.exception("Unexpected error occurred", path=request.url.path)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "InternalServerError",
                "message": "An unexpected error occurred. Please try again later.",
                "path": request.url.path,
            }
        },
    )
