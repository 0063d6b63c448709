from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.status import HTTP_400_BAD_REQUEST
from typing import Any, Dict, Optional


class AppException(Exception):
    def __init__(self, message: str,
                 error_code: Optional[str] = None,
                 status_code: int = HTTP_400_BAD_REQUEST,
                 details: Optional[Dict[str, Any]] = None,):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.status_code}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', status_code={self.status_code})"


class ValidationException(AppException):
    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        value: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.field = field
        self.value = value

        exception_details = details or {}
        if field:
            exception_details["field"] = field
        if value is not None:
            exception_details["value"] = value

        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            details=exception_details,
            status_code=422,
        )


class DatabaseError(AppException):
    """Exception raised for database-related errors."""

    def __init__(
        self,
        message: str = "Database error occurred",
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.operation = operation

        exception_details = details or {}
        if operation:
            exception_details["operation"] = operation

        super().__init__(
            message=message,
            error_code="DATABASE_ERROR",
            details=exception_details,
            status_code=500,
        )


class FileStorageError(AppException):
    """Exception raised for file storage-related errors."""

    def __init__(
        self,
        message: str = "File storage error occurred",
        operation: Optional[str] = None,
        file_path: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.operation = operation
        self.file_path = file_path

        exception_details = details or {}
        if operation:
            exception_details["operation"] = operation
        if file_path:
            exception_details["file_path"] = file_path

        super().__init__(
            message=message,
            error_code="FILE_STORAGE_ERROR",
            details=exception_details,
            status_code=500,
        )


class IngestionError(AppException):
    """Base class for errors that abort an ingestion run."""

    def __init__(
        self,
        message: str = "Ingestion failed",
        error_code: str = "INGESTION_ERROR",
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
            status_code=status_code,
        )


class UnsupportedFormatError(IngestionError):
    """Raised when an upload's extension maps to no known reader."""

    def __init__(
        self,
        extension: Optional[str],
        supported: Optional[list] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.extension = extension

        exception_details = details or {}
        exception_details["extension"] = extension
        if supported:
            exception_details["supported"] = supported

        super().__init__(
            message=f"Unsupported file type: {extension or '<none>'}",
            error_code="UNSUPPORTED_FORMAT",
            details=exception_details,
            status_code=415,
        )


class ParseError(IngestionError):
    """Raised when a byte stream cannot be read as rows of its declared format."""

    def __init__(
        self,
        message: str = "Failed to parse file",
        file_format: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.file_format = file_format

        exception_details = details or {}
        if file_format:
            exception_details["format"] = file_format

        super().__init__(
            message=message,
            error_code="PARSE_ERROR",
            details=exception_details,
            status_code=422,
        )


class BatchWriteError(AppException):
    """
    Raised by a store when a bulk write fails as a whole or in part.

    ``inserted_count`` carries whatever the store confirmed before failing.
    """

    def __init__(
        self,
        message: str = "Bulk write failed",
        phase: Optional[str] = None,
        inserted_count: int = 0,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.phase = phase
        self.inserted_count = inserted_count

        exception_details = details or {}
        if phase:
            exception_details["phase"] = phase
        exception_details["inserted_count"] = inserted_count

        super().__init__(
            message=message,
            error_code="BATCH_WRITE_ERROR",
            details=exception_details,
            status_code=500,
        )


class DuplicateKeyError(BatchWriteError):
    """A bulk write hit the unique business-key index."""

    def __init__(
        self,
        key: Optional[str] = None,
        phase: Optional[str] = None,
        inserted_count: int = 0,
    ):
        self.key = key
        super().__init__(
            message=f"Duplicate business key: {key}" if key else "Duplicate business key",
            phase=phase,
            inserted_count=inserted_count,
            details={"key": key} if key else None,
        )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "code": exc.error_code,
                "message": exc.message,
                "details": exc.details,
            }
        },
    )
