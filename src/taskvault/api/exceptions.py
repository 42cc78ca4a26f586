"""HTTP exceptions for the backup API."""

from fastapi import HTTPException
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_500_INTERNAL_SERVER_ERROR


class BackupAPIError(HTTPException):
    """Base exception for backup API errors."""
    pass


class InvalidRequestError(BackupAPIError):
    def __init__(self, message: str):
        super().__init__(HTTP_400_BAD_REQUEST, message)


class OperationFailedError(BackupAPIError):
    def __init__(self, operation: str, error: Exception):
        super().__init__(
            HTTP_500_INTERNAL_SERVER_ERROR,
            f"Failed to {operation}: {error or 'Unknown error'}",
        )
