"""HTTP exceptions and domain error mapping for the API."""

from fastapi import HTTPException
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_503_SERVICE_UNAVAILABLE,
)

from storekeeper.exceptions import (
    AllocationError,
    ConflictError,
    DecryptionError,
    IntegrityError,
    SnapshotFormatError,
    StorekeeperError,
    TransientStoreError,
)


class StorekeeperAPIError(HTTPException):
    """Base exception for storekeeper API errors."""
    pass


class BackupNotFoundError(StorekeeperAPIError):
    def __init__(self, backup_id: str):
        super().__init__(HTTP_404_NOT_FOUND, f"Backup not found: {backup_id}")


class StorageUnavailableError(StorekeeperAPIError):
    def __init__(self, detail: str):
        super().__init__(HTTP_503_SERVICE_UNAVAILABLE, f"Document store temporarily unavailable: {detail}")


class ConfirmationRequiredError(StorekeeperAPIError):
    """The operation can proceed once the caller confirms the reported issue."""

    def __init__(self, reason: str, message: str, **extra):
        super().__init__(HTTP_409_CONFLICT, {"reason": reason, "message": message, **extra})


def to_http_error(error: StorekeeperError) -> HTTPException:
    """Map a domain error onto the HTTP error the API reports for it."""
    if isinstance(error, IntegrityError):
        return ConfirmationRequiredError(
            "integrity",
            str(error),
            errors=error.errors,
            expected_checksum=error.expected_checksum,
            actual_checksum=error.actual_checksum,
        )
    if isinstance(error, ConflictError):
        return ConfirmationRequiredError(
            "conflicts", str(error), conflicts=error.report.model_dump(mode="json")["conflicts"]
        )
    if isinstance(error, (DecryptionError, SnapshotFormatError)):
        return StorekeeperAPIError(HTTP_400_BAD_REQUEST, str(error))
    if isinstance(error, (TransientStoreError, AllocationError)):
        return StorageUnavailableError(str(error))
    return StorekeeperAPIError(HTTP_400_BAD_REQUEST, str(error))
