"""Error taxonomy shared by the allocator and the backup/restore engine."""

from typing import Any, Dict, List, Optional


class StorekeeperError(Exception):
    """Base class for all storekeeper errors."""


class TransientStoreError(StorekeeperError):
    """A read or write against the document store failed.

    Never interpreted as "identifier taken" or "restore succeeded"; callers
    retry narrowly using ``collection`` and ``operation``.
    """

    def __init__(self, collection: str, operation: str, cause: Optional[BaseException] = None):
        self.collection = collection
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Store {operation} failed for collection '{collection}'{detail}")


class AllocationError(StorekeeperError):
    """No identifier passed live validation within the allowed rounds."""


class IntegrityError(StorekeeperError):
    """The restored payload does not match its manifest.

    Non-fatal: the restore can be retried with ``confirm_integrity=True``.
    """

    def __init__(self, errors: List[str], expected_checksum: Optional[str] = None,
                 actual_checksum: Optional[str] = None):
        self.errors = errors
        self.expected_checksum = expected_checksum
        self.actual_checksum = actual_checksum
        super().__init__("Backup validation found issues: " + "; ".join(errors))


class DecryptionError(StorekeeperError):
    """Wrong password or corrupted encrypted artifact."""


class SnapshotFormatError(StorekeeperError):
    """The artifact cannot be parsed as a backup payload."""


class ManifestValidationError(StorekeeperError):
    """A manifest failed shape validation before being cataloged."""


class ConflictError(StorekeeperError):
    """Merge restore found ids that already exist in the live store.

    Non-fatal: the restore can be retried with ``confirm_conflicts=True``.
    """

    def __init__(self, report: Any):
        self.report = report
        summary = ", ".join(
            f"{conflict.collection}: {conflict.count} duplicate(s)" for conflict in report.conflicts
        )
        super().__init__(f"Found conflicts: {summary}")


class PartialFailure(StorekeeperError):
    """One or more collections could not be processed in a multi-collection operation."""

    def __init__(self, operation: str, failures: List[Any], result: Any = None):
        self.operation = operation
        self.failures = failures
        self.result = result
        names = ", ".join(failure.collection for failure in failures)
        super().__init__(f"{operation} failed for collection(s): {names}")

    def by_collection(self) -> Dict[str, Any]:
        return {failure.collection: failure for failure in self.failures}
