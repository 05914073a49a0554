"""Custom exception hierarchy for the conversion service.

All service-specific exceptions inherit from ConversionPipelineError,
enabling consistent error handling and structured error responses.

Exception hierarchy:
    ConversionPipelineError (base)
    ├── JobSetupError
    ├── StorageError
    ├── UnknownQualityError
    ├── EncodeError
    ├── ConversionCancelledError
    └── QueueClosedError
"""

from typing import Any


class ConversionPipelineError(Exception):
    """Base exception for all conversion errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable error code for metrics/filtering
        details: Additional context as key-value pairs
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize pipeline error.

        Args:
            message: Human-readable error description
            error_code: Machine-readable error code (e.g., 'ENCODE_ERROR')
            details: Additional context for debugging
        """
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for JSON serialization.

        Returns:
            Dictionary with error_code, error_message, and details.
            Note: Uses 'error_message' instead of 'message' to avoid conflicts
            with Python's logging module which reserves 'message' internally.
        """
        return {
            "error_code": self.error_code,
            "error_message": self.message,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.error_code!r}, {self.message!r})"


class JobSetupError(ConversionPipelineError):
    """Raised when a job cannot start.

    This covers:
    - Workspace directory creation
    - Missing or invalid storage configuration
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "JOB_SETUP_ERROR", details)


class StorageError(ConversionPipelineError):
    """Raised when an S3 transfer fails.

    Wraps botocore/boto3 errors and local filesystem errors so callers
    only deal with one type.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "STORAGE_ERROR", details)


class UnknownQualityError(ConversionPipelineError):
    """Raised when a quality label is not in the catalog."""

    def __init__(self, quality: str) -> None:
        super().__init__(
            f"unknown quality: {quality}",
            "UNKNOWN_QUALITY_ERROR",
            {"quality": quality},
        )
        self.quality = quality


class EncodeError(ConversionPipelineError):
    """Raised when the encoder exits with a non-zero status or cannot start.

    The captured stderr tail is kept in details for debugging.
    """

    def __init__(
        self,
        message: str,
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        details = {"returncode": returncode, "stderr": stderr}
        super().__init__(message, "ENCODE_ERROR", details)
        self.returncode = returncode
        self.stderr = stderr


class ConversionCancelledError(ConversionPipelineError):
    """Raised when work stops because the job was cancelled.

    Distinct from EncodeError so cancellations are never reported as
    ordinary encoder failures.
    """

    def __init__(self, message: str = "conversion cancelled") -> None:
        super().__init__(message, "CONVERSION_CANCELLED")


class QueueClosedError(ConversionPipelineError):
    """Raised when a job is enqueued after shutdown has begun."""

    def __init__(self, job_id: str) -> None:
        super().__init__(
            "job queue is shutting down",
            "QUEUE_CLOSED",
            {"job_id": job_id},
        )
