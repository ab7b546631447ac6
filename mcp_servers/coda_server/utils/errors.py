"""Error taxonomy and message formatting for the Coda server.

Every failure raised by the client or the export pipeline is a ``CodaError``
subclass carrying an ``ErrorCode`` and the pipeline stage it came from.
Tools never let these escape; they render them with ``format_error`` so the
agent sees a short, parseable line:

    [ERROR_CODE] Message (key=value, ...)
"""

from enum import Enum
from typing import TYPE_CHECKING, Any, Self

if TYPE_CHECKING:
    from models.export import ExportJob, PageRef


class ErrorCode(str, Enum):
    """Standardized error codes for tool operations."""

    NOT_FOUND = "NOT_FOUND"
    INVALID_REQUEST = "INVALID_REQUEST"
    TRANSIENT_SERVICE_ERROR = "TRANSIENT_SERVICE_ERROR"
    POLL_TIMEOUT = "POLL_TIMEOUT"
    FETCH_ERROR = "FETCH_ERROR"
    JOB_FAILED = "JOB_FAILED"

    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


def format_error(
    code: ErrorCode,
    message: str,
    *,
    details: dict[str, Any] | None = None,
) -> str:
    """Format an error message in a standardized way.

    Example:
        >>> format_error(ErrorCode.NOT_FOUND, "Page not found", details={"page": "d1/p1"})
        '[NOT_FOUND] Page not found (page=d1/p1)'
    """
    error_str = f"[{code.value}] {message}"
    if details:
        detail_str = ", ".join(f"{k}={v}" for k, v in details.items() if v is not None)
        if detail_str:
            error_str += f" ({detail_str})"
    return error_str


def validation_error(message: str, field: str | None = None) -> str:
    """Create a validation error message."""
    return format_error(
        ErrorCode.VALIDATION_ERROR,
        message,
        details={"field": field} if field else None,
    )


class CodaError(Exception):
    """Base class for failures talking to Coda or running an export."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        *,
        stage: str,
        page_ref: "PageRef | None" = None,
        job_id: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.page_ref = page_ref
        self.job_id = job_id
        self.status_code = status_code

    def with_context(
        self, *, page_ref: "PageRef | None" = None, job_id: str | None = None
    ) -> Self:
        """Attach page/job identifiers without changing the error kind."""
        if page_ref is not None and self.page_ref is None:
            self.page_ref = page_ref
        if job_id is not None and self.job_id is None:
            self.job_id = job_id
        return self

    @property
    def details(self) -> dict[str, Any]:
        return {
            "stage": self.stage,
            "page": str(self.page_ref) if self.page_ref else None,
            "job_id": self.job_id,
            "http_status": self.status_code,
        }

    def __str__(self) -> str:
        return format_error(self.code, self.message, details=self.details)


class NotFoundError(CodaError):
    """Document or page does not exist. Not retried."""

    code = ErrorCode.NOT_FOUND


class InvalidRequestError(CodaError):
    """Malformed arguments or rejected credentials. Not retried."""

    code = ErrorCode.INVALID_REQUEST


class TransientServiceError(CodaError):
    """Network failure, rate limiting or a 5xx from Coda.

    Callers may re-run the whole export pipeline.
    """

    code = ErrorCode.TRANSIENT_SERVICE_ERROR


class FetchError(CodaError):
    """Export reported success but its content could not be downloaded."""

    code = ErrorCode.FETCH_ERROR


class PollTimeoutError(CodaError):
    """Export job did not reach a terminal state within the poll budget."""

    code = ErrorCode.POLL_TIMEOUT

    def __init__(self, message: str, *, job: "ExportJob", attempts: int):
        super().__init__(message, stage="poll", page_ref=job.page_ref, job_id=job.job_id)
        self.job = job
        self.attempts = attempts

    @property
    def last_status(self):
        return self.job.status

    @property
    def details(self) -> dict[str, Any]:
        return {
            **super().details,
            "last_status": self.job.status.value,
            "attempts": self.attempts,
        }


class JobFailedError(CodaError):
    """Coda reported the export job as failed."""

    code = ErrorCode.JOB_FAILED

    def __init__(self, job: "ExportJob"):
        reason = job.failure_reason or "unknown reason"
        super().__init__(
            f"Export failed: {reason}",
            stage="poll",
            page_ref=job.page_ref,
            job_id=job.job_id,
        )
        self.failure_reason = reason


class InvalidTransitionError(CodaError):
    """An export job was asked to leave a terminal state."""

    code = ErrorCode.INTERNAL_ERROR
