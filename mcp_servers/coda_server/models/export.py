"""Value types for the page export pipeline."""

import re
from collections.abc import Iterator
from enum import Enum
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator
from utils.errors import InvalidTransitionError

MISSING_LOCATOR_REASON = "missing content locator"

_LINE_BREAK = re.compile(r"\r?\n")


class ExportFormat(str, Enum):
    MARKDOWN = "markdown"
    HTML = "html"


class ExportStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ExportStatus.COMPLETE, ExportStatus.FAILED)

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]

    @classmethod
    def parse(cls, raw: str | None) -> "ExportStatus":
        """Map a status string reported by Coda onto the enum.

        Coda reports ``inProgress``, ``complete`` and ``failed``; anything
        unrecognized is treated as still running.
        """
        key = (raw or "").replace("_", "").replace("-", "").lower()
        return _REMOTE_STATUS.get(key, cls.IN_PROGRESS)


_STATUS_RANK = {
    ExportStatus.PENDING: 0,
    ExportStatus.IN_PROGRESS: 1,
    ExportStatus.COMPLETE: 2,
    ExportStatus.FAILED: 2,
}

_REMOTE_STATUS = {
    "pending": ExportStatus.PENDING,
    "queued": ExportStatus.PENDING,
    "inprogress": ExportStatus.IN_PROGRESS,
    "running": ExportStatus.IN_PROGRESS,
    "complete": ExportStatus.COMPLETE,
    "completed": ExportStatus.COMPLETE,
    "succeeded": ExportStatus.COMPLETE,
    "failed": ExportStatus.FAILED,
    "error": ExportStatus.FAILED,
}


class PageRef(BaseModel):
    """A page inside a Coda doc, addressed by id or name."""

    model_config = ConfigDict(frozen=True)

    doc_id: str = Field(..., min_length=1)
    page_id_or_name: str = Field(..., min_length=1)

    def __str__(self) -> str:
        return f"{self.doc_id}/{self.page_id_or_name}"


class ExportJob(BaseModel):
    """One export attempt for one page.

    Immutable; ``advance`` returns the next state. Status only moves forward
    along PENDING -> IN_PROGRESS -> COMPLETE | FAILED.
    """

    model_config = ConfigDict(frozen=True)

    job_id: str
    page_ref: PageRef
    status: ExportStatus = ExportStatus.PENDING
    content_locator: str | None = None
    failure_reason: str | None = None

    @model_validator(mode="after")
    def _check_terminal_fields(self) -> Self:
        if self.status is ExportStatus.COMPLETE and not self.content_locator:
            raise ValueError("complete export job requires a content locator")
        if self.status is not ExportStatus.COMPLETE and self.content_locator:
            raise ValueError("content locator is only set on complete export jobs")
        if self.status is not ExportStatus.FAILED and self.failure_reason:
            raise ValueError("failure reason is only set on failed export jobs")
        return self

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def advance(
        self,
        status: ExportStatus,
        *,
        content_locator: str | None = None,
        failure_reason: str | None = None,
    ) -> "ExportJob":
        if self.is_terminal:
            raise InvalidTransitionError(
                f"Export job already {self.status.value}, cannot move to {status.value}",
                stage="poll",
                page_ref=self.page_ref,
                job_id=self.job_id,
            )
        if status.rank < self.status.rank:
            return self
        if status is ExportStatus.COMPLETE and not content_locator:
            return self.model_copy(
                update={
                    "status": ExportStatus.FAILED,
                    "failure_reason": MISSING_LOCATOR_REASON,
                }
            )
        if status is ExportStatus.COMPLETE:
            return self.model_copy(
                update={"status": status, "content_locator": content_locator}
            )
        if status is ExportStatus.FAILED:
            return self.model_copy(
                update={"status": status, "failure_reason": failure_reason or None}
            )
        return self.model_copy(update={"status": status})


class PageContent(BaseModel):
    """Materialized text of a page."""

    model_config = ConfigDict(frozen=True)

    text: str
    source_page: PageRef

    @property
    def is_empty(self) -> bool:
        return self.text == ""

    def lines(self) -> list[str]:
        return _LINE_BREAK.split(self.text)

    def head(self, num_lines: int) -> str:
        if num_lines < 1:
            raise ValueError("num_lines must be a positive integer")
        if self.is_empty:
            return ""
        return "\n".join(self.lines()[:num_lines])


class PollPolicy(BaseModel):
    """Retry budget for export status polling. Durations are in seconds."""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(30, ge=1)
    initial_delay: float = Field(0.5, gt=0)
    backoff_multiplier: float = Field(1.5, ge=1)
    max_delay: float = Field(5.0, gt=0)
    overall_timeout: float = Field(60.0, gt=0)

    @model_validator(mode="after")
    def _check_delays(self) -> Self:
        if self.max_delay < self.initial_delay:
            raise ValueError("max_delay must be greater than or equal to initial_delay")
        return self

    def delays(self) -> Iterator[float]:
        """Yield successive inter-attempt delays, clamped to ``max_delay``."""
        delay = self.initial_delay
        while True:
            yield delay
            delay = min(delay * self.backoff_multiplier, self.max_delay)

    @classmethod
    def from_settings(cls) -> "PollPolicy":
        from utils.config import get_settings

        settings = get_settings()
        return cls(
            max_attempts=settings.EXPORT_POLL_MAX_ATTEMPTS,
            initial_delay=settings.EXPORT_POLL_INITIAL_DELAY_SECONDS,
            backoff_multiplier=settings.EXPORT_POLL_BACKOFF_MULTIPLIER,
            max_delay=settings.EXPORT_POLL_MAX_DELAY_SECONDS,
            overall_timeout=settings.EXPORT_POLL_TIMEOUT_SECONDS,
        )
