"""Job data model for provider-backed background removal."""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.DONE, JobStatus.FAILED)

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]

    @classmethod
    def from_provider(cls, value: str) -> "JobStatus":
        """Normalise a provider status string.

        The provider reports a few transitional states of its own
        (``uploading`` and friends); they all count as ``processing``.
        """
        try:
            return cls(value)
        except ValueError:
            logger.warning("Unknown provider status %r, treating as processing", value)
            return cls.PROCESSING


_STATUS_RANK = {
    JobStatus.QUEUED: 0,
    JobStatus.PROCESSING: 1,
    JobStatus.DONE: 2,
    JobStatus.FAILED: 2,
}


class OutputFormat(str, Enum):
    PRO_BUNDLE = "pro_bundle"
    GIF = "gif"  # provider caps the loop at 20 seconds
    MP4 = "mp4"  # solid background, needs a background colour

    @property
    def background_color(self) -> Optional[str]:
        return "000000" if self is OutputFormat.MP4 else None


class NotificationMode(str, Enum):
    PUSH = "push"
    PULL = "pull"


class InputKind(str, Enum):
    FILE = "file"
    URL = "url"


class UpdateSource(str, Enum):
    SUBMISSION = "submission"
    POLL = "poll"
    PUSH = "push"
    CLIENT = "client"


def _check_result_url(status: JobStatus, result_url: Optional[str]) -> None:
    if status == JobStatus.DONE and not result_url:
        raise ValueError("result_url is required when status is done")
    if status != JobStatus.DONE and result_url:
        raise ValueError("result_url is only allowed when status is done")


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Job(BaseModel):
    """A submitted provider job as seen by the orchestrator."""
    id: str = Field(min_length=1)
    input_kind: InputKind
    output_format: OutputFormat
    status: JobStatus
    result_url: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    notification_mode: NotificationMode

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _result_url_matches_status(self) -> "Job":
        _check_result_url(self.status, self.result_url)
        return self


class JobSnapshot(BaseModel):
    """Status information about a job, from whichever path delivered it."""
    id: str = Field(min_length=1)
    status: JobStatus
    result_url: Optional[str] = None
    output_format: Optional[OutputFormat] = None
    created_at: Optional[datetime] = None
    source: UpdateSource

    @model_validator(mode="after")
    def _result_url_matches_status(self) -> "JobSnapshot":
        _check_result_url(self.status, self.result_url)
        return self

    @field_validator("created_at")
    @classmethod
    def _normalise_created_at(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value) if value is not None else None


class JobRecord(BaseModel):
    """Persisted summary of a job, used for listing/history."""
    id: str
    output_format: Optional[OutputFormat] = None
    status: JobStatus
    result_url: Optional[str] = None
    notification_mode: Optional[NotificationMode] = None
    source: UpdateSource
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("created_at", "updated_at")
    @classmethod
    def _normalise_timestamps(cls, value: datetime) -> datetime:
        return _as_utc(value)


# ---------------------------------------------------------------------------
# Provider documents (JSON:API style)
# ---------------------------------------------------------------------------

class ProviderVideoAttributes(BaseModel):
    status: str
    result_url: Optional[str] = None
    format: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"extra": "allow"}


class ProviderVideoData(BaseModel):
    id: str = Field(min_length=1)
    type: str = "videos"
    attributes: ProviderVideoAttributes
    links: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"extra": "allow"}

    @property
    def status(self) -> JobStatus:
        return JobStatus.from_provider(self.attributes.status)

    @property
    def output_format(self) -> Optional[OutputFormat]:
        try:
            return OutputFormat(self.attributes.format) if self.attributes.format else None
        except ValueError:
            return None

    def to_snapshot(self, source: UpdateSource) -> JobSnapshot:
        status = self.status
        return JobSnapshot(
            id=self.id,
            status=status,
            result_url=self.attributes.result_url if status == JobStatus.DONE else None,
            output_format=self.output_format,
            created_at=self.attributes.created_at,
            source=source,
        )


class ProviderVideo(BaseModel):
    """Single-video document returned for creation, status and callbacks."""
    data: ProviderVideoData


class ProviderVideoList(BaseModel):
    data: List[ProviderVideoData] = Field(default_factory=list)
