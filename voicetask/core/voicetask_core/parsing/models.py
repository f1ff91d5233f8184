"""Data models for task extraction results."""

import re
from dataclasses import dataclass
from datetime import datetime, UTC
from enum import Enum
from typing import Any, ClassVar, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000
TRANSCRIPT_MAX_LENGTH = 2000

ISO_TIMESTAMP_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(?::\d{2}(?:\.\d{1,6})?)?(?:Z|[+-]\d{2}:\d{2})$"
)


class Priority(str, Enum):
    """Task priority, lowest first."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class TaskStatus(str, Enum):
    """Board column a task lives in."""
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"


def format_timestamp(value: datetime) -> str:
    """Render an aware datetime as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    value = value.astimezone(UTC)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_timestamp(value: str) -> datetime:
    """Parse a strict ISO-8601 timestamp carrying ``Z`` or an explicit offset.

    Raises:
        ValueError: If the value is not such a timestamp
    """
    if not ISO_TIMESTAMP_RE.match(value.strip()):
        raise ValueError(f"Not an ISO-8601 timestamp with timezone: {value!r}")
    return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).astimezone(UTC)


class StructuredTask(BaseModel):
    """A task extracted from one transcript."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(default="", max_length=TITLE_MAX_LENGTH)
    description: str = Field(default="", max_length=DESCRIPTION_MAX_LENGTH)
    due_date: Optional[datetime] = None
    priority: Priority = Priority.MEDIUM
    status: TaskStatus = TaskStatus.TODO

    @field_validator("due_date")
    @classmethod
    def due_date_in_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return v
        if v.tzinfo is None:
            raise ValueError("due_date must be timezone-aware")
        return v.astimezone(UTC)

    def to_payload(self) -> Dict[str, Any]:
        """JSON-ready dict handed to task storage."""
        return {
            "title": self.title,
            "description": self.description,
            "due_date": format_timestamp(self.due_date) if self.due_date else None,
            "priority": self.priority.value,
            "status": self.status.value,
        }


class AssistedTaskPayload(BaseModel):
    """Shape an LLM answer must have before it is trusted."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str = Field(default="", max_length=DESCRIPTION_MAX_LENGTH)
    due_date: Optional[datetime] = None
    priority: Priority = Priority.MEDIUM
    status: TaskStatus = TaskStatus.TODO

    @field_validator("due_date", mode="before")
    @classmethod
    def due_date_is_iso(cls, v: Any) -> Optional[datetime]:
        if v is None:
            return None
        if not isinstance(v, str):
            raise ValueError("due_date must be a string or null")
        return parse_timestamp(v)

    def to_task(self) -> StructuredTask:
        return StructuredTask(
            title=self.title,
            description=self.description,
            due_date=self.due_date,
            priority=self.priority,
            status=self.status,
        )


class FallbackReason(str, Enum):
    """Why the assisted path handed over to the rule-based parser."""
    TRANSPORT = "transport"
    BAD_STATUS = "bad_status"
    EMPTY_RESPONSE = "empty_response"
    INVALID_JSON = "invalid_json"
    SCHEMA = "schema"
    UNAVAILABLE = "unavailable"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class ParseOutcome:
    """A structured task tagged with the path that produced it."""

    task: StructuredTask
    method: ClassVar[str] = "unknown"

    @property
    def used_assisted(self) -> bool:
        return self.method == "assisted"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"parsed": self.task.to_payload(), "method": self.method}
        if isinstance(self, Fallback):
            data["note"] = "fallback_used"
            data["reason"] = self.reason.value
        return data


@dataclass(frozen=True)
class Assisted(ParseOutcome):
    """The LLM answer was validated and reconciled."""

    method: ClassVar[str] = "assisted"


@dataclass(frozen=True)
class Fallback(ParseOutcome):
    """The assisted path failed; ``task`` is the rule-based result."""

    reason: FallbackReason = FallbackReason.UNEXPECTED
    detail: str = ""
    method: ClassVar[str] = "fallback"


@dataclass(frozen=True)
class Deterministic(ParseOutcome):
    """No assisted attempt was made."""

    method: ClassVar[str] = "deterministic"
