"""Pydantic models for session schedule data.

All data structures use Pydantic v2 for validation, serialization, and type safety.
Wire records from the portal API are validated leniently: a malformed optional
field degrades to "absent" instead of rejecting the whole session.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from classmeets.logging import get_logger

log = get_logger(__name__)


class SessionStatus(str, Enum):
    SCHEDULED = "Scheduled"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def coerce_positive_int(value: Any) -> int | None:
    """Read an integer count or ordinal, returning None for anything else.

    Accepts ints and integer strings ("12"). Booleans, floats with a fraction,
    non-numeric strings and values below 1 are treated as absent.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            return None
    if not isinstance(value, int) or value < 1:
        return None
    return value


class Session(BaseModel):
    """A single class session (one Google Meet occurrence) of a batch.

    ``date`` and ``time`` are kept as the raw strings the portal returned.
    They are parsed during classification so that an unparsable value leaves
    the session visible (classified as future, not joinable) rather than
    failing validation.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(validation_alias=AliasChoices("meet_id", "id"))
    batch_id: str | None = None
    session_number: int | None = None
    date: str | None = None
    time: str | None = None
    join_url: str | None = Field(
        default=None, validation_alias=AliasChoices("meet_link", "join_url")
    )
    title: str | None = None
    note: str | None = None
    status: SessionStatus | None = None
    cancellation_reason: str | None = None
    created_at: str | None = None

    @field_validator("id", "batch_id", mode="before")
    @classmethod
    def _identifier_as_str(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return _blank_to_none(value)

    @field_validator("session_number", mode="before")
    @classmethod
    def _lenient_session_number(cls, value: Any) -> int | None:
        return coerce_positive_int(value)

    @field_validator(
        "date",
        "time",
        "join_url",
        "title",
        "note",
        "cancellation_reason",
        "created_at",
        mode="before",
    )
    @classmethod
    def _lenient_text(cls, value: Any) -> str | None:
        value = _blank_to_none(value)
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @field_validator("status", mode="before")
    @classmethod
    def _lenient_status(cls, value: Any) -> SessionStatus | None:
        if isinstance(value, SessionStatus):
            return value
        value = _blank_to_none(value)
        if not isinstance(value, str):
            return None
        for status in SessionStatus:
            if status.value.lower() == value.lower():
                return status
        log.debug("unknown_session_status", status=value)
        return None

    @property
    def is_completed(self) -> bool:
        return self.status is SessionStatus.COMPLETED

    @property
    def is_cancelled(self) -> bool:
        return self.status is SessionStatus.CANCELLED


class BatchScheduleMeta(BaseModel):
    """Authoritative scheduling contract for a batch.

    ``expected_total_sessions`` is how many sessions the batch will ever
    have, independent of how many session rows exist right now.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    batch_id: str
    expected_total_sessions: int | None = Field(
        default=None,
        validation_alias=AliasChoices("total_sessions", "expected_total_sessions"),
    )
    batch_name: str | None = None
    status: str | None = None

    @field_validator("batch_id", mode="before")
    @classmethod
    def _batch_id_as_str(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("expected_total_sessions", mode="before")
    @classmethod
    def _lenient_total(cls, value: Any) -> int | None:
        # Zero is a legitimate declaration; the capper ignores it anyway
        if value == 0 and not isinstance(value, bool):
            return 0
        return coerce_positive_int(value)


class Classification(BaseModel):
    """Temporal and interaction flags of one session, judged against one instant."""

    model_config = ConfigDict(frozen=True)

    is_today: bool = False
    is_future: bool = False
    is_first_upcoming: bool = False
    is_completed: bool = False
    is_cancelled: bool = False
    can_join: bool = False

    @property
    def is_blurred(self) -> bool:
        """Future session that is not the next one up. Completed rows never blur."""
        return self.is_future and not self.is_first_upcoming and not self.is_completed


class ClassifiedSession(BaseModel):
    model_config = ConfigDict(frozen=True)

    session: Session
    classification: Classification


class ReconciledSchedule(BaseModel):
    """Schedule view derived from (session rows, batch meta, now).

    ``items`` is the full reordered list; ``page_slice`` is the part shown on
    ``page``. ``placeholder_count`` counts rows of the page the row source has
    not delivered yet (rendered as empty rows).
    """

    model_config = ConfigDict(frozen=True)

    batch_id: str
    items: list[ClassifiedSession]
    effective_total: int
    page: int
    page_size: int
    total_pages: int
    start_index: int
    end_index: int
    page_slice: list[ClassifiedSession]
    placeholder_count: int = 0
    generated_at: datetime
    version: int = 0


class ScheduleSummary(BaseModel):
    """Stat-card counts shown above the schedule."""

    total: int
    completed: int
    pending: int
    cancelled: int
