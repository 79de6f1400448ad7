"""Presentation helpers for the schedule table.

Labels, link cleanup and stat-card counts used by the session table. All
functions are pure and never raise on malformed session data.
"""

import re
from urllib.parse import unquote

from classmeets.errors import SessionParseError
from classmeets.models import (
    ClassifiedSession,
    ReconciledSchedule,
    ScheduleSummary,
    Session,
    SessionStatus,
)
from classmeets.pipeline.temporal import parse_session_date, parse_session_time

_INTENT_TARGET = re.compile(r"url%3D([^&]+)")
_MEET_CODE = re.compile(r"https://meet\.google\.com/([a-z0-9-]+)", re.IGNORECASE)


def clean_meet_url(url: str) -> str:
    """Normalize a Google Meet link for direct opening.

    Unwraps Android ``intent://`` links and strips query strings and extra
    path segments from meet.google.com URLs. Other URLs come back trimmed.
    """
    cleaned = url.strip()
    if "intent://" in cleaned:
        match = _INTENT_TARGET.search(cleaned)
        if match:
            cleaned = unquote(match.group(1))

    match = _MEET_CODE.match(cleaned)
    if match:
        return f"https://meet.google.com/{match.group(1)}"
    return cleaned


def format_session_date(raw: str | None) -> str:
    """'2025-01-05' -> 'Jan 5, 2025'. Unparsable input is returned as-is."""
    if not raw:
        return ""
    try:
        day = parse_session_date(raw)
    except SessionParseError:
        return raw
    if day is None:
        return ""
    return f"{day:%b} {day.day}, {day.year}"


def format_session_time(raw: str | None) -> str:
    """'18:30:00' -> '06:30 PM'. Unparsable input is returned as-is."""
    if not raw:
        return ""
    try:
        start = parse_session_time(raw)
    except SessionParseError:
        return raw
    if start is None:
        return ""
    return start.strftime("%I:%M %p")


def status_label(session: Session) -> str:
    if session.status is None:
        return SessionStatus.SCHEDULED.value
    return session.status.value


def detail_label(session: Session) -> str:
    """Note text, plus 'Reason: ...' for a cancelled session that gives one."""
    parts = []
    if session.note:
        parts.append(session.note)
    if session.is_cancelled and session.cancellation_reason:
        parts.append(f"Reason: {session.cancellation_reason}")
    return "; ".join(parts)


def action_label(item: ClassifiedSession) -> str:
    """Text of the action cell: join, countdown hint, or why it is disabled."""
    classification = item.classification
    if classification.can_join:
        return "Join"
    if classification.is_future:
        if classification.is_first_upcoming:
            when = format_session_date(item.session.date) or "scheduled date"
            return f"Starts on {when}"
        return "Session not started"
    return "No meeting link"


def summarize_schedule(schedule: ReconciledSchedule) -> ScheduleSummary:
    """Counts for the Total / Completed / Pending stat cards.

    ``total`` is the effective total, so it reflects the batch's declared
    session count even while rows are still missing. Pending counts
    Scheduled sessions and sessions without a status.
    """
    completed = pending = cancelled = 0
    for item in schedule.items:
        status = item.session.status
        if status is SessionStatus.COMPLETED:
            completed += 1
        elif status is SessionStatus.CANCELLED:
            cancelled += 1
        else:
            pending += 1
    return ScheduleSummary(
        total=schedule.effective_total,
        completed=completed,
        pending=pending,
        cancelled=cancelled,
    )
