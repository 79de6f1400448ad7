"""Temporal classification of sessions against a single reference instant.

Every function here takes ``now`` as a parameter. The caller captures it
once per pipeline run so that all sessions of one view are judged against
the same instant.
"""

import re
from datetime import date, datetime, time

from classmeets.errors import SessionParseError
from classmeets.logging import get_logger
from classmeets.models import Classification, Session

log = get_logger(__name__)

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2})(?:\.\d+)?)?$")


def parse_session_date(raw: str | None, now: datetime | None = None) -> date | None:
    """Parse a session date into a calendar day.

    Accepts ``YYYY-MM-DD`` and ISO date-times (``2025-03-01T09:00:00Z``).
    Aware date-times are converted into ``now``'s timezone before the day is
    taken, so a UTC timestamp lands on the student's local calendar day.

    Returns:
        The calendar day, or None when no date is set.

    Raises:
        SessionParseError: If the string is not an ISO date or date-time.
    """
    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError as e:
        raise SessionParseError("date", raw) from e
    if parsed.tzinfo is not None and now is not None and now.tzinfo is not None:
        parsed = parsed.astimezone(now.tzinfo)
    return parsed.date()


def parse_session_time(raw: str | None) -> time | None:
    """Parse ``HH:MM`` or ``HH:MM:SS`` into a time of day.

    Raises:
        SessionParseError: If the string is not a valid time of day.
    """
    if raw is None:
        return None
    match = _TIME_PATTERN.match(raw.strip())
    if not match:
        raise SessionParseError("time", raw)
    hours, minutes, seconds = match.groups()
    try:
        return time(int(hours), int(minutes), int(seconds or 0))
    except ValueError as e:
        raise SessionParseError("time", raw) from e


def classify_session(session: Session, now: datetime) -> Classification:
    """Classify one session in isolation.

    ``is_first_upcoming`` and ``can_join`` are left False here: the first
    needs the session's position in the sequence (see mark_first_upcoming),
    the second is decided by the join gate.
    """
    try:
        session_day = parse_session_date(session.date, now)
    except SessionParseError as e:
        # Unknown position in time: keep it visible as an upcoming session
        log.warning(
            "session_date_unparsable",
            session_id=session.id,
            date=e.value,
        )
        is_today = False
        is_future = True
    else:
        today = now.date()
        if session_day is None:
            is_today = False
            is_future = True
        else:
            is_today = session_day == today
            is_future = session_day > today

    return Classification(
        is_today=is_today,
        is_future=is_future,
        is_completed=session.is_completed,
        is_cancelled=session.is_cancelled,
    )


def mark_first_upcoming(classifications: list[Classification]) -> list[Classification]:
    """Flag the first future, non-today entry of an ordered classification list.

    Must run against the capped sequence order, before completed sessions
    are moved to the end.
    """
    marked: list[Classification] = []
    found = False
    for classification in classifications:
        if not found and classification.is_future and not classification.is_today:
            classification = classification.model_copy(update={"is_first_upcoming": True})
            found = True
        elif classification.is_first_upcoming:
            classification = classification.model_copy(update={"is_first_upcoming": False})
        marked.append(classification)
    return marked
