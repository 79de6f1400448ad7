"""Join-eligibility gate: decides whether a session's meeting link may be exposed.

Fails closed. Any doubt about the session's date or time denies access.
"""

from datetime import datetime

from classmeets.errors import SessionParseError
from classmeets.logging import get_logger
from classmeets.models import Classification, Session
from classmeets.pipeline.temporal import parse_session_date, parse_session_time

log = get_logger(__name__)


def _has_started(session: Session, now: datetime) -> bool:
    """True when the session's date+time is at or before ``now``.

    Raises:
        SessionParseError: If the date or time cannot be parsed.
    """
    session_day = parse_session_date(session.date, now)
    start_time = parse_session_time(session.time)
    if session_day is None or start_time is None:
        return False
    starts_at = datetime.combine(session_day, start_time)
    if now.tzinfo is not None:
        starts_at = starts_at.replace(tzinfo=now.tzinfo)
    return starts_at <= now


def can_join(session: Session, classification: Classification, now: datetime) -> bool:
    """Decide whether the join action may be shown for a session.

    Same-day sessions are joinable at any hour once the other conditions
    hold. Past sessions must have a parseable date and time no later than
    ``now``.

    Args:
        session: Session to check.
        classification: The session's classification against ``now``.
        now: Reference instant of the current pipeline run.

    Returns:
        True if the join link may be exposed.
    """
    if classification.is_future:
        return False
    if session.is_cancelled or session.is_completed:
        return False
    if not session.join_url or not session.date:
        return False
    if classification.is_today:
        return True

    try:
        return _has_started(session, now)
    except SessionParseError as e:
        log.info(
            "join_denied_unparsable",
            session_id=session.id,
            field=e.field,
            value=e.value,
        )
        return False
    except (TypeError, ValueError, OverflowError) as e:
        log.warning(
            "join_denied_error",
            session_id=session.id,
            error=str(e),
            type=type(e).__name__,
        )
        return False
