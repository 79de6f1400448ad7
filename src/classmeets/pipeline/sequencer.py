"""Canonical sequencer: one batch's sessions in a stable order.

The session-row source serves merged-batch views, so a response can carry
rows of other batches. Those are dropped here.
"""

from collections.abc import Iterable

from classmeets.errors import SessionParseError
from classmeets.logging import get_logger
from classmeets.models import Session
from classmeets.pipeline.temporal import parse_session_date

log = get_logger(__name__)


def _date_key(session: Session):
    try:
        return parse_session_date(session.date)
    except SessionParseError:
        return None


def _precedes(a: Session, b: Session) -> bool:
    """True when ``a`` must come strictly before ``b``.

    Session numbers decide when both sessions have one, otherwise dates
    decide when both parse. Anything else is incomparable and keeps its
    input order.
    """
    if a.session_number is not None and b.session_number is not None:
        return a.session_number < b.session_number
    a_day, b_day = _date_key(a), _date_key(b)
    if a_day is not None and b_day is not None:
        return a_day < b_day
    return False


def sequence_sessions(sessions: Iterable[Session], batch_id: str) -> list[Session]:
    """Filter sessions to one batch and order them.

    The comparison is only a partial order (a numbered session and a dated
    one may be incomparable), so the list is ordered by adjacent exchanges:
    an element only moves past a neighbour it strictly precedes. Adjacent items
    in the result are ordered, which makes a second pass a no-op.

    Args:
        sessions: Raw session rows, possibly from several batches.
        batch_id: Batch to keep.

    Returns:
        The batch's sessions in sequence order.
    """
    sessions = list(sessions)
    ordered = [s for s in sessions if s.batch_id == batch_id]
    if len(ordered) != len(sessions):
        log.debug(
            "foreign_batch_rows_dropped",
            batch_id=batch_id,
            received=len(sessions),
            kept=len(ordered),
        )

    for i in range(1, len(ordered)):
        j = i
        while j > 0 and _precedes(ordered[j], ordered[j - 1]):
            ordered[j - 1], ordered[j] = ordered[j], ordered[j - 1]
            j -= 1

    return ordered
