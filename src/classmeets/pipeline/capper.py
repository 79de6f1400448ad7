"""Authoritative capper: the batch's declared session count wins over row count.

The row source is trusted for what each session contains, the batch metadata
for how many sessions exist. Rows beyond the declared total (duplicates from
batch merges, stale rows) are cut; a missing or malformed declaration fails
open to the full list.
"""

from typing import Any

from classmeets.logging import get_logger
from classmeets.models import Session, coerce_positive_int

log = get_logger(__name__)


def normalize_expected_total(expected_total: Any) -> int | None:
    """Return the declared total if it is a positive integer, else None."""
    return coerce_positive_int(expected_total)


def cap_sessions(sessions: list[Session], expected_total: Any) -> list[Session]:
    """Keep the first ``expected_total`` sessions of a sequenced list.

    Args:
        sessions: Sessions in sequence order.
        expected_total: The batch's declared session count, possibly absent.

    Returns:
        The capped list (a new list; the input is not modified).
    """
    limit = normalize_expected_total(expected_total)
    if limit is None:
        return list(sessions)
    if len(sessions) > limit:
        log.info(
            "sessions_capped",
            received=len(sessions),
            expected_total=limit,
        )
    return list(sessions[:limit])


def effective_total(row_count: int, expected_total: Any) -> int:
    """Session count that drives page arithmetic.

    The declared total when there is one, so a lagging row source still
    yields the full number of pages; otherwise the number of rows.
    """
    limit = normalize_expected_total(expected_total)
    return limit if limit is not None else row_count
