"""Reconcile raw session rows, batch metadata and the clock into a schedule view.

reconcile_schedule() is deterministic and side-effect free: the same
(rows, meta, now, page) always yields the same ReconciledSchedule.
"""

from collections.abc import Iterable
from datetime import datetime

from classmeets.logging import get_logger
from classmeets.models import (
    BatchScheduleMeta,
    ClassifiedSession,
    ReconciledSchedule,
    Session,
)
from classmeets.pipeline import (
    DEFAULT_PAGE_SIZE,
    can_join,
    cap_sessions,
    classify_session,
    effective_total,
    mark_first_upcoming,
    paginate,
    sequence_sessions,
    sink_completed,
)

log = get_logger(__name__)


def reconcile_schedule(
    sessions: Iterable[Session],
    meta: BatchScheduleMeta | None,
    batch_id: str,
    now: datetime,
    *,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    version: int = 0,
) -> ReconciledSchedule:
    """Run the full pipeline for one batch.

    sequence -> cap -> classify -> first upcoming -> join gate -> sink
    completed -> paginate.

    Args:
        sessions: Latest session rows (may include other batches).
        meta: Latest batch metadata, or None if not (yet) known.
        batch_id: Batch being displayed.
        now: Reference instant, captured once by the caller.
        page: Requested page; resets to 1 if out of range.
        page_size: Sessions per page.
        version: View version stamped on the result.

    Returns:
        ReconciledSchedule for the batch.
    """
    expected_total = meta.expected_total_sessions if meta is not None else None

    sequenced = sequence_sessions(sessions, batch_id)
    capped = cap_sessions(sequenced, expected_total)

    classifications = mark_first_upcoming(
        [classify_session(session, now) for session in capped]
    )
    classified = [
        ClassifiedSession(
            session=session,
            classification=classification.model_copy(
                update={"can_join": can_join(session, classification, now)}
            ),
        )
        for session, classification in zip(capped, classifications)
    ]

    items = sink_completed(classified)
    total = effective_total(len(sequenced), expected_total)
    window = paginate(items, total, page=page, page_size=page_size)

    log.debug(
        "schedule_reconciled",
        batch_id=batch_id,
        rows=len(sequenced),
        items=len(items),
        effective_total=total,
        page=window.page,
        total_pages=window.total_pages,
    )

    return ReconciledSchedule(
        batch_id=batch_id,
        items=items,
        effective_total=total,
        page=window.page,
        page_size=page_size,
        total_pages=window.total_pages,
        start_index=window.start_index,
        end_index=window.end_index,
        page_slice=window.items,
        placeholder_count=window.placeholder_count,
        generated_at=now,
        version=version,
    )
