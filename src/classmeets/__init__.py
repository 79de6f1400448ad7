"""Class session schedule engine for the student learning portal.

Turns polled session rows and batch metadata into a stable, paginated,
temporally annotated schedule (join links, today/upcoming badges,
completed sessions archived at the end).
"""

from classmeets.models import (
    BatchScheduleMeta,
    Classification,
    ClassifiedSession,
    ReconciledSchedule,
    Session,
    SessionStatus,
)
from classmeets.reconcile import reconcile_schedule
from classmeets.refresh import RefreshState, ScheduleRefresher

__all__ = [
    "Session",
    "SessionStatus",
    "BatchScheduleMeta",
    "Classification",
    "ClassifiedSession",
    "ReconciledSchedule",
    "reconcile_schedule",
    "ScheduleRefresher",
    "RefreshState",
]
