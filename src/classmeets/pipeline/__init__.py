"""Pure schedule pipeline stages, in data-flow order."""

from classmeets.pipeline.capper import cap_sessions, effective_total
from classmeets.pipeline.join_gate import can_join
from classmeets.pipeline.paginator import DEFAULT_PAGE_SIZE, PageWindow, paginate
from classmeets.pipeline.reorder import sink_completed
from classmeets.pipeline.sequencer import sequence_sessions
from classmeets.pipeline.temporal import classify_session, mark_first_upcoming

__all__ = [
    "sequence_sessions",
    "cap_sessions",
    "effective_total",
    "classify_session",
    "mark_first_upcoming",
    "can_join",
    "sink_completed",
    "paginate",
    "PageWindow",
    "DEFAULT_PAGE_SIZE",
]
