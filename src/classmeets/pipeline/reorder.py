"""Presentation reorderer: completed sessions sink to the end of the schedule."""

from classmeets.models import ClassifiedSession


def sink_completed(items: list[ClassifiedSession]) -> list[ClassifiedSession]:
    """Stable partition: non-completed sessions first, completed after.

    Order within each partition is the input (sequence) order. This is not a
    re-sort; items with equal or missing keys never move relative to each other.
    """
    active = [item for item in items if not item.classification.is_completed]
    completed = [item for item in items if item.classification.is_completed]
    return active + completed
