"""Paginator: page slices sized against the authoritative session total."""

import math
from collections.abc import Sequence
from typing import NamedTuple, TypeVar

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 5


class PageWindow(NamedTuple):
    page: int
    total_pages: int
    start_index: int
    end_index: int
    items: list
    placeholder_count: int


def total_pages(effective_total: int, page_size: int = DEFAULT_PAGE_SIZE) -> int:
    if page_size < 1:
        raise ValueError(f"page_size must be positive, got {page_size}")
    return math.ceil(max(effective_total, 0) / page_size)


def paginate(
    items: Sequence[T],
    effective_total: int,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> PageWindow:
    """Slice one page out of the reordered schedule.

    Page arithmetic uses ``effective_total``, not ``len(items)``: when the
    row source under-reports, the trailing pages still exist and their
    missing rows are reported as ``placeholder_count``. A page past the last
    one resets to page 1.

    Args:
        items: Reordered schedule items.
        effective_total: Authoritative session count.
        page: Requested 1-based page number.
        page_size: Items per page.

    Returns:
        PageWindow with the resolved page, bounds and slice.

    Raises:
        ValueError: If page_size is not positive.
    """
    pages = total_pages(effective_total, page_size)
    if page < 1 or page > pages:
        page = 1

    start = (page - 1) * page_size
    end = min(start + page_size, max(effective_total, 0))
    if end < start:
        end = start
    page_items = list(items[start : min(end, len(items))])

    return PageWindow(
        page=page,
        total_pages=pages,
        start_index=start,
        end_index=end,
        items=page_items,
        placeholder_count=(end - start) - len(page_items),
    )
