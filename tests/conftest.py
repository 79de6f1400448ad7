"""Shared fixtures for schedule engine tests."""

from datetime import datetime, timedelta

import pytest

from classmeets.models import Session

NOW = datetime(2026, 3, 10, 14, 30)
BATCH = "batch-a"


def day(offset: int) -> str:
    """ISO date ``offset`` days from NOW."""
    return (NOW + timedelta(days=offset)).date().isoformat()


def make_session(number: int | None = None, **fields) -> Session:
    fields.setdefault("id", f"meet-{number}")
    fields.setdefault("batch_id", BATCH)
    fields.setdefault("join_url", "https://meet.google.com/abc-defg-hij")
    return Session(session_number=number, **fields)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def scenario_sessions() -> list[Session]:
    """Yesterday (completed), today, tomorrow, day after tomorrow."""
    return [
        make_session(1, date=day(-1), time="10:00", status="Completed"),
        make_session(2, date=day(0), time="18:00"),
        make_session(3, date=day(1), time="18:00"),
        make_session(4, date=day(2), time="18:00"),
    ]
