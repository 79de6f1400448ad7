import pytest

from classmeets.display import (
    action_label,
    clean_meet_url,
    detail_label,
    format_session_date,
    format_session_time,
    status_label,
    summarize_schedule,
)
from classmeets.models import BatchScheduleMeta, Classification, ClassifiedSession
from classmeets.reconcile import reconcile_schedule
from tests.conftest import BATCH, day, make_session


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("https://meet.google.com/abc-defg-hij", "https://meet.google.com/abc-defg-hij"),
        ("  https://meet.google.com/abc-defg-hij?authuser=1 ", "https://meet.google.com/abc-defg-hij"),
        ("https://meet.google.com/abc-defg-hij/extra", "https://meet.google.com/abc-defg-hij"),
        (
            "intent://meet.google.com/abc#Intent;url%3Dhttps%3A%2F%2Fmeet.google.com%2Fxyz-abcd-efg&end",
            "https://meet.google.com/xyz-abcd-efg",
        ),
        ("https://zoom.us/j/123", "https://zoom.us/j/123"),
    ],
)
def test_clean_meet_url(raw, expected):
    assert clean_meet_url(raw) == expected


def test_format_session_date():
    assert format_session_date("2025-01-05") == "Jan 5, 2025"
    assert format_session_date("someday") == "someday"
    assert format_session_date(None) == ""


def test_format_session_time():
    assert format_session_time("18:30:00") == "06:30 PM"
    assert format_session_time("09:05") == "09:05 AM"
    assert format_session_time("noon") == "noon"
    assert format_session_time(None) == ""


def test_status_label_defaults_to_scheduled():
    assert status_label(make_session(1)) == "Scheduled"
    assert status_label(make_session(1, status="Cancelled")) == "Cancelled"


def test_detail_label_shows_note_and_cancellation_reason():
    assert detail_label(make_session(1)) == ""
    assert detail_label(make_session(1, note="Bring laptops")) == "Bring laptops"
    assert (
        detail_label(make_session(1, status="Cancelled", cancellation_reason="Trainer sick"))
        == "Reason: Trainer sick"
    )
    assert (
        detail_label(
            make_session(1, status="Cancelled", note="Moved", cancellation_reason="Holiday")
        )
        == "Moved; Reason: Holiday"
    )


def test_detail_label_ignores_reason_unless_cancelled():
    session = make_session(1, status="Scheduled", cancellation_reason="stale reason")
    assert detail_label(session) == ""


def _labelled(session, **flags):
    return ClassifiedSession(session=session, classification=Classification(**flags))


def test_action_labels():
    assert action_label(_labelled(make_session(1), can_join=True)) == "Join"
    assert (
        action_label(_labelled(make_session(1, date="2025-01-05"), is_future=True, is_first_upcoming=True))
        == "Starts on Jan 5, 2025"
    )
    assert (
        action_label(_labelled(make_session(1), is_future=True, is_first_upcoming=True))
        == "Starts on scheduled date"
    )
    assert action_label(_labelled(make_session(1), is_future=True)) == "Session not started"
    assert action_label(_labelled(make_session(1, date=day(-1)))) == "No meeting link"


def test_summarize_schedule(now):
    sessions = [
        make_session(1, date=day(-2), status="Completed"),
        make_session(2, date=day(-1), status="Cancelled"),
        make_session(3, date=day(0), status="Scheduled"),
        make_session(4, date=day(1)),
    ]
    meta = BatchScheduleMeta(batch_id=BATCH, expected_total_sessions=10)
    summary = summarize_schedule(reconcile_schedule(sessions, meta, BATCH, now))
    assert summary.total == 10
    assert summary.completed == 1
    assert summary.cancelled == 1
    assert summary.pending == 2
