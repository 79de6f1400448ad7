import pytest

from classmeets.pipeline.join_gate import can_join
from classmeets.pipeline.temporal import classify_session
from tests.conftest import day, make_session


def _gate(session, now):
    return can_join(session, classify_session(session, now), now)


def test_today_session_joinable_at_any_hour(now):
    early = now.replace(hour=6, minute=0)
    assert _gate(make_session(1, date=day(0), time="21:00"), early)


def test_today_session_without_time_is_joinable(now):
    assert _gate(make_session(1, date=day(0)), now)


def test_past_session_with_elapsed_time(now):
    assert _gate(make_session(1, date=day(-2), time="10:00"), now)


def test_future_session_denied(now):
    assert not _gate(make_session(1, date=day(1), time="00:00"), now)


def test_undated_session_denied(now):
    assert not _gate(make_session(1), now)


@pytest.mark.parametrize("status", ["Completed", "Cancelled"])
def test_closed_statuses_denied(now, status):
    assert not _gate(make_session(1, date=day(0), time="10:00", status=status), now)


def test_missing_link_denied(now):
    assert not _gate(make_session(1, date=day(0), join_url=None), now)


def test_past_session_without_time_denied(now):
    assert not _gate(make_session(1, date=day(-1)), now)


@pytest.mark.parametrize("raw_time", ["half past six", "99:99", "18h00"])
def test_unparsable_time_fails_closed(now, raw_time):
    session = make_session(1, date=day(-1), time=raw_time)
    assert not classify_session(session, now).is_today
    assert _gate(session, now) is False


def test_unparsable_time_today_still_joinable(now):
    assert _gate(make_session(1, date=day(0), time="whenever"), now)


def test_unparsable_date_denied(now):
    assert not _gate(make_session(1, date="tomorrow-ish", time="10:00"), now)
