import json

import pytest
import requests

from classmeets.client import PortalApiClient, find_batch_meta, parse_sessions
from classmeets.errors import (
    AuthenticationError,
    PermanentError,
    RateLimitError,
    TransientError,
)


def _response(status: int, body) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response._content = body if isinstance(body, bytes) else json.dumps(body).encode()
    response.headers["Content-Type"] = "application/json"
    return response


class StubHttp(requests.Session):
    """requests.Session that serves canned responses instead of the network."""

    def __init__(self, *responses):
        super().__init__()
        self.responses = list(responses)
        self.requested: list[str] = []

    def get(self, url, **kwargs):
        self.requested.append(url)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture(autouse=True)
def no_retry_wait(monkeypatch):
    monkeypatch.setattr("time.sleep", lambda seconds: None)


def _client(*responses):
    http = StubHttp(*responses)
    return PortalApiClient("http://portal.test/api/", "tok", http=http), http


MEETS = [
    {"meet_id": "m1", "batch_id": "b1", "session_number": 1, "date": "2026-03-01"},
    {"meet_id": "m2", "batch_id": "b1", "session_number": 2, "date": "2026-03-03"},
]

ENROLLED = {
    "enrollments": [
        {"enrollment_id": "e1", "batches": {"batch_id": "b0", "total_sessions": 3}},
        {
            "enrollment_id": "e2",
            "batches": {"batch_id": "b1", "batch_name": "A1 Evening", "total_sessions": 10},
        },
    ]
}


def test_sends_bearer_token():
    client, http = _client(_response(200, MEETS))
    client.get_class_meets("b1")
    assert http.headers["Authorization"] == "Bearer tok"
    assert http.requested == ["http://portal.test/api/classes/gmeets/b1"]


def test_get_class_meets_parses_sessions():
    client, _ = _client(_response(200, MEETS))
    sessions = client.get_class_meets("b1")
    assert [s.id for s in sessions] == ["m1", "m2"]


def test_get_batch_details_finds_enrollment():
    client, http = _client(_response(200, ENROLLED))
    meta = client.get_batch_details("b1")
    assert meta.expected_total_sessions == 10
    assert meta.batch_name == "A1 Evening"
    assert http.requested == ["http://portal.test/api/batches/enrolled"]


def test_get_batch_details_not_enrolled():
    client, _ = _client(_response(200, ENROLLED))
    assert client.get_batch_details("zzz") is None


@pytest.mark.parametrize("status", [401, 403])
def test_auth_errors_are_not_retried(status):
    client, http = _client(_response(status, {"error": "expired"}))
    with pytest.raises(AuthenticationError):
        client.get_class_meets("b1")
    assert len(http.requested) == 1


def test_not_found_is_permanent():
    client, http = _client(_response(404, {"error": "no batch"}))
    with pytest.raises(PermanentError):
        client.get_class_meets("b1")
    assert len(http.requested) == 1


def test_server_error_is_retried_then_succeeds():
    client, http = _client(_response(503, {}), _response(200, MEETS))
    sessions = client.get_class_meets("b1")
    assert len(sessions) == 2
    assert len(http.requested) == 2


def test_connection_error_gives_up_after_three_attempts():
    client, http = _client(
        requests.ConnectionError("reset"),
        requests.Timeout("slow"),
        requests.ConnectionError("reset"),
    )
    with pytest.raises(TransientError):
        client.get_class_meets("b1")
    assert len(http.requested) == 3


def test_rate_limit_is_transient():
    client, _ = _client(_response(429, {}), _response(429, {}), _response(429, {}))
    with pytest.raises(RateLimitError):
        client.get_class_meets("b1")


def test_non_json_body_is_permanent():
    client, _ = _client(_response(200, b"<html>oops</html>"))
    with pytest.raises(PermanentError):
        client.get_class_meets("b1")


def test_parse_sessions_skips_unusable_records():
    sessions = parse_sessions(
        [
            {"meet_id": "ok", "batch_id": "b1"},
            "not a record",
            {"batch_id": "b1", "date": "2026-03-01"},
            {"meet_id": "odd", "batch_id": "b1", "date": "someday", "status": "???"},
        ]
    )
    assert [s.id for s in sessions] == ["ok", "odd"]
    assert sessions[1].date == "someday"


def test_parse_sessions_rejects_non_list():
    with pytest.raises(PermanentError):
        parse_sessions({"data": []})


def test_find_batch_meta_handles_missing_enrollments():
    assert find_batch_meta({}, "b1") is None
    assert find_batch_meta({"enrollments": None}, "b1") is None


@pytest.mark.asyncio
async def test_async_fetchers_run_blocking_calls():
    client, _ = _client(_response(200, MEETS), _response(200, ENROLLED))
    sessions = await client.fetch_sessions("b1")
    meta = await client.fetch_batch_meta("b1")
    assert len(sessions) == 2
    assert meta.batch_id == "b1"
