"""Error hierarchy for portal fetch retry classification and session parsing.

Transient failures are retried by the tenacity decorators in the API client;
permanent failures are raised immediately. The refresher decides whether a
failure is surfaced (cold start) or swallowed (background refresh).

Example usage with tenacity:
    @retry(retry=retry_if_exception_type(TransientError), stop=stop_after_attempt(3))
    def get_class_meets(batch_id: str):
        ...
"""


class ScheduleError(Exception):
    """Base exception for all schedule engine errors."""

    pass


class TransientError(ScheduleError):
    """Temporary failure that may succeed on retry.

    Examples: network timeouts, connection resets, 502/503 from the portal API.
    """

    pass


class RateLimitError(TransientError):
    """Portal API answered 429 Too Many Requests."""

    pass


class PermanentError(ScheduleError):
    """Failure that won't succeed on retry.

    Examples: 404 for an unknown batch, a response body that is not JSON.
    """

    pass


class AuthenticationError(PermanentError):
    """Bearer token missing, expired or rejected (401/403).

    Requires a fresh login, cannot be fixed by retry.
    """

    pass


class SessionParseError(PermanentError):
    """A session's date or time string cannot be interpreted.

    Never escapes the pipeline: the classifier treats the session as future
    and the join gate denies it.
    """

    def __init__(self, field: str, value: object) -> None:
        super().__init__(f"Cannot parse session {field}: {value!r}")
        self.field = field
        self.value = value
