"""Portal API client: the two data sources the refresher polls.

Wraps the learning-portal REST API with requests. HTTP failures are mapped
onto the error hierarchy so tenacity retries only transient ones. The async
fetch_* methods run the blocking calls in a worker thread so the refresher's
event loop never blocks.
"""

import asyncio
from typing import Any

import requests
from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from classmeets.config import ScheduleConfig, get_config
from classmeets.errors import (
    AuthenticationError,
    PermanentError,
    RateLimitError,
    TransientError,
)
from classmeets.logging import get_logger
from classmeets.models import BatchScheduleMeta, Session

logger = get_logger(__name__)


def parse_sessions(payload: Any) -> list[Session]:
    """Validate raw session records, skipping the ones that cannot be shown.

    A record is skipped only when it is not an object or has no identifier;
    malformed optional fields degrade to absent inside the Session model.
    """
    if not isinstance(payload, list):
        raise PermanentError(
            f"Expected a list of sessions, got {type(payload).__name__}"
        )

    sessions: list[Session] = []
    for index, record in enumerate(payload):
        if not isinstance(record, dict):
            logger.warning("session_record_skipped", index=index, reason="not_an_object")
            continue
        try:
            sessions.append(Session.model_validate(record))
        except ValidationError as e:
            logger.warning(
                "session_record_skipped",
                index=index,
                reason="invalid",
                errors=e.error_count(),
            )
    return sessions


def find_batch_meta(payload: Any, batch_id: str) -> BatchScheduleMeta | None:
    """Pick a batch's metadata out of the enrolled-batches response."""
    if not isinstance(payload, dict):
        raise PermanentError(
            f"Expected an enrollments object, got {type(payload).__name__}"
        )

    for enrollment in payload.get("enrollments") or []:
        batch = enrollment.get("batches") if isinstance(enrollment, dict) else None
        if isinstance(batch, dict) and str(batch.get("batch_id")) == batch_id:
            try:
                return BatchScheduleMeta.model_validate(batch)
            except ValidationError as e:
                raise PermanentError(f"Invalid batch metadata for {batch_id}") from e
    return None


class PortalApiClient:
    """Read-only client for the session and batch endpoints of the portal API."""

    SESSIONS_PATH = "/classes/gmeets/{batch_id}"
    ENROLLED_BATCHES_PATH = "/batches/enrolled"

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        timeout: float = 15.0,
        http: requests.Session | None = None,
    ) -> None:
        """Initialize PortalApiClient.

        Args:
            base_url: Portal API base URL (e.g., http://localhost:3006/api).
            token: Student bearer token.
            timeout: Per-request timeout in seconds.
            http: requests session to use (a new one by default).
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = http or requests.Session()
        self.http.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            }
        )

    @classmethod
    def from_config(cls, config: ScheduleConfig | None = None) -> "PortalApiClient":
        config = config or get_config()
        return cls(
            config.portal_api_url,
            config.portal_api_token,
            timeout=config.request_timeout_seconds,
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, max=4),
        retry=retry_if_exception_type(TransientError),
        reraise=True,
    )
    def _get_json(self, path: str) -> Any:
        """GET a JSON document, classifying failures for retry.

        Raises:
            TransientError: Timeouts, connection errors, 5xx.
            RateLimitError: 429.
            AuthenticationError: 401/403.
            PermanentError: Other 4xx or a body that is not JSON.
        """
        url = f"{self.base_url}{path}"
        try:
            resp = self.http.get(url, timeout=self.timeout)
        except (requests.Timeout, requests.ConnectionError) as e:
            logger.warning("portal_request_failed", url=url, error=str(e))
            raise TransientError(f"Request to {path} failed: {e}") from e

        if resp.status_code in (401, 403):
            logger.error("portal_auth_rejected", url=url, status=resp.status_code)
            raise AuthenticationError(f"Portal rejected token ({resp.status_code})")
        if resp.status_code == 429:
            logger.warning("portal_rate_limited", url=url)
            raise RateLimitError(f"Rate limited on {path}")
        if resp.status_code >= 500:
            logger.warning("portal_server_error", url=url, status=resp.status_code)
            raise TransientError(f"Portal error {resp.status_code} on {path}")
        if resp.status_code >= 400:
            logger.error("portal_request_rejected", url=url, status=resp.status_code)
            raise PermanentError(f"Portal returned {resp.status_code} on {path}")

        try:
            return resp.json()
        except ValueError as e:
            raise PermanentError(f"Portal returned non-JSON body on {path}") from e

    def get_class_meets(self, batch_id: str) -> list[Session]:
        """Fetch the session rows of a batch.

        Rows of merged batches may be included; the sequencer filters them.
        """
        payload = self._get_json(self.SESSIONS_PATH.format(batch_id=batch_id))
        sessions = parse_sessions(payload)
        logger.debug("class_meets_fetched", batch_id=batch_id, count=len(sessions))
        return sessions

    def get_batch_details(self, batch_id: str) -> BatchScheduleMeta | None:
        """Fetch a batch's scheduling metadata from the student's enrollments.

        Returns:
            The batch metadata, or None if the student is not enrolled in it.
        """
        payload = self._get_json(self.ENROLLED_BATCHES_PATH)
        meta = find_batch_meta(payload, batch_id)
        if meta is None:
            logger.info("batch_not_enrolled", batch_id=batch_id)
        else:
            logger.debug(
                "batch_details_fetched",
                batch_id=batch_id,
                total_sessions=meta.expected_total_sessions,
            )
        return meta

    async def fetch_sessions(self, batch_id: str) -> list[Session]:
        return await asyncio.to_thread(self.get_class_meets, batch_id)

    async def fetch_batch_meta(self, batch_id: str) -> BatchScheduleMeta | None:
        return await asyncio.to_thread(self.get_batch_details, batch_id)

    def close(self) -> None:
        self.http.close()
