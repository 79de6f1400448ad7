"""Refresh loop: keeps a batch's reconciled schedule current.

ScheduleRefresher owns two independently polled sources (session rows and
batch metadata), re-runs the pure pipeline whenever either delivers, and
exposes the latest view plus loading/error flags.

State machine:
    IDLE -> LOADING (cold) -> READY
    READY -> REFRESHING (background) -> READY
    LOADING -> ERROR (cold session fetch failed; pollers keep trying)

A cold start is any refresh while no good view exists for the current
batch. Failures there are surfaced through ``last_error``. Background
failures are logged and the previous view stays on screen unchanged.
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from classmeets.config import ScheduleConfig, get_config
from classmeets.logging import bind_batch, get_logger
from classmeets.models import BatchScheduleMeta, ReconciledSchedule, Session
from classmeets.pipeline import DEFAULT_PAGE_SIZE
from classmeets.reconcile import reconcile_schedule

if TYPE_CHECKING:
    from classmeets.client import PortalApiClient

log = get_logger(__name__)

SessionFetcher = Callable[[str], Awaitable[list[Session]]]
MetaFetcher = Callable[[str], Awaitable[BatchScheduleMeta | None]]
Clock = Callable[[], datetime]


class RefreshState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    REFRESHING = "refreshing"
    ERROR = "error"


class ScheduleRefresher:
    """Polls session rows and batch metadata and maintains the schedule view.

    Only this object mutates the page cursor and the last-known-good
    schedule. Every response is tagged with the (batch, generation) it was
    requested for; responses that arrive after a batch switch are discarded.
    """

    def __init__(
        self,
        fetch_sessions: SessionFetcher,
        fetch_batch_meta: MetaFetcher,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        sessions_interval: float = 5.0,
        meta_interval: float = 60.0,
        clock: Clock | None = None,
    ) -> None:
        """Initialize ScheduleRefresher.

        Args:
            fetch_sessions: Async source of a batch's session rows.
            fetch_batch_meta: Async source of a batch's scheduling metadata.
            page_size: Sessions per page.
            sessions_interval: Seconds between session row polls.
            meta_interval: Seconds between metadata polls.
            clock: Returns the current instant (local naive time by default).
        """
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")

        self._fetch_sessions = fetch_sessions
        self._fetch_batch_meta = fetch_batch_meta
        self.page_size = page_size
        self.sessions_interval = sessions_interval
        self.meta_interval = meta_interval
        self._clock = clock or datetime.now

        self._batch_id: str | None = None
        self._generation = 0
        self._sessions: list[Session] | None = None
        self._meta: BatchScheduleMeta | None = None
        self._schedule: ReconciledSchedule | None = None
        self._page = 1
        self._version = 0
        self._in_flight = 0
        self._tasks: list[asyncio.Task] = []

        self.state = RefreshState.IDLE
        self.last_error: Exception | None = None

    @classmethod
    def from_client(
        cls,
        client: "PortalApiClient",
        config: ScheduleConfig | None = None,
        *,
        clock: Clock | None = None,
    ) -> "ScheduleRefresher":
        config = config or get_config()
        return cls(
            client.fetch_sessions,
            client.fetch_batch_meta,
            page_size=config.page_size,
            sessions_interval=config.sessions_poll_seconds,
            meta_interval=config.meta_poll_seconds,
            clock=clock,
        )

    async def __aenter__(self) -> "ScheduleRefresher":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    @property
    def batch_id(self) -> str | None:
        return self._batch_id

    @property
    def page(self) -> int:
        return self._page

    @property
    def version(self) -> int:
        return self._version

    @property
    def is_cold_loading(self) -> bool:
        return self.state is RefreshState.LOADING

    def get_reconciled_schedule(self) -> ReconciledSchedule | None:
        """Return the current view, or None before the first good refresh."""
        return self._schedule

    async def set_batch(self, batch_id: str) -> None:
        """Switch to a batch: drop all state, run the cold tick, start polling.

        Outstanding pollers and in-flight fetches of the previous batch are
        cancelled first; anything of theirs that still arrives is discarded.
        """
        await self._cancel_pollers()
        self._generation += 1
        generation = self._generation
        self._batch_id = batch_id
        self._sessions = None
        self._meta = None
        self._schedule = None
        self._page = 1
        self._in_flight = 0
        self.last_error = None
        self.state = RefreshState.LOADING

        bind_batch(batch_id)
        log.info("batch_selected", generation=generation)

        await self._refresh(generation, sessions=True, meta=True)
        # Superseded by another set_batch() or stop() while the cold tick ran
        if generation != self._generation:
            log.debug("batch_switch_superseded", batch_id=batch_id)
            return
        self._start_pollers()

    async def refresh_now(self) -> None:
        """Run an out-of-cycle tick of both sources."""
        if self._batch_id is None:
            raise RuntimeError("No batch selected; call set_batch() first")
        await self._refresh(self._generation, sessions=True, meta=True)

    def set_page(self, page: int) -> None:
        """Move the page cursor and re-slice the current snapshot.

        A page past the last one resets to 1 on the next reconciliation.

        Raises:
            ValueError: If page is below 1.
        """
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page}")
        self._page = page
        if self._sessions is not None:
            self._recompute()

    async def stop(self) -> None:
        """Cancel polling and forget the batch (view unmounted)."""
        await self._cancel_pollers()
        self._generation += 1
        self._batch_id = None
        self._sessions = None
        self._meta = None
        self._schedule = None
        self._in_flight = 0
        self.state = RefreshState.IDLE
        log.debug("refresher_stopped")
        bind_batch(None)

    def _is_stale(self, batch_id: str | None, generation: int) -> bool:
        return batch_id != self._batch_id or generation != self._generation

    async def _refresh(self, generation: int, *, sessions: bool, meta: bool) -> None:
        """Fetch the requested sources once and fold the results into the view."""
        batch_id = self._batch_id
        if batch_id is None or self._is_stale(batch_id, generation):
            return

        cold = self._schedule is None
        self._in_flight += 1
        self.state = RefreshState.LOADING if cold else RefreshState.REFRESHING

        try:
            fetches: list[Awaitable] = []
            if sessions:
                fetches.append(self._fetch_sessions(batch_id))
            if meta:
                fetches.append(self._fetch_batch_meta(batch_id))
            results = await asyncio.gather(*fetches, return_exceptions=True)
        finally:
            if not self._is_stale(batch_id, generation):
                self._in_flight -= 1

        for result in results:
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result

        if self._is_stale(batch_id, generation):
            log.info(
                "stale_response_discarded",
                batch_id=batch_id,
                current_batch_id=self._batch_id,
            )
            return

        results = list(results)
        applied = False
        if meta:
            applied |= self._apply_meta(results.pop(), batch_id, cold)
        if sessions:
            applied |= self._apply_sessions(results.pop(), batch_id, cold)

        if applied:
            self._recompute()
        self._settle_state()

    def _apply_sessions(self, result, batch_id: str, cold: bool) -> bool:
        if isinstance(result, Exception):
            if cold:
                self.last_error = result
                log.error(
                    "cold_start_failed",
                    batch_id=batch_id,
                    error=str(result),
                    type=type(result).__name__,
                )
            else:
                log.warning(
                    "background_refresh_failed",
                    batch_id=batch_id,
                    source="sessions",
                    error=str(result),
                    type=type(result).__name__,
                )
            return False

        if not result and self._sessions:
            log.info("empty_refresh_ignored", batch_id=batch_id, source="sessions")
            return False

        self._sessions = list(result)
        self.last_error = None
        return True

    def _apply_meta(self, result, batch_id: str, cold: bool) -> bool:
        if isinstance(result, Exception):
            # Never surfaced: without metadata the capper uses the full row list
            log.warning(
                "background_refresh_failed",
                batch_id=batch_id,
                source="batch_meta",
                cold=cold,
                error=str(result),
                type=type(result).__name__,
            )
            return False

        if result is None:
            if self._meta is not None:
                log.info("empty_refresh_ignored", batch_id=batch_id, source="batch_meta")
            return False

        if result.batch_id != batch_id:
            log.warning(
                "stale_response_discarded",
                batch_id=batch_id,
                response_batch_id=result.batch_id,
                source="batch_meta",
            )
            return False

        self._meta = result
        return True

    def _recompute(self) -> None:
        if self._sessions is None or self._batch_id is None:
            return

        now = self._clock()
        self._version += 1
        schedule = reconcile_schedule(
            self._sessions,
            self._meta,
            self._batch_id,
            now,
            page=self._page,
            page_size=self.page_size,
            version=self._version,
        )
        if schedule.page != self._page:
            log.info(
                "page_reset",
                requested=self._page,
                total_pages=schedule.total_pages,
            )
        self._page = schedule.page
        self._schedule = schedule

    def _settle_state(self) -> None:
        if self._in_flight > 0:
            return
        if self._schedule is not None:
            self.state = RefreshState.READY
        elif self.last_error is not None:
            self.state = RefreshState.ERROR

    def _start_pollers(self) -> None:
        for task in self._tasks:
            task.cancel()
        generation = self._generation
        self._tasks = [
            asyncio.create_task(
                self._poll(generation, self.sessions_interval, sessions=True, meta=False),
                name=f"poll-sessions-{self._batch_id}",
            ),
            asyncio.create_task(
                self._poll(generation, self.meta_interval, sessions=False, meta=True),
                name=f"poll-batch-meta-{self._batch_id}",
            ),
        ]

    async def _poll(
        self, generation: int, interval: float, *, sessions: bool, meta: bool
    ) -> None:
        while generation == self._generation:
            await asyncio.sleep(interval)
            try:
                await self._refresh(generation, sessions=sessions, meta=meta)
            except Exception as e:
                log.error(
                    "poll_tick_failed",
                    batch_id=self._batch_id,
                    error=str(e),
                    type=type(e).__name__,
                )

    async def _cancel_pollers(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
