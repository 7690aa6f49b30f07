"""Query controller: debounced input handling on top of the pagination driver."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Protocol

import structlog

from ..config import CatalogConfig, EntityKind, SortKey
from ..errors import EmptyQueryError, InvalidTransition
from .models import FetchError, PageResult, SearchSession, Status
from .pagination import PaginationDriver, ScrollMetrics

SessionListener = Callable[[SearchSession], None]
SelectHandler = Callable[[str], None]


class Gateway(Protocol):
    """Fetch behaviour expected by the controller."""

    def fetch(
        self, query: str, page: int, sort_key: SortKey, generation: int
    ) -> Awaitable[PageResult | FetchError]:
        """Return one page or a FetchError; never raise."""


class QueryController:
    """Own one search session and turn user events into fetches.

    ``set_query`` and ``set_sort`` are synchronous and must be called from
    inside the running event loop: they restart the session immediately and
    schedule the first page after ``debounce_seconds`` of quiet. Fetches
    already past the debounce window are never interrupted; their results
    are dropped by generation when they arrive late.
    """

    def __init__(
        self,
        kind: EntityKind,
        gateway: Gateway,
        config: CatalogConfig,
        logger: structlog.BoundLogger | None = None,
        listener: SessionListener | None = None,
        on_select: SelectHandler | None = None,
    ) -> None:
        self.kind = kind
        self.gateway = gateway
        self.config = config
        self.debounce_seconds = config.debounce_seconds
        self.driver = PaginationDriver(
            page_size=config.page_size,
            min_query_length=config.entity(kind).min_query_length,
            threshold=config.scroll_threshold,
        )
        self.logger = logger or structlog.get_logger("catalog_browser.controller").bind(
            kind=kind.value
        )
        self.listener = listener
        self.on_select = on_select
        self._session = SearchSession(kind=kind)
        self._pending: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def session(self) -> SearchSession:
        return self._session

    # ------------------------------------------------------------------
    # Input events
    # ------------------------------------------------------------------
    def set_query(self, text: str) -> SearchSession:
        if text == self._session.query:
            return self._session
        return self._restart(query=text)

    def set_sort(self, sort_key: SortKey) -> SearchSession:
        if sort_key is self._session.sort_key:
            return self._session
        return self._restart(sort_key=sort_key)

    async def on_scroll(self, metrics: ScrollMetrics) -> SearchSession:
        if not self.driver.near_end(metrics):
            return self._session
        if self._session.status is Status.ERROR:
            # Scrolling back to the end is the user's manual retry.
            return await self.retry()
        if self.driver.can_load_more(self._session):
            return await self.load_more()
        return self._session

    async def submit(self) -> SearchSession:
        """Fetch immediately instead of waiting for the debounce window."""

        if self._session.status is Status.ERROR:
            return await self.retry()
        if self._session.status is Status.IDLE and self._session.accepted_page == 0:
            self._cancel_pending()
            return await self._run(self.driver.begin_initial)
        return self._session

    async def load_more(self) -> SearchSession:
        return await self._run(self.driver.begin_next)

    async def retry(self) -> SearchSession:
        return await self._run(self.driver.begin_retry)

    def select(self, key: str) -> str:
        """Emit the key of a listed record for navigation."""

        if key not in self._session.keys():
            raise KeyError(key)
        self.logger.info("record_selected", key=key)
        if self.on_select is not None:
            self.on_select(key)
        return key

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def wait_idle(self) -> SearchSession:
        """Wait until no debounce or fetch task is outstanding."""

        while self._tasks:
            outcomes = await asyncio.gather(*list(self._tasks), return_exceptions=True)
            for outcome in outcomes:
                # Cancelled debounce timers surface as CancelledError, which is not an Exception.
                if isinstance(outcome, Exception):
                    self.logger.error("task_failed", error=repr(outcome), exc_info=outcome)
        return self._session

    async def aclose(self) -> None:
        self._cancel_pending()
        await self.wait_idle()

    # ------------------------------------------------------------------
    def _commit(self, session: SearchSession) -> None:
        self._session = session
        if self.listener is not None:
            self.listener(session)

    def _restart(self, **changes) -> SearchSession:
        self._cancel_pending()
        session = self._session.restart(**changes)
        self._commit(session)
        self.logger.info(
            "generation_started",
            generation=session.generation,
            query=session.query,
            sort=session.sort_key.value,
        )
        if not self.driver.query_ready(session):
            self.logger.debug("query_below_minimum", query=session.query)
            return session
        task = asyncio.get_running_loop().create_task(self._debounced(session.generation))
        self._pending = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return session

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def _debounced(self, generation: int) -> None:
        await asyncio.sleep(self.debounce_seconds)
        # Past this point the fetch is no longer cancellable by new input.
        if self._pending is asyncio.current_task():
            self._pending = None
        if generation != self._session.generation:
            return
        await self._run(self.driver.begin_initial)

    async def _run(self, start: Callable[[SearchSession], SearchSession]) -> SearchSession:
        try:
            session = start(self._session)
        except EmptyQueryError as exc:
            self.logger.debug("fetch_skipped", reason=str(exc))
            return self._session
        except InvalidTransition as exc:
            self.logger.debug("trigger_ignored", reason=str(exc))
            return self._session
        self._commit(session)
        try:
            outcome = await self.gateway.fetch(
                session.query, session.page, session.sort_key, session.generation
            )
        except Exception as exc:
            self.logger.exception("fetch_crashed", page=session.page, generation=session.generation)
            outcome = FetchError(
                reason=str(exc) or type(exc).__name__,
                generation=session.generation,
                page=session.page,
            )
        current = self._session
        if outcome.generation != current.generation:
            self.logger.info(
                "stale_response_discarded",
                generation=outcome.generation,
                current_generation=current.generation,
                page=outcome.page,
            )
            return current
        updated = self.driver.complete(current, outcome)
        self._commit(updated)
        if isinstance(outcome, FetchError):
            self.logger.warning(
                "page_failed",
                page=outcome.page,
                generation=outcome.generation,
                reason=outcome.reason,
            )
        else:
            self.logger.info(
                "page_merged",
                page=outcome.page,
                generation=outcome.generation,
                total=len(updated.results),
                status=updated.status.value,
            )
        return updated


__all__ = ["Gateway", "QueryController", "SelectHandler", "SessionListener"]
