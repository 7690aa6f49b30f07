"""Pagination state machine and scroll-proximity trigger."""

from __future__ import annotations

from dataclasses import dataclass, replace

from ..errors import EmptyQueryError, InvalidTransition
from .accumulator import merge
from .models import FetchError, PageResult, SearchSession, Status

TRANSITIONS: dict[Status, frozenset[Status]] = {
    Status.IDLE: frozenset({Status.LOADING, Status.LOADING_MORE}),
    Status.LOADING: frozenset({Status.IDLE, Status.EXHAUSTED, Status.ERROR}),
    Status.LOADING_MORE: frozenset({Status.IDLE, Status.EXHAUSTED, Status.ERROR}),
    Status.ERROR: frozenset({Status.LOADING}),
    Status.EXHAUSTED: frozenset(),
}


def transition(session: SearchSession, status: Status) -> SearchSession:
    """Move the session to ``status`` or raise :class:`InvalidTransition`."""

    if status not in TRANSITIONS[session.status]:
        raise InvalidTransition(f"{session.status.value} -> {status.value} is not allowed")
    return replace(session, status=status)


@dataclass(slots=True)
class ScrollMetrics:
    """Viewport geometry reported by the list view."""

    offset: float
    viewport_height: float
    content_height: float

    @property
    def remaining(self) -> float:
        return self.content_height - (self.offset + self.viewport_height)


class PaginationDriver:
    """Decide when to request pages and apply their outcomes.

    Every method takes a session and returns a new one. Outcomes whose
    generation does not match the session are ignored.
    """

    def __init__(self, page_size: int, min_query_length: int = 0, threshold: float = 0.5) -> None:
        self.page_size = page_size
        self.min_query_length = min_query_length
        self.threshold = threshold

    def query_ready(self, session: SearchSession) -> bool:
        query = session.query.strip()
        return bool(query) and len(query) >= self.min_query_length

    def near_end(self, metrics: ScrollMetrics) -> bool:
        return metrics.remaining <= self.threshold * metrics.viewport_height

    def can_load_more(self, session: SearchSession) -> bool:
        return (
            session.status is Status.IDLE
            and session.has_more
            and session.accepted_page == session.page
            and self.query_ready(session)
        )

    def should_load_more(self, session: SearchSession, metrics: ScrollMetrics) -> bool:
        return self.near_end(metrics) and self.can_load_more(session)

    # ------------------------------------------------------------------
    def begin_initial(self, session: SearchSession) -> SearchSession:
        """Enter LOADING for page 1 of a fresh generation."""

        if not self.query_ready(session):
            raise EmptyQueryError(f"query {session.query!r} is below the minimum length")
        if session.accepted_page != 0:
            raise InvalidTransition("initial load requires a fresh generation")
        return replace(transition(session, Status.LOADING), page=1)

    def begin_next(self, session: SearchSession) -> SearchSession:
        """Enter LOADING_MORE and advance to the next page."""

        if not self.can_load_more(session):
            raise InvalidTransition(
                f"cannot load more from {session.status.value} (page {session.page})"
            )
        return replace(transition(session, Status.LOADING_MORE), page=session.page + 1)

    def begin_retry(self, session: SearchSession) -> SearchSession:
        """Re-request the failed page without advancing it."""

        if not self.query_ready(session):
            raise EmptyQueryError(f"query {session.query!r} is below the minimum length")
        return transition(session, Status.LOADING)

    def complete(self, session: SearchSession, outcome: PageResult | FetchError) -> SearchSession:
        if outcome.generation != session.generation or outcome.page != session.page:
            return session
        if not session.is_loading:
            return session
        if isinstance(outcome, FetchError):
            return replace(transition(session, Status.ERROR), last_error=outcome.reason)
        merged = merge(session, outcome, self.page_size)
        # Validates LOADING* -> IDLE/EXHAUSTED; merge already set the status.
        transition(session, merged.status)
        return merged


__all__ = ["PaginationDriver", "ScrollMetrics", "TRANSITIONS", "transition"]
