from __future__ import annotations

import pytest

from catalog_browser.engine import FetchError, PageResult, PaginationDriver, ScrollMetrics, Status
from catalog_browser.engine.pagination import transition
from catalog_browser.errors import EmptyQueryError, InvalidTransition

from conftest import make_record, make_session


def _driver(min_query_length: int = 3) -> PaginationDriver:
    return PaginationDriver(page_size=20, min_query_length=min_query_length, threshold=0.5)


def _full_page(generation: int, page: int) -> PageResult:
    records = tuple(make_record(f"/works/{page}-{i}", f"T {page}-{i:02d}") for i in range(20))
    return PageResult(records=records, generation=generation, page=page, raw_count=20)


@pytest.mark.parametrize(
    ("start", "target"),
    [
        (Status.IDLE, Status.ERROR),
        (Status.IDLE, Status.EXHAUSTED),
        (Status.ERROR, Status.LOADING_MORE),
        (Status.ERROR, Status.IDLE),
        (Status.EXHAUSTED, Status.LOADING),
        (Status.EXHAUSTED, Status.LOADING_MORE),
        (Status.LOADING, Status.LOADING_MORE),
    ],
)
def test_illegal_transitions_raise(start: Status, target: Status) -> None:
    with pytest.raises(InvalidTransition):
        transition(make_session(status=start), target)


def test_error_allows_manual_retry() -> None:
    assert transition(make_session(status=Status.ERROR), Status.LOADING).status is Status.LOADING


def test_near_end_uses_half_viewport_threshold() -> None:
    driver = _driver()
    assert driver.near_end(ScrollMetrics(offset=860, viewport_height=100, content_height=1000))
    assert driver.near_end(ScrollMetrics(offset=850, viewport_height=100, content_height=1000))
    assert not driver.near_end(ScrollMetrics(offset=800, viewport_height=100, content_height=1000))


def test_initial_load_then_next_page() -> None:
    driver = _driver()
    session = make_session(status=Status.IDLE)
    loading = driver.begin_initial(session)
    assert loading.status is Status.LOADING
    assert loading.page == 1

    idle = driver.complete(loading, _full_page(generation=1, page=1))
    assert idle.status is Status.IDLE
    assert driver.can_load_more(idle)

    more = driver.begin_next(idle)
    assert more.status is Status.LOADING_MORE
    assert more.page == 2
    assert not driver.can_load_more(more)


def test_initial_load_rejects_short_query() -> None:
    with pytest.raises(EmptyQueryError):
        _driver().begin_initial(make_session(query="xq", status=Status.IDLE))


def test_cannot_advance_before_first_page_accepted() -> None:
    driver = _driver()
    session = make_session(status=Status.IDLE, accepted_page=0)
    assert not driver.can_load_more(session)
    with pytest.raises(InvalidTransition):
        driver.begin_next(session)


def test_failure_keeps_page_and_results() -> None:
    driver = _driver()
    page_one = driver.complete(driver.begin_initial(make_session(status=Status.IDLE)), _full_page(1, 1))
    loading = driver.begin_next(page_one)
    failed = driver.complete(loading, FetchError(reason="timeout", generation=1, page=2))
    assert failed.status is Status.ERROR
    assert failed.page == 2
    assert failed.results == page_one.results
    assert failed.last_error == "timeout"

    retry = driver.begin_retry(failed)
    assert retry.status is Status.LOADING
    assert retry.page == 2
    recovered = driver.complete(retry, _full_page(1, 2))
    assert len(recovered.results) == 40
    assert recovered.accepted_page == 2


def test_stale_outcome_is_ignored() -> None:
    driver = _driver()
    loading = driver.begin_initial(make_session(generation=5, status=Status.IDLE))
    assert driver.complete(loading, _full_page(generation=4, page=1)) is loading
    assert driver.complete(loading, FetchError(reason="x", generation=4, page=1)) is loading


def test_exhausted_blocks_further_pages() -> None:
    driver = _driver()
    loading = driver.begin_initial(make_session(status=Status.IDLE))
    short = PageResult(records=(make_record("a"),), generation=1, page=1, raw_count=1)
    exhausted = driver.complete(loading, short)
    assert exhausted.status is Status.EXHAUSTED
    assert not driver.should_load_more(
        exhausted, ScrollMetrics(offset=900, viewport_height=100, content_height=1000)
    )
    with pytest.raises(InvalidTransition):
        driver.begin_retry(exhausted)
