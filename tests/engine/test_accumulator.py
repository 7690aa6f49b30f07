from __future__ import annotations

from datetime import date

import pytest

from catalog_browser.config import SortKey
from catalog_browser.engine import PageResult, Status
from catalog_browser.engine.accumulator import chronological_key, dedupe, merge, sort_records

from conftest import make_record, make_session


def _page(records, generation=1, page=1, raw_count=None) -> PageResult:
    records = tuple(records)
    return PageResult(
        records=records,
        generation=generation,
        page=page,
        raw_count=len(records) if raw_count is None else raw_count,
    )


def test_merge_discards_other_generation() -> None:
    session = make_session(generation=3, results=(make_record("a"),))
    result = merge(session, _page([make_record("b")], generation=2), page_size=20)
    assert result is session


def test_merge_dedupes_against_existing_and_incoming() -> None:
    existing = (make_record("/works/1", "Alpha"), make_record("/works/2", "Beta"))
    session = make_session(results=existing, page=2, accepted_page=1, status=Status.LOADING_MORE)
    incoming = [
        make_record("/works/2", "Beta (second copy)"),
        make_record("/works/3", "Gamma"),
        make_record("/works/3", "Gamma again"),
        make_record("/works/4", "Delta"),
    ]
    result = merge(session, _page(incoming, page=2, raw_count=20), page_size=20)
    assert len(result.results) == len(existing) + 2
    titles = {record.key: record.display_title for record in result.results}
    assert titles["/works/2"] == "Beta"
    assert titles["/works/3"] == "Gamma"
    assert result.accepted_page == 2


def test_merge_sets_exhausted_on_short_page() -> None:
    session = make_session()
    short = merge(session, _page([make_record("a")], raw_count=1), page_size=20)
    assert short.status is Status.EXHAUSTED
    assert not short.has_more

    empty = merge(session, _page([], raw_count=0), page_size=20)
    assert empty.status is Status.EXHAUSTED
    assert empty.results == ()


def test_merge_full_page_keeps_idle() -> None:
    records = [make_record(f"k{i}", f"Title {i:02d}") for i in range(20)]
    result = merge(make_session(), _page(records), page_size=20)
    assert result.status is Status.IDLE
    assert result.has_more


def test_merge_uses_raw_count_for_more_signal() -> None:
    # 20 entries in the body, one of them unusable and dropped by the gateway.
    records = [make_record(f"k{i}") for i in range(19)]
    result = merge(make_session(), _page(records, raw_count=20), page_size=20)
    assert result.status is Status.IDLE


def test_primary_sort_is_case_insensitive() -> None:
    records = [make_record("1", "banana"), make_record("2", "Apple"), make_record("3", "cherry")]
    ordered = sort_records(records, SortKey.PRIMARY)
    assert [record.display_title for record in ordered] == ["Apple", "banana", "cherry"]


def test_secondary_sort_places_missing_dates_last_in_arrival_order() -> None:
    records = [
        make_record("no-date-1", secondary=None),
        make_record("late", secondary="1990"),
        make_record("no-date-2", secondary="unknown"),
        make_record("early", secondary="3 January 1892"),
        make_record("middle", secondary="1950-06-01"),
        make_record("no-date-3", secondary=""),
    ]
    ordered = sort_records(records, SortKey.SECONDARY)
    assert [record.key for record in ordered] == [
        "early",
        "middle",
        "late",
        "no-date-1",
        "no-date-2",
        "no-date-3",
    ]


def test_secondary_sort_is_stable_for_equal_dates() -> None:
    records = [make_record(str(i), secondary="1954") for i in range(5)]
    ordered = sort_records(records, SortKey.SECONDARY)
    assert [record.key for record in ordered] == ["0", "1", "2", "3", "4"]


def test_merge_resorts_whole_list() -> None:
    session = make_session(
        sort_key=SortKey.SECONDARY,
        results=(make_record("a", secondary="1950"), make_record("b", secondary=None)),
        page=2,
        accepted_page=1,
        status=Status.LOADING_MORE,
    )
    result = merge(session, _page([make_record("c", secondary="1900")], page=2), page_size=20)
    assert [record.key for record in result.results] == ["c", "a", "b"]


def test_dedupe_keeps_first_seen() -> None:
    fresh = dedupe([make_record("a")], [make_record("b", "first"), make_record("b", "second")])
    assert [record.display_title for record in fresh] == ["first"]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("1892", date(1892, 1, 1)),
        ("1892-01-03", date(1892, 1, 3)),
        ("3 January 1892", date(1892, 1, 3)),
        ("January 3, 1892", date(1892, 1, 3)),
        ("c. 1800", date(1800, 1, 1)),
        ("unknown", None),
        ("", None),
        (None, None),
    ],
)
def test_chronological_key(raw, expected) -> None:
    assert chronological_key(raw) == expected
