"""Merge fetched pages into the session's ordered, deduplicated result list."""

from __future__ import annotations

import locale
import re
from dataclasses import replace
from datetime import date, datetime
from typing import Iterable

from ..config import SortKey
from .models import PageResult, ResultRecord, SearchSession, Status

_DATE_FORMATS = ("%Y-%m-%d", "%d %B %Y", "%d %b %Y", "%B %d, %Y", "%b %d, %Y", "%B %Y", "%b %Y")
_YEAR_PATTERN = re.compile(r"(?<!\d)(\d{3,4})(?!\d)")


def chronological_key(value: str | None) -> date | None:
    """Parse a catalog date or year into a comparable date.

    Returns ``None`` when no usable date is present; such records sort last.
    """

    if value is None:
        return None
    text = value.strip().rstrip(".")
    if not text:
        return None
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    match = _YEAR_PATTERN.search(text)
    if match is None:
        return None
    year = int(match.group(1))
    if year < 1:
        return None
    return date(year, 1, 1)


def _title_key(record: ResultRecord) -> str:
    return locale.strxfrm(record.display_title.casefold())


def sort_records(records: Iterable[ResultRecord], sort_key: SortKey) -> tuple[ResultRecord, ...]:
    """Return records in a strict total order for the given sort key.

    ``sorted`` is stable, so ties and records without a secondary value keep
    their arrival order.
    """

    if sort_key is SortKey.PRIMARY:
        return tuple(sorted(records, key=_title_key))

    def _secondary(record: ResultRecord) -> tuple[int, date]:
        parsed = chronological_key(record.sortable_secondary)
        if parsed is None:
            return (1, date.min)
        return (0, parsed)

    return tuple(sorted(records, key=_secondary))


def dedupe(existing: Iterable[ResultRecord], incoming: Iterable[ResultRecord]) -> list[ResultRecord]:
    """Return incoming records whose key is new; the first occurrence wins."""

    seen = {record.key for record in existing}
    fresh: list[ResultRecord] = []
    for record in incoming:
        if record.key in seen:
            continue
        seen.add(record.key)
        fresh.append(record)
    return fresh


def merge(session: SearchSession, page_result: PageResult, page_size: int) -> SearchSession:
    """Fold one page into the session.

    A page tagged with another generation leaves the session untouched.
    """

    if page_result.generation != session.generation:
        return session
    fresh = dedupe(session.results, page_result.records)
    results = sort_records((*session.results, *fresh), session.sort_key)
    has_more = page_result.raw_count == page_size
    return replace(
        session,
        results=results,
        accepted_page=page_result.page,
        has_more=has_more,
        status=Status.IDLE if has_more else Status.EXHAUSTED,
        last_error=None,
    )


__all__ = ["chronological_key", "dedupe", "merge", "sort_records"]
