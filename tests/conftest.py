"""Pytest configuration providing shared fixtures and catalog fakes."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Callable, Iterable

import httpx
import pytest

from catalog_browser.config import (
    CatalogConfig,
    ConfigLocator,
    ConfigRepository,
    EntityKind,
    SortKey,
)
from catalog_browser.engine import FetchError, PageResult, ResultRecord, SearchSession, Status


@pytest.fixture(autouse=True)
def catalog_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("CATALOG_BROWSER_HOME", str(tmp_path))
    return tmp_path


@pytest.fixture
def sample_config() -> CatalogConfig:
    return CatalogConfig(debounce_seconds=0.01, base_url="https://catalog.test")


@pytest.fixture
def temp_config_repository(tmp_path: Path) -> Iterable[ConfigRepository]:
    locator = ConfigLocator(project_root=tmp_path)
    yield ConfigRepository(locator)


def make_record(key: str, title: str | None = None, secondary: str | None = None) -> ResultRecord:
    return ResultRecord(
        key=key,
        display_title=title or key,
        display_subtitle=None,
        image_ref=None,
        sortable_secondary=secondary,
    )


def make_session(**overrides: Any) -> SearchSession:
    base: dict[str, Any] = {
        "kind": EntityKind.BOOKS,
        "query": "tolkien",
        "generation": 1,
        "page": 1,
        "status": Status.LOADING,
    }
    base.update(overrides)
    return SearchSession(**base)


def book_docs(count: int, start: int = 0, prefix: str = "Book") -> list[dict[str, Any]]:
    """Open Library style search docs with descending publication years."""

    return [
        {
            "key": f"/works/OL{index}W",
            "title": f"{prefix} {index:03d}",
            "author_name": [f"Author {index}"],
            "cover_i": 1000 + index,
            "first_publish_year": 2000 - index,
        }
        for index in range(start, start + count)
    ]


def json_response(request: httpx.Request, payload: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code,
        request=request,
        content=json.dumps(payload).encode("utf-8"),
        headers={"Content-Type": "application/json"},
    )


@pytest.fixture
def mock_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    def _builder(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _builder


class FakeGateway:
    """Scriptable stand-in for FetchGateway.

    Pages are full (20 records) unless ``sizes`` says otherwise; ``failures``
    makes a (query, page) fail; ``gates`` holds a page until its event is set.
    Publication years descend with arrival so that date sorting reorders.
    """

    def __init__(self, page_size: int = 20) -> None:
        self.page_size = page_size
        self.calls: list[tuple[str, int, SortKey, int]] = []
        self.sizes: dict[tuple[str, int], int] = {}
        self.failures: set[tuple[str, int]] = set()
        self.gates: dict[tuple[str, int, SortKey], asyncio.Event] = {}

    async def fetch(
        self, query: str, page: int, sort_key: SortKey, generation: int
    ) -> PageResult | FetchError:
        self.calls.append((query, page, sort_key, generation))
        gate = self.gates.get((query, page, sort_key))
        if gate is not None:
            await gate.wait()
        if (query, page) in self.failures:
            return FetchError(reason="boom", generation=generation, page=page)
        count = self.sizes.get((query, page), self.page_size)
        records = tuple(
            make_record(
                f"/works/{query}-{page}-{index}",
                title=f"{query} {page:02d}-{index:02d}",
                secondary=str(2000 - (page * 100 + index)),
            )
            for index in range(count)
        )
        return PageResult(records=records, generation=generation, page=page, raw_count=count)


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()
