"""HTTP gateway turning (query, page, sort) into one catalog request."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from ..config import CatalogConfig, EntityKind, SortKey
from ..errors import CatalogError, ParseError, TransportError
from .images import ImageResolver, olid
from .models import FetchError, PageResult, ResultRecord

PLACEHOLDER_AUTHOR = "Unknown Author"


def as_list(value: Any) -> list[Any]:
    """Catalog array fields sometimes arrive as a bare scalar."""

    if isinstance(value, list):
        return value
    if value is None:
        return []
    return [value]


def _first_text(*values: Any) -> str | None:
    for value in values:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


@dataclass(slots=True)
class FetchRequest:
    """Input for one search call."""

    url: str
    params: dict[str, Any]


def build_client(config: CatalogConfig) -> httpx.AsyncClient:
    """Create the shared async client used by the gateways."""

    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=config.request_timeout,
        headers={"User-Agent": config.user_agent, "Accept": "application/json"},
    )


class CatalogClient:
    """Thin JSON-over-HTTP wrapper mapping failures onto the error taxonomy."""

    def __init__(
        self,
        config: CatalogConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config
        self._owns_client = client is None
        self._client = client or build_client(config)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        try:
            response = await self._client.get(url, params=params)
        except httpx.HTTPError as exc:
            raise TransportError(f"Request to {url} failed: {exc}") from exc
        if self._is_failure(response):
            raise TransportError(
                f"Unexpected status {response.status_code} from {url}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise ParseError(f"Response from {url} is not valid JSON") from exc

    @staticmethod
    def _is_failure(response: Any) -> bool:
        status_code = getattr(response, "status_code", 0)
        return not 200 <= status_code < 300


class FetchGateway:
    """Issue one search request per page and normalise the response.

    The gateway never retries and gives no ordering guarantee between
    concurrent calls; every result carries the generation it was requested
    for so the caller can drop stale pages.
    """

    def __init__(
        self,
        config: CatalogConfig,
        kind: EntityKind,
        client: CatalogClient | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config
        self.kind = kind
        self.entity = config.entity(kind)
        self._owns_client = client is None
        self.client = client or CatalogClient(config)
        self.images = ImageResolver(config.covers_url)
        self.logger = logger or structlog.get_logger("catalog_browser.gateway").bind(
            kind=kind.value
        )
        self._author_names: dict[str, str] = {}

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    def build_request(self, query: str, page: int, sort_key: SortKey) -> FetchRequest:
        page_size = self.config.page_size
        params: dict[str, Any] = {
            "q": query.strip(),
            "offset": (max(1, page) - 1) * page_size,
            "limit": page_size,
        }
        sort_param = self.entity.sort_param(sort_key)
        if sort_param:
            params["sort"] = sort_param
        return FetchRequest(url=f"{self.config.base_url}{self.entity.endpoint}", params=params)

    async def fetch(
        self, query: str, page: int, sort_key: SortKey, generation: int
    ) -> PageResult | FetchError:
        request = self.build_request(query, page, sort_key)
        self.logger.debug(
            "fetch_started", query=query, page=page, sort=sort_key.value, generation=generation
        )
        try:
            payload = await self.client.get_json(request.url, request.params)
            docs = self._extract_docs(payload)
            try:
                records = await self._parse_docs(docs)
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                raise ParseError(f"Malformed search entry: {exc}") from exc
        except ParseError as exc:
            self.logger.error(
                "fetch_parse_failed", page=page, generation=generation, error=str(exc)
            )
            return FetchError(reason=str(exc), generation=generation, page=page, error=exc)
        except CatalogError as exc:
            self.logger.warning("fetch_failed", page=page, generation=generation, error=str(exc))
            return FetchError(reason=str(exc), generation=generation, page=page, error=exc)
        self.logger.info(
            "fetch_completed",
            page=page,
            generation=generation,
            raw_count=len(docs),
            records=len(records),
        )
        return PageResult(records=records, generation=generation, page=page, raw_count=len(docs))

    # ------------------------------------------------------------------
    @staticmethod
    def _extract_docs(payload: Any) -> list[dict[str, Any]]:
        if not isinstance(payload, dict):
            raise ParseError("Response body must be a JSON object")
        docs = payload.get("docs")
        if not isinstance(docs, list):
            raise ParseError("Response body has no 'docs' array")
        for doc in docs:
            if not isinstance(doc, dict):
                raise ParseError("Entries of 'docs' must be objects")
        return docs

    async def _parse_docs(self, docs: list[dict[str, Any]]) -> tuple[ResultRecord, ...]:
        if self.kind is EntityKind.BOOKS:
            parsed = await asyncio.gather(*(self._parse_book(doc) for doc in docs))
        else:
            parsed = [self._parse_author(doc) for doc in docs]
        return tuple(record for record in parsed if record is not None)

    async def _parse_book(self, doc: dict[str, Any]) -> ResultRecord | None:
        key = doc.get("key")
        if not isinstance(key, str) or not key.strip():
            self.logger.warning("record_without_key", title=doc.get("title"))
            return None
        title = _first_text(doc.get("title"), doc.get("title_suggest")) or self.entity.placeholder_title
        author = _first_text(*as_list(doc.get("author_name"))[:1])
        if author is None:
            author_keys = as_list(doc.get("author_key"))
            if author_keys and isinstance(author_keys[0], str):
                author = await self.resolve_author_name(author_keys[0])
            else:
                author = PLACEHOLDER_AUTHOR
        year = doc.get("first_publish_year")
        return ResultRecord(
            key=key.strip(),
            display_title=title,
            display_subtitle=author,
            image_ref=self.images.book_cover(doc.get("cover_i")),
            sortable_secondary=str(year) if isinstance(year, int) and not isinstance(year, bool) else None,
        )

    def _parse_author(self, doc: dict[str, Any]) -> ResultRecord | None:
        identifier = olid(doc.get("key") if isinstance(doc.get("key"), str) else None)
        if not identifier:
            self.logger.warning("record_without_key", name=doc.get("name"))
            return None
        work_count = doc.get("work_count")
        subtitle = (
            f"{work_count} works"
            if isinstance(work_count, int) and not isinstance(work_count, bool)
            else None
        )
        birth_date = _first_text(doc.get("birth_date"))
        return ResultRecord(
            key=f"/authors/{identifier}",
            display_title=_first_text(doc.get("name")) or self.entity.placeholder_title,
            display_subtitle=subtitle,
            image_ref=self.images.author_photo(identifier),
            sortable_secondary=birth_date,
        )

    async def resolve_author_name(self, author_key: str) -> str:
        """Best-effort author name lookup; failures yield the placeholder."""

        identifier = olid(author_key)
        if not identifier:
            return PLACEHOLDER_AUTHOR
        if identifier in self._author_names:
            return self._author_names[identifier]
        url = f"{self.config.base_url}/authors/{identifier}.json"
        try:
            payload = await self.client.get_json(url)
        except CatalogError as exc:
            self.logger.warning("author_enrichment_failed", author_key=identifier, error=str(exc))
            return PLACEHOLDER_AUTHOR
        name = payload.get("name") if isinstance(payload, dict) else None
        if not isinstance(name, str) or not name.strip():
            self.logger.warning("author_enrichment_failed", author_key=identifier, error="no name")
            return PLACEHOLDER_AUTHOR
        self._author_names[identifier] = name.strip()
        return self._author_names[identifier]


__all__ = ["CatalogClient", "FetchGateway", "FetchRequest", "PLACEHOLDER_AUTHOR", "build_client"]
