"""Detail lookups for a selected book or author."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import structlog

from ..config import CatalogConfig
from ..errors import CatalogError, ParseError
from .gateway import PLACEHOLDER_AUTHOR, CatalogClient, as_list
from .images import ImageResolver, olid


@dataclass(frozen=True, slots=True)
class AuthorRef:
    """Author attached to a book; ``key`` is ``None`` for a placeholder."""

    key: str | None
    name: str


@dataclass(frozen=True, slots=True)
class BookDetail:
    key: str
    title: str
    authors: tuple[AuthorRef, ...]
    description: str | None = None
    subjects: tuple[str, ...] = ()
    first_publish_date: str | None = None
    cover_url: str | None = None


@dataclass(frozen=True, slots=True)
class AuthorDetail:
    key: str
    name: str
    fuller_name: str | None = None
    birth_date: str | None = None
    death_date: str | None = None
    bio: str | None = None
    photo_url: str | None = None


def _text_value(value: Any) -> str | None:
    """Open Library text fields are either strings or ``{"value": ...}`` objects."""

    if isinstance(value, dict):
        value = value.get("value")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


class DetailGateway:
    """Resolve one book (with its authors) or one author."""

    def __init__(
        self,
        config: CatalogConfig,
        client: CatalogClient | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config
        self.client = client or CatalogClient(config)
        self.images = ImageResolver(config.covers_url, size="L")
        self.logger = logger or structlog.get_logger("catalog_browser.details")

    async def get_book(self, key: str) -> BookDetail:
        work_id = olid(key)
        if not work_id:
            raise ParseError(f"Invalid book key: {key!r}")
        payload = await self.client.get_json(f"{self.config.base_url}/works/{work_id}.json")
        if not isinstance(payload, dict) or not isinstance(payload.get("title"), str):
            raise ParseError(f"Book {work_id} response has no title")

        author_keys: list[str | None] = []
        for entry in as_list(payload.get("authors")):
            author = entry.get("author") if isinstance(entry, dict) else None
            author_key = author.get("key") if isinstance(author, dict) else None
            author_keys.append(author_key if isinstance(author_key, str) else None)
        authors = await asyncio.gather(*(self._author_ref(k) for k in author_keys))

        description = _text_value(payload.get("description"))
        if description is None:
            for excerpt in as_list(payload.get("excerpts")):
                if isinstance(excerpt, dict):
                    description = _text_value(excerpt.get("excerpt"))
                    if description:
                        break
        covers = [c for c in as_list(payload.get("covers")) if isinstance(c, int) and c > 0]
        return BookDetail(
            key=f"/works/{work_id}",
            title=payload["title"],
            authors=tuple(authors),
            description=description,
            subjects=tuple(s for s in as_list(payload.get("subjects")) if isinstance(s, str)),
            first_publish_date=_text_value(payload.get("first_publish_date")),
            cover_url=self.images.book_cover(covers[0]) if covers else None,
        )

    async def get_author(self, key: str) -> AuthorDetail:
        author_id = olid(key)
        if not author_id:
            raise ParseError(f"Invalid author key: {key!r}")
        payload = await self.client.get_json(f"{self.config.base_url}/authors/{author_id}.json")
        if not isinstance(payload, dict):
            raise ParseError(f"Author {author_id} response must be an object")
        photos = [p for p in as_list(payload.get("photos")) if isinstance(p, int) and p > 0]
        return AuthorDetail(
            key=f"/authors/{author_id}",
            name=_text_value(payload.get("name")) or PLACEHOLDER_AUTHOR,
            fuller_name=_text_value(payload.get("fuller_name")),
            birth_date=_text_value(payload.get("birth_date")),
            death_date=_text_value(payload.get("death_date")),
            bio=_text_value(payload.get("bio")),
            photo_url=self.images.author_photo_by_id(photos[0]) if photos else None,
        )

    async def _author_ref(self, author_key: str | None) -> AuthorRef:
        author_id = olid(author_key)
        if not author_id:
            return AuthorRef(key=None, name=PLACEHOLDER_AUTHOR)
        try:
            payload = await self.client.get_json(f"{self.config.base_url}/authors/{author_id}.json")
        except CatalogError as exc:
            self.logger.warning("author_enrichment_failed", author_key=author_id, error=str(exc))
            return AuthorRef(key=None, name=PLACEHOLDER_AUTHOR)
        name = _text_value(payload.get("name")) if isinstance(payload, dict) else None
        if name is None:
            return AuthorRef(key=None, name=PLACEHOLDER_AUTHOR)
        return AuthorRef(key=f"/authors/{author_id}", name=name)


__all__ = ["AuthorDetail", "AuthorRef", "BookDetail", "DetailGateway"]
