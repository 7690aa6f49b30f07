"""Pydantic models used across the catalog browser configuration flow."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator


class EntityKind(str, Enum):
    """Catalog entity kinds that can be searched."""

    BOOKS = "books"
    AUTHORS = "authors"


class SortKey(str, Enum):
    """Sort preferences; the meaning depends on the entity kind.

    ``PRIMARY`` orders by title (books) or name (authors), ``SECONDARY`` by
    first publication year (books) or birth date (authors).
    """

    PRIMARY = "primary"
    SECONDARY = "secondary"


class EntityConfig(BaseModel):
    """Per-kind search settings."""

    endpoint: str
    min_query_length: int = 0
    # Server-side sort parameter per sort key; ``None`` means sort locally only.
    sort_params: dict[SortKey, str | None] = Field(default_factory=dict)
    placeholder_title: str = "Untitled"

    @field_validator("endpoint")
    @classmethod
    def _check_endpoint(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("endpoint must start with '/'")
        return value

    @model_validator(mode="after")
    def _validate_min_length(self) -> "EntityConfig":
        if self.min_query_length < 0:
            raise ValueError("min_query_length must be >= 0")
        return self

    def sort_param(self, sort_key: SortKey) -> str | None:
        return self.sort_params.get(sort_key)


def _default_books() -> EntityConfig:
    return EntityConfig(
        endpoint="/search.json",
        min_query_length=3,
        sort_params={SortKey.PRIMARY: "title", SortKey.SECONDARY: "old"},
        placeholder_title="Untitled",
    )


def _default_authors() -> EntityConfig:
    return EntityConfig(
        endpoint="/search/authors.json",
        min_query_length=0,
        placeholder_title="Unknown Author",
    )


class CatalogConfig(BaseModel):
    """Global controls shared by both listing engines."""

    base_url: str = "https://openlibrary.org"
    covers_url: str = "https://covers.openlibrary.org"
    page_size: int = 20
    debounce_seconds: float = 0.5
    scroll_threshold: float = 0.5
    request_timeout: float = 15.0
    user_agent: str = "catalog-browser/0.1 (+https://openlibrary.org/developers/api)"
    permissions: list[EntityKind] = Field(
        default_factory=lambda: [EntityKind.BOOKS, EntityKind.AUTHORS]
    )
    books: EntityConfig = Field(default_factory=_default_books)
    authors: EntityConfig = Field(default_factory=_default_authors)

    @field_validator("base_url", "covers_url", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value: Any) -> str:
        return str(value).rstrip("/")

    @field_validator("permissions", mode="before")
    @classmethod
    def _coerce_permissions(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    @model_validator(mode="after")
    def _validate_ranges(self) -> "CatalogConfig":
        if self.page_size < 1:
            raise ValueError("page_size must be >= 1")
        if self.debounce_seconds < 0:
            raise ValueError("debounce_seconds must be >= 0")
        if not 0 <= self.scroll_threshold <= 1:
            raise ValueError("scroll_threshold must be within [0, 1]")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be > 0")
        return self

    def entity(self, kind: EntityKind) -> EntityConfig:
        return self.books if kind is EntityKind.BOOKS else self.authors


__all__ = [
    "CatalogConfig",
    "EntityConfig",
    "EntityKind",
    "SortKey",
]
