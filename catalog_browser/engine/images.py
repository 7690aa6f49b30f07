"""Cover and portrait URL construction for the Open Library covers service."""

from __future__ import annotations

from dataclasses import dataclass


def olid(key: str | None) -> str | None:
    """Return the bare identifier of a catalog key (``/authors/OL1A`` -> ``OL1A``)."""

    if not key:
        return None
    value = key.strip().rstrip("/")
    if not value:
        return None
    return value.rsplit("/", 1)[-1]


@dataclass(slots=True)
class ImageResolver:
    """Build image URLs; ``None`` means the caller renders a placeholder."""

    covers_url: str
    size: str = "M"

    def book_cover(self, cover_id: object) -> str | None:
        if isinstance(cover_id, bool) or not isinstance(cover_id, int) or cover_id <= 0:
            return None
        return f"{self.covers_url}/b/id/{cover_id}-{self.size}.jpg"

    def author_photo(self, author_key: str | None) -> str | None:
        identifier = olid(author_key)
        if not identifier:
            return None
        return f"{self.covers_url}/a/olid/{identifier}-{self.size}.jpg"

    def author_photo_by_id(self, photo_id: object) -> str | None:
        if isinstance(photo_id, bool) or not isinstance(photo_id, int) or photo_id <= 0:
            return None
        return f"{self.covers_url}/a/id/{photo_id}-{self.size}.jpg"


__all__ = ["ImageResolver", "olid"]
