"""Value objects threaded through the search engine."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from ..config import EntityKind, SortKey
from ..errors import CatalogError


class Status(str, Enum):
    """Lifecycle of one search session."""

    IDLE = "idle"
    LOADING = "loading"
    LOADING_MORE = "loading_more"
    EXHAUSTED = "exhausted"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class ResultRecord:
    """Normalised projection of one remote entity."""

    key: str
    display_title: str
    display_subtitle: str | None = None
    image_ref: str | None = None
    # Publication year or birth date as reported by the catalog.
    sortable_secondary: str | None = None


@dataclass(frozen=True, slots=True)
class PageResult:
    """One accepted page from the gateway."""

    records: tuple[ResultRecord, ...]
    generation: int
    page: int
    # Length of the raw array, the only "more pages available" signal.
    raw_count: int


@dataclass(frozen=True, slots=True)
class FetchError:
    """Failure of one gateway call; never raised past the gateway."""

    reason: str
    generation: int
    page: int
    error: CatalogError | None = field(default=None, compare=False)


@dataclass(frozen=True, slots=True)
class SearchSession:
    """State of one listing screen; replaced, never mutated."""

    kind: EntityKind
    query: str = ""
    sort_key: SortKey = SortKey.PRIMARY
    page: int = 1
    accepted_page: int = 0
    status: Status = Status.IDLE
    generation: int = 0
    results: tuple[ResultRecord, ...] = ()
    has_more: bool = True
    last_error: str | None = None

    @property
    def is_loading(self) -> bool:
        return self.status in (Status.LOADING, Status.LOADING_MORE)

    def keys(self) -> list[str]:
        return [record.key for record in self.results]

    def restart(self, *, query: str | None = None, sort_key: SortKey | None = None) -> "SearchSession":
        """Open a new generation with cleared results and page 1."""

        return replace(
            self,
            query=self.query if query is None else query,
            sort_key=self.sort_key if sort_key is None else sort_key,
            page=1,
            accepted_page=0,
            status=Status.IDLE,
            generation=self.generation + 1,
            results=(),
            has_more=True,
            last_error=None,
        )


__all__ = ["FetchError", "PageResult", "ResultRecord", "SearchSession", "Status"]
