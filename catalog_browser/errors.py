"""Exception hierarchy shared across the catalog engine."""

from __future__ import annotations


class CatalogError(Exception):
    """Base class for all catalog browser errors."""


class TransportError(CatalogError):
    """Network failure, timeout or non-2xx response from the catalog."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ParseError(CatalogError):
    """Response body did not have the expected shape."""


class EmptyQueryError(CatalogError):
    """Query is shorter than the minimum length; nothing to fetch."""


class InvalidTransition(CatalogError):
    """Session status change not allowed by the pagination state machine."""


class AccessDenied(CatalogError):
    """Entity kind is not in the current permission set."""


__all__ = [
    "AccessDenied",
    "CatalogError",
    "EmptyQueryError",
    "InvalidTransition",
    "ParseError",
    "TransportError",
]
