"""Incremental search-and-pagination engine for the Open Library catalog."""

from .browser import CatalogBrowser, PermissionGate
from .config import CatalogConfig, EntityKind, SortKey

__all__ = ["CatalogBrowser", "CatalogConfig", "EntityKind", "PermissionGate", "SortKey"]

__version__ = "0.1.0"
