"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import CatalogConfig, EntityConfig, EntityKind, SortKey

__all__ = [
    "CatalogConfig",
    "ConfigLocator",
    "ConfigRepository",
    "EntityConfig",
    "EntityKind",
    "SortKey",
]
