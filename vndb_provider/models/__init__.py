"""Data models for the VNDB metadata provider."""

from .config import ProviderConfig
from .metadata import (
    DeveloperMetadata,
    GameMetadata,
    GenreMetadata,
    MinimalGameMetadata,
    ProviderScopedMetadata,
    TagMetadata,
)
from .vndb import FilterResponse, NamedEntry, VisualNovelRecord

__all__ = [
    "DeveloperMetadata",
    "FilterResponse",
    "GameMetadata",
    "GenreMetadata",
    "MinimalGameMetadata",
    "NamedEntry",
    "ProviderConfig",
    "ProviderScopedMetadata",
    "TagMetadata",
    "VisualNovelRecord",
]
