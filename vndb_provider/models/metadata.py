"""Normalized metadata models produced by the provider."""

from dataclasses import dataclass, field
from datetime import date
from typing import Any


@dataclass(frozen=True)
class ProviderScopedMetadata:
    """Named entity keyed by (provider_slug, provider_data_id)."""
    provider_slug: str
    provider_data_id: str
    name: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider_slug": self.provider_slug,
            "provider_data_id": self.provider_data_id,
            "name": self.name,
        }


@dataclass(frozen=True)
class DeveloperMetadata(ProviderScopedMetadata):
    """A developer scoped to the provider that reported it."""


@dataclass(frozen=True)
class TagMetadata(ProviderScopedMetadata):
    """A tag scoped to the provider that reported it."""


@dataclass(frozen=True)
class GenreMetadata(ProviderScopedMetadata):
    """A genre scoped to the provider that reported it."""


@dataclass(frozen=True)
class MinimalGameMetadata:
    """Search-result projection of a catalog entry."""
    provider_slug: str
    provider_data_id: str
    title: str
    cover_url: str
    description: str | None = None
    release_date: date | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider_slug": self.provider_slug,
            "provider_data_id": self.provider_data_id,
            "title": self.title,
            "description": self.description,
            "release_date": _format_date(self.release_date),
            "cover_url": self.cover_url,
        }


@dataclass(frozen=True)
class GameMetadata:
    """Complete normalized record for a single catalog entry."""
    provider_slug: str
    provider_data_id: str
    provider_data_url: str
    title: str
    age_rating: int = 99  # VNDB does not report age ratings
    release_date: date | None = None
    description: str | None = None
    rating: float | None = None
    url_websites: list[str] = field(default_factory=list)
    early_access: bool = False
    url_screenshots: list[str] = field(default_factory=list)
    url_trailers: list[str] | None = None
    url_gameplays: list[str] | None = None
    average_playtime: int | None = None  # Minutes
    developers: list[DeveloperMetadata] = field(default_factory=list)
    publishers: list[DeveloperMetadata] = field(default_factory=list)
    genres: list[GenreMetadata] = field(default_factory=list)
    tags: list[TagMetadata] = field(default_factory=list)
    cover: Any = None  # Opaque reference returned by the image store
    background: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable data."""
        return {
            "age_rating": self.age_rating,
            "provider_slug": self.provider_slug,
            "provider_data_id": self.provider_data_id,
            "provider_data_url": self.provider_data_url,
            "title": self.title,
            "release_date": _format_date(self.release_date),
            "description": self.description,
            "rating": self.rating,
            "url_websites": list(self.url_websites),
            "early_access": self.early_access,
            "url_screenshots": list(self.url_screenshots),
            "url_trailers": self.url_trailers,
            "url_gameplays": self.url_gameplays,
            "average_playtime": self.average_playtime,
            "developers": [developer.to_dict() for developer in self.developers],
            "publishers": [publisher.to_dict() for publisher in self.publishers],
            "genres": [genre.to_dict() for genre in self.genres],
            "tags": [tag.to_dict() for tag in self.tags],
            "cover": _format_reference(self.cover),
            "background": _format_reference(self.background),
        }


def _format_date(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


def _format_reference(value: Any) -> Any:
    if value is None:
        return None
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return str(value)
