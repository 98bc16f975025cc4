"""Mapping of raw VNDB records to normalized metadata."""

import re
from datetime import date
from typing import Any

import structlog

from ..models.metadata import (
    DeveloperMetadata,
    GameMetadata,
    GenreMetadata,
    MinimalGameMetadata,
    TagMetadata,
)
from ..models.vndb import VisualNovelRecord
from .errors import ValidationError
from .image_store import ImageFetcher

log = structlog.stdlib.get_logger()

VNDB_SITE_URL = "https://vndb.org/"
VISUAL_NOVEL_GENRE_ID = "1"
VISUAL_NOVEL_GENRE_NAME = "Visual Novel"
DEVSTATUS_IN_DEVELOPMENT = 1

_RELEASE_DATE_PATTERN = re.compile(r"^(\d{4})(?:-(\d{2})(?:-(\d{2}))?)?$")


def parse_release_date(value: str | None) -> date | None:
    """Parse a VNDB release date.

    VNDB reports ``YYYY-MM-DD``, ``YYYY-MM`` or ``YYYY`` for partially known
    dates and markers such as ``TBA`` for unknown ones. Partial dates resolve
    to the first day of the period; anything that is not a real calendar
    date returns None.
    """
    if not value:
        return None
    match = _RELEASE_DATE_PATTERN.match(value.strip())
    if match is None:
        return None
    year, month, day = match.groups()
    try:
        return date(int(year), int(month or 1), int(day or 1))
    except ValueError:
        return None


class VndbMetadataMapper:
    """Converts validated VNDB records into the provider's output shapes.

    The mapper holds no per-call state: mapping the same record twice gives
    equal results.
    """

    def __init__(self, provider_slug: str, image_fetcher: ImageFetcher | None = None) -> None:
        self.provider_slug = provider_slug
        self.image_fetcher = image_fetcher

    def map_search_results(self, records: list[VisualNovelRecord]) -> list[MinimalGameMetadata]:
        """Map search results, skipping records that cannot be listed."""
        mapped: list[MinimalGameMetadata] = []
        for record in records:
            minimal = self.map_minimal_game_metadata(record)
            if minimal is not None:
                mapped.append(minimal)
        return mapped

    def map_minimal_game_metadata(self, record: VisualNovelRecord) -> MinimalGameMetadata | None:
        """Return the search projection, or None if title or image is missing."""
        if not record.image_url:
            log.warning("VNDB game missing image data", title=record.title or "Unknown", vn_id=record.id)
            return None
        if not record.title:
            log.warning("VNDB game missing title, skipping", vn_id=record.id)
            return None
        if not record.id:
            log.warning("VNDB game missing id, skipping", title=record.title)
            return None

        return MinimalGameMetadata(
            provider_slug=self.provider_slug,
            provider_data_id=record.id,
            title=record.title,
            description=record.description or None,
            release_date=parse_release_date(record.released),
            cover_url=record.image_url,
        )

    async def map_game_metadata(self, record: VisualNovelRecord) -> GameMetadata:
        """Return the full normalized record.

        Raises:
            ValidationError: If the record has no id or title
        """
        if not record.id:
            raise ValidationError("VNDB record has no id", field="id")
        if not record.title:
            raise ValidationError("VNDB record has no title", field="title", value=record.id)

        return GameMetadata(
            provider_slug=self.provider_slug,
            provider_data_id=record.id,
            provider_data_url=VNDB_SITE_URL + record.id,
            title=record.title,
            release_date=parse_release_date(record.released),
            description=record.description,
            rating=record.rating,
            url_websites=list(record.extlink_urls),
            early_access=record.devstatus == DEVSTATUS_IN_DEVELOPMENT,
            url_screenshots=list(record.screenshot_urls),
            average_playtime=record.length_minutes,
            developers=[
                DeveloperMetadata(
                    provider_slug=self.provider_slug,
                    provider_data_id=developer.id,
                    name=developer.name,
                )
                for developer in record.developers
            ],
            publishers=[],
            genres=[
                GenreMetadata(
                    provider_slug=self.provider_slug,
                    provider_data_id=VISUAL_NOVEL_GENRE_ID,
                    name=VISUAL_NOVEL_GENRE_NAME,
                )
            ],
            tags=[
                TagMetadata(
                    provider_slug=self.provider_slug,
                    provider_data_id=tag.id,
                    name=tag.name,
                )
                for tag in record.tags
            ],
            cover=await self._download_image(record.image_url),
        )

    async def _download_image(self, url: str | None) -> Any:
        if not url or self.image_fetcher is None:
            return None
        try:
            return await self.image_fetcher.download_by_url(url)
        except Exception as e:
            # Cover images are optional; the rest of the record is still usable
            log.error(
                "Failed to download image",
                url=url,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None
