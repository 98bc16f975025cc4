"""VNDB metadata provider: search and fetch-by-id operations."""

import re
from typing import Any

import structlog

from ..models.config import ProviderConfig
from ..models.metadata import GameMetadata, MinimalGameMetadata
from ..models.vndb import FilterResponse
from .errors import NotFoundError, ValidationError
from .http_client import RetryPolicy, VndbHttpClient
from .image_store import ImageFetcher
from .mapper import VndbMetadataMapper
from .rate_limiter import SlidingWindowRateLimiter

log = structlog.stdlib.get_logger()

VN_FIELDS = (
    "title, image.url, released, length_minutes, description, devstatus, rating, "
    "screenshots.url, developers.name, tags.name, tags.id, extlinks.url"
)

_VN_ID_PATTERN = re.compile(r"^v?(\d+)$")


def normalize_vndb_id(vn_id: str) -> str:
    """Normalize a visual novel id to the ``v12345`` form.

    Raises:
        ValidationError: If the value is not a visual novel id
    """
    match = _VN_ID_PATTERN.match(str(vn_id).strip().lower())
    if match is None:
        raise ValidationError(
            f"Invalid VNDB visual novel id: {vn_id}",
            field="provider_data_id",
            value=vn_id,
            constraints=["id must look like v17 or 17"],
        )
    return f"v{match.group(1)}"


class VndbMetadataProvider:
    """Metadata provider backed by the VNDB Kana API."""

    slug = "vndb"
    name = "VNDB"
    priority = 20

    def __init__(
        self,
        http_client: VndbHttpClient,
        image_fetcher: ImageFetcher | None = None,
        api_url: str = "https://api.vndb.org/kana/vn",
        search_results: int = 25,
        enabled: bool = True,
    ) -> None:
        """Initialize the provider.

        Args:
            http_client: Rate-limited client used for every API call
            image_fetcher: Collaborator that stores cover images (optional)
            api_url: VNDB visual novel endpoint
            search_results: Page size for searches
            enabled: Whether the host should consult this provider
        """
        self.http_client = http_client
        self.api_url = api_url
        self.search_results = search_results
        self.enabled = enabled
        self.mapper = VndbMetadataMapper(self.slug, image_fetcher)

    @classmethod
    def from_config(
        cls,
        config: ProviderConfig,
        image_fetcher: ImageFetcher | None = None,
    ) -> "VndbMetadataProvider":
        """Build a provider with its own limiter and HTTP client."""
        rate_limiter = SlidingWindowRateLimiter(
            max_requests=config.max_requests_per_window,
            window=config.rate_limit_window,
            min_interval=config.min_request_interval,
            buffer=config.window_buffer,
        )
        http_client = VndbHttpClient(
            rate_limiter=rate_limiter,
            retry_policy=RetryPolicy(
                max_attempts=config.max_attempts,
                default_retry_after=config.default_retry_after,
                html_retry_delay=config.html_retry_delay,
            ),
            timeout=config.timeout,
            user_agent=config.user_agent,
        )
        return cls(
            http_client=http_client,
            image_fetcher=image_fetcher,
            api_url=config.api_url,
            search_results=config.search_results,
        )

    async def search(self, query: str) -> list[MinimalGameMetadata]:
        """Search visual novels by title.

        Returns:
            Minimal metadata for every listable result, possibly empty
        """
        payload: dict[str, Any] = {
            "filters": ["search", "=", query],
            "fields": VN_FIELDS,
            "results": self.search_results,
        }
        data = await self.http_client.post_json(self.api_url, payload)
        response = FilterResponse.from_json(data)

        results = self.mapper.map_search_results(response.results)
        log.info(
            "VNDB search completed",
            query=query,
            received=len(response.results),
            returned=len(results),
        )
        return results

    async def get_by_provider_data_id_or_fail(self, provider_data_id: str) -> GameMetadata:
        """Fetch the full metadata of one visual novel.

        Raises:
            NotFoundError: If VNDB has no visual novel with this id
        """
        vn_id = normalize_vndb_id(provider_data_id)
        payload: dict[str, Any] = {
            "filters": ["id", "=", vn_id],
            "fields": VN_FIELDS,
        }
        data = await self.http_client.post_json(self.api_url, payload)
        response = FilterResponse.from_json(data)

        if not response.results:
            log.warning("No visual novel found", provider_data_id=provider_data_id)
            raise NotFoundError(provider_data_id)

        try:
            return await self.mapper.map_game_metadata(response.results[0])
        except Exception as e:
            log.error("Failed to map VNDB game metadata", provider_data_id=vn_id, error=str(e))
            raise

    async def close(self) -> None:
        await self.http_client.close()

    async def __aenter__(self) -> "VndbMetadataProvider":
        return self

    async def __aexit__(self, exc_type: type[Exception] | None, exc_val: Exception | None, exc_tb: Any) -> None:
        await self.close()
