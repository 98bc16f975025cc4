"""Configuration data models."""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class ProviderConfig:
    """VNDB provider settings."""
    api_url: str = "https://api.vndb.org/kana/vn"
    user_agent: str = "VNDB-Metadata-Provider/1.0"
    search_results: int = 25
    max_requests_per_window: int = 200  # VNDB allows 200 requests per 5 minutes
    rate_limit_window: float = 300.0
    min_request_interval: float = 1.5
    window_buffer: float = 0.1
    default_retry_after: float = 60.0  # Used when a 429 carries no Retry-After
    html_retry_delay: float = 60.0
    max_attempts: int | None = None  # None = retry throttled requests forever
    timeout: float = 30.0
    image_directory: Path | None = None
    log_level: str = "WARNING"
