"""Service layer: rate limiting, HTTP access, mapping and provider operations."""

from .config import ConfigurationService, ValidationResult
from .errors import (
    AppError,
    ConfigurationError,
    ErrorCategory,
    ErrorHandlingService,
    ErrorSeverity,
    ImageDownloadError,
    MalformedResponseError,
    NetworkError,
    NotFoundError,
    RateLimitedError,
    UpstreamError,
    UserFriendlyError,
    ValidationError,
    get_error_service,
    handle_error,
)
from .http_client import RetryPolicy, VndbHttpClient
from .image_store import FileImageStore, ImageFetcher, StoredImage
from .mapper import VndbMetadataMapper, parse_release_date
from .provider import VndbMetadataProvider, normalize_vndb_id
from .rate_limiter import SlidingWindowRateLimiter

__all__ = [
    "AppError",
    "ConfigurationError",
    "ConfigurationService",
    "ErrorCategory",
    "ErrorHandlingService",
    "ErrorSeverity",
    "FileImageStore",
    "ImageDownloadError",
    "ImageFetcher",
    "MalformedResponseError",
    "NetworkError",
    "NotFoundError",
    "RateLimitedError",
    "RetryPolicy",
    "SlidingWindowRateLimiter",
    "StoredImage",
    "UpstreamError",
    "UserFriendlyError",
    "ValidationError",
    "ValidationResult",
    "VndbHttpClient",
    "VndbMetadataMapper",
    "VndbMetadataProvider",
    "get_error_service",
    "handle_error",
    "normalize_vndb_id",
    "parse_release_date",
]
