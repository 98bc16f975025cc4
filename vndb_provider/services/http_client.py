"""HTTP client for the VNDB API with rate limiting and throttling recovery."""

import asyncio
import json
import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from .errors import (
    BODY_PREVIEW_LENGTH,
    MalformedResponseError,
    NetworkError,
    RateLimitedError,
    UpstreamError,
)
from .rate_limiter import SlidingWindowRateLimiter

log = structlog.stdlib.get_logger()


@dataclass(frozen=True)
class RetryPolicy:
    """How throttled requests (429 status or HTML body) are retried.

    Other failures are never retried.
    """
    max_attempts: int | None = None  # None = retry until VNDB answers
    default_retry_after: float = 60.0
    html_retry_delay: float = 60.0

    def retry_after_delay(self, header_value: str | None) -> float:
        """Seconds to wait for a 429 response carrying ``header_value``."""
        if header_value:
            try:
                delay = float(header_value.strip())
            except ValueError:
                delay = -1.0
            if math.isfinite(delay) and delay >= 0:
                return delay
        return self.default_retry_after

    def allows_attempt(self, attempt: int) -> bool:
        return self.max_attempts is None or attempt <= self.max_attempts


class VndbHttpClient:
    """HTTP client that paces, sends and validates VNDB API queries."""

    def __init__(
        self,
        rate_limiter: SlidingWindowRateLimiter,
        retry_policy: RetryPolicy | None = None,
        timeout: float = 30.0,
        user_agent: str = "VNDB-Metadata-Provider/1.0",
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the HTTP client.

        Args:
            rate_limiter: Limiter every attempt is admitted through
            retry_policy: Policy for throttled responses
            timeout: Request timeout in seconds
            user_agent: Value of the User-Agent header
            transport: Optional httpx transport (used by tests)
            sleep: Coroutine used to wait before retrying
        """
        self.rate_limiter = rate_limiter
        self.retry_policy = retry_policy or RetryPolicy()
        self.timeout = timeout
        self._sleep = sleep

        client_kwargs: dict[str, Any] = {
            "timeout": httpx.Timeout(timeout),
            "headers": {
                "Content-Type": "application/json",
                "User-Agent": user_agent,
            },
            "follow_redirects": True,
        }
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.AsyncClient(**client_kwargs)

        log.info(
            "HTTP client initialized",
            timeout=timeout,
            max_attempts=self.retry_policy.max_attempts,
            user_agent=user_agent,
        )

    async def post_json(self, url: str, payload: dict[str, Any]) -> Any:
        """POST a JSON query and return the decoded response body.

        Throttled responses are waited out and retried; every retry is
        admitted through the rate limiter again.

        Args:
            url: The endpoint to query
            payload: JSON-serializable request body

        Returns:
            Decoded JSON body

        Raises:
            NetworkError: If the request could not be sent or timed out
            UpstreamError: If VNDB answered with a non-success status
            MalformedResponseError: If the body is not valid JSON
            RateLimitedError: If a configured retry cap was exhausted
        """
        attempt = 0
        while True:
            attempt += 1
            if not self.retry_policy.allows_attempt(attempt):
                log.error(
                    "VNDB API still throttling after all attempts",
                    url=url,
                    total_attempts=attempt - 1,
                )
                raise RateLimitedError(
                    "VNDB API kept rate limiting the request",
                    attempts=attempt - 1,
                    url=url,
                )

            await self.rate_limiter.admit()

            log.debug("Making VNDB API request", url=url, attempt=attempt)
            try:
                response = await self._client.post(url, json=payload)
            except httpx.RequestError as e:
                log.error(
                    "Failed to fetch from VNDB API",
                    url=url,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise NetworkError(
                    "Failed to fetch from VNDB API - network error",
                    original_error=e,
                    url=url,
                ) from e

            # Status checks happen before the body is parsed
            if response.status_code == 429:
                delay = self.retry_policy.retry_after_delay(response.headers.get("Retry-After"))
                log.warning(
                    "VNDB API rate limit hit despite precautions, sleeping",
                    url=url,
                    attempt=attempt,
                    delay=delay,
                )
                await self._sleep(delay)
                continue

            if not response.is_success:
                error_text = response.text[:BODY_PREVIEW_LENGTH]
                log.error(
                    "VNDB API error",
                    url=url,
                    status_code=response.status_code,
                    response=error_text,
                )
                raise UpstreamError(response.status_code, error_text, url=url)

            text = response.text
            if text.lstrip().startswith("<"):
                delay = self.retry_policy.html_retry_delay
                log.warning(
                    "VNDB returned HTML instead of JSON (likely rate limited), sleeping",
                    url=url,
                    attempt=attempt,
                    delay=delay,
                )
                await self._sleep(delay)
                continue

            try:
                data = json.loads(text)
            except json.JSONDecodeError as e:
                log.error("Failed to parse VNDB API response as JSON", url=url, error=str(e))
                raise MalformedResponseError(
                    "VNDB API returned invalid JSON response",
                    original_error=e,
                    body=text,
                ) from e

            log.info(
                "VNDB API request successful",
                url=url,
                status_code=response.status_code,
                attempts=attempt,
            )
            return data

    async def close(self) -> None:
        """Close the HTTP client and clean up resources."""
        await self._client.aclose()
        log.debug("HTTP client closed")

    async def __aenter__(self) -> "VndbHttpClient":
        return self

    async def __aexit__(self, exc_type: type[Exception] | None, exc_val: Exception | None, exc_tb: Any) -> None:
        await self.close()
