"""Directory fetcher with retry and rate-limit backoff."""

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
import structlog

from .config import ConfigurationService
from .errors import (
    AttemptsExhaustedError,
    DecodeError,
    FormatError,
    RateLimitedError,
    ServerHopError,
    TransportError,
)
from .http_client import HttpClientService

log = structlog.stdlib.get_logger()

TRANSPORT_RETRY_DELAY = 1.0
RATE_LIMIT_MARKER = "HTTP 429"

SleepFunc = Callable[[float], Awaitable[Any]]
FetchResult = tuple[list[Any] | None, ServerHopError | None]


def is_rate_limited(response: httpx.Response) -> bool:
    """Whether the directory throttled the request."""
    return response.status_code == 429 or RATE_LIMIT_MARKER in response.text


class DirectoryFetcher:
    """Fetches the raw server list for a place from the directory service."""

    def __init__(
        self,
        http_client: HttpClientService,
        config_service: ConfigurationService,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.http_client = http_client
        self.config_service = config_service
        self._sleep = sleep

    async def fetch(self, place_id: str | int) -> FetchResult:
        """Fetch the unfiltered server list for ``place_id``.

        Returns:
            ``(servers, None)`` with the ``data`` array as sent by the
            directory, or ``(None, error)``
        """
        config = self.config_service.config
        url = f"{config.api_base_url}{place_id}"
        params = config.query_params()
        max_retries = config.max_retries

        for attempt in range(1, max_retries + 1):
            attempts_left = attempt < max_retries
            log.debug(
                "Fetching server list",
                url=url,
                params=params,
                attempt=attempt,
                max_attempts=max_retries,
            )

            try:
                response = await self.http_client.get(url, params=params or None)
            except httpx.RequestError as e:
                if RATE_LIMIT_MARKER in str(e):
                    rate_limited = True
                else:
                    log.warning(
                        "Server list request failed",
                        url=url,
                        attempt=attempt,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    if not attempts_left:
                        log.error("Server list request failed after all retries", url=url, total_attempts=attempt)
                        return None, TransportError(
                            f"Request failed after {attempt} attempts: {e}",
                            original_error=e,
                            url=url,
                        )
                    await self._sleep(TRANSPORT_RETRY_DELAY)
                    continue
            else:
                rate_limited = is_rate_limited(response)

            if rate_limited:
                log.warning(
                    "Rate limited by directory",
                    url=url,
                    attempt=attempt,
                    retry_delay=config.retry_delay,
                )
                if not attempts_left:
                    log.error("Still rate limited after all retries", url=url, total_attempts=attempt)
                    return None, RateLimitedError(url=url, attempts=attempt, retry_delay=config.retry_delay)
                await self._sleep(config.retry_delay)
                continue

            return self._parse(response, url)

        log.error("No attempts made", url=url, max_retries=max_retries)
        return None, AttemptsExhaustedError(url=url, max_retries=max_retries)

    @staticmethod
    def _parse(response: httpx.Response, url: str) -> FetchResult:
        try:
            payload = json.loads(response.text)
        except ValueError as e:
            log.error("Failed to decode server list", url=url, status_code=response.status_code, error=str(e))
            return None, DecodeError(original_error=e, url=url)

        if not isinstance(payload, dict) or "data" not in payload:
            log.error("Server list response has no data field", url=url, status_code=response.status_code)
            return None, FormatError("missing 'data' field", url=url)

        servers = payload["data"]
        if not isinstance(servers, list):
            log.error("Server list data is not an array", url=url, data_type=type(servers).__name__)
            return None, FormatError("'data' is not an array", url=url)

        log.info("Server list fetched", url=url, count=len(servers))
        return servers, None
