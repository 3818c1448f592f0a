"""HTTP client service for talking to the server directory."""

from typing import Any

import httpx
import structlog

log = structlog.stdlib.get_logger()


class HttpClientService:
    """Thin async HTTP transport with timeout handling.

    Retrying is left to the caller: ``get`` performs exactly one request and
    returns the response whatever its status code.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        verify_ssl: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the HTTP client service.

        Args:
            timeout: Request timeout in seconds
            verify_ssl: Whether to verify SSL certificates
            transport: Optional httpx transport (e.g. ``httpx.MockTransport``)
        """
        self.timeout = timeout

        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers={
                "User-Agent": "serverhop/0.1.0",
                "Accept": "application/json",
            },
            follow_redirects=True,
            limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
            verify=verify_ssl,
            transport=transport,
        )

        log.info(
            "HTTP client service initialized",
            timeout=timeout,
            verify_ssl=verify_ssl,
        )

    async def get(
        self,
        url: str,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Make a single GET request.

        Args:
            url: The URL to request
            params: Optional query parameters

        Returns:
            HTTP response object, whatever its status code

        Raises:
            httpx.RequestError: On connection failures and timeouts
        """
        log.debug("Making HTTP GET request", url=url, params=params)

        response = await self._client.get(url, params=params)

        log.debug(
            "HTTP GET request completed",
            url=url,
            status_code=response.status_code,
            content_length=len(response.content),
        )
        return response

    async def close(self) -> None:
        """Close the HTTP client and clean up resources."""
        await self._client.aclose()
        log.info("HTTP client closed")

    async def __aenter__(self) -> "HttpClientService":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: type[Exception] | None, exc_val: Exception | None, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()
