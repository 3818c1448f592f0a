"""Tests for the directory fetcher retry, rate-limit and parsing paths."""

from typing import Any
from unittest.mock import AsyncMock, call

import httpx
import pytest

from serverhop.services import (
    AttemptsExhaustedError,
    ConfigurationService,
    DecodeError,
    DirectoryFetcher,
    FormatError,
    HttpClientService,
    RateLimitedError,
    TransportError,
    is_rate_limited,
)
from serverhop.services.directory import TRANSPORT_RETRY_DELAY


SERVERS = [
    {"id": "a", "ping": 40, "playing": 3, "maxPlayers": 10},
    {"id": "b", "ping": 20, "playing": 10, "maxPlayers": 10},
    {"id": "broken"},
]


def ok_response(payload: Any = None) -> httpx.Response:
    return httpx.Response(200, json={"data": SERVERS} if payload is None else payload)


def rate_limited_response() -> httpx.Response:
    return httpx.Response(429, text="Too Many Requests")


def create_fetcher(
    responses: list[Any],
    **options: Any,
) -> tuple[DirectoryFetcher, AsyncMock, AsyncMock]:
    """Create a fetcher whose HTTP client yields ``responses`` in order."""
    mock_http_client = AsyncMock(spec=HttpClientService)
    mock_http_client.get.side_effect = responses
    config_service = ConfigurationService()
    config_service.configure(**options)
    sleep = AsyncMock()
    return DirectoryFetcher(mock_http_client, config_service, sleep=sleep), mock_http_client, sleep


@pytest.mark.asyncio
async def test_fetch_returns_data_verbatim() -> None:
    fetcher, http_client, sleep = create_fetcher([ok_response()])

    servers, error = await fetcher.fetch(1818)

    assert error is None
    assert servers == SERVERS
    http_client.get.assert_awaited_once_with("https://games.roblox.com/v1/games/1818", params=None)
    sleep.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize("failures", [0, 1, 2])
async def test_fetch_recovers_from_transient_transport_errors(failures: int) -> None:
    responses: list[Any] = [httpx.ConnectError("connection refused")] * failures + [ok_response()]
    fetcher, http_client, sleep = create_fetcher(responses, max_retries=3)

    servers, error = await fetcher.fetch("1818")

    assert error is None
    assert servers == SERVERS
    assert http_client.get.await_count == failures + 1
    assert sleep.await_args_list == [call(TRANSPORT_RETRY_DELAY)] * failures


@pytest.mark.asyncio
@pytest.mark.parametrize("max_retries", [1, 2, 3, 5])
async def test_fetch_gives_up_after_max_transport_failures(max_retries: int) -> None:
    errors = [httpx.ConnectTimeout(f"timeout {i}") for i in range(max_retries)]
    fetcher, http_client, sleep = create_fetcher(errors + [ok_response()], max_retries=max_retries)

    servers, error = await fetcher.fetch("1818")

    assert servers is None
    assert isinstance(error, TransportError)
    assert error.original_error is errors[-1]
    assert f"timeout {max_retries - 1}" in error.message
    assert http_client.get.await_count == max_retries
    assert sleep.await_count == max_retries - 1


@pytest.mark.asyncio
async def test_fetch_waits_retry_delay_when_always_rate_limited() -> None:
    fetcher, http_client, sleep = create_fetcher(
        [rate_limited_response() for _ in range(4)],
        max_retries=4,
        retry_delay=7.5,
    )

    servers, error = await fetcher.fetch("1818")

    assert servers is None
    assert isinstance(error, RateLimitedError)
    assert error.attempts == 4
    assert http_client.get.await_count == 4
    assert sleep.await_args_list == [call(7.5)] * 3


@pytest.mark.asyncio
async def test_fetch_recovers_after_rate_limit() -> None:
    fetcher, http_client, sleep = create_fetcher([rate_limited_response(), ok_response()])

    servers, error = await fetcher.fetch("1818")

    assert error is None
    assert servers == SERVERS
    assert sleep.await_args_list == [call(15.0)]


@pytest.mark.asyncio
async def test_rate_limit_marker_in_body_is_detected() -> None:
    marker = httpx.Response(200, text="HTTP 429 (Too Many Requests)")
    fetcher, _, sleep = create_fetcher([marker, ok_response()])

    servers, error = await fetcher.fetch("1818")

    assert error is None
    assert servers == SERVERS
    assert sleep.await_args_list == [call(15.0)]


@pytest.mark.asyncio
async def test_rate_limit_marker_in_transport_error_is_detected() -> None:
    fetcher, _, sleep = create_fetcher(
        [httpx.RequestError("HttpGet failed: HTTP 429")] * 2,
        max_retries=2,
        retry_delay=3,
    )

    servers, error = await fetcher.fetch("1818")

    assert servers is None
    assert isinstance(error, RateLimitedError)
    assert sleep.await_args_list == [call(3.0)]


@pytest.mark.asyncio
async def test_decode_failure_is_not_retried() -> None:
    fetcher, http_client, sleep = create_fetcher([httpx.Response(200, text="<html>oops</html>"), ok_response()])

    servers, error = await fetcher.fetch("1818")

    assert servers is None
    assert isinstance(error, DecodeError)
    assert http_client.get.await_count == 1
    sleep.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"errors": [{"code": 1, "message": "The place is invalid."}]},
        {"data": {"id": "a"}},
        [{"id": "a"}],
    ],
)
async def test_missing_data_field_is_a_format_error(payload: Any) -> None:
    fetcher, http_client, _ = create_fetcher([ok_response(payload), ok_response()])

    servers, error = await fetcher.fetch("1818")

    assert servers is None
    assert isinstance(error, FormatError)
    assert http_client.get.await_count == 1


@pytest.mark.asyncio
async def test_empty_data_is_success() -> None:
    fetcher, _, _ = create_fetcher([ok_response({"data": []})])

    servers, error = await fetcher.fetch("1818")

    assert servers == []
    assert error is None


@pytest.mark.asyncio
async def test_zero_retries_makes_no_request() -> None:
    fetcher, http_client, _ = create_fetcher([ok_response()], max_retries=0)

    servers, error = await fetcher.fetch("1818")

    assert servers is None
    assert isinstance(error, AttemptsExhaustedError)
    http_client.get.assert_not_awaited()


@pytest.mark.asyncio
async def test_fetch_uses_one_config_snapshot() -> None:
    fetcher, _, sleep = create_fetcher(
        [rate_limited_response() for _ in range(3)],
        max_retries=3,
        retry_delay=2,
    )
    sleep.side_effect = lambda _: fetcher.config_service.configure(retry_delay=99, max_retries=10)

    _, error = await fetcher.fetch("1818")

    assert isinstance(error, RateLimitedError)
    assert sleep.await_args_list == [call(2.0), call(2.0)]


@pytest.mark.asyncio
async def test_request_url_and_query_string() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"data": []})

    config_service = ConfigurationService()
    config_service.configure(
        api_base_url="https://directory.example.com/places",
        sort_order="Asc",
        result_limit=50,
        exclude_full_games=False,
    )

    async with HttpClientService(transport=httpx.MockTransport(handler)) as http_client:
        fetcher = DirectoryFetcher(http_client, config_service, sleep=AsyncMock())
        servers, error = await fetcher.fetch(606849621)

    assert (servers, error) == ([], None)
    assert len(requests) == 1
    url = requests[0].url
    assert url.path == "/places/606849621"
    assert dict(url.params) == {"sortOrder": "Asc", "limit": "50", "excludeFullGames": "false"}


@pytest.mark.asyncio
async def test_unset_options_add_no_query_string() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"data": []})

    async with HttpClientService(transport=httpx.MockTransport(handler)) as http_client:
        fetcher = DirectoryFetcher(http_client, ConfigurationService(), sleep=AsyncMock())
        await fetcher.fetch(1818)

    assert str(requests[0].url) == "https://games.roblox.com/v1/games/1818"


def test_is_rate_limited() -> None:
    assert is_rate_limited(httpx.Response(429))
    assert is_rate_limited(httpx.Response(503, text="upstream said HTTP 429"))
    assert not is_rate_limited(httpx.Response(200, json={"data": []}))
