"""Unit tests for serverversions.fetcher."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import httpx
import pytest
import respx
from listing_pages import listing_html, online

from serverversions.config import ScraperSettings
from serverversions.errors import ErrorCode, NetworkError
from serverversions.fetcher import PageFetcher, build_http_client

URL = "https://listing.test/servers/page/1"

# ---------------------------------------------------------------------------
# build_http_client
# ---------------------------------------------------------------------------


class TestBuildHttpClient:
    async def test_client_configuration(self) -> None:
        settings = ScraperSettings(user_agent="tests/0", request_timeout_seconds=5.0)
        async with build_http_client(settings) as client:
            assert isinstance(client, httpx.AsyncClient)
            assert client.follow_redirects is True
            assert client.headers["User-Agent"] == "tests/0"
            assert client.timeout.read == 5.0

    async def test_timeout_can_be_disabled(self) -> None:
        async with build_http_client(ScraperSettings(request_timeout_seconds=None)) as client:
            assert client.timeout.read is None


# ---------------------------------------------------------------------------
# PageFetcher
# ---------------------------------------------------------------------------


class TestPageFetcher:
    async def test_successful_fetch_returns_document(self) -> None:
        html = listing_html([("play.example.com", online("1.20.1"))])
        with respx.mock:
            respx.get(URL).mock(return_value=httpx.Response(200, text=html))
            async with httpx.AsyncClient() as client:
                document = await PageFetcher(client).fetch(URL)
        assert document.select_one(".back-tooltip span").get_text() == "play.example.com"

    async def test_non_200_raises_network_error(self) -> None:
        with respx.mock:
            respx.get(URL).mock(return_value=httpx.Response(404))
            async with httpx.AsyncClient() as client:
                with pytest.raises(NetworkError, match="HTTP 404") as exc_info:
                    await PageFetcher(client).fetch(URL)
        assert exc_info.value.code == ErrorCode.NETWORK_ERROR
        assert exc_info.value.recoverable is False

    async def test_other_2xx_is_still_an_error(self) -> None:
        with respx.mock:
            respx.get(URL).mock(return_value=httpx.Response(204))
            async with httpx.AsyncClient() as client:
                with pytest.raises(NetworkError, match="HTTP 204"):
                    await PageFetcher(client).fetch(URL)

    async def test_transport_error_raises_network_error(self) -> None:
        with respx.mock:
            respx.get(URL).mock(side_effect=httpx.ConnectError("Connection refused"))
            async with httpx.AsyncClient() as client:
                with pytest.raises(NetworkError, match="Connection refused") as exc_info:
                    await PageFetcher(client).fetch(URL)
        assert exc_info.value.recoverable is True
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    async def test_no_retries_by_default(self) -> None:
        with respx.mock:
            route = respx.get(URL).mock(return_value=httpx.Response(503))
            async with httpx.AsyncClient() as client:
                with pytest.raises(NetworkError):
                    await PageFetcher(client).fetch(URL)
        assert route.call_count == 1

    async def test_retries_transient_failures(self) -> None:
        with respx.mock, patch("asyncio.sleep", new=AsyncMock()) as sleep:
            route = respx.get(URL).mock(
                side_effect=[
                    httpx.ConnectError("reset"),
                    httpx.Response(503),
                    httpx.Response(200, text=listing_html([])),
                ]
            )
            async with httpx.AsyncClient() as client:
                fetcher = PageFetcher(client, max_retries=2, retry_backoff_seconds=1.0)
                await fetcher.fetch(URL)
        assert route.call_count == 3
        assert sleep.await_count == 2

    async def test_retry_budget_exhausted(self) -> None:
        with respx.mock, patch("asyncio.sleep", new=AsyncMock()):
            route = respx.get(URL).mock(return_value=httpx.Response(502))
            async with httpx.AsyncClient() as client:
                with pytest.raises(NetworkError, match="HTTP 502"):
                    await PageFetcher(client, max_retries=2).fetch(URL)
        assert route.call_count == 3

    async def test_client_errors_not_retried(self) -> None:
        with respx.mock, patch("asyncio.sleep", new=AsyncMock()) as sleep:
            route = respx.get(URL).mock(return_value=httpx.Response(404))
            async with httpx.AsyncClient() as client:
                with pytest.raises(NetworkError):
                    await PageFetcher(client, max_retries=3).fetch(URL)
        assert route.call_count == 1
        sleep.assert_not_awaited()
