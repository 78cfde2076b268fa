"""Tests for the showtimes and health endpoints."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from cineboxd.api.routes.showtimes import DEFAULT_LIST_PATH, resolve_list_path
from cineboxd.dependencies import Services
from cineboxd.exceptions import ListFetchError, ListNotFoundError
from cineboxd.services.aggregator import AggregationResult

PAYLOAD = {
    "data": {
        "showtimes": {
            "data": [
                {
                    "id": "s1",
                    "startDate": "2025-12-21T19:00:00Z",
                    "endDate": "2025-12-21T21:00:00Z",
                    "ticketingUrl": "https://tickets.example.com/s1",
                    "film": {"title": "Film A", "slug": "film-a", "duration": 0, "directors": []},
                    "theater": {"name": "Filmhallen"},
                    "chain": "cineville",
                }
            ]
        }
    }
}


@pytest.fixture
def aggregator() -> MagicMock:
    aggregator = MagicMock()
    aggregator.get_showtimes = AsyncMock(
        return_value=AggregationResult(payload=PAYLOAD, cache_hit=False)
    )
    return aggregator


@pytest.fixture
async def client(test_app, fake_redis, aggregator):
    test_app.state.services = Services(redis=fake_redis, aggregator=aggregator)
    transport = ASGITransport(app=test_app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class TestResolveListPath:
    def test_default(self) -> None:
        assert resolve_list_path(None, None) == DEFAULT_LIST_PATH == "105424/watchlist"

    def test_username_means_watchlist(self) -> None:
        assert resolve_list_path(None, "jack") == "jack/watchlist"

    def test_list_path_wins(self) -> None:
        assert resolve_list_path("/jack/list/best-of/", "jill") == "jack/list/best-of"

    def test_blank_values_fall_back(self) -> None:
        assert resolve_list_path("  ", " ") == DEFAULT_LIST_PATH


class TestShowtimesEndpoint:
    async def test_cache_miss(self, client, aggregator) -> None:
        response = await client.get("/api/showtimes")

        assert response.status_code == 200
        assert response.json() == PAYLOAD
        assert response.headers["x-cache"] == "MISS"
        assert "max-age=86400" in response.headers["cache-control"]
        aggregator.get_showtimes.assert_awaited_once_with("105424/watchlist")

    async def test_cache_hit_header(self, client, aggregator) -> None:
        aggregator.get_showtimes.return_value = AggregationResult(payload=PAYLOAD, cache_hit=True)

        response = await client.get("/api/showtimes", params={"username": "jack"})

        assert response.headers["x-cache"] == "HIT"
        aggregator.get_showtimes.assert_awaited_once_with("jack/watchlist")

    async def test_list_path_param(self, client, aggregator) -> None:
        await client.get("/api/showtimes", params={"listPath": "jack/list/best-of"})
        aggregator.get_showtimes.assert_awaited_once_with("jack/list/best-of")

    async def test_list_not_found(self, client, aggregator) -> None:
        aggregator.get_showtimes.side_effect = ListNotFoundError("nobody/watchlist")

        response = await client.get("/api/showtimes", params={"username": "nobody"})

        assert response.status_code == 404
        assert "nobody/watchlist" in response.json()["error"]

    async def test_list_fetch_error(self, client, aggregator) -> None:
        aggregator.get_showtimes.side_effect = ListFetchError("105424/watchlist", "HTTP 500")

        response = await client.get("/api/showtimes")

        assert response.status_code == 502
        assert "error" in response.json()

    async def test_unexpected_error(self, client, aggregator) -> None:
        aggregator.get_showtimes.side_effect = RuntimeError("boom")

        response = await client.get("/api/showtimes")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}


class TestHealth:
    async def test_cache_up(self, client) -> None:
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "cache": "up"}

    async def test_cache_down(self, client, fake_redis) -> None:
        fake_redis.fail_reads = True

        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "cache": "down"}
