"""Tests for the Cineville adapter."""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from cineboxd.chains.cineville import CinevilleChain
from cineboxd.exceptions import ChainFetchError
from cineboxd.schemas.show import FilmMetadata, Poster
from cineboxd.services.metadata_enricher import MetadataEnricher

GRAPHQL_URL = "https://cineville.example.com/api/graphql"
NOW = datetime(2025, 12, 21, 12, 0, tzinfo=timezone.utc)


def gql_response(data: dict, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code, json=data, request=httpx.Request("POST", GRAPHQL_URL)
    )


def films_payload(*ids: str) -> dict:
    return {"data": {"films": {"data": [{"id": i, "title": f"Film {i}"} for i in ids]}}}


def showtimes_payload(*showtimes: dict) -> dict:
    return {"data": {"showtimes": {"data": list(showtimes)}}}


def raw_showtime(show_id: str = "s1", **overrides) -> dict:
    showtime = {
        "id": show_id,
        "startDate": "2025-12-21T20:00:00+01:00",
        "endDate": "2025-12-21T22:00:00+01:00",
        "film": {
            "title": "Film A",
            "slug": "film-a",
            "poster": {"url": "https://cineville.example.com/film-a.jpg"},
            "duration": 120,
            "directors": ["Jane Doe"],
        },
        "ticketingUrl": f"https://tickets.example.com/{show_id}",
        "theater": {"name": "Filmhallen", "address": {"city": "Amsterdam"}},
    }
    showtime.update(overrides)
    return showtime


@pytest.fixture
def enricher() -> MagicMock:
    enricher = MagicMock(spec=MetadataEnricher)
    enricher.enabled = False
    enricher.get_metadata = AsyncMock(return_value=None)
    return enricher


@pytest.fixture
def chain(enricher) -> CinevilleChain:
    return CinevilleChain(enricher, graphql_url=GRAPHQL_URL, batch_size=2, clock=lambda: NOW)


@pytest.fixture
def mock_http():
    with patch("httpx.AsyncClient") as mock_client:
        mock_instance = AsyncMock()
        mock_client.return_value.__aenter__.return_value = mock_instance
        yield mock_instance


def posted_queries(mock_http) -> list[str]:
    return [call.kwargs["json"]["query"] for call in mock_http.post.call_args_list]


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


class TestGetShows:
    async def test_empty_titles_makes_no_requests(self, chain, mock_http) -> None:
        assert await chain.get_shows([]) == []
        mock_http.post.assert_not_called()

    async def test_no_matching_films(self, chain, mock_http) -> None:
        mock_http.post.return_value = gql_response(films_payload())

        assert await chain.get_shows(["Unknown"]) == []
        assert mock_http.post.await_count == 1

    async def test_returns_unified_shows(self, chain, mock_http) -> None:
        mock_http.post.side_effect = [
            gql_response(films_payload("p1")),
            gql_response(showtimes_payload(raw_showtime())),
        ]

        shows = await chain.get_shows(["Film A"])

        assert len(shows) == 1
        show = shows[0]
        assert show.id == "s1"
        assert show.chain == "cineville"
        assert show.start_date == datetime(2025, 12, 21, 19, 0, tzinfo=timezone.utc)
        assert show.end_date == datetime(2025, 12, 21, 21, 0, tzinfo=timezone.utc)
        assert show.film.directors == ["Jane Doe"]
        assert show.theater.address.city == "Amsterdam"

    async def test_queries_use_titles_and_current_time(self, chain, mock_http) -> None:
        mock_http.post.side_effect = [
            gql_response(films_payload("p1")),
            gql_response(showtimes_payload()),
        ]

        await chain.get_shows(['Say "Hi"'])

        films_q, showtimes_q = posted_queries(mock_http)
        assert json.dumps('Say "Hi"') in films_q
        assert 'productionId: {in: ["p1"]}' in showtimes_q
        assert '"2025-12-21T12:00:00+00:00"' in showtimes_q

    async def test_ids_are_batched(self, chain, mock_http) -> None:
        mock_http.post.side_effect = [
            gql_response(films_payload("p1", "p2", "p3")),
            gql_response(showtimes_payload(raw_showtime("s1"))),
            gql_response(showtimes_payload(raw_showtime("s2"))),
        ]

        shows = await chain.get_shows(["Film p1", "Film p2", "Film p3"])

        queries = posted_queries(mock_http)
        assert len(queries) == 3
        assert 'productionId: {in: ["p1", "p2"]}' in queries[1]
        assert 'productionId: {in: ["p3"]}' in queries[2]
        assert [s.id for s in shows] == ["s1", "s2"]

    async def test_duplicate_ids_are_dropped(self, chain, mock_http) -> None:
        mock_http.post.side_effect = [
            gql_response(films_payload("p1")),
            gql_response(showtimes_payload(raw_showtime("s1"), raw_showtime("s1"))),
        ]

        shows = await chain.get_shows(["Film A"])

        assert [s.id for s in shows] == ["s1"]


# ---------------------------------------------------------------------------
# Field fallbacks
# ---------------------------------------------------------------------------


class TestParsing:
    async def _single(self, chain, mock_http, raw: dict):
        mock_http.post.side_effect = [
            gql_response(films_payload("p1")),
            gql_response(showtimes_payload(raw)),
        ]
        return await chain.get_shows(["Film A"])

    async def test_naive_times_are_amsterdam_local(self, chain, mock_http) -> None:
        shows = await self._single(
            chain,
            mock_http,
            raw_showtime(startDate="2025-07-01T20:00:00", endDate="2025-07-01T22:00:00"),
        )
        assert shows[0].start_date == datetime(2025, 7, 1, 18, 0, tzinfo=timezone.utc)

    async def test_missing_end_uses_start(self, chain, mock_http) -> None:
        shows = await self._single(chain, mock_http, raw_showtime(endDate=None))
        assert shows[0].end_date == shows[0].start_date

    async def test_missing_ticketing_url_falls_back_to_film_page(
        self, chain, mock_http
    ) -> None:
        shows = await self._single(chain, mock_http, raw_showtime(ticketingUrl=None))
        assert shows[0].ticketing_url == "https://www.cineville.nl/films/film-a"

    async def test_malformed_showtime_is_skipped(self, chain, mock_http) -> None:
        mock_http.post.side_effect = [
            gql_response(films_payload("p1")),
            gql_response(
                showtimes_payload(
                    raw_showtime("bad", startDate="not a date"),
                    raw_showtime(
                        "backwards",
                        startDate="2025-12-21T22:00:00+01:00",
                        endDate="2025-12-21T20:00:00+01:00",
                    ),
                    raw_showtime("good"),
                )
            ),
        ]

        shows = await chain.get_shows(["Film A"])

        assert [s.id for s in shows] == ["good"]


# ---------------------------------------------------------------------------
# Enrichment
# ---------------------------------------------------------------------------


class TestEnrichment:
    async def test_missing_details_are_filled(self, enricher, mock_http) -> None:
        enricher.enabled = True
        enricher.get_metadata.return_value = FilmMetadata(
            poster=Poster(url="https://image.tmdb.org/t/p/w500/a.jpg"),
            directors=["TMDb Director"],
            duration=95,
        )
        chain = CinevilleChain(enricher, graphql_url=GRAPHQL_URL, clock=lambda: NOW)
        raw = raw_showtime()
        raw["film"] = {"title": "Film A", "slug": "film-a", "poster": None, "duration": 120}
        mock_http.post.side_effect = [
            gql_response(films_payload("p1")),
            gql_response(showtimes_payload(raw, raw_showtime("s2") | {"film": raw["film"]})),
        ]

        shows = await chain.get_shows(["Film A"])

        film = shows[0].film
        assert film.poster.url == "https://image.tmdb.org/t/p/w500/a.jpg"
        assert film.directors == ["TMDb Director"]
        assert film.duration == 120
        # One lookup per distinct title
        enricher.get_metadata.assert_awaited_once_with("Film A")

    async def test_complete_films_are_not_looked_up(self, enricher, mock_http) -> None:
        enricher.enabled = True
        chain = CinevilleChain(enricher, graphql_url=GRAPHQL_URL, clock=lambda: NOW)
        mock_http.post.side_effect = [
            gql_response(films_payload("p1")),
            gql_response(showtimes_payload(raw_showtime())),
        ]

        await chain.get_shows(["Film A"])

        enricher.get_metadata.assert_not_called()


# ---------------------------------------------------------------------------
# Upstream failures
# ---------------------------------------------------------------------------


class TestFailures:
    async def test_graphql_errors_raise(self, chain, mock_http) -> None:
        mock_http.post.return_value = gql_response(
            {"errors": [{"message": "Syntax Error: Unexpected Name"}]}
        )

        with pytest.raises(ChainFetchError, match="Syntax Error"):
            await chain.get_shows(["Film A"])

    async def test_error_status_raises(self, chain, mock_http) -> None:
        mock_http.post.return_value = gql_response({"message": "oops"}, status_code=500)

        with pytest.raises(ChainFetchError, match="500"):
            await chain.get_shows(["Film A"])

    async def test_network_error_raises(self, chain, mock_http) -> None:
        mock_http.post.side_effect = httpx.ConnectError("connection refused")

        with pytest.raises(ChainFetchError):
            await chain.get_shows(["Film A"])

    async def test_failing_batch_fails_adapter(self, chain, mock_http) -> None:
        mock_http.post.side_effect = [
            gql_response(films_payload("p1", "p2", "p3")),
            gql_response(showtimes_payload(raw_showtime("s1"))),
            gql_response({"errors": [{"message": "rate limited"}]}),
        ]

        with pytest.raises(ChainFetchError, match="rate limited"):
            await chain.get_shows(["Film p1", "Film p2", "Film p3"])
