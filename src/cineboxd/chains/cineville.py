"""Cineville adapter using the public GraphQL catalogue API.

Flow:
1. ``films`` query with an exact ``title in [...]`` filter resolves watchlist
   titles to Cineville production IDs.
2. ``showtimes`` queries, one per batch of IDs and run concurrently, fetch
   every showtime that starts after now. Batching keeps each query under the
   API's per-page result cap.
3. Films missing a poster or directors are enriched from TMDb; runtime is
   filled in as well when Cineville has none.

Unlike Pathé, any upstream failure here fails the whole adapter.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo

import httpx
from pydantic import ValidationError

from cineboxd.chains.base import BaseChain, dedupe_shows
from cineboxd.chains.graphql import GraphQLQuery
from cineboxd.config import settings
from cineboxd.exceptions import ChainFetchError
from cineboxd.schemas.cineville import (
    CinevilleFilmsResponse,
    CinevilleShowtime,
    CinevilleShowtimesResponse,
)
from cineboxd.schemas.show import Address, Film, Poster, Show, Theater
from cineboxd.services.metadata_enricher import MetadataEnricher, enrich_film

logger = logging.getLogger(__name__)

AMSTERDAM_TZ = ZoneInfo("Europe/Amsterdam")

CINEVILLE_FILM_URL = "https://www.cineville.nl/films"

PAGE_LIMIT = 999

SHOWTIME_SELECTION = [
    {
        "data": [
            "id",
            "startDate",
            "endDate",
            {
                "film": [
                    "title",
                    "slug",
                    {"poster": ["url"]},
                    "duration",
                    "directors",
                ]
            },
            "ticketingUrl",
            {"theater": ["name", {"address": ["city"]}]},
        ]
    }
]


def films_query(titles: list[str]) -> GraphQLQuery:
    """Query resolving exact film titles to production IDs."""
    return GraphQLQuery(
        field="films",
        arguments={
            "page": {"limit": PAGE_LIMIT},
            "filters": {"title": {"in": titles}},
        },
        selection=[{"data": ["title", "id"]}],
    )


def showtimes_query(production_ids: list[str], after: datetime) -> GraphQLQuery:
    """Query for showtimes of the given productions starting after a moment."""
    return GraphQLQuery(
        field="showtimes",
        arguments={
            "page": {"limit": PAGE_LIMIT},
            "filters": {
                "productionId": {"in": production_ids},
                "startDate": {"gt": after.astimezone(timezone.utc).isoformat()},
            },
        },
        selection=SHOWTIME_SELECTION,
    )


class CinevilleChain(BaseChain):
    """Adapter for the Cineville network of independent cinemas."""

    chain = "cineville"

    def __init__(
        self,
        enricher: MetadataEnricher,
        graphql_url: str | None = None,
        batch_size: int | None = None,
        timeout: float | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Args:
            enricher: Metadata enricher for films missing details
            graphql_url: GraphQL endpoint (uses settings if not provided)
            batch_size: Production IDs per showtimes query
            timeout: Request timeout in seconds
            clock: Returns the current aware datetime (for tests)
        """
        super().__init__(enricher)
        self.graphql_url = graphql_url or settings.cineville_graphql_url
        self.batch_size = max(1, batch_size or settings.cineville_batch_size)
        self.timeout = timeout or settings.request_timeout
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def get_shows(self, titles: list[str]) -> list[Show]:
        """Fetch Cineville showtimes for the given watchlist titles."""
        if not titles:
            return []

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            production_ids = await self._resolve_production_ids(client, titles)
            if not production_ids:
                logger.info("Cineville: no matching films found")
                return []

            batches = [
                production_ids[i : i + self.batch_size]
                for i in range(0, len(production_ids), self.batch_size)
            ]
            now = self.clock()
            results = await asyncio.gather(
                *[self._fetch_showtimes(client, batch, now) for batch in batches],
                return_exceptions=True,
            )

        raw_showtimes: list[dict] = []
        for result in results:
            if isinstance(result, BaseException):
                raise result
            raw_showtimes.extend(result)

        logger.info(
            f"Cineville: fetched {len(raw_showtimes)} showtimes for "
            f"{len(production_ids)} films in {len(batches)} batches"
        )

        shows: list[Show] = []
        for raw in raw_showtimes:
            show = self._parse_showtime(raw)
            if show:
                shows.append(show)

        shows = await self._enrich(shows)
        return dedupe_shows(shows)

    async def _resolve_production_ids(
        self, client: httpx.AsyncClient, titles: list[str]
    ) -> list[str]:
        payload = await self._post(client, films_query(titles))
        response = self._decode(CinevilleFilmsResponse, payload)

        films = response.data.films.data if response.data and response.data.films else []
        return list(dict.fromkeys(film.id for film in films))

    async def _fetch_showtimes(
        self, client: httpx.AsyncClient, production_ids: list[str], after: datetime
    ) -> list[dict]:
        payload = await self._post(client, showtimes_query(production_ids, after))
        response = self._decode(CinevilleShowtimesResponse, payload)

        if not response.data or not response.data.showtimes:
            return []
        return response.data.showtimes.data

    async def _post(self, client: httpx.AsyncClient, query: GraphQLQuery) -> Any:
        try:
            response = await client.post(
                self.graphql_url,
                json=query.to_payload(),
                headers={"Content-Type": "application/json; charset=utf-8"},
            )
        except httpx.HTTPError as e:
            raise ChainFetchError(self.chain, f"{query.field} query failed: {e}") from e

        if response.is_error:
            raise ChainFetchError(
                self.chain,
                f"{query.field} query returned {response.status_code}: {response.text[:200]}",
            )

        try:
            return response.json()
        except ValueError as e:
            raise ChainFetchError(self.chain, f"{query.field} query returned invalid JSON") from e

    def _decode(self, model: type, payload: Any) -> Any:
        try:
            response = model.model_validate(payload)
        except ValidationError as e:
            raise ChainFetchError(self.chain, f"unexpected response shape: {e}") from e

        if response.errors:
            messages = "; ".join(error.message for error in response.errors)
            raise ChainFetchError(self.chain, f"GraphQL errors: {messages}")
        return response

    def _parse_showtime(self, raw: dict) -> Show | None:
        try:
            st = CinevilleShowtime.model_validate(raw)

            start = self._as_aware(st.start_date)
            end = self._as_aware(st.end_date) if st.end_date else start
            poster = (
                Poster(url=st.film.poster.url)
                if st.film.poster and st.film.poster.url
                else None
            )
            address = (
                Address(city=st.theater.address.city) if st.theater.address else None
            )

            return Show(
                id=st.id,
                start_date=start,
                end_date=end,
                ticketing_url=st.ticketing_url or f"{CINEVILLE_FILM_URL}/{st.film.slug}",
                film=Film(
                    title=st.film.title,
                    slug=st.film.slug,
                    poster=poster,
                    duration=max(st.film.duration or 0, 0),
                    directors=st.film.directors or [],
                ),
                theater=Theater(name=st.theater.name, address=address),
                chain="cineville",
            )
        except ValidationError as e:
            logger.warning(f"Cineville: skipping malformed showtime {raw.get('id')}: {e}")
            return None

    def _as_aware(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=AMSTERDAM_TZ)
        return value

    async def _enrich(self, shows: list[Show]) -> list[Show]:
        """Fill missing film details from TMDb, one lookup per distinct title."""
        needing = [
            show.film.title
            for show in shows
            if show.film.poster is None or not show.film.directors
        ]
        if not needing:
            return shows

        metadata = await self.fetch_metadata(needing)
        if not metadata:
            return shows

        return [
            show.model_copy(
                update={"film": enrich_film(show.film, metadata.get(show.film.title))}
            )
            for show in shows
        ]
