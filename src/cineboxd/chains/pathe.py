"""Pathé adapter using the pathe.nl JSON API.

Pathé has no title search, so the adapter works from the full catalogue:

1. ``GET /zone/{zone}`` lists every film currently showing; only bookable
   entries are kept.
2. Each entry's slug is turned back into a title and fuzzy-matched against
   the watchlist.
3. For every matched film, ``GET /show/{film}/showtimes/{cinema}/{date}`` is
   queried for each known cinema over the next few days. Requests run
   concurrently behind a semaphore; a failing request only loses that
   cinema/date slice.

Pathé's catalogue has no poster, director or runtime data, so those come
from TMDb when an API key is configured.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

import httpx
from pydantic import ValidationError

from cineboxd.chains.base import BaseChain, dedupe_shows
from cineboxd.config import settings
from cineboxd.exceptions import ChainFetchError
from cineboxd.schemas.pathe import PatheShowtime, PatheZone, PatheZoneShow
from cineboxd.schemas.show import Address, Film, FilmMetadata, Show, Theater
from cineboxd.services.metadata_enricher import MetadataEnricher
from cineboxd.utils.text import match_titles, slug_to_title, title_case

logger = logging.getLogger(__name__)

AMSTERDAM_TZ = ZoneInfo("Europe/Amsterdam")

PATHE_FILM_URL = "https://www.pathe.nl/nl/films"

_UA = "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0"


@dataclass(frozen=True)
class PatheCinema:
    slug: str
    city: str
    name: str


# One major cinema per city keeps the request count manageable
PATHE_CINEMAS: tuple[PatheCinema, ...] = (
    PatheCinema("pathe-de-munt", "Amsterdam", "Pathé De Munt"),
    PatheCinema("pathe-buitenhof", "Den Haag", "Pathé Buitenhof"),
    PatheCinema("pathe-schouwburgplein", "Rotterdam", "Pathé Schouwburgplein"),
    PatheCinema("pathe-rembrandt-utrecht", "Utrecht", "Pathé Rembrandt"),
    PatheCinema("pathe-eindhoven", "Eindhoven", "Pathé Eindhoven"),
    PatheCinema("pathe-groningen", "Groningen", "Pathé Groningen"),
    PatheCinema("pathe-breda", "Breda", "Pathé Breda"),
    PatheCinema("pathe-arnhem", "Arnhem", "Pathé Arnhem"),
    PatheCinema("pathe-tilburg-centrum", "Tilburg", "Pathé Tilburg"),
    PatheCinema("pathe-haarlem", "Haarlem", "Pathé Haarlem"),
    PatheCinema("pathe-nijmegen", "Nijmegen", "Pathé Nijmegen"),
    PatheCinema("pathe-maastricht", "Maastricht", "Pathé Maastricht"),
    PatheCinema("pathe-zwolle", "Zwolle", "Pathé Zwolle"),
    PatheCinema("pathe-amersfoort", "Amersfoort", "Pathé Amersfoort"),
    PatheCinema("pathe-leeuwarden", "Leeuwarden", "Pathé Leeuwarden"),
)


def parse_local_time(value: str) -> datetime:
    """
    Parse a Pathé local timestamp (``"2025-12-21 17:00:00"``).

    Naive values are Dutch local time; the result is timezone-aware.
    """
    parsed = datetime.fromisoformat(value.strip().replace(" ", "T"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=AMSTERDAM_TZ)
    return parsed


class PatheChain(BaseChain):
    """Adapter for Pathé cinemas in the Netherlands."""

    chain = "pathe"

    def __init__(
        self,
        enricher: MetadataEnricher,
        base_url: str | None = None,
        zone: str | None = None,
        days_ahead: int | None = None,
        concurrency: int | None = None,
        cinemas: tuple[PatheCinema, ...] = PATHE_CINEMAS,
        timeout: float | None = None,
        today: Callable[[], date] | None = None,
    ) -> None:
        """
        Args:
            enricher: Metadata enricher for matched films
            base_url: API base URL (uses settings if not provided)
            zone: Catalogue zone, e.g. ``"amsterdam"``
            days_ahead: Number of calendar days to query, starting today
            concurrency: Maximum in-flight showtime requests
            cinemas: Cinemas to query for every matched film
            timeout: Request timeout in seconds
            today: Returns today's date in Dutch local time (for tests)
        """
        super().__init__(enricher)
        self.base_url = (base_url or settings.pathe_base_url).rstrip("/")
        self.zone = zone or settings.pathe_zone
        self.days_ahead = days_ahead or settings.pathe_days_ahead
        self.concurrency = max(1, concurrency or settings.pathe_concurrency)
        self.cinemas = cinemas
        self.timeout = timeout or settings.request_timeout
        self.today = today or (lambda: datetime.now(AMSTERDAM_TZ).date())

    async def get_shows(self, titles: list[str]) -> list[Show]:
        """Fetch Pathé showtimes for the given watchlist titles."""
        if not titles:
            return []

        async with httpx.AsyncClient(
            timeout=self.timeout,
            headers={"User-Agent": _UA, "Accept": "application/json"},
        ) as client:
            zone_shows = await self._fetch_zone(client)
            logger.info(f"Pathé: fetched {len(zone_shows)} films from zone {self.zone}")

            bookable = [show for show in zone_shows if show.bookable]
            matched = match_titles(bookable, titles, key=lambda s: slug_to_title(s.slug))
            logger.info(f"Pathé: matched {len(matched)} films from watchlist")

            if not matched:
                return []

            film_titles = {show.slug: title_case(slug_to_title(show.slug)) for show in matched}
            metadata = await self.fetch_metadata(film_titles.values())

            dates = self.date_range()
            semaphore = asyncio.Semaphore(self.concurrency)
            film_results = await asyncio.gather(
                *[
                    self._fetch_film(
                        client, semaphore, slug, title, metadata.get(title), dates
                    )
                    for slug, title in film_titles.items()
                ]
            )

        shows = dedupe_shows(show for film_shows in film_results for show in film_shows)
        logger.info(f"Pathé: fetched {len(shows)} total showtimes")
        return shows

    def date_range(self) -> list[date]:
        """Calendar dates to query, today first."""
        start = self.today()
        return [start + timedelta(days=i) for i in range(self.days_ahead)]

    async def _fetch_zone(self, client: httpx.AsyncClient) -> list[PatheZoneShow]:
        """Fetch the zone catalogue. Error statuses yield an empty catalogue."""
        try:
            response = await client.get(f"{self.base_url}/zone/{self.zone}")
        except httpx.HTTPError as e:
            raise ChainFetchError(self.chain, f"zone {self.zone} request failed: {e}") from e

        if response.status_code != 200:
            logger.warning(f"Pathé: zone {self.zone} returned {response.status_code}")
            return []

        try:
            raw_shows = PatheZone.model_validate(response.json()).shows
        except ValueError as e:
            logger.warning(f"Pathé: could not parse zone {self.zone}: {e}")
            return []

        shows: list[PatheZoneShow] = []
        for raw in raw_shows:
            try:
                shows.append(PatheZoneShow.model_validate(raw))
            except ValidationError as e:
                logger.warning(f"Pathé: skipping malformed zone entry: {e}")
        return shows

    async def _fetch_film(
        self,
        client: httpx.AsyncClient,
        semaphore: asyncio.Semaphore,
        film_slug: str,
        film_title: str,
        metadata: FilmMetadata | None,
        dates: list[date],
    ) -> list[Show]:
        slices = [(cinema, day) for cinema in self.cinemas for day in dates]
        results = await asyncio.gather(
            *[
                self._fetch_slice(client, semaphore, film_slug, cinema, day)
                for cinema, day in slices
            ]
        )

        shows: list[Show] = []
        for (cinema, _day), showtimes in zip(slices, results):
            for showtime in showtimes:
                show = self._to_show(showtime, film_slug, film_title, cinema, metadata)
                if show:
                    shows.append(show)
        return shows

    async def _fetch_slice(
        self,
        client: httpx.AsyncClient,
        semaphore: asyncio.Semaphore,
        film_slug: str,
        cinema: PatheCinema,
        day: date,
    ) -> list[PatheShowtime]:
        """Showtimes for one film at one cinema on one day; empty on any failure."""
        url = f"{self.base_url}/show/{film_slug}/showtimes/{cinema.slug}/{day.isoformat()}"
        try:
            async with semaphore:
                response = await client.get(url, params={"language": "nl"})
            if response.status_code != 200:
                logger.debug(f"Pathé: {url} returned {response.status_code}")
                return []

            data = response.json()
            if not isinstance(data, list):
                return []

        except Exception as e:
            logger.warning(f"Pathé: failed to fetch {film_slug} at {cinema.slug} on {day}: {e}")
            return []

        showtimes: list[PatheShowtime] = []
        for item in data:
            try:
                showtimes.append(PatheShowtime.model_validate(item))
            except ValidationError as e:
                logger.warning(
                    f"Pathé: skipping malformed showtime for {film_slug} at {cinema.slug}: {e}"
                )
        return showtimes

    def _to_show(
        self,
        showtime: PatheShowtime,
        film_slug: str,
        film_title: str,
        cinema: PatheCinema,
        metadata: FilmMetadata | None,
    ) -> Show | None:
        try:
            start = parse_local_time(showtime.time)
            end = parse_local_time(showtime.end_time) if showtime.end_time else start

            return Show(
                id=f"pathe-{film_slug}-{cinema.slug}-{showtime.time}",
                start_date=start,
                end_date=end,
                ticketing_url=showtime.ref_cmd or f"{PATHE_FILM_URL}/{film_slug}",
                film=Film(
                    title=film_title,
                    slug=film_slug,
                    poster=metadata.poster if metadata else None,
                    duration=metadata.duration if metadata else 0,
                    directors=list(metadata.directors) if metadata else [],
                ),
                theater=Theater(name=cinema.name, address=Address(city=cinema.city)),
                chain="pathe",
            )
        except (ValueError, ValidationError) as e:
            logger.warning(
                f"Pathé: skipping showtime {showtime.time!r} for {film_slug} at {cinema.slug}: {e}"
            )
            return None
