"""Client for fetching Letterboxd watchlists and custom lists."""

import asyncio
import logging

import httpx
from pydantic import ValidationError

from cineboxd.config import settings
from cineboxd.exceptions import ListFetchError, ListNotFoundError
from cineboxd.schemas.letterboxd import ListEntry, ListResponse

logger = logging.getLogger(__name__)


class LetterboxdListClient:
    """
    Client for the Letterboxd list proxy.

    The proxy is hosted on a platform that spins instances down when idle, so
    the first request after a quiet period often gets a 503 while it starts.
    Those (and network errors) are retried with a fixed delay; every other
    error status fails immediately.
    """

    def __init__(
        self,
        base_url: str | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None,
        timeout: float | None = None,
    ) -> None:
        """
        Args:
            base_url: Proxy base URL (uses settings if not provided)
            max_retries: Total attempts for retryable failures
            retry_delay: Seconds to wait between attempts
            timeout: Request timeout in seconds
        """
        self.base_url = (base_url or settings.list_source_base_url).rstrip("/")
        self.max_retries = max(1, max_retries or settings.list_source_max_retries)
        self.retry_delay = (
            retry_delay if retry_delay is not None else settings.list_source_retry_delay
        )
        self.timeout = timeout or settings.request_timeout

    def list_url(self, list_path: str) -> str:
        return f"{self.base_url}/{list_path.strip('/')}/"

    async def fetch_list(self, list_path: str) -> list[ListEntry]:
        """
        Fetch the films on a list.

        Args:
            list_path: e.g. ``"105424/watchlist"`` or ``"jack/list/some-list"``

        Returns:
            List entries in list order

        Raises:
            ListNotFoundError: The list does not exist (404)
            ListFetchError: Any other failure, after retries where applicable
        """
        url = self.list_url(list_path)

        for attempt in range(1, self.max_retries + 1):
            try:
                async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                    response = await client.get(url)
            except httpx.HTTPError as e:
                error = ListFetchError(list_path, f"network error: {e}")
                logger.warning(
                    f"List fetch for {list_path} failed on attempt "
                    f"{attempt}/{self.max_retries}: {e}"
                )
            else:
                if response.status_code == 503:
                    error = ListFetchError(list_path, "service unavailable (503)")
                    logger.warning(
                        f"List source returned 503 for {list_path} on attempt "
                        f"{attempt}/{self.max_retries}, likely a cold start"
                    )
                elif response.status_code == 404:
                    raise ListNotFoundError(list_path)
                elif response.is_error:
                    raise ListFetchError(list_path, f"HTTP {response.status_code}")
                else:
                    return self._parse(list_path, response)

            if attempt == self.max_retries:
                raise error

            logger.info(f"Retrying list fetch for {list_path} in {self.retry_delay}s...")
            await asyncio.sleep(self.retry_delay)

    def _parse(self, list_path: str, response: httpx.Response) -> list[ListEntry]:
        try:
            entries = ListResponse.model_validate(response.json()).root
        except (ValueError, ValidationError) as e:
            raise ListFetchError(list_path, f"malformed response: {e}") from e

        logger.info(f"Fetched {len(entries)} films from list {list_path}")
        return entries
