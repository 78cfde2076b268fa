"""Exception hierarchy for the aggregation pipeline."""

from fastapi import status


class CineboxdError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: str = "An unexpected error occurred"

    def __init__(self, detail: str | None = None):
        if detail:
            self.detail = detail
        super().__init__(self.detail)


class ListSourceError(CineboxdError):
    """Base class for failures fetching a Letterboxd list."""

    status_code = status.HTTP_502_BAD_GATEWAY
    detail = "Failed to fetch list"


class ListNotFoundError(ListSourceError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, list_path: str):
        self.list_path = list_path
        super().__init__(
            f"List not found: '{list_path}'. Check that the username and list URL are correct."
        )


class ListFetchError(ListSourceError):

    def __init__(self, list_path: str, reason: str):
        self.list_path = list_path
        self.reason = reason
        super().__init__(f"Failed to fetch list '{list_path}': {reason}")


class ChainFetchError(CineboxdError):
    """A cinema chain upstream failed; isolated by the aggregator."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, chain: str, reason: str):
        self.chain = chain
        self.reason = reason
        super().__init__(f"{chain} fetch failed: {reason}")
