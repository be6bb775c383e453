"""
Paginated, filter-keyed cache over the remote collection.

Each FilterKey owns an independent CacheEntry holding the pages fetched so far
and the cursor for the next one. Completion is decided by comparing the number
of records fetched against the total the server reported with the latest page,
never by receiving an empty page.

Only one fetch per entry may be in flight. The flag is set before the request
is awaited and cleared when it resolves, so two fetches can never append pages
to the same entry out of order. reset() and invalidate_all() replace entries
rather than clearing them; a fetch that resolves afterwards writes into the
detached entry object and cannot leak into its replacement.
"""
import logging
from dataclasses import dataclass, field
from typing import Literal

from cinevault.client.api_client import ApiClient, HttpError, NetworkError
from cinevault.schemas.collection import FilterKey, Page
from cinevault.schemas.record import Record
from cinevault.shared.api_errors import (
    ParsedApiError,
    malformed_response_error,
    parse_http_error,
    parse_network_error,
)

logger = logging.getLogger(__name__)

FetchStatus = Literal[
    "fetched",    # A page was appended
    "in_flight",  # Skipped: another fetch for this key hasn't resolved yet
    "exhausted",  # Skipped: every record has already been fetched
    "failed",     # Request failed; entry left as it was and retryable
]


@dataclass
class CacheEntry:
    """Accumulated pages and pagination progress for one FilterKey."""

    pages: list[Page] = field(default_factory=list)
    next_page_number: int = 1
    exhausted: bool = False
    in_flight: bool = False

    @property
    def fetched_count(self) -> int:
        """Number of records fetched across all pages."""
        return sum(len(page.records) for page in self.pages)

    @property
    def total(self) -> int | None:
        """Total reported by the most recent page, None before the first fetch."""
        return self.pages[-1].total if self.pages else None

    @property
    def records(self) -> list[Record]:
        """All fetched records in fetch order."""
        return [record for page in self.pages for record in page.records]


@dataclass(frozen=True)
class FetchResult:
    """Outcome of CollectionCache.fetch_next()."""

    status: FetchStatus
    page: Page | None = None
    error: ParsedApiError | None = None


class CollectionCache:
    """
    Incrementally loaded view of the collection, partitioned by FilterKey.

    Expected failures (HTTP errors, network errors, malformed pages) are
    reported through FetchResult and never raised.
    """

    def __init__(self, api: ApiClient, page_size: int = 8, path: str = "/collection") -> None:
        if page_size < 1:
            raise ValueError(f"page_size must be at least 1 (got {page_size})")
        self._api = api
        self._page_size = page_size
        self._path = path
        self._entries: dict[FilterKey, CacheEntry] = {}

    @property
    def page_size(self) -> int:
        """Records requested per page."""
        return self._page_size

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, filter_key: object) -> bool:
        return filter_key in self._entries

    def query(self, filter_key: FilterKey) -> CacheEntry:
        """Return the entry for a key, creating an empty one if absent."""
        entry = self._entries.get(filter_key)
        if entry is None:
            entry = CacheEntry()
            self._entries[filter_key] = entry
        return entry

    def records(self, filter_key: FilterKey) -> list[Record]:
        """All records fetched so far for a key."""
        return self.query(filter_key).records

    def has_more(self, filter_key: FilterKey) -> bool:
        """True while the key may still have unfetched records."""
        return not self.query(filter_key).exhausted

    async def fetch_next(self, filter_key: FilterKey) -> FetchResult:
        """
        Fetch and append the next page for a key.

        No-op when a fetch for the key is already in flight or the key is
        exhausted.
        """
        entry = self.query(filter_key)
        if entry.in_flight:
            logger.debug("collection_fetch_skipped reason=in_flight key=%s", filter_key)
            return FetchResult("in_flight")
        if entry.exhausted:
            logger.debug("collection_fetch_skipped reason=exhausted key=%s", filter_key)
            return FetchResult("exhausted")

        entry.in_flight = True
        page_number = entry.next_page_number
        try:
            page = await self._request_page(filter_key, page_number)
        except _PageFetchError as e:
            logger.warning(
                "collection_fetch_failed key=%s page=%s category=%s",
                filter_key,
                page_number,
                e.error.category,
            )
            return FetchResult("failed", error=e.error)
        finally:
            entry.in_flight = False

        entry.pages.append(page)
        entry.next_page_number = page_number + 1
        entry.exhausted = entry.fetched_count >= page.total
        if not page.records and not entry.exhausted:
            logger.warning(
                "collection_empty_page key=%s page=%s fetched=%s total=%s",
                filter_key,
                page_number,
                entry.fetched_count,
                page.total,
            )
        logger.debug(
            "collection_page_fetched key=%s page=%s fetched=%s total=%s exhausted=%s",
            filter_key,
            page_number,
            entry.fetched_count,
            page.total,
            entry.exhausted,
        )
        return FetchResult("fetched", page=page)

    async def refresh(self, filter_key: FilterKey) -> FetchResult:
        """Discard a key's entry and fetch its first page again."""
        self.reset(filter_key)
        return await self.fetch_next(filter_key)

    def reset(self, filter_key: FilterKey) -> None:
        """Discard the entry for one key; pagination restarts at page 1."""
        if self._entries.pop(filter_key, None) is not None:
            logger.debug("collection_reset key=%s", filter_key)

    def invalidate_all(self) -> None:
        """Discard every entry."""
        count = len(self._entries)
        self._entries = {}
        logger.debug("collection_invalidated entries=%s", count)

    async def _request_page(self, filter_key: FilterKey, page_number: int) -> Page:
        params = {"page": page_number, "limit": self._page_size, **filter_key.to_params()}
        try:
            response = await self._api.request("GET", self._path, params=params)
        except HttpError as e:
            raise _PageFetchError(parse_http_error(e, "Error while loading entries")) from e
        except NetworkError as e:
            raise _PageFetchError(parse_network_error(e)) from e

        try:
            return Page.model_validate(response.json())
        except ValueError as e:  # includes pydantic.ValidationError
            raise _PageFetchError(malformed_response_error(self._path)) from e


class _PageFetchError(Exception):
    """Internal carrier for a parsed failure inside fetch_next()."""

    def __init__(self, error: ParsedApiError) -> None:
        self.error = error
        super().__init__(error.message)
