"""Create, update and delete collection records, then invalidate the cache."""
import logging

import httpx

from cinevault.client.api_client import ApiClient, HttpError, NetworkError
from cinevault.schemas.record import CreateRecordRequest, Record, UpdateRecordRequest
from cinevault.services.collection_cache import CollectionCache
from cinevault.services.exceptions import MutationError
from cinevault.shared.api_errors import (
    malformed_response_error,
    parse_http_error,
    parse_network_error,
)

logger = logging.getLogger(__name__)

SAVE_FAILED_MESSAGE = "Error saving entry"
DELETE_FAILED_MESSAGE = "Error while deleting"


class MutationService:
    """
    Wraps record mutations against the collection endpoint.

    Each operation is a single request with no retries. On success every
    cache entry is discarded so all views refetch from page 1; cached pages
    are never patched in place.
    """

    def __init__(
        self,
        api: ApiClient,
        cache: CollectionCache,
        path: str = "/collection",
    ) -> None:
        self._api = api
        self._cache = cache
        self._path = path

    async def create(self, data: CreateRecordRequest) -> Record:
        """
        Create a record.

        Raises:
            MutationError: The request failed; the cache is untouched.
        """
        response = await self._send(
            "POST",
            self._path,
            data.to_form_fields(),
            SAVE_FAILED_MESSAGE,
        )
        record = self._parse_record(response)
        self._cache.invalidate_all()
        logger.info("record_created record_id=%s", record.id)
        return record

    async def update(self, record_id: int | str, data: UpdateRecordRequest) -> Record:
        """
        Replace a record.

        Raises:
            MutationError: The request failed; the cache is untouched.
        """
        response = await self._send(
            "PUT",
            f"{self._path}/{record_id}",
            data.to_form_fields(),
            SAVE_FAILED_MESSAGE,
        )
        record = self._parse_record(response)
        self._cache.invalidate_all()
        logger.info("record_updated record_id=%s", record_id)
        return record

    async def delete(self, record_id: int | str) -> None:
        """
        Delete a record.

        Raises:
            MutationError: The request failed; the cache is untouched.
        """
        await self._send("DELETE", f"{self._path}/{record_id}", None, DELETE_FAILED_MESSAGE)
        self._cache.invalidate_all()
        logger.info("record_deleted record_id=%s", record_id)

    async def _send(
        self,
        method: str,
        path: str,
        form: dict[str, str] | None,
        failure_message: str,
    ) -> httpx.Response:
        try:
            return await self._api.request(method, path, form=form)
        except HttpError as e:
            error = parse_http_error(e, failure_message)
        except NetworkError as e:
            error = parse_network_error(e)
        logger.warning(
            "mutation_failed method=%s path=%s category=%s",
            method,
            path,
            error.category,
        )
        raise MutationError(error)

    def _parse_record(self, response: httpx.Response) -> Record:
        """
        Parse the saved record from a successful response.

        The write already happened server-side, so a malformed body still
        invalidates the cache before the error is raised.
        """
        try:
            return Record.model_validate(response.json())
        except ValueError as e:  # includes pydantic.ValidationError
            self._cache.invalidate_all()
            raise MutationError(malformed_response_error(self._path)) from e
