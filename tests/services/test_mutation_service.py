"""Tests for MutationService create, update and delete."""
from collections.abc import Callable

import httpx
import pytest
import respx
from httpx import Response

from cinevault.client.api_client import ApiClient
from cinevault.schemas.collection import FilterKey
from cinevault.schemas.record import CreateRecordRequest, Record, UpdateRecordRequest
from cinevault.services.collection_cache import CollectionCache
from cinevault.services.exceptions import MutationError
from cinevault.services.mutation_service import MutationService
from tests.conftest import make_record

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def mutations(api: ApiClient, collection_cache: CollectionCache) -> MutationService:
    """MutationService sharing the fixture cache."""
    return MutationService(api, collection_cache, path="/collection")


async def _warm_cache(
    cache: CollectionCache,
    mock_api: respx.MockRouter,
    handler: Handler,
) -> None:
    """Fetch a first page for two distinct keys."""
    mock_api.get("/collection").mock(side_effect=handler)
    await cache.fetch_next(FilterKey(search_text="x"))
    await cache.fetch_next(FilterKey(search_text="y"))


class TestCreate:
    """Tests for MutationService.create."""

    async def test__create__returns_record_and_invalidates_every_key(
        self,
        mutations: MutationService,
        collection_cache: CollectionCache,
        mock_api: respx.MockRouter,
        paged_collection: Callable[[int], Handler],
    ) -> None:
        await _warm_cache(collection_cache, mock_api, paged_collection(20))
        mock_api.post("/collection").mock(
            return_value=Response(201, json=make_record(21, title="Heat")),
        )

        record = await mutations.create(CreateRecordRequest(title="Heat"))

        assert record == Record.model_validate(make_record(21, title="Heat"))
        assert FilterKey(search_text="x") not in collection_cache
        assert FilterKey(search_text="y") not in collection_cache

    async def test__create__sends_multipart_wire_fields(
        self,
        mutations: MutationService,
        mock_api: respx.MockRouter,
    ) -> None:
        route = mock_api.post("/collection").mock(return_value=Response(201, json=make_record(1)))

        await mutations.create(
            CreateRecordRequest(title="Dark", type="TV Show", year_time="2017"),
        )

        request = route.calls[0].request
        assert request.headers["content-type"].startswith("multipart/form-data")
        body = request.read()
        assert b'name="title"' in body
        assert b"Dark" in body
        assert b"TV Show" in body
        assert b'name="yearTime"' in body
        assert b'name="director"' not in body

    async def test__create__rejection_leaves_cache_untouched(
        self,
        mutations: MutationService,
        collection_cache: CollectionCache,
        mock_api: respx.MockRouter,
        paged_collection: Callable[[int], Handler],
    ) -> None:
        await _warm_cache(collection_cache, mock_api, paged_collection(20))
        mock_api.post("/collection").mock(
            return_value=Response(400, json={"message": "Title is required"}),
        )

        with pytest.raises(MutationError) as exc_info:
            await mutations.create(CreateRecordRequest(title="Heat"))

        assert exc_info.value.category == "validation"
        assert exc_info.value.error.message == "Title is required"
        assert collection_cache.query(FilterKey(search_text="x")).fetched_count == 8
        assert collection_cache.query(FilterKey(search_text="y")).fetched_count == 8

    async def test__create__server_error_without_message_uses_fallback(
        self,
        mutations: MutationService,
        mock_api: respx.MockRouter,
    ) -> None:
        mock_api.post("/collection").mock(return_value=Response(500, json={}))

        with pytest.raises(MutationError, match="Error saving entry"):
            await mutations.create(CreateRecordRequest(title="Heat"))

    async def test__create__network_error(
        self,
        mutations: MutationService,
        mock_api: respx.MockRouter,
    ) -> None:
        mock_api.post("/collection").mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(MutationError) as exc_info:
            await mutations.create(CreateRecordRequest(title="Heat"))

        assert exc_info.value.category == "network"

    async def test__create__malformed_success_body_still_invalidates(
        self,
        mutations: MutationService,
        collection_cache: CollectionCache,
        mock_api: respx.MockRouter,
        paged_collection: Callable[[int], Handler],
    ) -> None:
        """The write already happened server-side, so cached pages are stale."""
        await _warm_cache(collection_cache, mock_api, paged_collection(20))
        mock_api.post("/collection").mock(return_value=Response(201, json={"ok": True}))

        with pytest.raises(MutationError) as exc_info:
            await mutations.create(CreateRecordRequest(title="Heat"))

        assert exc_info.value.category == "server"
        assert len(collection_cache) == 0


class TestUpdate:
    """Tests for MutationService.update."""

    async def test__update__puts_to_record_path_and_invalidates(
        self,
        mutations: MutationService,
        collection_cache: CollectionCache,
        mock_api: respx.MockRouter,
        paged_collection: Callable[[int], Handler],
    ) -> None:
        await _warm_cache(collection_cache, mock_api, paged_collection(20))
        route = mock_api.put("/collection/5").mock(
            return_value=Response(200, json=make_record(5, title="Renamed")),
        )
        data = UpdateRecordRequest.from_record(Record.model_validate(make_record(5)))

        record = await mutations.update(5, data.model_copy(update={"title": "Renamed"}))

        assert route.called
        assert record.title == "Renamed"
        assert len(collection_cache) == 0

    async def test__update__not_found_keeps_server_message(
        self,
        mutations: MutationService,
        collection_cache: CollectionCache,
        mock_api: respx.MockRouter,
        paged_collection: Callable[[int], Handler],
    ) -> None:
        await _warm_cache(collection_cache, mock_api, paged_collection(20))
        mock_api.put("/collection/99").mock(
            return_value=Response(404, json={"message": "Media not found"}),
        )

        with pytest.raises(MutationError) as exc_info:
            await mutations.update(99, UpdateRecordRequest(title="X"))

        assert exc_info.value.category == "not_found"
        assert exc_info.value.error.message == "Media not found"
        assert len(collection_cache) == 2


class TestDelete:
    """Tests for MutationService.delete."""

    async def test__delete__invalidates_every_key(
        self,
        mutations: MutationService,
        collection_cache: CollectionCache,
        mock_api: respx.MockRouter,
        paged_collection: Callable[[int], Handler],
    ) -> None:
        await _warm_cache(collection_cache, mock_api, paged_collection(20))
        route = mock_api.delete("/collection/3").mock(return_value=Response(204))

        await mutations.delete(3)

        assert route.called
        assert len(collection_cache) == 0

    async def test__delete__next_fetch_restarts_at_page_one(
        self,
        mutations: MutationService,
        collection_cache: CollectionCache,
        mock_api: respx.MockRouter,
        paged_collection: Callable[[int], Handler],
    ) -> None:
        await _warm_cache(collection_cache, mock_api, paged_collection(20))
        await collection_cache.fetch_next(FilterKey(search_text="x"))
        mock_api.delete("/collection/3").mock(return_value=Response(200, json={}))

        await mutations.delete(3)
        await collection_cache.fetch_next(FilterKey(search_text="x"))

        get_calls = [c for c in mock_api.calls if c.request.method == "GET"]
        assert get_calls[-1].request.url.params["page"] == "1"

    async def test__delete__failure_uses_delete_fallback(
        self,
        mutations: MutationService,
        collection_cache: CollectionCache,
        mock_api: respx.MockRouter,
        paged_collection: Callable[[int], Handler],
    ) -> None:
        await _warm_cache(collection_cache, mock_api, paged_collection(20))
        mock_api.delete("/collection/3").mock(return_value=Response(500, text=""))

        with pytest.raises(MutationError, match="Error while deleting"):
            await mutations.delete(3)

        assert len(collection_cache) == 2

    async def test__delete__expired_session_reported_as_auth(
        self,
        mutations: MutationService,
        mock_api: respx.MockRouter,
    ) -> None:
        mock_api.delete("/collection/3").mock(return_value=Response(401, json={}))

        with pytest.raises(MutationError) as exc_info:
            await mutations.delete(3)

        assert exc_info.value.category == "auth"
