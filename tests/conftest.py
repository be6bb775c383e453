"""Shared fixtures for CineVault client tests."""
from collections.abc import AsyncGenerator, Callable, Iterator
from pathlib import Path
from typing import Any

import httpx
import pytest
import respx

from cinevault.client.api_client import ApiClient
from cinevault.core.config import Settings
from cinevault.core.storage import FileSessionStorage
from cinevault.services.collection_cache import CollectionCache
from cinevault.services.session_store import SessionStore

API_URL = "http://localhost:5000/api"


@pytest.fixture
def mock_api() -> Iterator[respx.MockRouter]:
    """Context manager for mocking API responses."""
    with respx.mock(base_url=API_URL, assert_all_called=False) as respx_mock:
        yield respx_mock


@pytest.fixture
async def http_client(
    mock_api: respx.MockRouter,  # noqa: ARG001
) -> AsyncGenerator[httpx.AsyncClient, None]:
    """httpx client created inside the respx context so requests are captured."""
    async with httpx.AsyncClient(base_url=API_URL) as client:
        yield client


@pytest.fixture
def api(http_client: httpx.AsyncClient) -> ApiClient:
    """ApiClient over the mocked transport."""
    return ApiClient(http_client, request_source="cinevault-test")


@pytest.fixture
def session_dir(tmp_path: Path) -> Path:
    """Directory holding the persisted session slots."""
    return tmp_path / "session"


@pytest.fixture
def storage(session_dir: Path) -> FileSessionStorage:
    """File-backed session storage in a temporary directory."""
    return FileSessionStorage(session_dir)


@pytest.fixture
def session_store(api: ApiClient, storage: FileSessionStorage) -> SessionStore:
    """SessionStore wired to the mocked ApiClient."""
    return SessionStore(api, storage)


@pytest.fixture
def collection_cache(api: ApiClient) -> CollectionCache:
    """CollectionCache over the mocked ApiClient with the default page size."""
    return CollectionCache(api, page_size=8, path="/collection")


@pytest.fixture
def settings(session_dir: Path) -> Settings:
    """Settings isolated from the environment and any local .env file."""
    return Settings(
        _env_file=None,
        VITE_API_BASE="http://localhost:5000",
        CINEVAULT_SESSION_DIR=str(session_dir),
    )


@pytest.fixture
def sample_user() -> dict[str, Any]:
    """Sample user as returned by the auth endpoints."""
    return {"id": 7, "name": "Ada Lovelace", "email": "a@b.com"}


@pytest.fixture
def sample_auth_response(sample_user: dict[str, Any]) -> dict[str, Any]:
    """Successful login/register response body."""
    return {"token": "jwt-token-123", "user": sample_user}


def make_record(record_id: int, **overrides: Any) -> dict[str, Any]:
    """Build a record as the server serializes it."""
    record = {
        "id": record_id,
        "title": f"Title {record_id}",
        "type": "Movie",
        "director": "Some Director",
        "budget": "$10M",
        "location": "LA",
        "duration": "120 min",
        "yearTime": "2010",
    }
    record.update(overrides)
    return record


def make_page(start: int, count: int, total: int, page: int = 1, limit: int = 8) -> dict[str, Any]:
    """Build a GET /collection response with records numbered from `start`."""
    return {
        "data": [make_record(i) for i in range(start, start + count)],
        "meta": {"total": total, "page": page, "limit": limit},
    }


@pytest.fixture
def paged_collection() -> Callable[[int], Callable[[httpx.Request], httpx.Response]]:
    """
    Factory for a respx side effect serving `total` records in pages.

    Honors the `page` and `limit` query parameters like the real server.
    """

    def factory(total: int) -> Callable[[httpx.Request], httpx.Response]:
        def handler(request: httpx.Request) -> httpx.Response:
            page = int(request.url.params["page"])
            limit = int(request.url.params["limit"])
            start = (page - 1) * limit + 1
            count = max(0, min(limit, total - start + 1))
            return httpx.Response(200, json=make_page(start, count, total, page, limit))

        return handler

    return factory
