"""
Composition root.

Builds exactly one ApiClient, SessionStore, CollectionCache and
MutationService and wires them together. UI layers create a CineVault at
startup and pass its components to whatever needs them.
"""
import logging
from types import TracebackType

import httpx

from cinevault.client.api_client import ApiClient
from cinevault.core.config import Settings, get_settings
from cinevault.core.storage import FileSessionStorage, SessionStorage
from cinevault.services.collection_cache import CollectionCache
from cinevault.services.mutation_service import MutationService
from cinevault.services.session_store import SessionStore

logger = logging.getLogger(__name__)


class CineVault:
    """
    Owns the client state for one running application.

    Use as an async context manager: entering restores the persisted session,
    exiting closes the HTTP client (only if this instance created it).
    """

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
        storage: SessionStorage | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._owns_http_client = http_client is None
        if http_client is None:
            http_client = httpx.AsyncClient(
                base_url=self.settings.api_url,
                timeout=self.settings.request_timeout,
            )
        self.api = ApiClient(http_client, request_source=self.settings.request_source)
        self.session = SessionStore(
            self.api,
            storage or FileSessionStorage(self.settings.session_dir),
        )
        self.collection = CollectionCache(
            self.api,
            page_size=self.settings.page_size,
            path=self.settings.collection_path,
        )
        self.mutations = MutationService(
            self.api,
            self.collection,
            path=self.settings.collection_path,
        )

    async def __aenter__(self) -> "CineVault":
        self.session.restore()
        logger.debug(
            "cinevault_started api_url=%s authenticated=%s",
            self.settings.api_url,
            self.session.is_authenticated,
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release the HTTP client if this instance created it."""
        if self._owns_http_client:
            await self.api.aclose()
