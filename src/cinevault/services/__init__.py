"""Session, collection and mutation services."""

from .collection_cache import CacheEntry, CollectionCache, FetchResult
from .exceptions import MutationError
from .mutation_service import MutationService
from .session_store import AuthResult, SessionStore

__all__ = [
    "AuthResult",
    "CacheEntry",
    "CollectionCache",
    "FetchResult",
    "MutationError",
    "MutationService",
    "SessionStore",
]
