"""HTTP gateway for the CineVault API."""

from .api_client import ApiClient, HttpError, NetworkError

__all__ = ["ApiClient", "HttpError", "NetworkError"]
