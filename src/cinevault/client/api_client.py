"""Single outbound gateway to the CineVault API."""
import logging
from collections.abc import Callable
from typing import Any

import httpx

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], str | None]
UnauthorizedListener = Callable[[], None]


class HttpError(Exception):
    """Raised when the API answers with a non-2xx status."""

    def __init__(self, status: int, body: Any) -> None:
        self.status = status
        self.body = body
        super().__init__(f"API error {status}")


class NetworkError(Exception):
    """Raised when no response was received (connection failure, timeout)."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


def _decode_body(response: httpx.Response) -> Any:
    """Decode a response body as JSON, falling back to raw text."""
    try:
        return response.json()
    except ValueError:
        return response.text


def _multipart_fields(form: dict[str, Any]) -> dict[str, tuple[None, str]]:
    """
    Encode plain form fields as multipart parts.

    httpx only switches to multipart/form-data when `files` is given, so each
    field becomes a part with no filename. None values are skipped.
    """
    return {key: (None, str(value)) for key, value in form.items() if value is not None}


class ApiClient:
    """
    Wraps an httpx.AsyncClient with session-aware authentication.

    The current token is read from the token provider when each request is
    dispatched. A 401 on an authenticated request notifies every unauthorized
    listener before the error is raised to the caller. There are no retries.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        request_source: str = "cinevault-client",
    ) -> None:
        self._http_client = http_client
        self._request_source = request_source
        self._token_provider: TokenProvider = lambda: None
        self._unauthorized_listeners: list[UnauthorizedListener] = []

    @property
    def http_client(self) -> httpx.AsyncClient:
        """The underlying httpx client."""
        return self._http_client

    def set_token_provider(self, provider: TokenProvider) -> None:
        """Set the callable that supplies the current bearer token."""
        self._token_provider = provider

    def add_unauthorized_listener(self, listener: UnauthorizedListener) -> None:
        """Register a callback invoked when an authenticated request gets a 401."""
        self._unauthorized_listeners.append(listener)

    def _get_headers(self, token: str | None) -> dict[str, str]:
        """Get common headers for API requests."""
        headers = {"X-Request-Source": self._request_source}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _notify_unauthorized(self) -> None:
        # The caller still gets the HttpError when a listener fails
        for listener in list(self._unauthorized_listeners):
            try:
                listener()
            except Exception:
                logger.exception("unauthorized_listener_failed listener=%r", listener)

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        form: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        authenticate: bool = True,
    ) -> httpx.Response:
        """
        Send a request to the API.

        Args:
            method: HTTP method.
            path: Path relative to the API base URL.
            json: JSON body.
            form: Fields sent as multipart/form-data.
            params: Query parameters.
            authenticate: Attach the current token and run the unauthorized
                listeners on a 401. Login and registration pass False: they
                carry no token, and a 401 from them means wrong credentials,
                not an expired session, so it never logs out a session that
                is already persisted.

        Returns:
            The successful (2xx) response.

        Raises:
            HttpError: The API returned a non-2xx status.
            NetworkError: No response was received.
        """
        # Captured once: a logout while this request is in flight doesn't affect it
        token = self._token_provider() if authenticate else None
        files = _multipart_fields(form) if form is not None else None

        logger.debug(
            "api_request method=%s path=%s authenticated=%s",
            method,
            path,
            token is not None,
        )
        try:
            response = await self._http_client.request(
                method,
                path,
                json=json,
                files=files,
                params=params,
                headers=self._get_headers(token),
            )
        except httpx.RequestError as e:
            logger.warning("api_unavailable method=%s path=%s error=%s", method, path, e)
            raise NetworkError(f"API unavailable: {e}") from e

        if response.is_success:
            return response

        logger.warning(
            "api_error method=%s path=%s status=%s",
            method,
            path,
            response.status_code,
        )
        if response.status_code == httpx.codes.UNAUTHORIZED and authenticate:
            self._notify_unauthorized()
        raise HttpError(response.status_code, _decode_body(response))

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if not self._http_client.is_closed:
            await self._http_client.aclose()
