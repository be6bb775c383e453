"""Session lifecycle: restore, login, register and logout."""
import logging
from collections.abc import Callable
from dataclasses import dataclass

from pydantic import BaseModel, ValidationError

from cinevault.client.api_client import ApiClient, HttpError, NetworkError
from cinevault.core.storage import SessionStorage
from cinevault.schemas.auth import AuthResponse, Identity, LoginRequest, RegisterRequest
from cinevault.schemas.session import ANONYMOUS, Session
from cinevault.shared.api_errors import (
    ParsedApiError,
    malformed_response_error,
    parse_http_error,
    parse_network_error,
    parse_validation_error,
)

logger = logging.getLogger(__name__)

SessionListener = Callable[[Session], None]

LOGIN_FAILED_MESSAGE = "Invalid credentials"
REGISTER_FAILED_MESSAGE = "Registration failed"


@dataclass(frozen=True)
class AuthResult:
    """Outcome of login() or register(): a session on success, an error otherwise."""

    session: Session | None = None
    error: ParsedApiError | None = None

    @property
    def ok(self) -> bool:
        """True when authentication succeeded."""
        return self.error is None


class SessionStore:
    """
    Owns the authentication token and current user.

    One instance is created at application start and passed to whoever needs
    it. On construction it installs itself as the ApiClient's token provider
    and registers logout() as the ApiClient's 401 listener.

    Every successful transition is written to storage before the in-memory
    session changes, so storage and memory never disagree about whether a
    session exists. Expected failures are returned as AuthResult, not raised.
    """

    def __init__(self, api: ApiClient, storage: SessionStorage) -> None:
        self._api = api
        self._storage = storage
        self._session: Session = ANONYMOUS
        self._listeners: list[SessionListener] = []
        api.set_token_provider(lambda: self._session.token)
        api.add_unauthorized_listener(self._on_unauthorized)

    @property
    def session(self) -> Session:
        """The current session."""
        return self._session

    @property
    def token(self) -> str | None:
        """The current bearer token, or None."""
        return self._session.token

    @property
    def user(self) -> Identity | None:
        """The current user, or None."""
        return self._session.user

    @property
    def is_authenticated(self) -> bool:
        """True when a token is present."""
        return self._session.is_authenticated

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Register a listener called with the new Session after each transition.

        Returns:
            A callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def restore(self) -> Session:
        """
        Adopt the persisted session, if any, without contacting the server.

        A half-present, undecodable or unreadable pair is discarded: storage
        is erased and the session starts logged out.
        """
        try:
            token, user_json = self._storage.read()
            if token is None and user_json is None:
                self._session = ANONYMOUS
                return self._session
            if not token or user_json is None:
                raise ValueError("token and user slots must both be present")
            session = Session(token=token, user=Identity.model_validate_json(user_json))
        # UnicodeDecodeError and pydantic.ValidationError are ValueErrors
        except (ValueError, OSError) as e:
            logger.warning("session_restore_discarded reason=%s", e)
            self._discard_persisted()
            self._session = ANONYMOUS
            return self._session

        self._session = session
        logger.info("session_restored user_id=%s", session.user.id if session.user else None)
        return self._session

    async def login(self, email: str, password: str) -> AuthResult:
        """
        Authenticate with email and password.

        Fields are validated locally first; invalid fields are reported
        without a network call. On any failure the session is unchanged.
        """
        try:
            payload = LoginRequest(email=email, password=password)
        except ValidationError as e:
            return AuthResult(error=parse_validation_error(e))
        return await self._authenticate("/auth/login", payload, LOGIN_FAILED_MESSAGE)

    async def register(self, name: str, email: str, password: str) -> AuthResult:
        """
        Create an account and sign in with it.

        Same contract as login(); success establishes an authenticated session.
        """
        try:
            payload = RegisterRequest(name=name, email=email, password=password)
        except ValidationError as e:
            return AuthResult(error=parse_validation_error(e))
        return await self._authenticate("/auth/register", payload, REGISTER_FAILED_MESSAGE)

    def logout(self) -> None:
        """Clear the session and erase persisted state. No-op when logged out."""
        if not self._session.is_authenticated:
            return
        self._storage.clear()
        self._session = ANONYMOUS
        logger.info("session_logged_out")
        self._notify()

    async def _authenticate(
        self,
        path: str,
        payload: BaseModel,
        failure_message: str,
    ) -> AuthResult:
        try:
            response = await self._api.request(
                "POST",
                path,
                json=payload.model_dump(),
                authenticate=False,
            )
        except HttpError as e:
            parsed = parse_http_error(e, failure_message)
            if parsed.category == "auth":
                # Wrong credentials: generic message, no field detail
                parsed = ParsedApiError("auth", failure_message, e.status)
            logger.info("auth_failed path=%s status=%s", path, e.status)
            return AuthResult(error=parsed)
        except NetworkError as e:
            return AuthResult(error=parse_network_error(e))

        try:
            body = AuthResponse.model_validate(response.json())
        except ValueError as e:
            logger.warning("auth_response_malformed path=%s error=%s", path, e)
            return AuthResult(error=malformed_response_error(path))

        session = self._adopt(body.token, body.user)
        logger.info("session_authenticated path=%s user_id=%s", path, body.user.id)
        return AuthResult(session=session)

    def _adopt(self, token: str, user: Identity) -> Session:
        # Storage first; memory is only updated once the write succeeded
        self._storage.write(token, user.model_dump_json())
        self._session = Session(token=token, user=user)
        self._notify()
        return self._session

    def _on_unauthorized(self) -> None:
        if self._session.is_authenticated:
            logger.warning("session_expired_logging_out")
        self.logout()

    def _discard_persisted(self) -> None:
        try:
            self._storage.clear()
        except OSError:
            logger.exception("session_storage_clear_failed")

    def _notify(self) -> None:
        # The transition is already committed; a failing listener can't undo it
        for listener in list(self._listeners):
            try:
                listener(self._session)
            except Exception:
                logger.exception("session_listener_failed listener=%r", listener)
