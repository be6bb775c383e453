"""Session value object shared by SessionStore and its listeners."""
from dataclasses import dataclass

from cinevault.schemas.auth import Identity


@dataclass(frozen=True)
class Session:
    """
    The current credential and identity, or their absence.

    Authenticated state is all-or-nothing: token and user are either both set
    or both None. Instances are immutable; SessionStore swaps whole objects.
    """

    token: str | None = None
    user: Identity | None = None

    def __post_init__(self) -> None:
        if (self.token is None) != (self.user is None):
            raise ValueError("Session token and user must be set together")

    @property
    def is_authenticated(self) -> bool:
        """True when a token is present."""
        return self.token is not None


ANONYMOUS = Session()
