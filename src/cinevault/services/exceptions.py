"""Exceptions raised by the service layer."""

from cinevault.shared.api_errors import ParsedApiError


class MutationError(Exception):
    """
    Raised when a create, update or delete fails.

    Carries the parsed error so callers can tell a rejected payload from a
    lost connection or an expired session. The collection cache is left
    untouched when this is raised.
    """

    def __init__(self, error: ParsedApiError) -> None:
        self.error = error
        super().__init__(error.message)

    @property
    def category(self) -> str:
        """Category of the underlying failure (e.g. 'validation', 'network')."""
        return self.error.category
