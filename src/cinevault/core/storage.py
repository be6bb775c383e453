"""
Persistent storage for the session token and user.

The persisted layout is two independent string slots: one holding the raw
token and one holding the JSON-serialized user. Both are written together and
erased together; readers treat a half-present pair as malformed.
"""
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

TOKEN_SLOT = "token"
USER_SLOT = "user"


class SessionStorage(Protocol):
    """Two-slot string storage used by SessionStore."""

    def read(self) -> tuple[str | None, str | None]:
        """Return the (token, user) slots, None for an absent slot."""
        ...

    def write(self, token: str, user: str) -> None:
        """Write both slots."""
        ...

    def clear(self) -> None:
        """Erase both slots. Must be a no-op when nothing is stored."""
        ...


class FileSessionStorage:
    """
    Stores each slot as a separate file in a directory.

    Writes go through a temporary file and `os.replace`, so a slot is either
    fully written or not written at all.
    """

    def __init__(self, directory: Path) -> None:
        self._directory = directory

    @property
    def directory(self) -> Path:
        """Directory holding the slot files."""
        return self._directory

    def _slot_path(self, slot: str) -> Path:
        return self._directory / slot

    def _read_slot(self, slot: str) -> str | None:
        path = self._slot_path(slot)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def _write_slot(self, slot: str, value: str) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self._directory, prefix=f".{slot}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self._slot_path(slot))
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def read(self) -> tuple[str | None, str | None]:
        """Return the (token, user) slots, None for an absent slot."""
        return self._read_slot(TOKEN_SLOT), self._read_slot(USER_SLOT)

    def write(self, token: str, user: str) -> None:
        """
        Write both slots.

        The user slot is written first so that an interrupted write leaves at
        most a user without a token, which restore() discards as malformed.
        """
        self._directory.mkdir(parents=True, exist_ok=True)
        self._write_slot(USER_SLOT, user)
        self._write_slot(TOKEN_SLOT, token)
        logger.debug("session_storage_write directory=%s", self._directory)

    def clear(self) -> None:
        """Erase both slots."""
        # Token first: once it is gone no reader considers the session present
        self._slot_path(TOKEN_SLOT).unlink(missing_ok=True)
        self._slot_path(USER_SLOT).unlink(missing_ok=True)
        logger.debug("session_storage_clear directory=%s", self._directory)
