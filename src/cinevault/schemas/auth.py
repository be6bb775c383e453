"""Pydantic schemas for authentication endpoints."""
import re

from pydantic import BaseModel, ConfigDict, field_validator

# Shape check only; the server owns full address validation
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 6
MIN_NAME_LENGTH = 2


def validate_email(email: str) -> str:
    """
    Validate an email address.

    Raises:
        ValueError: If the value doesn't look like an email address.
    """
    if not EMAIL_PATTERN.match(email):
        raise ValueError("Enter a valid email")
    return email


def validate_password(password: str) -> str:
    """
    Validate password length.

    Raises:
        ValueError: If the password is shorter than MIN_PASSWORD_LENGTH.
    """
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return password


class Identity(BaseModel):
    """
    The authenticated user as returned by the server.

    Opaque to this client: never mutated, only stored and displayed.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int | str | None = None
    name: str | None = None
    email: str | None = None


class LoginRequest(BaseModel):
    """Credentials for POST /auth/login."""

    email: str
    password: str

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        """Reject malformed email addresses before any network call."""
        return validate_email(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        """Reject short passwords before any network call."""
        return validate_password(v)


class RegisterRequest(LoginRequest):
    """Payload for POST /auth/register."""

    name: str

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        """Require a name of at least MIN_NAME_LENGTH characters."""
        if len(v) < MIN_NAME_LENGTH:
            raise ValueError("Name is required")
        return v


class AuthResponse(BaseModel):
    """Response body of both auth endpoints."""

    model_config = ConfigDict(extra="ignore")

    token: str
    user: Identity

    @field_validator("token")
    @classmethod
    def check_token(cls, v: str) -> str:
        """An empty token would make the session look authenticated with no credential."""
        if not v:
            raise ValueError("Empty token")
        return v
