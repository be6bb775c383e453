"""
Shared API error parsing.

Turns transport exceptions and local validation failures into a single
`ParsedApiError` so callers can tell validation, authentication, network and
server failures apart without inspecting httpx or pydantic types.
"""

from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import ValidationError

from cinevault.client.api_client import HttpError, NetworkError

ErrorCategory = Literal[
    "validation",  # Local field validation, or 400/422 from the server
    "auth",        # 401 - wrong credentials or invalid/expired token
    "forbidden",   # 403 - Access denied
    "not_found",   # 404 - Resource not found
    "network",     # No response received
    "server",      # Any other non-2xx status, or an unreadable 2xx body
]


@dataclass
class ParsedApiError:
    """Parsed failure with semantic category and message."""

    category: ErrorCategory
    message: str
    status: int | None = None
    field_errors: dict[str, str] = field(default_factory=dict)


def parse_http_error(e: HttpError, fallback_message: str = "") -> ParsedApiError:
    """
    Parse an HTTP error into a semantic category.

    Args:
        e: The HttpError raised by ApiClient.
        fallback_message: Message used when the response body carries none.

    Returns:
        ParsedApiError with category, message and status.
    """
    status = e.status
    server_message = extract_server_message(e.body)

    if status == 401:
        return ParsedApiError("auth", server_message or "Invalid or expired token", status)

    if status == 403:
        return ParsedApiError("forbidden", server_message or "Access denied", status)

    if status == 404:
        return ParsedApiError("not_found", server_message or "Not found", status)

    if status in (400, 422):
        return ParsedApiError(
            "validation",
            server_message or fallback_message or "Validation error",
            status,
        )

    return ParsedApiError(
        "server",
        server_message or fallback_message or f"API error {status}",
        status,
    )


def parse_network_error(e: NetworkError) -> ParsedApiError:
    """Wrap a NetworkError; no status since no response arrived."""
    return ParsedApiError("network", str(e) or "No response from server")


def parse_validation_error(e: ValidationError) -> ParsedApiError:
    """
    Convert a pydantic ValidationError into field-by-field messages.

    Only the first message per field is kept. The overall message joins them in
    field order.
    """
    field_errors: dict[str, str] = {}
    for err in e.errors():
        loc = err.get("loc", ())
        name = str(loc[0]) if loc else "unknown"
        if name in field_errors:
            continue
        ctx_error = err.get("ctx", {}).get("error")
        if ctx_error is not None:
            field_errors[name] = str(ctx_error)
        else:
            field_errors[name] = err.get("msg", "invalid")
    message = "; ".join(f"{name}: {msg}" for name, msg in field_errors.items())
    return ParsedApiError("validation", message or "Validation error", field_errors=field_errors)


def malformed_response_error(context: str) -> ParsedApiError:
    """Error for a 2xx response whose body doesn't match the expected shape."""
    return ParsedApiError("server", f"Malformed response from server ({context})")


def extract_server_message(body: Any) -> str:
    """
    Extract a human-readable message from an error response body.

    Looks at `message` first, then `detail` (string, dict with `message`, or a
    FastAPI-style list of validation errors). Returns "" when nothing usable.
    """
    if isinstance(body, str):
        return body.strip() if len(body.strip()) <= 500 else ""
    if not isinstance(body, dict):
        return ""

    message = body.get("message")
    if isinstance(message, str) and message:
        return message

    detail = body.get("detail")
    if isinstance(detail, str):
        return detail
    if isinstance(detail, dict):
        inner = detail.get("message")
        return inner if isinstance(inner, str) else ""
    if isinstance(detail, list):
        messages = []
        for err in detail:
            if isinstance(err, dict):
                loc = err.get("loc", ["unknown"])
                name = loc[-1] if loc else "unknown"
                messages.append(f"{name}: {err.get('msg', 'invalid')}")
        return "; ".join(messages)
    return ""
