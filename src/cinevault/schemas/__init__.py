"""Typed wire models for the CineVault API."""
from .auth import AuthResponse, Identity, LoginRequest, RegisterRequest
from .collection import FilterKey, Page, PageMeta
from .record import (
    RECORD_TYPES,
    CreateRecordRequest,
    Record,
    RecordType,
    UpdateRecordRequest,
)
from .session import ANONYMOUS, Session

__all__ = [
    "ANONYMOUS",
    "RECORD_TYPES",
    "AuthResponse",
    "CreateRecordRequest",
    "FilterKey",
    "Identity",
    "LoginRequest",
    "Page",
    "PageMeta",
    "Record",
    "RecordType",
    "RegisterRequest",
    "Session",
    "UpdateRecordRequest",
]
