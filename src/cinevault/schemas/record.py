"""Pydantic schemas for collection records and mutation payloads."""
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

RecordType = Literal["Movie", "TV Show"]
RECORD_TYPES: tuple[str, ...] = ("Movie", "TV Show")


class Record(BaseModel):
    """
    A movie or TV show as returned by the server.

    Immutable snapshot: the client never edits a Record in place, it refetches.
    Wire names are camelCase (e.g. `yearTime`); attributes are snake_case.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: int | str
    title: str
    type: str
    director: str | None = None
    budget: str | None = None
    location: str | None = None
    duration: str | None = None
    year_time: str | None = Field(default=None, alias="yearTime")
    poster_url: str | None = Field(default=None, alias="posterUrl")
    details: str | None = None


class CreateRecordRequest(BaseModel):
    """Fields for POST /collection, sent as multipart form data."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    type: RecordType = "Movie"
    director: str | None = None
    budget: str | None = None
    location: str | None = None
    duration: str | None = None
    year_time: str | None = Field(default=None, alias="yearTime")

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str) -> str:
        """Title is the only free-text field the server requires."""
        if not v.strip():
            raise ValueError("Title is required")
        return v

    def to_form_fields(self) -> dict[str, str]:
        """Wire field names to values, omitting unset optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class UpdateRecordRequest(CreateRecordRequest):
    """Fields for PUT /collection/{id}. Replaces the whole record."""

    @classmethod
    def from_record(cls, record: Record) -> "UpdateRecordRequest":
        """
        Build an update payload prefilled from an existing record.

        Unknown record types fall back to "Movie", matching the edit form.
        """
        record_type = record.type if record.type in RECORD_TYPES else "Movie"
        return cls(
            title=record.title,
            type=record_type,
            director=record.director,
            budget=record.budget,
            location=record.location,
            duration=record.duration,
            year_time=record.year_time,
        )
