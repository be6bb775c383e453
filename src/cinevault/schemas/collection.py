"""Schemas for the paginated collection endpoint."""
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

from cinevault.schemas.record import Record


@dataclass(frozen=True)
class FilterKey:
    """
    Identity of one pagination stream.

    Compared exactly: no case folding, no trimming. An empty record_type means
    all types.
    """

    search_text: str = ""
    record_type: str = ""

    def to_params(self) -> dict[str, str]:
        """Query parameters for GET /collection."""
        return {"search": self.search_text, "type": self.record_type}


class PageMeta(BaseModel):
    """Pagination metadata reported by the server."""

    model_config = ConfigDict(extra="ignore")

    total: int = Field(ge=0)
    page: int
    limit: int


class Page(BaseModel):
    """One page of records plus the total count at fetch time."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    records: list[Record] = Field(alias="data")
    meta: PageMeta

    @property
    def total(self) -> int:
        """Total matching records reported by the server for this fetch."""
        return self.meta.total
