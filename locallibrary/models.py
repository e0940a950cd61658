from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

CATALOG_PREFIX = "/catalog"


def format_date(value: Any, fmt: str = "%b %d, %Y") -> str:
    """Format a date for display; strings from re-rendered forms pass through."""
    if value is None or value == "":
        return ""
    if isinstance(value, date):
        return value.strftime(fmt)
    return str(value)


def iso_date(value: Any) -> str:
    """Value for an <input type="date"> field."""
    if value is None:
        return ""
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


class BookInstanceStatus(str, Enum):
    AVAILABLE = "Available"
    MAINTENANCE = "Maintenance"
    LOANED = "Loaned"
    RESERVED = "Reserved"

    @classmethod
    def values(cls) -> List[str]:
        return [s.value for s in cls]


class Record(BaseModel):
    """A document in one of the catalog collections."""

    model_config = ConfigDict(use_enum_values=True)

    id: Optional[str] = None

    def to_dict(self) -> dict:
        """Stored fields, without the identity."""
        return self.model_dump(mode="json", exclude={"id"})

    @classmethod
    def from_dict(cls, data: dict) -> "Record":
        return cls.model_validate(data)


class Author(Record):
    first_name: str
    family_name: str
    date_of_birth: Optional[date] = None
    date_of_death: Optional[date] = None

    @property
    def name(self) -> str:
        # Empty when either part is missing, so templates can skip it
        if not self.first_name or not self.family_name:
            return ""
        return f"{self.family_name}, {self.first_name}"

    @property
    def lifespan(self) -> str:
        birth = format_date(self.date_of_birth)
        death = format_date(self.date_of_death)
        if not birth and not death:
            return ""
        return f"{birth} - {death}"

    @property
    def url(self) -> str:
        return f"{CATALOG_PREFIX}/author/{self.id}"


class Genre(Record):
    name: str

    @property
    def url(self) -> str:
        return f"{CATALOG_PREFIX}/genre/{self.id}"


class Book(Record):
    title: str
    summary: str
    isbn: str
    author: str
    genre: List[str] = Field(default_factory=list)

    @property
    def url(self) -> str:
        return f"{CATALOG_PREFIX}/book/{self.id}"


class BookInstance(Record):
    book: str
    imprint: str
    status: BookInstanceStatus = Field(default=BookInstanceStatus.MAINTENANCE, validate_default=True)
    due_back: Optional[date] = None

    @property
    def url(self) -> str:
        return f"{CATALOG_PREFIX}/bookinstance/{self.id}"

    @property
    def due_back_formatted(self) -> str:
        return format_date(self.due_back)


class CatalogCounts(BaseModel):
    """Dashboard counts; a count is None when its read failed."""

    book_count: Optional[int] = None
    book_instance_count: Optional[int] = None
    book_instance_available_count: Optional[int] = None
    author_count: Optional[int] = None
    genre_count: Optional[int] = None
