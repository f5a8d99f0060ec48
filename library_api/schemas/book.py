"""
Book Pydantic Schemas

Handles:
- authorId shape check (the existence check happens in the pipeline)
- Per-element sanitizing of the genre list
- publishedYear bounded by the current calendar year
- List entries that carry only the author's display name, and detail
  responses that inline the whole author
"""

from datetime import date, datetime
from typing import Any, ClassVar

from pydantic import ConfigDict, Field, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from library_api.models.identifiers import parse_id
from library_api.schemas.author import AuthorResponse
from library_api.schemas.common import (
    CamelModel,
    blank_to_none,
    clean_text,
    escape_text,
    should_sanitize,
)

MIN_PUBLISHED_YEAR = 1000

BOOK_MESSAGES: dict[tuple[str, str], str] = {
    ("title", "missing"): "Title is required.",
    ("title", "string_too_short"): "Title is required.",
    ("title", "string_too_long"): "Title must be less than 200 characters.",
    ("authorId", "missing"): "Author ID is required.",
    ("authorId", "string_type"): "Must be a valid Author ID.",
    ("summary", "string_too_long"): "Summary must be less than 1000 characters.",
    ("isbn", "string_too_long"): "ISBN must be less than 20 characters.",
    ("pageCount", "*"): "Page count must be a positive integer.",
}


def _current_year(info: ValidationInfo) -> int:
    context = info.context or {}
    today = context.get("today") or date.today()
    return today.year


def _check_author_id(value: str | None) -> str | None:
    if value is None:
        return value
    if not value.strip():
        raise PydanticCustomError("missing", "Author ID is required.")
    author_id = parse_id(value)
    if author_id is None:
        raise PydanticCustomError("author_id_format", "Must be a valid Author ID.")
    return author_id


def _check_published_year(value: int | None, info: ValidationInfo) -> int | None:
    if value is None:
        return value
    max_year = _current_year(info)
    if not MIN_PUBLISHED_YEAR <= value <= max_year:
        raise PydanticCustomError(
            "year_range",
            "Published year must be between {min_year} and {max_year}.",
            {"min_year": MIN_PUBLISHED_YEAR, "max_year": max_year},
        )
    return value


def _whole_number(value: Any) -> Any:
    # JSON true/false are not counts or years
    if isinstance(value, bool):
        raise PydanticCustomError("int_type", "Input should be a valid integer")
    return blank_to_none(value)


def _coerce_genre(value: Any) -> Any:
    # A lone string is a one-element list; null means no genres
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return value


def _clean_genre(value: list[str], info: ValidationInfo) -> list[str]:
    sanitize = should_sanitize(info)
    cleaned = []
    for item in value:
        item = item.strip()
        cleaned.append(escape_text(item) if sanitize else item)
    return cleaned


class BookInput(CamelModel):
    """
    Schema for creating a new book.

    Example request body:
    {
        "title": "The Hobbit",
        "authorId": "6f1c2b0e9a8d4c7fb3e2a1d0c9b8a7f6",
        "genre": ["Fantasy", "Adventure"],
        "publishedYear": 1937,
        "pageCount": 310
    }
    """

    field_messages: ClassVar[dict[tuple[str, str], str]] = BOOK_MESSAGES

    title: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Book title",
        examples=["The Hobbit"],
    )
    author_id: str = Field(
        ...,
        description="Id of an existing author",
        examples=["6f1c2b0e9a8d4c7fb3e2a1d0c9b8a7f6"],
    )
    summary: str | None = Field(default=None, max_length=1000)
    isbn: str | None = Field(default=None, max_length=20, examples=["978-0547928227"])
    genre: list[str] = Field(default_factory=list, examples=[["Fantasy", "Adventure"]])
    published_year: int | None = Field(default=None, examples=[1937])
    page_count: int | None = Field(default=None, ge=1, examples=[310])

    @field_validator("title", mode="before")
    @classmethod
    def sanitize_title(cls, v: Any, info: ValidationInfo) -> Any:
        return clean_text(v, info)

    @field_validator("summary", "isbn", mode="before")
    @classmethod
    def sanitize_optional_text(cls, v: Any, info: ValidationInfo) -> Any:
        return clean_text(v, info, blank_as_none=True)

    @field_validator("published_year", "page_count", mode="before")
    @classmethod
    def whole_number_or_none(cls, v: Any) -> Any:
        return _whole_number(v)

    @field_validator("genre", mode="before")
    @classmethod
    def genre_as_list(cls, v: Any) -> Any:
        return _coerce_genre(v)

    @field_validator("genre")
    @classmethod
    def sanitize_genre(cls, v: list[str], info: ValidationInfo) -> list[str]:
        return _clean_genre(v, info)

    @field_validator("author_id")
    @classmethod
    def author_id_must_be_well_formed(cls, v: str) -> str:
        return _check_author_id(v)

    @field_validator("published_year")
    @classmethod
    def published_year_in_range(cls, v: int | None, info: ValidationInfo) -> int | None:
        return _check_published_year(v, info)


class BookPatch(CamelModel):
    """
    Schema for updating an existing book.

    Only keys present in the body are applied. If authorId is among them
    the pipeline confirms the new author exists before writing.
    """

    field_messages: ClassVar[dict[tuple[str, str], str]] = BOOK_MESSAGES

    title: str | None = Field(default=None, min_length=1, max_length=200)
    author_id: str | None = None
    summary: str | None = Field(default=None, max_length=1000)
    isbn: str | None = Field(default=None, max_length=20)
    genre: list[str] | None = None
    published_year: int | None = None
    page_count: int | None = Field(default=None, ge=1)

    @field_validator("title", mode="before")
    @classmethod
    def sanitize_title(cls, v: Any, info: ValidationInfo) -> Any:
        return clean_text(v, info)

    @field_validator("summary", "isbn", mode="before")
    @classmethod
    def sanitize_optional_text(cls, v: Any, info: ValidationInfo) -> Any:
        return clean_text(v, info, blank_as_none=True)

    @field_validator("published_year", "page_count", mode="before")
    @classmethod
    def whole_number_or_none(cls, v: Any) -> Any:
        return _whole_number(v)

    @field_validator("genre", mode="before")
    @classmethod
    def genre_as_list(cls, v: Any) -> Any:
        return _coerce_genre(v)

    @field_validator("genre")
    @classmethod
    def sanitize_genre(cls, v: list[str] | None, info: ValidationInfo) -> list[str] | None:
        return _clean_genre(v, info) if v is not None else v

    @field_validator("author_id")
    @classmethod
    def author_id_must_be_well_formed(cls, v: str | None) -> str | None:
        return _check_author_id(v)

    @field_validator("published_year")
    @classmethod
    def published_year_in_range(cls, v: int | None, info: ValidationInfo) -> int | None:
        return _check_published_year(v, info)


class BookBase(CamelModel):
    """Fields shared by list entries and detail responses."""

    id: str = Field(..., description="Unique identifier")
    title: str
    author_id: str
    summary: str | None = None
    isbn: str | None = None
    genre: list[str] = Field(default_factory=list)
    published_year: int | None = None
    page_count: int | None = None
    created_at: datetime
    updated_at: datetime
    url: str = Field(..., description="Canonical resource path")

    model_config = ConfigDict(from_attributes=True)


class BookSummary(BookBase):
    """List entry: the author is reduced to a display name."""

    author_name: str | None = Field(default=None, description="Author's display name")


class BookResponse(BookBase):
    """
    Detail response with the full author inlined.

    Returned by get-one, create and update.
    """

    author: AuthorResponse | None = Field(default=None, description="Referenced author")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "0a9b8c7d6e5f44332211ffeeddccbbaa",
                "title": "The Hobbit",
                "authorId": "6f1c2b0e9a8d4c7fb3e2a1d0c9b8a7f6",
                "summary": "A reluctant hobbit goes on an adventure.",
                "isbn": "978-0547928227",
                "genre": ["Fantasy", "Adventure"],
                "publishedYear": 1937,
                "pageCount": 310,
                "createdAt": "2024-03-25T12:00:00",
                "updatedAt": "2024-03-25T12:00:00",
                "url": "/books/0a9b8c7d6e5f44332211ffeeddccbbaa",
                "author": AuthorResponse.model_config["json_schema_extra"]["example"],
            }
        },
    )
