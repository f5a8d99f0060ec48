"""
Author Pydantic Schemas

- AuthorInput: field rules for creating an author (and for re-checking a
  merged record after an update)
- AuthorPatch: the same rules with every field optional (PUT is a partial
  merge)
- AuthorResponse: what the API returns, including derived name/url

Pydantic v2 Features Used:
- Field(): Constraints and OpenAPI metadata
- field_validator: Sanitize and check individual fields
- ConfigDict(from_attributes=True): Build responses from ORM objects
"""

from datetime import date, datetime
from typing import Any, ClassVar

from pydantic import ConfigDict, Field, ValidationInfo, field_validator

from library_api.schemas.common import CamelModel, blank_to_none, check_url, clean_text

# Friendlier messages keyed by (field alias, pydantic error type)
AUTHOR_MESSAGES: dict[tuple[str, str], str] = {
    ("firstName", "missing"): "First name is required.",
    ("firstName", "string_too_short"): "First name is required.",
    ("firstName", "string_too_long"): "First name must be less than 100 chars.",
    ("lastName", "missing"): "Last name is required.",
    ("lastName", "string_too_short"): "Last name is required.",
    ("lastName", "string_too_long"): "Last name must be less than 100 chars.",
    ("dateOfBirth", "*"): "Date of birth must be a valid ISO 8601 date.",
    ("dateOfDeath", "*"): "Date of death must be a valid ISO 8601 date.",
    ("nationality", "string_too_long"): "Nationality must be less than 100 chars.",
    ("biography", "string_too_long"): "Biography must be less than 1000 chars.",
    ("website", "string_too_long"): "Website must be less than 200 chars.",
}


class AuthorInput(CamelModel):
    """
    Schema for creating a new author.

    Example request body:
    {
        "firstName": "J.R.R.",
        "lastName": "Tolkien",
        "dateOfBirth": "1892-01-03",
        "nationality": "British"
    }
    """

    field_messages: ClassVar[dict[tuple[str, str], str]] = AUTHOR_MESSAGES

    first_name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Author's given name",
        examples=["J.R.R."],
    )
    last_name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Author's family name",
        examples=["Tolkien"],
    )
    date_of_birth: date | None = Field(default=None, examples=["1892-01-03"])
    date_of_death: date | None = Field(default=None, examples=["1973-09-02"])
    nationality: str | None = Field(default=None, max_length=100, examples=["British"])
    biography: str | None = Field(default=None, max_length=1000)
    website: str | None = Field(
        default=None,
        max_length=200,
        description="Absolute http(s) URL",
        examples=["https://www.tolkienestate.com"],
    )
    is_active: bool = Field(default=True, description="Whether the author is active")

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def sanitize_required_text(cls, v: Any, info: ValidationInfo) -> Any:
        return clean_text(v, info)

    @field_validator("nationality", "biography", mode="before")
    @classmethod
    def sanitize_optional_text(cls, v: Any, info: ValidationInfo) -> Any:
        return clean_text(v, info, blank_as_none=True)

    @field_validator("date_of_birth", "date_of_death", mode="before")
    @classmethod
    def empty_date_is_none(cls, v: Any) -> Any:
        return blank_to_none(v)

    @field_validator("website", mode="before")
    @classmethod
    def strip_website(cls, v: Any) -> Any:
        v = blank_to_none(v)
        return v.strip() if isinstance(v, str) else v

    @field_validator("website")
    @classmethod
    def website_must_be_url(cls, v: str | None) -> str | None:
        return check_url(v)


class AuthorPatch(CamelModel):
    """
    Schema for updating an existing author.

    All fields are optional; only the keys present in the body are applied.
    The merged record is then re-checked against AuthorInput, so sending
    {"firstName": null} is rejected there.
    """

    field_messages: ClassVar[dict[tuple[str, str], str]] = AUTHOR_MESSAGES

    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    date_of_birth: date | None = None
    date_of_death: date | None = None
    nationality: str | None = Field(default=None, max_length=100)
    biography: str | None = Field(default=None, max_length=1000)
    website: str | None = Field(default=None, max_length=200)
    is_active: bool | None = None

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def sanitize_required_text(cls, v: Any, info: ValidationInfo) -> Any:
        return clean_text(v, info)

    @field_validator("nationality", "biography", mode="before")
    @classmethod
    def sanitize_optional_text(cls, v: Any, info: ValidationInfo) -> Any:
        return clean_text(v, info, blank_as_none=True)

    @field_validator("date_of_birth", "date_of_death", mode="before")
    @classmethod
    def empty_date_is_none(cls, v: Any) -> Any:
        return blank_to_none(v)

    @field_validator("website", mode="before")
    @classmethod
    def strip_website(cls, v: Any) -> Any:
        v = blank_to_none(v)
        return v.strip() if isinstance(v, str) else v

    @field_validator("website")
    @classmethod
    def website_must_be_url(cls, v: str | None) -> str | None:
        return check_url(v)


class AuthorResponse(CamelModel):
    """
    Schema for author responses.

    name and url are derived from the ORM object at response time; they are
    not columns.
    """

    id: str = Field(..., description="Unique identifier", examples=["6f1c2b0e9a8d4c7fb3e2a1d0c9b8a7f6"])
    first_name: str
    last_name: str
    date_of_birth: date | None = None
    date_of_death: date | None = None
    nationality: str | None = None
    biography: str | None = None
    website: str | None = None
    is_active: bool = True
    created_at: datetime = Field(..., description="When the author was created")
    updated_at: datetime = Field(..., description="When the author was last updated")
    name: str = Field(..., description="Full display name")
    url: str = Field(..., description="Canonical resource path")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "6f1c2b0e9a8d4c7fb3e2a1d0c9b8a7f6",
                "firstName": "J.R.R.",
                "lastName": "Tolkien",
                "dateOfBirth": "1892-01-03",
                "dateOfDeath": "1973-09-02",
                "nationality": "British",
                "biography": None,
                "website": None,
                "isActive": True,
                "createdAt": "2024-03-25T12:00:00",
                "updatedAt": "2024-03-25T12:00:00",
                "name": "J.R.R. Tolkien",
                "url": "/authors/6f1c2b0e9a8d4c7fb3e2a1d0c9b8a7f6",
            }
        },
    )
